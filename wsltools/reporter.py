from typing import TextIO

from rich.console import Console
from rich.markup import escape
from rich.text import Text

console = Console()

# (label, style) per message level
LEVELS: dict[str, tuple[str, str]] = {
  "info": ("INFO", "blue"),
  "success": ("SUCCESS", "green"),
  "warning": ("WARNING", "yellow"),
  "error": ("ERROR", "red"),
}


class Reporter:
  """
  Prints tagged status messages to the terminal.

  When a log file is attached, every message is mirrored to it as a plain
  line so that a run leaves a readable trace behind.
  """

  def __init__(self, log_file: TextIO | None = None, output: Console | None = None) -> None:
    self.console: Console = output or console
    self.log_file: TextIO | None = log_file

  def _log(self, line: str) -> None:
    if self.log_file is None:
      return
    print(line, file=self.log_file)
    self.log_file.flush()

  def _emit(self, level: str, message: str) -> None:
    label, style = LEVELS[level]
    self.console.print(f"[{style}]\\[{label}][/] {escape(message)}")
    self._log(f"[{label}] {message}")

  def info(self, message: str) -> None:
    self._emit("info", message)

  def success(self, message: str) -> None:
    self._emit("success", message)

  def warning(self, message: str) -> None:
    self._emit("warning", message)

  def error(self, message: str) -> None:
    self._emit("error", message)

  def header(self, message: str) -> None:
    self.console.print(f"[bold cyan]{escape(message)}[/]")
    self._log(message)

  def step(self, message: str) -> None:
    self.console.print(f"[magenta]▶ {escape(message)}[/]")
    self._log(f"▶ {message}")

  def print(self, message: str) -> None:
    """Print a markup line to the terminal and its plain text to the log."""
    self.console.print(message)
    self._log(Text.from_markup(message).plain)
