from __future__ import annotations

import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import TextIO

from wsltools.reporter import Reporter
from wsltools.types import DefaultsConfig


class RunContext:
  """
  Holds the state and configuration of a single tool invocation.

  The context owns the run log and the temporary work directory. Use it as
  a context manager: the log is opened once on entry and the work directory
  is removed on exit, whichever way the run ends. A work directory supplied
  by the caller is created if needed and left in place.
  """

  def __init__(
    self,
    defaults: DefaultsConfig,
    project_root: str | Path = ".",
    log_path: str | Path | None = None,
    work_dir: str | Path | None = None,
    session: str = "ArchWSL2",
  ) -> None:
    self.defaults: DefaultsConfig = defaults
    self.project_root: Path = Path(project_root).resolve()
    self.log_path: Path | None = Path(log_path) if log_path else None
    self.session: str = session

    self.work_dir: Path | None = Path(work_dir) if work_dir else None
    self.owns_work_dir: bool = work_dir is None

    self.log_file: TextIO | None = None
    self.reporter: Reporter = Reporter()

  def __enter__(self) -> RunContext:
    if self.log_path is not None:
      self.log_path.parent.mkdir(parents=True, exist_ok=True)
      self.log_file = open(self.log_path, "a", encoding="utf-8")
      print(f"{self.session} - {datetime.now():%Y-%m-%d %H:%M:%S}", file=self.log_file)
      self.reporter = Reporter(self.log_file)

    if self.work_dir is None:
      self.work_dir = Path(tempfile.mkdtemp(prefix="archwsl2-"))
    else:
      self.work_dir.mkdir(parents=True, exist_ok=True)

    return self

  def __exit__(
    self,
    exc_type: type[BaseException] | None,
    exc: BaseException | None,
    tb: TracebackType | None,
  ) -> None:
    if self.owns_work_dir and self.work_dir is not None:
      shutil.rmtree(self.work_dir, ignore_errors=True)

    if self.log_file is not None:
      self.log_file.close()
      self.log_file = None
      self.reporter = Reporter()

  @property
  def work(self) -> Path:
    """Work directory of the active run."""
    assert self.work_dir is not None, "RunContext is not active"
    return self.work_dir
