import json
import os
import shutil
import subprocess
import sys

from rich.console import Console
from rich.markup import escape

from wsltools.reporter import Reporter
from wsltools.types import DefaultsConfig
from wsltools.validations import validate_defaults_json

console = Console()

# Timeout in seconds for the network probes (release metadata, pacman mirrors)
NETWORK_TIMEOUT = 10


def get_resource_path(relative_path: str) -> str:
  """
  Get absolute path to a resource shipped inside the package.
  For frozen binaries, files are looked up next to the executable.
  """
  if getattr(sys, "frozen", False):
    base_path = os.path.dirname(sys.executable)
  else:
    base_path = os.path.dirname(os.path.abspath(__file__))

  return os.path.join(base_path, relative_path)


def cmd(command: str, dry_run: bool, reporter: Reporter) -> None:
  if dry_run:
    reporter.print(f"[bold green][dim][DRY RUN] {escape(command)}[/][/]")
    return

  try:
    _ = subprocess.run(command, check=True, shell=True)

  except subprocess.CalledProcessError as e:
    reporter.error(f"Command '{command}' failed with error: {e}")
    sys.exit(1)


def scmd(command: str, stdin_data: str, dry_run: bool, reporter: Reporter) -> None:
  """Execute a command with sensitive stdin data without exposing it in process list."""
  if dry_run:
    reporter.print(f"[bold green][dim][DRY RUN] {escape(command)} (with stdin data)[/][/]")
    return

  try:
    process = subprocess.Popen(
      command, shell=True, stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
    )

    stdout, stderr = process.communicate(input=stdin_data)
    if process.returncode != 0:
      raise subprocess.CalledProcessError(process.returncode, command, output=stdout, stderr=stderr)

  except subprocess.CalledProcessError as e:
    reporter.error(f"Command '{command}' failed with error: {e}")

    if e.stderr:
      reporter.error(f"stderr: {e.stderr}")

    sys.exit(1)


def write(lines: list[str], path: str, dry_run: bool, reporter: Reporter) -> None:
  assert isinstance(lines, list)
  if dry_run:
    reporter.print(f"[bold green][dim][DRY RUN] Writing to {escape(path)}:[/][/]")
    for line in lines:
      reporter.print(f"[dim]{escape(line)}[/]")
    return

  with open(path, "w") as f:
    for line in lines:
      print(line, file=f)


def probe(args: list[str], timeout: float | None = None) -> subprocess.CompletedProcess[str] | None:
  """
  Run a read-only command and capture its output.

  Returns None when the program is missing or does not finish in time, so
  callers can treat the probe as best effort.
  """
  try:
    return subprocess.run(args, capture_output=True, text=True, check=False, timeout=timeout)

  except (FileNotFoundError, subprocess.TimeoutExpired):
    return None


def command_exists(name: str) -> bool:
  return shutil.which(name) is not None


def load_defaults() -> DefaultsConfig:
  """Load tool defaults from the bundled config.json file."""
  config_file = get_resource_path("config.json")
  try:
    with open(config_file, "r") as f:
      config_data = json.load(f)
      if "defaults" not in config_data:
        raise KeyError("defaults")

      data = validate_defaults_json(config_data["defaults"])
      return DefaultsConfig(
        docker_image=str(data["docker_image"]),
        min_docker_version=str(data["min_docker_version"]),
        required_space_gb=int(data["required_space_gb"]),
        required_tools=[str(tool) for tool in data["required_tools"]],
        required_files=[str(name) for name in data["required_files"]],
        makefile_targets=[str(target) for target in data["makefile_targets"]],
        service_unit=str(data["service_unit"]),
        wsldl_repo=str(data["wsldl_repo"]),
        services=[str(service) for service in data["services"]],
        backup_files=[str(name) for name in data["backup_files"]],
      )

  except (FileNotFoundError, json.JSONDecodeError) as e:
    console.print(f"\n[bold red]Error loading config.json: {e}[/]")
    sys.exit(1)

  except (KeyError, ValueError) as e:
    console.print(f"\n[bold red]Invalid config.json format: {e}[/]")
    sys.exit(1)


def parse_version(version: str) -> tuple[int, ...]:
  """Turn '24.0.7' or 'v1.2' into a comparable tuple; non-numeric parts are dropped."""
  parts = version.strip().lstrip("v").split(".")
  return tuple(int(part) for part in (p.split("-")[0] for p in parts) if part.isdigit())


def format_step_name(name: str) -> str:
  """
  Format step name from function name string.

  Args:
      name: Check function name

  Returns:
      Formatted step name (e.g., "Wsl Environment")
  """
  return name.replace("check_", "").replace("_", " ").title().lstrip("0123456789 ")
