"""
Type definitions for archwsl.

This module contains the shared enums, typed dictionaries and command line
configuration records used throughout the application.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypedDict


class ProfileKind(Enum):
  """Enumeration of wsl.conf profiles."""

  DEVELOPMENT = "development"
  GAMING = "gaming"
  SERVER = "server"
  MINIMAL = "minimal"
  DESKTOP = "desktop"
  CUSTOM = "custom"


class CheckStatus(Enum):
  """Outcome of a single validation or diagnostic check."""

  PASS = "pass"
  WARN = "warn"
  FAIL = "fail"


class UnknownProfileError(ValueError):
  """Raised when a profile name is not part of the catalog."""

  def __init__(self, name: str) -> None:
    choices = ", ".join(kind.value for kind in ProfileKind)
    super().__init__(f"Unknown profile: {name} (expected one of: {choices})")
    self.name: str = name


class CancelledByUser(Exception):
  """Raised when the user declines a confirmation prompt."""


class DefaultsConfig(TypedDict):
  """Tool defaults loaded from config.json."""

  docker_image: str
  min_docker_version: str
  required_space_gb: int
  required_tools: list[str]
  required_files: list[str]
  makefile_targets: list[str]
  service_unit: str
  wsldl_repo: str
  services: list[str]
  backup_files: list[str]


@dataclass
class GenerateConfig:
  """Typed options of the generate command."""

  output_dir: str
  profile: str | None
  startup: bool
  list_only: bool
  interactive: bool
  stdout: bool
  automount: bool = True
  interop: bool = True
  append_windows_path: bool = False
  systemd: bool = True
  boot_command: str = ""


@dataclass
class ValidateConfig:
  """Typed options of the validate command."""

  directory: str
  check_only: bool
  build: bool
  system: bool
  project: bool
  config: bool
  docker: bool
  artifacts: bool
  verbose: bool = False


@dataclass
class UserConfig:
  """Typed options of the setup-user command."""

  username: str
  password: str | None
  ssh: bool
  dev: bool
  wsl_conf: str
  dry: bool


@dataclass
class TroubleshootConfig:
  """Typed options of the troubleshoot command."""

  mode: str
  collect_only: bool
  output_dir: str | None
  report: bool
  directory: str


@dataclass
class UpdateConfig:
  """Typed options of the update command."""

  docker: bool
  wsldl: bool
  packages: bool
  scripts: bool
  backup: bool
  validate: bool
  report: bool
  force: bool
  log_file: str | None
  directory: str
