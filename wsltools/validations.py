"""
Validation functions for archwsl.

This module contains the validation functions used throughout the application
for validating usernames, passwords, boot commands, profile data and the
tool defaults loaded from config.json.
"""

import re
from typing import Any

REQUIRED_SECTIONS: tuple[str, ...] = ("automount", "network", "interop", "user", "boot")

# =============================================================================
# Validation Functions
# =============================================================================
# Functions that validate data and return boolean or list of issues


def validate_username(username: str) -> bool:
  max_len = 32

  if not username:
    return False
  if username[0] == "-":
    return False
  if len(username) > max_len:
    return False
  if username.isdigit():
    return False

  def _make_username_pattern() -> re.Pattern[str]:
    start_chars = "a-z_"
    body_chars = start_chars + "0-9-"
    pattern = rf"^[{start_chars}][{body_chars}]{{0,{max_len - 1}}}$"
    return re.compile(pattern)

  pattern = _make_username_pattern()
  return bool(pattern.fullmatch(username))


def validate_password(password: str) -> bool:
  return len(password.strip()) > 1


def is_weak_password(password: str) -> bool:
  return len(password) < 8


def validate_boot_command(command: str) -> bool:
  """A boot command must fit on a single wsl.conf line."""
  return "\n" not in command and "\r" not in command


def validate_profile_data(data: dict[str, object]) -> list[str]:
  """
  Validate profile data structure and return list of issues.

  Returns empty list if valid, list of error messages if invalid.
  """
  required_validators = [
    (lambda: isinstance(data.get("id"), str), "Profile must have an 'id' field as string"),
    (lambda: isinstance(data.get("name"), str), "Profile must have a 'name' field as string"),
    (lambda: isinstance(data.get("description"), str), "Profile must have a 'description' field as string"),
  ]

  issues = [msg for validator, msg in required_validators if not validator()]
  issues.extend(f"Profile must define the '{name}' section" for name in REQUIRED_SECTIONS if not isinstance(data.get(name), dict))

  required_keys = {
    "automount": ["enabled"],
    "network": ["generateHosts", "generateResolvConf"],
    "interop": ["enabled", "appendWindowsPath"],
    "boot": ["systemd"],
  }

  for section, keys in required_keys.items():
    values = data.get(section)
    if not isinstance(values, dict):
      continue

    for key in keys:
      if not isinstance(values.get(key), bool):
        issues.append(f"{section}.{key} must be a boolean")

  boot = data.get("boot")
  if isinstance(boot, dict):
    command = boot.get("command")
    if command is not None and (not isinstance(command, str) or not validate_boot_command(command)):
      issues.append("boot.command must be a single-line string")

  user = data.get("user")
  if isinstance(user, dict):
    default = user.get("default")
    if default is not None and (not isinstance(default, str) or not validate_username(default)):
      issues.append("user.default must be a valid username")

  return issues


def validate_defaults_json(data: Any) -> dict[str, Any]:
  """Validate and return defaults JSON data with proper typing."""
  if not isinstance(data, dict):
    raise ValueError("Defaults JSON must be an object")

  required_keys = {
    "docker_image",
    "min_docker_version",
    "required_space_gb",
    "required_tools",
    "required_files",
    "makefile_targets",
    "service_unit",
    "wsldl_repo",
    "services",
    "backup_files",
  }
  missing_keys = required_keys - data.keys()
  if missing_keys:
    raise KeyError(f"Missing required keys: {sorted(missing_keys)}")

  for key in ("required_tools", "required_files", "makefile_targets", "services", "backup_files"):
    if not isinstance(data[key], list):
      raise ValueError(f"{key} field must be a list")

  if not isinstance(data["required_space_gb"], int):
    raise ValueError("required_space_gb field must be an integer")

  return data


def validate_cli_arguments(
  username: str | None = None,
  boot_command: str | None = None,
) -> list[str]:
  """
  Validate command line arguments and return list of error messages.

  Returns empty list if all arguments are valid, list of error messages otherwise.
  """
  validators: list[tuple[bool, str]] = []

  if username is not None:
    validators.append(
      (
        validate_username(username),
        f"Invalid username: {username} (must start with a letter or underscore, then letters, digits, '_' or '-')",
      )
    )

  if boot_command:
    validators.append((validate_boot_command(boot_command), "Invalid boot command: must be a single line"))

  return [msg for valid, msg in validators if not valid]
