"""
User account setup for the distribution.

Creates the account, optional SSH keys and development tools, and makes the
account the default WSL user by editing the [user] section of wsl.conf.
"""

import os
import pwd
import re
from pathlib import Path

from wsltools import arch
from wsltools.input import PasswordPrompt
from wsltools.reporter import Reporter
from wsltools.types import UserConfig
from wsltools.utils import cmd, scmd, write
from wsltools.validations import is_weak_password, validate_username

SECTION_HEADER = re.compile(r"^\s*\[(?P<name>[^\]]+)\]\s*$")
DEFAULT_KEY = re.compile(r"^\s*default\s*=")


def user_exists(username: str) -> bool:
  try:
    _ = pwd.getpwnam(username)
    return True

  except KeyError:
    return False


def set_default_user(conf_text: str, username: str) -> str:
  """
  Return wsl.conf text with username as the default user.

  An existing [user] default is replaced; the section is appended when the
  file has none. Other sections are left untouched.
  """
  if not validate_username(username):
    raise ValueError(f"Invalid username: {username}")

  lines = conf_text.splitlines()
  result: list[str] = []
  in_user = False
  found = False

  for line in lines:
    header = SECTION_HEADER.match(line)
    if header:
      in_user = header.group("name").strip() == "user"
      result.append(line)
      if in_user and not found:
        result.append(f"default = {username}")
        found = True
      continue

    if in_user and DEFAULT_KEY.match(line):
      continue

    result.append(line)

  if not found:
    if result and result[-1].strip():
      result.append("")
    result.extend(["[user]", f"default = {username}"])

  return "\n".join(result) + "\n"


def create_user(config: UserConfig, password: str, reporter: Reporter) -> None:
  username = config.username
  home = f"/home/{username}"
  reporter.info(f"Creating user: {username}")

  cmd(arch.create_user(username), config.dry, reporter)
  scmd("chpasswd", f"{username}:{password}\n", config.dry, reporter)
  write(arch.sudoers_entries(), "/etc/sudoers.d/wheel", config.dry, reporter)
  cmd(f"mkdir -p {home}/.local/bin {home}/.config", config.dry, reporter)
  cmd(f"chown -R {username}:users {home}", config.dry, reporter)
  write(arch.bashrc(), f"{home}/.bashrc", config.dry, reporter)
  cmd(f"chown {username}:users {home}/.bashrc", config.dry, reporter)

  if config.ssh:
    reporter.info(f"Setting up SSH keys for {username}")
    for command in arch.ssh_key_commands(username):
      cmd(command, config.dry, reporter)
    reporter.success(f"SSH keys generated for {username}")

  if config.dev:
    reporter.info(f"Setting up development environment for {username}")
    for command in arch.dev_environment_commands(username):
      cmd(command, config.dry, reporter)
    reporter.success(f"Development environment setup for {username}")

  reporter.success(f"User {username} created successfully")


def apply_default_user(config: UserConfig, reporter: Reporter) -> None:
  reporter.info(f"Setting {config.username} as default user")

  path = Path(config.wsl_conf)
  current = path.read_text(encoding="utf-8") if path.exists() else ""
  updated = set_default_user(current, config.username)
  write(updated.splitlines(), str(path), config.dry, reporter)

  reporter.success(f"Default user set to {config.username}")
  reporter.warning("You must restart WSL for this change to take effect")


def setup_user(config: UserConfig, reporter: Reporter) -> int:
  """Validate the request, create the account and make it the default user."""
  if not validate_username(config.username):
    reporter.error(f"Invalid username: {config.username}")
    reporter.error(
      "Username must start with a letter or underscore, and contain only letters, numbers, underscores, and hyphens"
    )
    return 1

  if user_exists(config.username):
    reporter.error(f"User {config.username} already exists")
    return 1

  password = config.password
  if not password:
    try:
      password = PasswordPrompt.ask(f"Enter password for {config.username}")

    except ValueError as e:
      reporter.error(str(e))
      return 1

  if is_weak_password(password):
    reporter.warning("Password is less than 8 characters - consider using a stronger password")

  if not config.dry and os.geteuid() != 0:
    reporter.error("This command must be run as root")
    return 1

  reporter.info(f"Starting user setup for {config.username}")
  create_user(config, password, reporter)
  apply_default_user(config, reporter)

  reporter.success("Setup completed successfully!")
  reporter.info("Restart WSL to apply changes: wsl --shutdown")
  return 0
