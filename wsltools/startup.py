"""
WSL startup script emitter.

The generated script refuses to run outside WSL and then starts the services
associated with a profile. Service starts are best effort unless an action
says otherwise.
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent, indent
from typing import Final

from wsltools.types import ProfileKind

SCRIPT_NAME = "wsl-startup.sh"


@dataclass(frozen=True)
class ServiceAction:
  """Start one systemd service if its program is installed."""

  service: str
  program: str
  best_effort: bool = True

  def render(self) -> str:
    on_failure = "|| true" if self.best_effort else "|| exit 1"
    return dedent(f"""\
      if command -v {self.program} &> /dev/null; then
          sudo systemctl start {self.service}.service &> /dev/null {on_failure}
      fi""")


STARTUP_DISPATCH: Final[dict[ProfileKind, tuple[ServiceAction, ...]]] = {
  ProfileKind.DEVELOPMENT: (ServiceAction("docker", "docker"), ServiceAction("sshd", "sshd")),
  ProfileKind.GAMING: (ServiceAction("dbus", "dbus"),),
  ProfileKind.SERVER: (ServiceAction("sshd", "sshd"), ServiceAction("docker", "docker")),
  ProfileKind.MINIMAL: (),
  ProfileKind.DESKTOP: (
    ServiceAction("dbus", "dbus"),
    ServiceAction("systemd-user-sessions", "systemd-user-sessions"),
  ),
  ProfileKind.CUSTOM: (),
}

_HEADER = """\
#!/bin/bash

# ArchWSL2 Startup Script
# Runs custom commands when WSL starts

# Check if we're running in WSL
if [[ ! -f /proc/version ]] || ! grep -qE "Microsoft|WSL" /proc/version; then
    echo "This script is designed to run in WSL" >&2
    exit 1
fi
"""

_FOOTER = """
# Custom user commands can be added here
# For example:
# if [[ -f "$HOME/.wslrc" ]]; then
#     source "$HOME/.wslrc"
# fi
"""


def render_startup_script(kind: ProfileKind) -> str:
  """Render the dispatch script; the given profile is the default when no argument is passed."""
  cases: list[str] = []
  for profile, actions in STARTUP_DISPATCH.items():
    body = "\n".join(action.render() for action in actions) or ":"
    cases.append(f'"{profile.value}")\n{indent(body, "    ")}\n    ;;')

  dispatch = "\n".join(indent(case, "        ") for case in cases)

  return (
    _HEADER
    + dedent("""
      # Start services based on configuration
      start_services() {
          local config_type="$1"

          case "$config_type" in
      """)
    + dispatch
    + "\n"
    + dedent(f"""\
              *)
                  echo "Unknown configuration type: $config_type" >&2
                  ;;
          esac
      }}

      config_type="${{1:-{kind.value}}}"
      start_services "$config_type"
      """)
    + _FOOTER
  )


def write_startup_script(kind: ProfileKind, output_dir: str | Path) -> Path:
  """Write the startup script into output_dir and mark it executable."""
  script_file = Path(output_dir) / SCRIPT_NAME
  _ = script_file.write_text(render_startup_script(kind), encoding="utf-8")

  mode = os.stat(script_file).st_mode
  os.chmod(script_file, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
  return script_file
