import os
from pathlib import Path

import pytest

from wsltools.startup import SCRIPT_NAME, STARTUP_DISPATCH, ServiceAction, render_startup_script, write_startup_script
from wsltools.types import ProfileKind


def test_script_refuses_to_run_outside_wsl() -> None:
  script = render_startup_script(ProfileKind.MINIMAL)
  guard = script.split("start_services()")[0]
  assert script.startswith("#!/bin/bash\n")
  assert 'grep -qE "Microsoft|WSL" /proc/version' in guard
  assert "exit 1" in guard


def test_dispatch_covers_every_profile() -> None:
  assert set(STARTUP_DISPATCH) == set(ProfileKind)
  script = render_startup_script(ProfileKind.DEVELOPMENT)
  for kind in ProfileKind:
    assert f'"{kind.value}")' in script
  assert "*)" in script


@pytest.mark.parametrize("kind", list(ProfileKind))
def test_generated_profile_is_the_default_argument(kind: ProfileKind) -> None:
  assert f'config_type="${{1:-{kind.value}}}"' in render_startup_script(kind)


def test_service_starts_are_best_effort() -> None:
  script = render_startup_script(ProfileKind.SERVER)
  assert "sudo systemctl start sshd.service &> /dev/null || true" in script
  assert "sudo systemctl start docker.service &> /dev/null || true" in script
  assert "|| exit 1" not in script


def test_strict_action_aborts_on_failure() -> None:
  rendered = ServiceAction("sshd", "sshd", best_effort=False).render()
  assert rendered.splitlines() == [
    "if command -v sshd &> /dev/null; then",
    "    sudo systemctl start sshd.service &> /dev/null || exit 1",
    "fi",
  ]


def test_write_marks_script_executable(tmp_path: Path) -> None:
  script = write_startup_script(ProfileKind.GAMING, tmp_path)
  assert script == tmp_path / SCRIPT_NAME
  assert os.access(script, os.X_OK)
  assert "dbus.service" in script.read_text(encoding="utf-8")
