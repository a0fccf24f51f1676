from pathlib import Path

import pytest

import archwsl
from archwsl import main
from wsltools import custom
from wsltools.custom import generate
from wsltools.startup import SCRIPT_NAME
from wsltools.types import ProfileKind


def exit_code(argv: list[str]) -> int | str | None:
  with pytest.raises(SystemExit) as exc:
    _ = main(argv)
  return exc.value.code


@pytest.mark.parametrize("argv", [[], ["--bogus"], ["generate", "--bogus"], ["setup-user"], ["troubleshoot", "-q", "-n"]])
def test_usage_errors_exit_with_1(argv: list[str]) -> None:
  assert exit_code(argv) == 1


@pytest.mark.parametrize("argv", [["--help"], ["--version"], ["generate", "--help"], ["update", "--help"]])
def test_help_and_version_exit_with_0(argv: list[str]) -> None:
  assert exit_code(argv) == 0


def test_generate_writes_wsl_conf(tmp_path: Path) -> None:
  out = tmp_path / "nested" / "dir"
  assert main(["generate", "-o", str(out), "server"]) == 0
  assert (out / "wsl.conf").read_text(encoding="utf-8") == generate(ProfileKind.SERVER)
  assert not (out / SCRIPT_NAME).exists()


def test_generate_with_startup_script(tmp_path: Path) -> None:
  assert main(["generate", "--startup", "-o", str(tmp_path), "development"]) == 0
  assert 'config_type="${1:-development}"' in (tmp_path / SCRIPT_NAME).read_text(encoding="utf-8")


def test_unknown_profile_writes_nothing(tmp_path: Path) -> None:
  assert main(["generate", "-o", str(tmp_path), "production"]) == 1
  assert list(tmp_path.iterdir()) == []


def test_profile_is_required(tmp_path: Path) -> None:
  assert main(["generate", "-o", str(tmp_path)]) == 1


def test_list_profiles(capsys: pytest.CaptureFixture[str]) -> None:
  assert main(["generate", "--list"]) == 0
  out = capsys.readouterr().out
  for kind in ProfileKind:
    assert kind.value in out


def test_stdout_output(capsys: pytest.CaptureFixture[str]) -> None:
  assert main(["generate", "--stdout", "minimal"]) == 0
  assert capsys.readouterr().out == generate(ProfileKind.MINIMAL)


def test_stdout_and_startup_conflict(tmp_path: Path) -> None:
  assert main(["generate", "--stdout", "--startup", "-o", str(tmp_path), "gaming"]) == 1
  assert list(tmp_path.iterdir()) == []


def test_custom_flags_require_custom_profile(tmp_path: Path) -> None:
  assert main(["generate", "-o", str(tmp_path), "--no-interop", "desktop"]) == 1


def test_custom_flags_conflict_with_interactive(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  def fail(*args, **kwargs):
    raise AssertionError("no prompt may be shown")

  monkeypatch.setattr(custom.Confirm, "ask", fail)
  assert main(["generate", "-i", "--no-interop", "-o", str(tmp_path), "custom"]) == 1
  assert list(tmp_path.iterdir()) == []


def test_custom_profile_from_flags(tmp_path: Path) -> None:
  argv = ["generate", "-o", str(tmp_path), "--no-automount", "--boot-command", "echo ready", "custom"]
  assert main(argv) == 0
  text = (tmp_path / "wsl.conf").read_text(encoding="utf-8")
  assert "[automount]\nenabled = false\n" in text
  assert 'command = "echo ready"' in text


def test_cancelled_custom_profile_writes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(custom.Confirm, "ask", lambda *args, **kwargs: False)
  monkeypatch.setattr(custom.Prompt, "ask", lambda *args, **kwargs: "")

  assert main(["generate", "-i", "-o", str(tmp_path), "custom"]) == 1
  assert list(tmp_path.iterdir()) == []


def test_interactive_profile_selection(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(archwsl.IntegerPrompt, "ask", lambda *args, **kwargs: 3)
  assert main(["generate", "-i", "-o", str(tmp_path)]) == 0
  assert (tmp_path / "wsl.conf").read_text(encoding="utf-8") == generate(ProfileKind.SERVER)


def test_validate_command(build_tree: Path) -> None:
  assert main(["validate", "-C", str(build_tree), "--project", "--config"]) == 0
  (build_tree / "README.md").unlink()
  assert main(["validate", "-C", str(build_tree), "--project"]) == 1


def test_setup_user_rejects_invalid_name(tmp_path: Path) -> None:
  assert main(["setup-user", "--dry", "--wsl-conf", str(tmp_path / "wsl.conf"), "Bad-Name"]) == 1
