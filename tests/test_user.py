from collections.abc import Iterator
from pathlib import Path

import pytest

from wsltools import input as prompts
from wsltools import user
from wsltools.reporter import Reporter
from wsltools.types import UserConfig
from wsltools.user import set_default_user, setup_user


def user_config(tmp_path: Path, **overrides: object) -> UserConfig:
  options: dict[str, object] = {
    "username": "archuser",
    "password": None,
    "ssh": False,
    "dev": False,
    "wsl_conf": str(tmp_path / "wsl.conf"),
    "dry": True,
  }
  options.update(overrides)
  return UserConfig(**options)  # type: ignore[arg-type]


def test_default_user_added_to_empty_file() -> None:
  assert set_default_user("", "archuser") == "[user]\ndefault = archuser\n"


def test_default_user_appended_after_other_sections() -> None:
  assert set_default_user("[boot]\nsystemd = true\n", "archuser") == (
    "[boot]\nsystemd = true\n\n[user]\ndefault = archuser\n"
  )


def test_existing_default_is_replaced() -> None:
  text = "[user]\ndefault = olduser\n\n[boot]\nsystemd = true\n"
  assert set_default_user(text, "archuser") == "[user]\ndefault = archuser\n\n[boot]\nsystemd = true\n"


def test_default_keys_outside_user_are_untouched() -> None:
  text = "[other]\ndefault = keep\n[user]\n# default = username\n"
  assert set_default_user(text, "archuser") == (
    "[other]\ndefault = keep\n[user]\ndefault = archuser\n# default = username\n"
  )


def test_default_user_must_be_valid() -> None:
  with pytest.raises(ValueError):
    _ = set_default_user("", "Bad User")


def test_invalid_username_is_rejected(tmp_path: Path) -> None:
  assert setup_user(user_config(tmp_path, username="-root"), Reporter()) == 1


def test_existing_user_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(user, "user_exists", lambda name: True)
  assert setup_user(user_config(tmp_path), Reporter()) == 1


def test_password_mismatch_aborts(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  answers: Iterator[str] = iter(["first-secret", "second-secret"])
  monkeypatch.setattr(user, "user_exists", lambda name: False)
  monkeypatch.setattr(prompts.Prompt, "ask", lambda *args, **kwargs: next(answers))

  assert setup_user(user_config(tmp_path), Reporter()) == 1


def test_dry_run_changes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
  conf = tmp_path / "wsl.conf"
  _ = conf.write_text("[boot]\nsystemd = true\n", encoding="utf-8")
  monkeypatch.setattr(user, "user_exists", lambda name: False)

  def fail(*args: object, **kwargs: object) -> None:
    raise AssertionError("no command may run in dry mode")

  monkeypatch.setattr("subprocess.run", fail)
  monkeypatch.setattr("subprocess.Popen", fail)

  config = user_config(tmp_path, password="long-password", ssh=True, dev=True)
  assert setup_user(config, Reporter()) == 0
  assert conf.read_text(encoding="utf-8") == "[boot]\nsystemd = true\n"
