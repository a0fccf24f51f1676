from collections.abc import Iterator

import pytest

from conftest import parse_sections
from wsltools import custom
from wsltools.custom import CustomOptions, ask_custom_options, build_custom_config, generate, render_custom_config
from wsltools.profiles import generate_profile
from wsltools.registry import PROFILES
from wsltools.types import CancelledByUser, ProfileKind


def answers(values: list[object]) -> Iterator[object]:
  return iter(values)


def test_defaults_differ_from_every_fixed_template() -> None:
  text = render_custom_config(CustomOptions())
  for kind in PROFILES:
    assert text != generate_profile(kind)
    assert parse_sections(text).keys() == parse_sections(generate_profile(kind)).keys()


def test_default_settings() -> None:
  sections = parse_sections(generate(ProfileKind.CUSTOM))
  assert sections["automount"] == {
    "enabled": "true",
    "options": '"metadata,umask=22,fmask=11"',
    "mountFsTab": "true",
  }
  assert sections["interop"] == {"enabled": "true", "appendWindowsPath": "false"}
  assert sections["boot"] == {"systemd": "true"}


def test_empty_boot_command_omits_the_key() -> None:
  text = render_custom_config(CustomOptions(boot_command=""))
  assert "command" not in text


def test_boot_command_is_quoted() -> None:
  text = render_custom_config(CustomOptions(boot_command='echo "ready"'))
  assert 'command = "echo \\"ready\\""' in text


def test_flags_flow_into_sections() -> None:
  options = CustomOptions(automount=False, interop=False, append_windows_path=True, systemd=False)
  sections = parse_sections(render_custom_config(options))
  assert sections["automount"]["enabled"] == "false"
  assert sections["interop"] == {"enabled": "false", "appendWindowsPath": "true"}
  assert sections["boot"] == {"systemd": "false"}


def test_multiline_boot_command_is_rejected() -> None:
  with pytest.raises(ValueError):
    _ = build_custom_config(CustomOptions(boot_command="a\nb"))


def test_interactive_options(monkeypatch: pytest.MonkeyPatch) -> None:
  confirms = answers([False, True, True, False, True])
  prompts = answers(["line one\nline two", "  systemctl start sshd.service  "])
  monkeypatch.setattr(custom.Confirm, "ask", lambda *args, **kwargs: next(confirms))
  monkeypatch.setattr(custom.Prompt, "ask", lambda *args, **kwargs: next(prompts))

  options = ask_custom_options()

  assert options == CustomOptions(
    automount=False,
    interop=True,
    append_windows_path=True,
    systemd=False,
    boot_command="systemctl start sshd.service",
  )


def test_declining_summary_cancels(monkeypatch: pytest.MonkeyPatch) -> None:
  confirms = answers([True, True, False, True, False])
  monkeypatch.setattr(custom.Confirm, "ask", lambda *args, **kwargs: next(confirms))
  monkeypatch.setattr(custom.Prompt, "ask", lambda *args, **kwargs: "")

  with pytest.raises(CancelledByUser):
    _ = ask_custom_options()


def test_summary_lists_boot_command_only_when_set() -> None:
  assert [label for label, _ in CustomOptions().summary()] == [
    "Automount",
    "Interop",
    "Append Windows PATH",
    "Systemd",
  ]
  assert ("Boot command", "echo hi") in CustomOptions(boot_command="echo hi").summary()
