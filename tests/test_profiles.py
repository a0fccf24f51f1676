import pytest

from conftest import parse_sections
from wsltools.custom import generate
from wsltools.profiles import SECTION_ORDER, WslConfig, generate_profile, load_profile, quote, render_config
from wsltools.registry import PROFILES, get_embedded_profile, list_profiles, parse_profile
from wsltools.types import ProfileKind, UnknownProfileError

FIXED_KINDS = list(PROFILES)


def section_headers(text: str) -> list[str]:
  return [line[1:-1] for line in text.splitlines() if line.startswith("[") and line.endswith("]")]


@pytest.mark.parametrize("kind", list(ProfileKind))
def test_every_profile_has_all_sections_once_in_order(kind: ProfileKind) -> None:
  assert section_headers(generate(kind)) == list(SECTION_ORDER)


@pytest.mark.parametrize("kind", list(ProfileKind))
def test_generation_is_deterministic(kind: ProfileKind) -> None:
  assert generate(kind) == generate(kind)


@pytest.mark.parametrize("kind", FIXED_KINDS)
def test_booleans_are_lowercase(kind: ProfileKind) -> None:
  sections = parse_sections(generate_profile(kind))
  assert sections["automount"]["enabled"] in ("true", "false")
  assert sections["interop"]["enabled"] in ("true", "false")
  assert sections["network"] == {"generateHosts": "true", "generateResolvConf": "true"}
  assert sections["boot"]["systemd"] == "true"


def test_document_header_and_trailing_newline() -> None:
  text = generate_profile(ProfileKind.DEVELOPMENT)
  lines = text.splitlines()
  assert lines[0] == "# ArchWSL2 Development Configuration"
  assert lines[1] == "# Optimized for software development"
  assert text.endswith("\n")
  assert not text.endswith("\n\n")


def test_server_disables_automount_and_interop() -> None:
  sections = parse_sections(generate_profile(ProfileKind.SERVER))
  assert sections["automount"] == {"enabled": "false"}
  assert sections["interop"]["enabled"] == "false"


def test_server_optional_mount_options_are_commented_hints() -> None:
  text = generate_profile(ProfileKind.SERVER)
  assert '# options = "metadata,umask=077,fmask=077"' in text
  assert "# mountFsTab = false" in text


def test_development_keeps_mount_options_quoted() -> None:
  sections = parse_sections(generate_profile(ProfileKind.DEVELOPMENT))
  assert sections["automount"]["options"] == '"metadata,umask=22,fmask=11"'
  assert sections["interop"]["enabled"] == "false"


def test_user_default_is_only_a_hint() -> None:
  for kind in FIXED_KINDS:
    sections = parse_sections(generate_profile(kind))
    assert sections["user"] == {}
    assert "# default = username" in generate_profile(kind)


def test_quote_escapes_backslashes_and_quotes() -> None:
  assert quote('echo "hi" \\ there') == '"echo \\"hi\\" \\\\ there"'


@pytest.mark.parametrize("value", ["one\ntwo", "one\rtwo"])
def test_quote_rejects_line_breaks(value: str) -> None:
  with pytest.raises(ValueError):
    _ = quote(value)


def test_render_rejects_multiline_boot_command() -> None:
  config = load_profile(ProfileKind.MINIMAL)
  config.boot.command = "first\nsecond"
  with pytest.raises(ValueError):
    _ = render_config(config)


def test_load_profile_rejects_custom() -> None:
  with pytest.raises(ValueError):
    _ = load_profile(ProfileKind.CUSTOM)


def test_from_dict_reports_missing_sections() -> None:
  data = get_embedded_profile(ProfileKind.MINIMAL)
  del data["network"]
  with pytest.raises(ValueError, match="network"):
    _ = WslConfig.from_dict(data)


def test_parse_profile_is_strict() -> None:
  assert parse_profile("gaming") is ProfileKind.GAMING
  with pytest.raises(UnknownProfileError, match="Unknown profile: Gaming"):
    _ = parse_profile("Gaming")
  with pytest.raises(UnknownProfileError):
    _ = parse_profile("")


def test_list_profiles_puts_custom_last() -> None:
  kinds = [kind for kind, _ in list_profiles()]
  assert kinds[-1] is ProfileKind.CUSTOM
  assert set(kinds) == set(ProfileKind)
