"""
wsl.conf profile model and serializer.

A profile is a typed record per wsl.conf section. Documents are always
rendered through render_config so that section order, key names and value
quoting stay compatible with the WSL configuration parser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, TypeAlias, cast

from wsltools.registry import get_embedded_profile
from wsltools.types import ProfileKind
from wsltools.validations import validate_profile_data

Value: TypeAlias = bool | str

SECTION_ORDER: tuple[str, ...] = ("automount", "network", "interop", "user", "boot")

# Keys whose string values are written double-quoted
QUOTED_KEYS: frozenset[tuple[str, str]] = frozenset({("automount", "options"), ("boot", "command")})


@dataclass
class AutomountSection:
  """Exposure of Windows drives inside the distribution."""

  enabled: bool = True
  options: str | None = None
  mount_fs_tab: bool | None = None

  header: ClassVar[str] = "automount"

  def settings(self) -> list[tuple[str, Value | None]]:
    return [("enabled", self.enabled), ("options", self.options), ("mountFsTab", self.mount_fs_tab)]


@dataclass
class NetworkSection:
  generate_hosts: bool = True
  generate_resolv_conf: bool = True

  header: ClassVar[str] = "network"

  def settings(self) -> list[tuple[str, Value | None]]:
    return [("generateHosts", self.generate_hosts), ("generateResolvConf", self.generate_resolv_conf)]


@dataclass
class InteropSection:
  """Launching Windows executables from the distribution."""

  enabled: bool = True
  append_windows_path: bool = False

  header: ClassVar[str] = "interop"

  def settings(self) -> list[tuple[str, Value | None]]:
    return [("enabled", self.enabled), ("appendWindowsPath", self.append_windows_path)]


@dataclass
class UserSection:
  default: str | None = None

  header: ClassVar[str] = "user"

  def settings(self) -> list[tuple[str, Value | None]]:
    return [("default", self.default)]


@dataclass
class BootSection:
  systemd: bool = True
  command: str | None = None

  header: ClassVar[str] = "boot"

  def settings(self) -> list[tuple[str, Value | None]]:
    return [("systemd", self.systemd), ("command", self.command)]


Section: TypeAlias = AutomountSection | NetworkSection | InteropSection | UserSection | BootSection


@dataclass
class WslConfig:
  """A complete wsl.conf document."""

  kind: ProfileKind
  name: str
  description: str
  automount: AutomountSection = field(default_factory=AutomountSection)
  network: NetworkSection = field(default_factory=NetworkSection)
  interop: InteropSection = field(default_factory=InteropSection)
  user: UserSection = field(default_factory=UserSection)
  boot: BootSection = field(default_factory=BootSection)
  notes: dict[str, str] = field(default_factory=dict)
  hints: dict[str, Value] = field(default_factory=dict)
  footer: list[str] = field(default_factory=list)

  def sections(self) -> list[Section]:
    return [self.automount, self.network, self.interop, self.user, self.boot]

  @classmethod
  def from_dict(cls, data: dict[str, object]) -> WslConfig:
    """Create a document from registry data."""
    issues = validate_profile_data(data)
    if issues:
      raise ValueError(f"Invalid profile data: {'; '.join(issues)}")

    automount = cast(dict[str, object], data["automount"])
    network = cast(dict[str, object], data["network"])
    interop = cast(dict[str, object], data["interop"])
    user = cast(dict[str, object], data["user"])
    boot = cast(dict[str, object], data["boot"])

    return cls(
      kind=ProfileKind(str(data["id"])),
      name=str(data["name"]),
      description=str(data["description"]),
      automount=AutomountSection(
        enabled=bool(automount["enabled"]),
        options=cast(str | None, automount.get("options")),
        mount_fs_tab=cast(bool | None, automount.get("mountFsTab")),
      ),
      network=NetworkSection(
        generate_hosts=bool(network["generateHosts"]),
        generate_resolv_conf=bool(network["generateResolvConf"]),
      ),
      interop=InteropSection(
        enabled=bool(interop["enabled"]),
        append_windows_path=bool(interop["appendWindowsPath"]),
      ),
      user=UserSection(default=cast(str | None, user.get("default"))),
      boot=BootSection(systemd=bool(boot["systemd"]), command=cast(str | None, boot.get("command"))),
      notes=dict(cast(dict[str, str], data.get("notes", {}))),
      hints=dict(cast(dict[str, Value], data.get("hints", {}))),
      footer=list(cast(list[str], data.get("footer", []))),
    )


def quote(value: str) -> str:
  """
  Quote a string value for wsl.conf.

  Backslashes and double quotes are backslash-escaped. Line breaks cannot be
  represented in a single wsl.conf value and are rejected.
  """
  if "\n" in value or "\r" in value:
    raise ValueError("Value must not contain line breaks")

  escaped = value.replace("\\", "\\\\").replace('"', '\\"')
  return f'"{escaped}"'


def format_value(section: str, key: str, value: Value) -> str:
  if isinstance(value, bool):
    return "true" if value else "false"

  if (section, key) in QUOTED_KEYS:
    return quote(value)

  return value


def render_section(section: Section, notes: dict[str, str], hints: dict[str, Value]) -> list[str]:
  """Render one section; unset optional keys become commented hints when one is defined."""
  lines = [f"[{section.header}]"]

  for key, value in section.settings():
    ref = f"{section.header}.{key}"
    note = notes.get(ref)

    if value is None:
      hint = hints.get(ref)
      if hint is None:
        continue

      if note:
        lines.append(f"# {note}")
      lines.append(f"# {key} = {format_value(section.header, key, hint)}")
      continue

    if note:
      lines.append(f"# {note}")
    lines.append(f"{key} = {format_value(section.header, key, value)}")

  return lines


def render_config(config: WslConfig) -> str:
  """Serialize a document to wsl.conf text."""
  lines = [
    f"# ArchWSL2 {config.name} Configuration",
    f"# {config.description}",
    "",
  ]

  for section in config.sections():
    lines.extend(render_section(section, config.notes, config.hints))
    lines.append("")

  lines.extend(f"# {line}" for line in config.footer)
  return "\n".join(lines).rstrip("\n") + "\n"


def load_profile(kind: ProfileKind) -> WslConfig:
  """Build the document of a fixed profile."""
  if kind is ProfileKind.CUSTOM:
    raise ValueError("The custom profile has no fixed template, build it from CustomOptions")
  return WslConfig.from_dict(get_embedded_profile(kind))


def generate_profile(kind: ProfileKind) -> str:
  """Render a fixed profile to wsl.conf text."""
  return render_config(load_profile(kind))
