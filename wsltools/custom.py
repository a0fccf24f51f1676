"""
Custom wsl.conf builder.

The custom profile is composed from five independent settings, supplied on
the command line or gathered interactively, and rendered through the same
serializer as the fixed templates.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from wsltools.profiles import (
  AutomountSection,
  BootSection,
  InteropSection,
  NetworkSection,
  UserSection,
  WslConfig,
  generate_profile,
  render_config,
)
from wsltools.types import CancelledByUser, ProfileKind
from wsltools.validations import validate_boot_command

console = Console()


@dataclass
class CustomOptions:
  """Settings of the custom profile."""

  automount: bool = True
  interop: bool = True
  append_windows_path: bool = False
  systemd: bool = True
  boot_command: str = ""

  def summary(self) -> list[tuple[str, str]]:
    items = [
      ("Automount", _flag(self.automount)),
      ("Interop", _flag(self.interop)),
      ("Append Windows PATH", _flag(self.append_windows_path)),
      ("Systemd", _flag(self.systemd)),
    ]
    if self.boot_command:
      items.append(("Boot command", self.boot_command))
    return items


def _flag(value: bool) -> str:
  return "true" if value else "false"


def build_custom_config(options: CustomOptions) -> WslConfig:
  """Compose the custom document; an empty boot command leaves the command key out."""
  if not validate_boot_command(options.boot_command):
    raise ValueError("Boot command must be a single line")

  return WslConfig(
    kind=ProfileKind.CUSTOM,
    name="Custom",
    description="Generated with custom parameters",
    automount=AutomountSection(
      enabled=options.automount,
      options="metadata,umask=22,fmask=11",
      mount_fs_tab=True,
    ),
    network=NetworkSection(generate_hosts=True, generate_resolv_conf=True),
    interop=InteropSection(enabled=options.interop, append_windows_path=options.append_windows_path),
    user=UserSection(),
    boot=BootSection(systemd=options.systemd, command=options.boot_command or None),
    hints={"user.default": "username"},
  )


def render_custom_config(options: CustomOptions) -> str:
  return render_config(build_custom_config(options))


def generate(kind: ProfileKind, options: CustomOptions | None = None) -> str:
  """Render any profile kind; the custom profile uses the given options or the defaults."""
  match kind:
    case ProfileKind.CUSTOM:
      return render_custom_config(options or CustomOptions())
    case ProfileKind.DEVELOPMENT | ProfileKind.GAMING | ProfileKind.SERVER | ProfileKind.MINIMAL | ProfileKind.DESKTOP:
      return generate_profile(kind)


def ask_custom_options() -> CustomOptions:
  """
  Gather the custom settings interactively.

  Empty answers keep the default of each setting. The collected values are
  echoed back before a final confirmation.

  Raises:
      CancelledByUser: If the summary is not confirmed
  """
  console.print("[blue]\\[INFO][/] Creating custom configuration interactively...")
  console.print()

  console.print("Automount settings:")
  automount = Confirm.ask("Enable automount?", default=True)

  console.print()
  console.print("Interoperability settings:")
  interop = Confirm.ask("Enable Windows interop?", default=True)
  append_path = Confirm.ask("Append Windows PATH?", default=False)

  console.print()
  console.print("Boot settings:")
  systemd = Confirm.ask("Enable systemd?", default=True)

  console.print()
  while True:
    boot_command = Prompt.ask("Boot command (optional, press Enter to skip)", default="", show_default=False).strip()
    if validate_boot_command(boot_command):
      break
    console.print("\n[prompt.invalid]Boot command must be a single line.[/]")

  options = CustomOptions(
    automount=automount,
    interop=interop,
    append_windows_path=append_path,
    systemd=systemd,
    boot_command=boot_command,
  )

  console.print()
  console.print("[blue]\\[INFO][/] Custom configuration summary:")
  for label, value in options.summary():
    console.print(f"  {label}: {escape(value)}")
  console.print()

  if not Confirm.ask("Generate this configuration?", default=True):
    raise CancelledByUser("Custom configuration cancelled by user")

  return options
