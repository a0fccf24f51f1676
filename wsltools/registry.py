"""
Embedded wsl.conf profile registry.

Profiles are stored as Python constants keyed by ProfileKind so they ship
with the package without needing external files. Each entry carries the
section values, the guidance comments shown above individual keys
(`notes`), the commented-out example values for optional keys (`hints`)
and the trailing comment block (`footer`).
"""

from typing import Final

from wsltools.types import ProfileKind, UnknownProfileError

_MOUNT_OPTIONS = "metadata,umask=22,fmask=11"

PROFILES: Final[dict[ProfileKind, dict[str, object]]] = {
  ProfileKind.DEVELOPMENT: {
    "name": "Development",
    "description": "Optimized for software development",
    "highlights": [
      "Disables Windows interop for cleaner environment",
      "Enables Docker and SSH services",
      "Secure mount options",
    ],
    "automount": {"enabled": True, "options": _MOUNT_OPTIONS, "mountFsTab": True},
    "network": {"generateHosts": True, "generateResolvConf": True},
    "interop": {"enabled": False, "appendWindowsPath": False},
    "user": {},
    "boot": {"systemd": True},
    "notes": {
      "automount.enabled": "Enable automatic mounting of Windows drives",
      "automount.options": "Mount options for Windows drives",
      "automount.mountFsTab": "Mount Windows drives to /mnt/",
      "network.generateHosts": "Generate hosts file",
      "network.generateResolvConf": "Generate resolv.conf",
      "interop.enabled": "Enable Windows interoperability",
      "interop.appendWindowsPath": "Append Windows PATH to Linux PATH",
      "user.default": "Default user (will be set by setup-user)",
      "boot.systemd": "Enable systemd (Windows 11 only)",
      "boot.command": "Command to run at boot (optional)",
    },
    "hints": {"user.default": "username", "boot.command": "systemctl start docker.service"},
    "footer": [
      "Custom settings for development",
      "These are not standard WSL settings but commonly used",
      "in custom startup scripts",
    ],
  },
  ProfileKind.GAMING: {
    "name": "Gaming",
    "description": "Optimized for gaming and GPU workloads",
    "highlights": [
      "Enables Windows interop for game launchers",
      "Starts D-Bus service",
      "Windows PATH integration",
    ],
    "automount": {"enabled": True, "options": _MOUNT_OPTIONS, "mountFsTab": True},
    "network": {"generateHosts": True, "generateResolvConf": True},
    "interop": {"enabled": True, "appendWindowsPath": True},
    "user": {},
    "boot": {"systemd": True, "command": "systemctl start dbus.service"},
    "notes": {
      "automount.enabled": "Enable automatic mounting of Windows drives",
      "automount.options": "Mount options optimized for gaming",
      "network.generateHosts": "Generate hosts file",
      "network.generateResolvConf": "Generate resolv.conf",
      "interop.enabled": "Enable Windows interoperability for game launchers",
      "interop.appendWindowsPath": "Append Windows PATH for game executables",
      "user.default": "Default user",
      "boot.systemd": "Enable systemd",
      "boot.command": "Preload gaming-related services",
    },
    "hints": {"user.default": "username"},
    "footer": [
      "Gaming-specific optimizations",
      "Note: These would need custom implementation in startup scripts",
    ],
  },
  ProfileKind.SERVER: {
    "name": "Server",
    "description": "Optimized for server and container workloads",
    "highlights": [
      "Disables automount for security",
      "Disables Windows interop",
      "Starts SSH and Docker services",
    ],
    "automount": {"enabled": False},
    "network": {"generateHosts": True, "generateResolvConf": True},
    "interop": {"enabled": False, "appendWindowsPath": False},
    "user": {},
    "boot": {"systemd": True, "command": "systemctl start sshd.service docker.service"},
    "notes": {
      "automount.enabled": "Disable automatic mounting for security",
      "automount.options": "If enabled, use secure mount options",
      "network.generateHosts": "Generate hosts file",
      "network.generateResolvConf": "Generate resolv.conf",
      "interop.enabled": "Disable Windows interoperability for security",
      "interop.appendWindowsPath": "Don't append Windows PATH",
      "user.default": "Default user",
      "boot.systemd": "Enable systemd",
      "boot.command": "Start server services at boot",
    },
    "hints": {
      "automount.options": "metadata,umask=077,fmask=077",
      "automount.mountFsTab": False,
      "user.default": "username",
    },
    "footer": ["Server-specific security settings"],
  },
  ProfileKind.MINIMAL: {
    "name": "Minimal",
    "description": "Lightweight setup for basic usage",
    "highlights": [
      "Basic configuration only",
      "Minimal resource usage",
    ],
    "automount": {"enabled": True, "options": "metadata", "mountFsTab": True},
    "network": {"generateHosts": True, "generateResolvConf": True},
    "interop": {"enabled": True, "appendWindowsPath": False},
    "user": {},
    "boot": {"systemd": True},
    "notes": {
      "automount.enabled": "Basic mount settings",
      "network.generateHosts": "Basic network settings",
      "interop.enabled": "Basic interoperability",
      "user.default": "Default user",
      "boot.systemd": "Enable systemd",
    },
    "hints": {"user.default": "username"},
    "footer": ["Minimal configuration - no extra services"],
  },
  ProfileKind.DESKTOP: {
    "name": "Desktop",
    "description": "Optimized for GUI applications and desktop usage",
    "highlights": [
      "Enables Windows interop",
      "Starts desktop services",
      "Windows PATH integration",
    ],
    "automount": {"enabled": True, "options": _MOUNT_OPTIONS, "mountFsTab": True},
    "network": {"generateHosts": True, "generateResolvConf": True},
    "interop": {"enabled": True, "appendWindowsPath": True},
    "user": {},
    "boot": {"systemd": True, "command": "systemctl start dbus.service systemd-user-sessions.service"},
    "notes": {
      "automount.enabled": "Enable automatic mounting",
      "automount.options": "Mount options for desktop usage",
      "network.generateHosts": "Generate hosts file",
      "network.generateResolvConf": "Generate resolv.conf",
      "interop.enabled": "Enable Windows interoperability",
      "interop.appendWindowsPath": "Append Windows PATH for desktop integration",
      "user.default": "Default user",
      "boot.systemd": "Enable systemd",
      "boot.command": "Start desktop services",
    },
    "hints": {"user.default": "username"},
    "footer": [
      "Desktop-specific settings",
      "Note: WSLg should be configured separately",
    ],
  },
}

# The custom profile is parametrized; its entry only describes it for listings.
CUSTOM_PROFILE: Final[dict[str, object]] = {
  "name": "Custom",
  "description": "Interactive custom configuration",
  "highlights": [
    "Choose specific options",
    "Tailored to your needs",
  ],
}


def get_embedded_profile(kind: ProfileKind) -> dict[str, object]:
  """
  Get the embedded data of a fixed profile.

  Args:
      kind: Profile kind, anything but ProfileKind.CUSTOM

  Returns:
      Profile data as a dictionary with the profile id injected

  Raises:
      UnknownProfileError: If the kind has no fixed template
  """
  profile_data = PROFILES.get(kind)
  if profile_data is None:
    raise UnknownProfileError(kind.value)
  return {**profile_data, "id": kind.value}


def list_profiles() -> list[tuple[ProfileKind, dict[str, object]]]:
  """List all profiles in catalog order, custom last."""
  return [*PROFILES.items(), (ProfileKind.CUSTOM, CUSTOM_PROFILE)]


def parse_profile(name: str) -> ProfileKind:
  """Resolve a profile name to its kind, rejecting anything outside the catalog."""
  try:
    return ProfileKind(name)

  except ValueError as e:
    raise UnknownProfileError(name) from e
