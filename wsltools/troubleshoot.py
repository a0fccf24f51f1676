"""
Diagnostics for a running ArchWSL2 instance.

Checks run one after another and are best effort: a check that raises is
reported as a warning and the session continues with the next one.
"""

import os
import re
import shutil
import socket
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from textwrap import dedent
from typing import TypeAlias

from wsltools.checks import SYSTEMD_SETTING
from wsltools.context import RunContext
from wsltools.types import TroubleshootConfig
from wsltools.utils import NETWORK_TIMEOUT, command_exists, format_step_name, probe

Check: TypeAlias = Callable[[RunContext], None]

PROC_VERSION = "/proc/version"
WSL_CONF = "/etc/wsl.conf"
WSL_DISTRIBUTION_CONF = "/etc/wsl-distribution.conf"
WSL_MARKERS = ("Microsoft", "WSL")
AUR_HELPERS = ("paru", "yay", "pacaur")
CRITICAL_DIRS = ("/etc", "/usr", "/var", "/home", "/tmp")


def read_meminfo(path: str = "/proc/meminfo") -> dict[str, int]:
  """Parse /proc/meminfo into kB values."""
  info: dict[str, int] = {}
  with open(path, "r") as f:
    for line in f:
      key, _, rest = line.partition(":")
      value = rest.split()
      if value and value[0].isdigit():
        info[key.strip()] = int(value[0])
  return info


def memory_usage_percent(info: dict[str, int]) -> int:
  total = info.get("MemTotal", 0)
  if not total:
    return 0
  available = info.get("MemAvailable", info.get("MemFree", 0))
  return round((total - available) * 100 / total)


def check_wsl_environment(ctx: RunContext) -> None:
  reporter = ctx.reporter
  try:
    with open(PROC_VERSION, "r") as f:
      version = f.read()

  except OSError:
    reporter.error(f"Cannot read {PROC_VERSION}")
    return

  if not any(marker in version for marker in WSL_MARKERS):
    reporter.warning("Not running in WSL environment")
    return

  wsl_version = "WSL2" if "WSL2" in version else "WSL"
  reporter.success(f"Running in WSL ({wsl_version})")
  reporter.info(f"Kernel: {os.uname().release}")


def check_system_resources(ctx: RunContext) -> None:
  reporter = ctx.reporter
  meminfo = read_meminfo()
  total_gb = meminfo.get("MemTotal", 0) / 1024**2
  available_gb = meminfo.get("MemAvailable", 0) / 1024**2
  reporter.info(f"Memory: {available_gb:.1f}G available / {total_gb:.1f}G total")

  usage = shutil.disk_usage("/")
  disk_percent = round(usage.used * 100 / usage.total) if usage.total else 0
  reporter.info(f"Disk usage: {usage.used / 1024**3:.1f}G/{usage.total / 1024**3:.1f}G ({disk_percent}%)")
  reporter.info(f"CPU cores: {os.cpu_count()}")

  mem_percent = memory_usage_percent(meminfo)
  if mem_percent > 90:
    reporter.warning(f"High memory usage: {mem_percent}%")

  if disk_percent > 90:
    reporter.warning(f"High disk usage: {disk_percent}%")


def has_internet(host: str = "8.8.8.8", port: int = 53) -> bool:
  try:
    with socket.create_connection((host, port), timeout=3):
      return True

  except OSError:
    return False


def check_network(ctx: RunContext) -> None:
  reporter = ctx.reporter
  if has_internet():
    reporter.success("Internet connectivity: OK")
  else:
    reporter.error("No internet connectivity")
    return

  try:
    _ = socket.getaddrinfo("archlinux.org", 443)
    reporter.success("DNS resolution: OK")

  except socket.gaierror:
    reporter.warning("DNS resolution issues detected")

  if command_exists("pacman"):
    reporter.info("Testing pacman mirrors...")
    result = probe(["pacman", "-Sy"], timeout=NETWORK_TIMEOUT)
    if result is not None and result.returncode == 0:
      reporter.success("Pacman mirrors: OK")
    else:
      reporter.warning("Pacman mirror issues detected")


SECTION_HEADER = re.compile(r"^\s*\[(?P<name>[^\]]+)\]\s*$")


def section_settings(text: str, section: str) -> dict[str, str]:
  """Active key = value settings of one wsl.conf section; comments are skipped."""
  settings: dict[str, str] = {}
  current = None
  for line in text.splitlines():
    header = SECTION_HEADER.match(line)
    if header:
      current = header.group("name").strip()
      continue

    stripped = line.strip()
    if current != section or not stripped or stripped.startswith(("#", ";")) or "=" not in stripped:
      continue

    key, _, value = stripped.partition("=")
    settings[key.strip()] = value.strip()
  return settings


def check_wsl_config(ctx: RunContext) -> None:
  reporter = ctx.reporter
  conf = Path(WSL_CONF)
  if conf.is_file():
    reporter.info(f"Found {WSL_CONF}")
    text = conf.read_text(encoding="utf-8", errors="replace")

    if SYSTEMD_SETTING.search(text):
      reporter.success("systemd is enabled")
      if systemd_running():
        reporter.success("systemd is running")
      else:
        reporter.warning("systemd is enabled but not running")
    else:
      reporter.warning("systemd is not enabled")

    if section_settings(text, "automount").get("enabled", "").lower() == "true":
      reporter.success("automount is enabled")
    else:
      reporter.info("automount is disabled or not configured")

    if section_settings(text, "interop").get("appendWindowsPath", "").lower() == "true":
      reporter.info("Windows PATH integration is enabled")
  else:
    reporter.warning(f"{WSL_CONF} not found")

  if Path(WSL_DISTRIBUTION_CONF).is_file():
    reporter.info(f"Found {WSL_DISTRIBUTION_CONF}")
  else:
    reporter.warning(f"{WSL_DISTRIBUTION_CONF} not found")


def systemd_running() -> bool:
  result = probe(["systemctl", "is-system-running"])
  return result is not None and result.stdout.strip() in ("running", "degraded")


def check_services(ctx: RunContext) -> None:
  reporter = ctx.reporter
  if not command_exists("systemctl"):
    reporter.info("systemd not available, checking traditional services...")
    result = probe(["pgrep", "sshd"])
    if result is not None and result.returncode == 0:
      reporter.success("SSH daemon is running")
    else:
      reporter.info("SSH daemon is not running")
    return

  for service in ctx.defaults["services"]:
    enabled = probe(["systemctl", "is-enabled", service])
    if enabled is None or enabled.returncode != 0:
      reporter.info(f"Service {service}: not enabled")
      continue

    active = probe(["systemctl", "is-active", service])
    if active is not None and active.returncode == 0:
      reporter.success(f"Service {service}: enabled and running")
    else:
      reporter.warning(f"Service {service}: enabled but not running")


def check_package_management(ctx: RunContext) -> None:
  reporter = ctx.reporter
  if not command_exists("pacman"):
    reporter.error("pacman not found")
  else:
    reporter.success("pacman is available")

    database = probe(["pacman", "-Q"])
    if database is not None and database.returncode == 0:
      reporter.success("pacman database is accessible")
    else:
      reporter.error("pacman database issues detected")

    pending = probe(["pacman", "-Qu"])
    updates = len(pending.stdout.splitlines()) if pending is not None else 0
    if updates:
      reporter.warning(f"{updates} package updates available")
    else:
      reporter.success("System is up to date")

    integrity = probe(["pacman", "-Qk"])
    if integrity is not None and "missing file" in integrity.stdout + integrity.stderr:
      reporter.warning("Some packages have missing files")

  helper = next((name for name in AUR_HELPERS if command_exists(name)), None)
  if helper:
    reporter.success(f"AUR helper found: {helper}")


def check_filesystem(ctx: RunContext) -> None:
  reporter = ctx.reporter
  for directory in CRITICAL_DIRS:
    if os.path.isdir(directory):
      usage = shutil.disk_usage(directory)
      reporter.info(f"Directory {directory}: {usage.free / 1024**3:.1f}G free on its filesystem")
    else:
      reporter.error(f"Critical directory missing: {directory}")

  if os.access("/etc", os.W_OK):
    reporter.success("Write permissions to /etc")
  else:
    reporter.warning("No write permissions to /etc")


def check_graphics(ctx: RunContext) -> None:
  reporter = ctx.reporter
  display = os.environ.get("DISPLAY")
  if display:
    reporter.success(f"DISPLAY variable is set: {display}")

    if command_exists("xeyes"):
      reporter.info("X11 applications available")

    lspci = probe(["lspci"])
    if lspci is not None and lspci.returncode == 0:
      gpus = [line for line in lspci.stdout.splitlines() if "vga" in line.lower()]
      reporter.info(f"GPU: {gpus[0] if gpus else 'No GPU detected via lspci'}")
  else:
    reporter.info("No DISPLAY variable set (WSLg not available or not configured)")

  if command_exists("glxinfo"):
    glxinfo = probe(["glxinfo"])
    if glxinfo is not None and "direct rendering: Yes" in glxinfo.stdout:
      reporter.success("OpenGL direct rendering is available")


def check_common_issues(ctx: RunContext) -> None:
  reporter = ctx.reporter
  locale = probe(["locale"])
  if locale is not None and "Cannot set LC" in locale.stderr:
    reporter.warning("Locale configuration issues detected")
    reporter.info("Try: sudo locale-gen")

  timedatectl = probe(["timedatectl"])
  if timedatectl is not None and "synchronized: no" in timedatectl.stdout:
    reporter.warning("Time synchronization issues")

  if command_exists("systemctl"):
    failed = probe(["systemctl", "--user", "list-units", "--failed", "--plain", "--no-legend"])
    count = len(failed.stdout.splitlines()) if failed is not None else 0
    if count:
      reporter.warning(f"{count} failed user services")

  if not os.access("/tmp", os.W_OK):
    reporter.error("No write permissions to /tmp")

  resolv = Path("/etc/resolv.conf")
  if resolv.is_file():
    nameservers = [line for line in resolv.read_text().splitlines() if line.startswith("nameserver")]
    if not nameservers:
      reporter.warning("No nameservers configured in resolv.conf")


MODES: dict[str, list[Check]] = {
  "network": [check_wsl_environment, check_network],
  "services": [check_wsl_environment, check_services],
  "packages": [check_wsl_environment, check_package_management],
  "graphics": [check_wsl_environment, check_graphics],
  "quick": [check_wsl_environment, check_network, check_system_resources],
  "full": [
    check_wsl_environment,
    check_system_resources,
    check_network,
    check_wsl_config,
    check_services,
    check_package_management,
    check_filesystem,
    check_graphics,
    check_common_issues,
  ],
}


def get_checks(mode: str) -> list[Check]:
  try:
    return MODES[mode]

  except KeyError as e:
    raise ValueError(f"Unknown troubleshooting mode: {mode}") from e


def run_checks(ctx: RunContext, checks: list[Check]) -> int:
  """Run checks best effort and return how many of them raised."""
  crashed = 0
  for check in checks:
    ctx.reporter.header(f"Checking {format_step_name(check.__name__)}")
    try:
      check(ctx)

    except Exception as e:
      crashed += 1
      ctx.reporter.warning(f"Check '{format_step_name(check.__name__)}' could not complete: {e}")

  return crashed


FIXES = dedent("""\
  # ArchWSL2 Troubleshooting Fixes

  ## Network Issues
  - Check Windows firewall settings
  - Restart WSL: wsl --shutdown
  - Reset network: wsl --shutdown && netsh winsock reset
  - Update WSL: wsl --update

  ## Performance Issues
  - Increase WSL memory in .wslconfig
  - Move WSL to faster drive (SSD)
  - Disable unnecessary services
  - Clear package cache: sudo pacman -Scc

  ## Service Issues
  - Restart systemd: sudo systemctl daemon-reload
  - Reset service: sudo systemctl restart <service>
  - Check service logs: journalctl -u <service>

  ## Package Issues
  - Refresh package database: sudo pacman -Sy
  - Update keyring: sudo pacman -Sy archlinux-keyring
  - Clear cache: sudo pacman -Scc
  - Reinstall broken package: sudo pacman -S <package>

  ## Graphics/WSLg Issues
  - Restart WSLg: Restart Windows
  - Update Windows graphics drivers
  - Check Windows version compatibility
  - Set DISPLAY=:0 in ~/.bashrc

  ## Permission Issues
  - Fix ownership: sudo chown -R user:group /path
  - Fix permissions: chmod 755 /path

  ## systemd Issues
  - Check status: systemctl status
  - Enable service: sudo systemctl enable <service>
  - Check journal: journalctl -xe
""")


def generate_fixes(ctx: RunContext) -> Path:
  ctx.reporter.header("Generating Fix Suggestions")
  fixes_file = ctx.work / "fixes.txt"
  _ = fixes_file.write_text(FIXES, encoding="utf-8")
  ctx.reporter.success(f"Fix suggestions generated: {fixes_file}")

  ctx.reporter.step("Quick Fixes:")
  if not has_internet():
    ctx.reporter.print("  • Network issues detected:")
    ctx.reporter.print("    - Restart WSL: wsl --shutdown")
    ctx.reporter.print("    - Check Windows firewall")
    ctx.reporter.print("    - Reset network: netsh winsock reset (in Windows)")

  try:
    high_memory = memory_usage_percent(read_meminfo()) > 90

  except OSError:
    high_memory = False

  if high_memory:
    ctx.reporter.print("  • High memory usage:")
    ctx.reporter.print("    - Clear package cache: sudo pacman -Scc")
    ctx.reporter.print("    - Increase WSL memory in .wslconfig")

  if command_exists("systemctl") and not systemd_running():
    ctx.reporter.print("  • systemd issues:")
    ctx.reporter.print("    - Check systemd version: systemctl --version")
    ctx.reporter.print("    - Restart WSL: wsl --shutdown")
    ctx.reporter.print("    - Verify WSL version supports systemd")

  return fixes_file


def _capture(args: list[str]) -> str:
  result = probe(args)
  if result is None:
    return f"{args[0]} not available"
  return result.stdout or result.stderr


def _read(path: str) -> str:
  try:
    return Path(path).read_text(encoding="utf-8", errors="replace")

  except OSError as e:
    return f"{path} not readable: {e}"


def collect_diagnostics(ctx: RunContext) -> Path:
  ctx.reporter.header("Collecting Diagnostic Information")
  env = "\n".join(f"{k}={v}" for k, v in sorted(os.environ.items()) if any(x in k for x in ("WSL", "DISPLAY", "PATH")))

  sections = [
    ("System Information", " ".join(os.uname())),
    ("WSL Information", _read(PROC_VERSION)),
    ("Memory Usage", _capture(["free", "-h"])),
    ("Disk Usage", _capture(["df", "-h"])),
    ("Environment Variables", env),
  ]

  if command_exists("systemctl"):
    sections.append(("Systemd Status", _capture(["systemctl", "status", "--no-pager", "-l"])))

  if Path(WSL_CONF).is_file():
    sections.append(("wsl.conf", _read(WSL_CONF)))

  sections.append(("Network Configuration", _capture(["ip", "addr", "show"]) + "\n" + _read("/etc/resolv.conf")))

  if command_exists("pacman"):
    sections.append(("Package Information", _capture(["pacman", "-Qi", "pacman"])))
    sections.append(("Pending Updates", _capture(["pacman", "-Qu"]) or "No updates available"))

  lines = ["=== ArchWSL2 Diagnostic Information ===", f"Generated: {datetime.now():%Y-%m-%d %H:%M:%S}", ""]
  for title, body in sections:
    lines.extend([f"--- {title} ---", body.rstrip(), ""])

  diag_file = ctx.work / "diagnostics.txt"
  _ = diag_file.write_text("\n".join(lines), encoding="utf-8")
  ctx.reporter.success(f"Diagnostic information collected: {diag_file}")
  return diag_file


def write_report(ctx: RunContext, parts: list[Path]) -> Path:
  """Concatenate the session log and generated files into a timestamped report."""
  report_file = ctx.project_root / f"troubleshoot-report-{datetime.now():%Y%m%d_%H%M%S}.txt"
  chunks = [_read(str(ctx.log_path))] if ctx.log_path else []
  chunks.extend(part.read_text(encoding="utf-8") for part in parts)
  _ = report_file.write_text("\n".join(chunks), encoding="utf-8")
  ctx.reporter.success(f"Detailed report generated: {report_file}")
  return report_file


def troubleshoot(config: TroubleshootConfig, ctx: RunContext) -> int:
  """Run a troubleshooting session inside an active RunContext."""
  reporter = ctx.reporter
  reporter.info(f"Troubleshooting log: {ctx.log_path}")
  reporter.info(f"Working directory: {ctx.work}")
  reporter.header("ArchWSL2 Troubleshooting Started")

  _ = run_checks(ctx, get_checks(config.mode))

  parts: list[Path] = []
  if not config.collect_only:
    parts.append(generate_fixes(ctx))
  parts.insert(0, collect_diagnostics(ctx))

  if config.report:
    _ = write_report(ctx, parts)

  reporter.header("Troubleshooting Completed")
  reporter.info(f"Files created in: {ctx.work}")
  reporter.info(f"Log file: {ctx.log_path}")
  return 0
