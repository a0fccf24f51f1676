"""
Build tree validation for archwsl.

A checklist is a static tuple of independent rules. Every rule runs, even
after earlier failures, and the outcome is a report whose failure count
decides the exit status.
"""

from __future__ import annotations

import re
import shutil
import subprocess
import tarfile
import zipfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from wsltools.reporter import Reporter
from wsltools.types import CheckStatus, DefaultsConfig, ValidateConfig
from wsltools.utils import command_exists, parse_version, probe

ROOTFS_ARCHIVE = "rootfs.tar.gz"
DISTRO_ZIP = "ArchWSL2.zip"
ZIP_MEMBERS = ("Arch.exe", ROOTFS_ARCHIVE)
SERVICE_MARKER = "[Service]"
SYSTEMD_SETTING = re.compile(r"^\s*systemd\s*=\s*true\s*$", re.MULTILINE)


@dataclass(frozen=True)
class CheckResult:
  status: CheckStatus
  message: str


@dataclass(frozen=True)
class ValidationRule:
  """
  A named target plus the predicate that checks it.

  The predicate returns None when the rule does not apply, e.g. a content
  check on a file that is not there.
  """

  target: str
  predicate: Callable[[Path], CheckResult | None]

  def evaluate(self, root: Path) -> CheckResult | None:
    try:
      return self.predicate(root)

    except OSError as e:
      return CheckResult(CheckStatus.FAIL, f"Could not check {self.target}: {e}")


@dataclass
class ValidationReport:
  results: list[CheckResult] = field(default_factory=list)

  @property
  def failures(self) -> int:
    return sum(1 for result in self.results if result.status is CheckStatus.FAIL)

  @property
  def warnings(self) -> int:
    return sum(1 for result in self.results if result.status is CheckStatus.WARN)

  @property
  def exit_code(self) -> int:
    return 1 if self.failures > 0 else 0

  def extend(self, other: ValidationReport) -> None:
    self.results.extend(other.results)


def _passed(message: str) -> CheckResult:
  return CheckResult(CheckStatus.PASS, message)


def _warned(message: str) -> CheckResult:
  return CheckResult(CheckStatus.WARN, message)


def _failed(message: str) -> CheckResult:
  return CheckResult(CheckStatus.FAIL, message)


# =============================================================================
# Rule factories
# =============================================================================


def required_file(name: str) -> ValidationRule:
  def check(root: Path) -> CheckResult:
    if (root / name).is_file():
      return _passed(f"Found required file: {name}")
    return _failed(f"Required file '{name}' is missing")

  return ValidationRule(name, check)


def optional_directory(name: str) -> ValidationRule:
  def check(root: Path) -> CheckResult:
    if (root / name).is_dir():
      return _passed(f"Found {name} directory")
    return _warned(f"{name.capitalize()} directory not found (optional)")

  return ValidationRule(f"{name}/", check)


def service_marker(unit: str, marker: str = SERVICE_MARKER) -> ValidationRule:
  def check(root: Path) -> CheckResult | None:
    path = root / unit
    if not path.is_file():
      return None
    if marker in path.read_text(encoding="utf-8", errors="replace"):
      return _passed(f"{unit} has proper structure")
    return _failed(f"{unit} is malformed (no {marker} section)")

  return ValidationRule(unit, check)


def makefile_target(target: str, makefile: str = "Makefile") -> ValidationRule:
  pattern = re.compile(rf"^{re.escape(target)}:", re.MULTILINE)

  def check(root: Path) -> CheckResult | None:
    path = root / makefile
    if not path.is_file():
      return None
    if pattern.search(path.read_text(encoding="utf-8", errors="replace")):
      return _passed(f"Makefile has target: {target}")
    return _failed(f"Makefile missing target: {target}")

  return ValidationRule(f"{makefile}:{target}", check)


def systemd_setting(conf: str = "wsl.conf") -> ValidationRule:
  def check(root: Path) -> CheckResult | None:
    path = root / conf
    if not path.is_file():
      return None
    if SYSTEMD_SETTING.search(path.read_text(encoding="utf-8", errors="replace")):
      return _passed(f"{conf} has systemd enabled")
    return _warned(f"systemd is not enabled in {conf}")

  return ValidationRule(f"{conf}:systemd", check)


def free_space(required_gb: int) -> ValidationRule:
  def check(root: Path) -> CheckResult:
    available_gb = shutil.disk_usage(root).free // (1024**3)
    if available_gb < required_gb:
      return _failed(f"Insufficient disk space. Required: {required_gb}GB, Available: {available_gb}GB")
    return _passed(f"Disk space check passed ({available_gb}GB available)")

  return ValidationRule("disk space", check)


def tool_available(tool: str) -> ValidationRule:
  def check(_root: Path) -> CheckResult:
    if command_exists(tool):
      return _passed(f"Tool '{tool}' is available")
    return _failed(f"Required tool '{tool}' is not installed")

  return ValidationRule(tool, check)


def docker_installed() -> ValidationRule:
  def check(_root: Path) -> CheckResult:
    if command_exists("docker"):
      return _passed("Docker is installed")
    return _failed("Docker is not installed")

  return ValidationRule("docker", check)


def docker_version(minimum: str) -> ValidationRule:
  def check(_root: Path) -> CheckResult | None:
    if not command_exists("docker"):
      return None

    result = probe(["docker", "--version"])
    if result is None or result.returncode != 0:
      return _warned("Could not determine Docker version")

    # "Docker version 24.0.7, build afdd53b"
    match = re.search(r"version\s+([0-9][0-9.]*)", result.stdout)
    if not match:
      return _warned("Could not determine Docker version")

    version = match.group(1)
    if parse_version(version) < parse_version(minimum):
      return _warned(f"Docker version {version} is older than recommended {minimum}")
    return _passed(f"Docker version {version} meets requirements")

  return ValidationRule("docker version", check)


def docker_daemon() -> ValidationRule:
  def check(_root: Path) -> CheckResult | None:
    if not command_exists("docker"):
      return None

    result = probe(["docker", "info"])
    if result is None or result.returncode != 0:
      return _failed("Docker daemon is not running")
    return _passed("Docker daemon is running")

  return ValidationRule("docker daemon", check)


def docker_pull(image: str) -> ValidationRule:
  def check(_root: Path) -> CheckResult:
    result = probe(["docker", "pull", image])
    if result is None or result.returncode != 0:
      return _failed(f"Failed to pull {image} image")
    return _passed(f"Successfully pulled {image} image")

  return ValidationRule(f"pull {image}", check)


def docker_run(image: str) -> ValidationRule:
  def check(_root: Path) -> CheckResult:
    result = probe(["docker", "run", "--rm", image, "echo", "Docker test successful"])
    if result is None or result.returncode != 0:
      return _failed("Docker container test failed")
    return _passed("Docker container test passed")

  return ValidationRule(f"run {image}", check)


def rootfs_archive(name: str = ROOTFS_ARCHIVE) -> ValidationRule:
  def check(root: Path) -> CheckResult:
    path = root / name
    if not path.is_file():
      return _warned(f"{name} not found - this is expected before build")

    try:
      with tarfile.open(path, "r:gz") as archive:
        _ = archive.getmembers()

    except (tarfile.TarError, EOFError) as e:
      return _failed(f"{name} is corrupted: {e}")

    size_mb = path.stat().st_size / (1024**2)
    return _passed(f"{name} integrity validated ({size_mb:.1f}MB)")

  return ValidationRule(name, check)


def distro_zip(name: str = DISTRO_ZIP) -> ValidationRule:
  def check(root: Path) -> CheckResult:
    path = root / name
    if not path.is_file():
      return _warned(f"{name} not found - this is expected before build")

    try:
      with zipfile.ZipFile(path) as archive:
        bad_member = archive.testzip()

    except zipfile.BadZipFile as e:
      return _failed(f"{name} is corrupted: {e}")

    if bad_member is not None:
      return _failed(f"{name} is corrupted (bad member: {bad_member})")
    return _passed(f"{name} integrity validated")

  return ValidationRule(name, check)


def zip_member(member: str, name: str = DISTRO_ZIP) -> ValidationRule:
  def check(root: Path) -> CheckResult | None:
    path = root / name
    if not path.is_file() or not zipfile.is_zipfile(path):
      return None

    with zipfile.ZipFile(path) as archive:
      if member in archive.namelist():
        return _passed(f"Found required file in zip: {member}")
    return _failed(f"Missing required file in zip: {member}")

  return ValidationRule(f"{name}:{member}", check)


# =============================================================================
# Checklists
# =============================================================================


def project_rules(defaults: DefaultsConfig) -> tuple[ValidationRule, ...]:
  return (*(required_file(name) for name in defaults["required_files"]), optional_directory("scripts"))


def config_rules(defaults: DefaultsConfig) -> tuple[ValidationRule, ...]:
  return (
    service_marker(defaults["service_unit"]),
    *(makefile_target(target) for target in defaults["makefile_targets"]),
    systemd_setting("wsl.conf"),
  )


def system_rules(defaults: DefaultsConfig) -> tuple[ValidationRule, ...]:
  return (
    free_space(defaults["required_space_gb"]),
    docker_installed(),
    docker_version(defaults["min_docker_version"]),
    docker_daemon(),
    *(tool_available(tool) for tool in defaults["required_tools"]),
  )


def docker_rules(defaults: DefaultsConfig) -> tuple[ValidationRule, ...]:
  return (docker_pull(defaults["docker_image"]), docker_run(defaults["docker_image"]))


def artifact_rules() -> tuple[ValidationRule, ...]:
  return (rootfs_archive(), distro_zip(), *(zip_member(member) for member in ZIP_MEMBERS))


def run_checklist(
  rules: Iterable[ValidationRule],
  root: Path,
  reporter: Reporter,
  verbose: bool = False,
) -> ValidationReport:
  """Evaluate every rule against root and report each applicable result."""
  report = ValidationReport()

  for rule in rules:
    if verbose:
      reporter.info(f"Checking {rule.target}")

    result = rule.evaluate(root)
    if result is None:
      continue

    report.results.append(result)
    match result.status:
      case CheckStatus.PASS:
        reporter.success(result.message)
      case CheckStatus.WARN:
        reporter.warning(result.message)
      case CheckStatus.FAIL:
        reporter.error(result.message)

  return report


def validate_tree(root: str | Path, defaults: DefaultsConfig, reporter: Reporter) -> ValidationReport:
  """Check required files, service unit, Makefile targets and wsl.conf of a build tree."""
  path = Path(root)
  report = run_checklist(project_rules(defaults), path, reporter)
  report.extend(run_checklist(config_rules(defaults), path, reporter))
  return report


def run_build(root: Path, reporter: Reporter, verbose: bool = False) -> None:
  """
  Clean and rebuild the distribution with make.

  Raises:
      FileNotFoundError: If make is not installed
      subprocess.CalledProcessError: If a make invocation fails
  """
  if not command_exists("make"):
    raise FileNotFoundError("Required tool 'make' is not installed")

  reporter.info("Cleaning previous build artifacts...")
  _ = subprocess.run(["make", "clean"], cwd=root, check=True, capture_output=not verbose)

  reporter.info("Starting build process...")
  _ = subprocess.run(["make"], cwd=root, check=True, capture_output=not verbose)
  reporter.success("Build completed successfully")


def run_validation(config: ValidateConfig, defaults: DefaultsConfig, reporter: Reporter) -> int:
  """Run the selected checklists, then the build if requested, and return the exit status."""
  root = Path(config.directory).resolve()
  selected = (config.system, config.project, config.config, config.docker, config.artifacts)
  run_all = not any(selected)

  groups: list[tuple[bool, str, tuple[ValidationRule, ...]]] = [
    (config.system, "Checking system requirements...", system_rules(defaults)),
    (config.project, "Validating project structure...", project_rules(defaults)),
    (config.config, "Validating configuration files...", config_rules(defaults)),
    (config.docker, "Testing Docker build process...", docker_rules(defaults)),
    (config.artifacts, "Validating build artifacts...", artifact_rules()),
  ]

  reporter.info(f"Starting ArchWSL2 build validation in {root}")
  report = ValidationReport()

  for enabled, title, rules in groups:
    if not (enabled or run_all):
      continue
    reporter.info(title)
    report.extend(run_checklist(rules, root, reporter, config.verbose))

  if config.build:
    if report.failures:
      reporter.error(f"Validation failed with {report.failures} error(s), build skipped")
      return report.exit_code

    reporter.info("Running validated build process...")
    try:
      run_build(root, reporter, config.verbose)

    except FileNotFoundError as e:
      reporter.error(str(e))
      return 1

    except subprocess.CalledProcessError as e:
      reporter.error(f"Build failed: {' '.join(map(str, e.cmd))} exited with {e.returncode}")
      return 1

    report.extend(run_checklist(artifact_rules(), root, reporter, config.verbose))

  if report.failures:
    reporter.error(f"Validation failed with {report.failures} error(s) and {report.warnings} warning(s)")
    return report.exit_code

  if config.check_only:
    reporter.success("All validation checks completed successfully")
  reporter.success(f"Build validation completed with {report.warnings} warning(s)")
  return report.exit_code
