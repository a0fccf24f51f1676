"""
Dependency maintenance for the ArchWSL2 build.

Refreshes the Docker base image, tracks the wsldl launcher release pinned in
the Makefile, and reports package and script hygiene.
"""

from __future__ import annotations

import http.client
import json
import re
import shutil
import urllib.request
from datetime import datetime
from pathlib import Path
from textwrap import dedent

from rich.prompt import Confirm

from wsltools.context import RunContext
from wsltools.types import UpdateConfig
from wsltools.utils import NETWORK_TIMEOUT, probe

ARTIFACTS = ("ArchWSL2.zip", "rootfs.tar.gz")
SCRIPT_FILES = (
  "scripts/setup-user.sh",
  "scripts/validate-build.sh",
  "scripts/generate-config.sh",
  "scripts/update-dependencies.sh",
)


def backup_files(ctx: RunContext) -> Path:
  """Copy project files and built artifacts into a timestamped backup directory."""
  reporter = ctx.reporter
  reporter.info("Creating backup of current files...")

  backup_root = ctx.project_root / "backups"
  backup_dir = backup_root / f"backup_{datetime.now():%Y%m%d_%H%M%S}"
  backup_dir.mkdir(parents=True, exist_ok=True)

  for name in (*ctx.defaults["backup_files"], *ARTIFACTS):
    source = ctx.project_root / name
    if source.is_file():
      _ = shutil.copy2(source, backup_dir / name)
      reporter.info(f"Backed up: {name}")

  _ = (backup_root / "latest_backup.txt").write_text(f"{backup_dir}\n", encoding="utf-8")
  reporter.success(f"Backup created: {backup_dir}")
  return backup_dir


def image_id(image: str) -> str | None:
  result = probe(["docker", "images", image, "--format", "{{.ID}}"])
  if result is None or result.returncode != 0:
    return None
  return result.stdout.strip().splitlines()[0] if result.stdout.strip() else None


def update_docker_image(ctx: RunContext) -> bool:
  """Pull the base image; True when the local image changed."""
  reporter = ctx.reporter
  image = ctx.defaults["docker_image"]
  reporter.header("Updating Docker Base Image")

  current = image_id(image)
  if current:
    reporter.info(f"Current image ID: {current}")
  else:
    reporter.info(f"No existing {image} image found")

  reporter.info(f"Pulling latest {image}...")
  result = probe(["docker", "pull", image])
  if result is None or result.returncode != 0:
    reporter.error("Failed to pull Docker image")
    return False

  reporter.success("Successfully pulled latest Docker image")
  new = image_id(image)
  if current != new:
    reporter.success(f"Docker image updated (old: {current}, new: {new})")
    return True

  reporter.info("Docker image is already up to date")
  return False


def _wsldl_url_pattern(repo: str) -> re.Pattern[str]:
  return re.compile(
    rf"^(?P<prefix>LNCR_ZIP_URL\s*[:?]?=\s*https://github\.com/{re.escape(repo)}/releases/download/)(?P<tag>[^/\s]+)(?P<suffix>/)",
    re.MULTILINE,
  )


def current_wsldl_version(makefile_text: str, repo: str) -> str | None:
  """Read the wsldl release tag pinned by LNCR_ZIP_URL."""
  match = _wsldl_url_pattern(repo).search(makefile_text)
  return match.group("tag") if match else None


def pin_wsldl_version(makefile_text: str, repo: str, version: str) -> str:
  """Return Makefile text with LNCR_ZIP_URL pointing at the given release tag."""
  pattern = _wsldl_url_pattern(repo)
  if not pattern.search(makefile_text):
    raise ValueError("Makefile has no LNCR_ZIP_URL for the wsldl release")
  return pattern.sub(lambda m: f"{m.group('prefix')}{version}{m.group('suffix')}", makefile_text)


def fetch_latest_release(repo: str) -> str:
  """
  Fetch the latest release tag of a GitHub repository.

  Raises:
      ValueError: If the release cannot be fetched or has no tag
  """
  url = f"https://api.github.com/repos/{repo}/releases/latest"
  try:
    req = urllib.request.Request(
      url,
      headers={
        "User-Agent": "archwsl2-tools/0.1.0",
        "Accept": "application/vnd.github+json",
      },
    )

    with urllib.request.urlopen(req, timeout=NETWORK_TIMEOUT) as response:
      status_code = getattr(response, "status", getattr(response, "code", 200))

      if status_code != 200:
        reason = getattr(response, "reason", "Unknown error")
        raise ValueError(f"HTTP {status_code}: {reason}")

      parsed_data = json.loads(response.read().decode("utf-8"))

  except (OSError, http.client.HTTPException) as e:
    # URLError is an OSError, and urlopen lets timeouts through unwrapped
    raise ValueError(f"Failed to fetch latest release: {e}") from e

  except json.JSONDecodeError as e:
    raise ValueError(f"Invalid JSON in release metadata: {e}") from e

  tag = parsed_data.get("tag_name") if isinstance(parsed_data, dict) else None
  if not isinstance(tag, str) or not tag:
    raise ValueError("Release metadata has no tag_name")
  return tag


def check_wsldl(ctx: RunContext, force: bool) -> bool:
  """Compare the pinned wsldl release with the latest one and update the Makefile on request."""
  reporter = ctx.reporter
  repo = ctx.defaults["wsldl_repo"]
  makefile = ctx.project_root / "Makefile"
  reporter.header("Checking wsldl Updates")

  text = makefile.read_text(encoding="utf-8") if makefile.is_file() else ""
  current = current_wsldl_version(text, repo)
  reporter.info(f"Current wsldl version: {current or 'unknown'}")

  reporter.info("Fetching latest wsldl release...")
  try:
    latest = fetch_latest_release(repo)

  except ValueError as e:
    reporter.warning(f"Could not fetch latest wsldl version: {e}")
    return False

  reporter.info(f"Latest wsldl version: {latest}")
  if current is None or current == latest:
    reporter.info("wsldl is up to date" if current else "wsldl version in Makefile is unknown")
    return False

  reporter.success(f"wsldl update available: {current} → {latest}")
  if not force and not Confirm.ask(f"Update wsldl to {latest}?", default=False):
    return False

  _ = shutil.copy2(makefile, makefile.with_name("Makefile.backup"))
  _ = makefile.write_text(pin_wsldl_version(text, repo, latest), encoding="utf-8")
  reporter.success("wsldl URL updated in Makefile")
  return True


def check_package_updates(ctx: RunContext) -> None:
  reporter = ctx.reporter
  reporter.header("Checking Package Updates")
  reporter.info("Starting temporary container to check package updates...")

  script = "pacman -Sy --noconfirm >/dev/null && pacman -Qu"
  result = probe(["docker", "run", "--rm", ctx.defaults["docker_image"], "bash", "-c", script])
  if result is None:
    reporter.error("Failed to check package updates")
    return

  # pacman -Qu exits 1 when nothing is outdated
  if result.returncode not in (0, 1):
    reporter.error("Failed to check package updates")
    return

  pending = result.stdout.splitlines()
  for line in pending[:20]:
    reporter.print(f"  {line}")
  reporter.info(f"Total packages to update: {len(pending)}")
  reporter.success("Package update check completed")


def check_scripts(ctx: RunContext) -> None:
  reporter = ctx.reporter
  reporter.header("Updating Project Scripts")

  for script in SCRIPT_FILES:
    path = ctx.project_root / script
    if not path.is_file():
      continue

    reporter.info(f"Checking script: {script}")
    text = path.read_text(encoding="utf-8", errors="replace")

    if "set -euo pipefail" in text:
      reporter.info("✓ Script has proper error handling")
    else:
      reporter.warning("⚠ Script missing error handling")

    if text.startswith("#!/bin/bash") or text.startswith("#!/usr/bin/env bash"):
      reporter.info("✓ Script has proper shebang")
    else:
      reporter.warning("⚠ Script missing shebang")


def validate_updates(ctx: RunContext) -> bool:
  reporter = ctx.reporter
  image = ctx.defaults["docker_image"]
  reporter.header("Validating Updated Dependencies")

  reporter.info("Testing updated Docker image...")
  result = probe(["docker", "run", "--rm", image, "echo", "Docker image test successful"])
  if result is None or result.returncode != 0:
    reporter.error("Docker image validation failed")
    return False
  reporter.success("Docker image validation passed")

  reporter.info("Testing build process with updated dependencies...")
  script = "pacman --version && tar --version && (make -n all || echo 'Makefile dry run completed')"
  result = probe(["docker", "run", "--rm", "-v", f"{ctx.project_root}:/workspace", "-w", "/workspace", image, "bash", "-c", script])
  if result is None or result.returncode != 0:
    reporter.error("Build validation failed")
    return False

  reporter.success("Build validation passed")
  return True


def create_update_report(ctx: RunContext) -> Path:
  reporter = ctx.reporter
  reporter.header("Creating Update Report")

  image = ctx.defaults["docker_image"]
  repo = ctx.defaults["wsldl_repo"]
  latest_backup = ctx.project_root / "backups" / "latest_backup.txt"
  backup = latest_backup.read_text(encoding="utf-8").strip() if latest_backup.is_file() else "No backup created"
  image_status = "Available" if image_id(image) else "Not found"

  report_file = ctx.project_root / f"update-report-{datetime.now():%Y%m%d_%H%M%S}.md"
  _ = report_file.write_text(
    dedent(f"""\
      # ArchWSL2 Dependency Update Report

      **Generated:** {datetime.now():%Y-%m-%d %H:%M:%S}

      ## Docker Base Image
      - **Image:** {image}
      - **Status:** {image_status}

      ## wsldl Launcher
      - **Repository:** https://github.com/{repo}
      - **Status:** Check update log for version information

      ## Backup Location
      {backup}

      ## Update Log
      The detailed update log is available at: `{ctx.log_path}`

      ## Next Steps
      1. Review the update log for any issues
      2. Test the build process with updated dependencies
      3. Consider rebuilding the ArchWSL2 distribution
      4. Update documentation if necessary
    """),
    encoding="utf-8",
  )

  reporter.success(f"Update report created: {report_file}")
  return report_file


def run_update(config: UpdateConfig, ctx: RunContext) -> int:
  """Run the selected update steps inside an active RunContext."""
  reporter = ctx.reporter
  reporter.info(f"Logging to: {ctx.log_path}")
  reporter.header("ArchWSL2 Dependency Update Started")

  if config.backup:
    _ = backup_files(ctx)

  if not config.force:
    reporter.warning("This will update dependencies for ArchWSL2")
    if not Confirm.ask("Continue?", default=False):
      reporter.info("Update cancelled")
      return 0

  updated = False
  if config.docker:
    updated = update_docker_image(ctx) or updated

  if config.wsldl:
    updated = check_wsldl(ctx, config.force) or updated

  if config.packages:
    check_package_updates(ctx)

  if config.scripts:
    check_scripts(ctx)

  status = 0
  if config.validate and updated and not validate_updates(ctx):
    status = 1

  if config.report:
    _ = create_update_report(ctx)

  reporter.header("Update Process Completed")
  if updated:
    reporter.success("Dependencies were updated")
    reporter.info("Consider rebuilding ArchWSL2 with: make clean && make")
  else:
    reporter.info("No updates were needed")

  reporter.info(f"Update log: {ctx.log_path}")
  return status
