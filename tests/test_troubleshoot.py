from pathlib import Path

import pytest

from wsltools import troubleshoot
from wsltools.context import RunContext
from wsltools.troubleshoot import MODES, get_checks, memory_usage_percent, read_meminfo, run_checks
from wsltools.types import DefaultsConfig


def test_every_mode_starts_with_the_environment_check() -> None:
  for checks in MODES.values():
    assert checks[0] is troubleshoot.check_wsl_environment
  assert len(get_checks("full")) == 9


def test_unknown_mode() -> None:
  with pytest.raises(ValueError, match="turbo"):
    _ = get_checks("turbo")


def test_crashing_check_does_not_stop_the_session(tmp_path: Path, defaults: DefaultsConfig) -> None:
  ran: list[str] = []

  def check_broken(ctx: RunContext) -> None:
    raise RuntimeError("probe exploded")

  def check_after(ctx: RunContext) -> None:
    ran.append("after")

  log = tmp_path / "troubleshoot.log"
  with RunContext(defaults, project_root=tmp_path, log_path=log) as ctx:
    assert run_checks(ctx, [check_broken, check_after]) == 1

  assert ran == ["after"]
  assert "Check 'Broken' could not complete: probe exploded" in log.read_text(encoding="utf-8")


def test_meminfo(tmp_path: Path) -> None:
  meminfo = tmp_path / "meminfo"
  _ = meminfo.write_text("MemTotal:  1000 kB\nMemFree:  100 kB\nMemAvailable:  250 kB\nHugePages_Total: 0\n")
  info = read_meminfo(str(meminfo))
  assert info["MemTotal"] == 1000
  assert memory_usage_percent(info) == 75
  assert memory_usage_percent({}) == 0


def test_fixes_go_to_work_dir(tmp_path: Path, defaults: DefaultsConfig, monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setattr(troubleshoot, "has_internet", lambda: True)
  monkeypatch.setattr(troubleshoot, "read_meminfo", lambda: {"MemTotal": 100, "MemAvailable": 50})
  monkeypatch.setattr(troubleshoot, "command_exists", lambda name: False)

  out = tmp_path / "out"
  with RunContext(defaults, project_root=tmp_path, work_dir=out) as ctx:
    fixes = troubleshoot.generate_fixes(ctx)

  assert fixes == out / "fixes.txt"
  assert "## Network Issues" in fixes.read_text(encoding="utf-8")


def test_report_combines_log_and_files(tmp_path: Path, defaults: DefaultsConfig) -> None:
  log = tmp_path / "troubleshoot.log"
  with RunContext(defaults, project_root=tmp_path, log_path=log) as ctx:
    ctx.reporter.info("checked")
    part = ctx.work / "diagnostics.txt"
    _ = part.write_text("=== diagnostics ===", encoding="utf-8")
    report = troubleshoot.write_report(ctx, [part])

  assert report.parent == tmp_path.resolve()
  text = report.read_text(encoding="utf-8")
  assert "[INFO] checked" in text
  assert "=== diagnostics ===" in text


def test_section_settings_stay_within_their_section() -> None:
  text = "[automount]\nenabled = false\n# enabled = true\n\n[interop]\nenabled = true\nappendWindowsPath=true\n"
  assert troubleshoot.section_settings(text, "automount") == {"enabled": "false"}
  assert troubleshoot.section_settings(text, "interop") == {"enabled": "true", "appendWindowsPath": "true"}
  assert troubleshoot.section_settings(text, "boot") == {}


def test_interop_does_not_count_as_automount(
  tmp_path: Path, defaults: DefaultsConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
  conf = tmp_path / "wsl.conf"
  _ = conf.write_text("[automount]\nenabled = false\n\n[interop]\nenabled = true\n", encoding="utf-8")
  monkeypatch.setattr(troubleshoot, "WSL_CONF", str(conf))
  monkeypatch.setattr(troubleshoot, "WSL_DISTRIBUTION_CONF", str(tmp_path / "missing.conf"))

  log = tmp_path / "troubleshoot.log"
  with RunContext(defaults, project_root=tmp_path, log_path=log) as ctx:
    troubleshoot.check_wsl_config(ctx)

  text = log.read_text(encoding="utf-8")
  assert "automount is disabled or not configured" in text
  assert "automount is enabled" not in text
