from pathlib import Path

import pytest

from wsltools.context import RunContext
from wsltools.types import DefaultsConfig


def test_work_dir_removed_on_error(tmp_path: Path, defaults: DefaultsConfig) -> None:
  work: Path | None = None
  with pytest.raises(RuntimeError):
    with RunContext(defaults, project_root=tmp_path) as ctx:
      work = ctx.work
      _ = (work / "partial.txt").write_text("data", encoding="utf-8")
      raise RuntimeError("boom")

  assert work is not None
  assert not work.exists()


def test_supplied_work_dir_is_kept(tmp_path: Path, defaults: DefaultsConfig) -> None:
  target = tmp_path / "out"
  with RunContext(defaults, project_root=tmp_path, work_dir=target) as ctx:
    assert ctx.work == target
    _ = (ctx.work / "kept.txt").write_text("data", encoding="utf-8")

  assert (target / "kept.txt").exists()


def test_log_is_appended_across_runs(tmp_path: Path, defaults: DefaultsConfig) -> None:
  log = tmp_path / "logs" / "run.log"
  for message in ("first run", "second run"):
    with RunContext(defaults, project_root=tmp_path, log_path=log, session="Session") as ctx:
      ctx.reporter.info(message)

  lines = log.read_text(encoding="utf-8").splitlines()
  assert lines[1] == "[INFO] first run"
  assert lines[3] == "[INFO] second run"
  assert sum(1 for line in lines if line.startswith("Session - ")) == 2


def test_markup_is_logged_as_plain_text(tmp_path: Path, defaults: DefaultsConfig) -> None:
  log = tmp_path / "run.log"
  with RunContext(defaults, project_root=tmp_path, log_path=log) as ctx:
    ctx.reporter.print("[bold]Quick Fixes:[/]")
    ctx.reporter.warning("[not markup]")

  lines = log.read_text(encoding="utf-8").splitlines()
  assert lines[1:] == ["Quick Fixes:", "[WARNING] [not markup]"]


def test_work_requires_active_context(defaults: DefaultsConfig) -> None:
  with pytest.raises(AssertionError):
    _ = RunContext(defaults).work
