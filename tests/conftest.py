from pathlib import Path

import pytest

from wsltools.reporter import Reporter
from wsltools.types import DefaultsConfig
from wsltools.utils import load_defaults


def parse_sections(text: str) -> dict[str, dict[str, str]]:
  """Map each wsl.conf section to its active (uncommented) settings."""
  sections: dict[str, dict[str, str]] = {}
  current: dict[str, str] | None = None
  for line in text.splitlines():
    if line.startswith("[") and line.endswith("]"):
      current = sections.setdefault(line[1:-1], {})
    elif current is not None and line and not line.startswith("#"):
      key, _, value = line.partition("=")
      current[key.strip()] = value.strip()
  return sections


@pytest.fixture
def defaults() -> DefaultsConfig:
  return load_defaults()


@pytest.fixture
def reporter() -> Reporter:
  return Reporter()


@pytest.fixture
def build_tree(tmp_path: Path, defaults: DefaultsConfig) -> Path:
  """A project tree that passes every structure and configuration check."""
  for name in defaults["required_files"]:
    _ = (tmp_path / name).write_text("placeholder\n", encoding="utf-8")

  _ = (tmp_path / "Makefile").write_text(
    "all: ArchWSL2.zip\n\nzip: ArchWSL2.zip\n\nclean:\n\trm -f ArchWSL2.zip\n", encoding="utf-8"
  )
  _ = (tmp_path / defaults["service_unit"]).write_text(
    "[Unit]\nDescription=WSLg init\n\n[Service]\nType=oneshot\n", encoding="utf-8"
  )
  _ = (tmp_path / "wsl.conf").write_text("[boot]\nsystemd = true\n", encoding="utf-8")
  (tmp_path / "scripts").mkdir()
  return tmp_path
