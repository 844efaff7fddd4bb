"""Shared fixtures: throw-away Contao/XLIFF trees and file writers."""

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from langsync.config import ProjectConfig  # noqa: E402

XLIFF_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file datatype="php" original="{domain}" source-language="en" target-language="{language}">
    <body>
{units}
    </body>
  </file>
</xliff>
"""


def _write_php(path: Path, *statements: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("<?php\n\n" + "\n".join(statements) + "\n", encoding="utf-8")
    return path


def _write_xliff(path: Path, units: dict, language: str = "de") -> Path:
    """Write an XLIFF file; `units` maps key -> (source, target or None)."""
    rows = []
    for key, (source, target) in units.items():
        rows.append(f'      <trans-unit id="{key}">')
        rows.append(f"        <source>{source}</source>")
        if target is not None:
            rows.append(f"        <target>{target}</target>")
        rows.append("      </trans-unit>")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        XLIFF_TEMPLATE.format(domain=path.stem, language=language, units="\n".join(rows)),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def write_php():
    return _write_php


@pytest.fixture
def write_xliff():
    return _write_xliff


@pytest.fixture
def project_dirs(tmp_path):
    """Empty Contao tree with a base language directory, and an empty XLIFF root."""
    contao = tmp_path / "languages"
    xliff = tmp_path / "xliff"
    (contao / "en").mkdir(parents=True)
    xliff.mkdir()
    return contao, xliff


@pytest.fixture
def config(project_dirs):
    contao, xliff = project_dirs
    return ProjectConfig(contao_dir=contao, xliff_dir=xliff, project="demo", prefix="demo-")
