"""Shared test fixtures."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

from map_forge.core.config import GeneratorConfig
from map_forge.core.diagnostics import DiagnosticReporter
from map_forge.core.engine import MappingEngine
from map_forge.model.extractor import TypeModelExtractor


@pytest.fixture
def extractor() -> TypeModelExtractor:
    """Fresh extractor with an empty descriptor cache."""
    return TypeModelExtractor()


@pytest.fixture
def reporter() -> DiagnosticReporter:
    return DiagnosticReporter()


@pytest.fixture
def engine(extractor: TypeModelExtractor) -> MappingEngine:
    """Engine that does not attach methods to the test models."""
    return MappingEngine(GeneratorConfig(attach_methods=False), extractor)


@pytest.fixture
def write_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Helper to write importable modules into a temporary source root.

    Usage:
        write_module("shop.models", "from dataclasses import dataclass ...")
    """
    monkeypatch.syspath_prepend(str(tmp_path))
    written: list[str] = []

    def _write(dotted_name: str, content: str) -> Path:
        parts = dotted_name.split(".")
        package_dir = tmp_path
        for package in parts[:-1]:
            package_dir = package_dir / package
            package_dir.mkdir(exist_ok=True)
            (package_dir / "__init__.py").touch()
        file_path = package_dir / f"{parts[-1]}.py"
        file_path.write_text(content, encoding="utf-8")
        written.append(parts[0])
        importlib.invalidate_caches()
        return file_path

    yield _write

    for name in list(sys.modules):
        if name.split(".")[0] in written:
            del sys.modules[name]
