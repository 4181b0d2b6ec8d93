"""Code generation - render plans into Python source."""

from __future__ import annotations

from map_forge.codegen.imports import ImportSet
from map_forge.codegen.synthesizer import CodeSynthesizer, GeneratedFunction
from map_forge.codegen.writer import CodeWriter, render_module

__all__ = [
    "CodeSynthesizer",
    "GeneratedFunction",
    "CodeWriter",
    "ImportSet",
    "render_module",
]
