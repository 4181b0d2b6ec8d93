"""Indented source text builder."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class CodeWriter:
    """Accumulates lines of Python source at the current indentation level."""

    def __init__(self, indent: int = 4) -> None:
        self._unit = " " * indent
        self._level = 0
        self._lines: list[str] = []

    def line(self, text: str = "") -> None:
        self._lines.append(f"{self._unit * self._level}{text}" if text else "")

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        """Write ``header`` and indent everything written inside the context."""
        self.line(header)
        self._level += 1
        try:
            yield
        finally:
            self._level -= 1

    def docstring(self, text: str) -> None:
        self.line(f'"""{text}"""')

    def render(self) -> str:
        return "\n".join(self._lines) + "\n"


def render_module(header: str, import_lines: list[str], functions: list[str]) -> str:
    """Assemble a generated module: header, imports, then functions."""
    sections = [header]
    if import_lines:
        sections.append("\n".join(import_lines))
    sections.extend(f.strip("\n") for f in functions)
    return "\n\n\n".join(sections) + "\n"
