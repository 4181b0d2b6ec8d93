"""Generator configuration.

GeneratorConfig is a Pydantic model so settings coming from a CLI, a file or
keyword arguments are validated the same way.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_HEADER = "# <auto-generated by map-forge/> Do not edit: changes are lost on regeneration."


class GeneratorConfig(BaseModel):
    """Configuration for a generation pass."""

    indent: int = Field(default=4, ge=1, le=8)
    emit_docstrings: bool = True
    attach_methods: bool = True
    max_workers: int | None = Field(default=None, ge=1)
    fail_on_warnings: bool = False
    header: str = DEFAULT_HEADER
