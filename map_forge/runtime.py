"""Helpers imported by generated mapping modules.

Generated code depends on this module only; everything else in map_forge is
needed at generation time alone.
"""

from __future__ import annotations

from map_forge.core.exceptions import UnknownDerivedTypeError, UnmappedEnumValueError

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def parse_bool(value: str | bool) -> bool:
    """Parse the text produced by ``str(bool)`` and common spellings.

    Raises:
        ValueError: If the text is not a recognised boolean.
    """
    if isinstance(value, bool):
        return value
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Cannot parse {value!r} as a boolean")


__all__ = ["UnknownDerivedTypeError", "UnmappedEnumValueError", "parse_bool"]
