"""map-forge exception hierarchy.

Problems with declared mapping metadata are reported as diagnostics, not
raised. Exceptions cover misuse of the generator itself and the runtime
failures raised by generated code.
"""

from __future__ import annotations

from typing import Any


class MapForgeError(Exception):
    """Base exception for all map-forge errors."""


# --- Registry ---


class RegistryError(MapForgeError):
    """Base for mapping registry errors."""


class ModuleLoadError(RegistryError):
    """Raised when a module named for discovery cannot be imported."""

    def __init__(self, module_name: str, detail: str) -> None:
        self.module_name = module_name
        super().__init__(f"Cannot load module '{module_name}': {detail}")


class DuplicateMappingError(RegistryError):
    """Raised when two directives resolve to the same generated function name."""

    def __init__(self, function_name: str, first: str, second: str) -> None:
        self.function_name = function_name
        super().__init__(
            f"Duplicate generated function '{function_name}': declared by {first} and {second}"
        )


# --- Generation ---


class GenerationError(MapForgeError):
    """Base for generation pass errors."""


class ExtractionError(GenerationError):
    """Raised when a type cannot be described at all (e.g. not a class)."""

    def __init__(self, type_name: str, detail: str) -> None:
        self.type_name = type_name
        super().__init__(f"Cannot extract type model for '{type_name}': {detail}")


class GenerationCancelledError(GenerationError):
    """Raised when a pass is cancelled; no partial output is produced."""

    def __init__(self, completed: int, total: int) -> None:
        self.completed = completed
        self.total = total
        super().__init__(f"Generation cancelled after {completed} of {total} jobs")


class MaterializationError(GenerationError):
    """Raised when generated source cannot be compiled or executed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to materialize generated mappings: {detail}")


# --- Raised by generated code ---


class MappingRuntimeError(MapForgeError):
    """Base for errors raised while a generated function runs."""


class UnmappedEnumValueError(MappingRuntimeError, ValueError):
    """Raised by an enum dispatch function for a value it has no branch for."""

    def __init__(self, value: Any, target_type: str) -> None:
        self.value = value
        self.target_type = target_type
        super().__init__(f"Unmapped enum value {value!r} for target enum '{target_type}'")


class UnknownDerivedTypeError(MappingRuntimeError, TypeError):
    """Raised by a polymorphic dispatcher for an undeclared runtime type."""

    def __init__(self, runtime_type: str, base_type: str) -> None:
        self.runtime_type = runtime_type
        self.base_type = base_type
        super().__init__(f"Unknown derived type '{runtime_type}' for base '{base_type}'")
