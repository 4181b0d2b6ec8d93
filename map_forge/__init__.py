"""map-forge - ahead-of-time object mapping generator."""

from __future__ import annotations

from map_forge.annotations import MapIgnore, MapProperty, map_derived_type, map_to
from map_forge.core.config import GeneratorConfig
from map_forge.core.diagnostics import Diagnostic, DiagnosticReporter, SourceLocation
from map_forge.core.engine import GenerationResult, MappingEngine
from map_forge.core.enums import PropertyNameStrategy, Severity
from map_forge.core.exceptions import (
    DuplicateMappingError,
    ExtractionError,
    GenerationCancelledError,
    GenerationError,
    MapForgeError,
    MappingRuntimeError,
    MaterializationError,
    ModuleLoadError,
    RegistryError,
    UnknownDerivedTypeError,
    UnmappedEnumValueError,
)
from map_forge.core.registry import MappingRegistry
from map_forge.model.extractor import TypeModelExtractor

__version__ = "0.1.0"

__all__ = [
    # Directives
    "map_to",
    "map_derived_type",
    "MapIgnore",
    "MapProperty",
    "PropertyNameStrategy",
    # Engine
    "MappingEngine",
    "GenerationResult",
    "GeneratorConfig",
    "TypeModelExtractor",
    # Registry
    "MappingRegistry",
    # Diagnostics
    "Diagnostic",
    "DiagnosticReporter",
    "SourceLocation",
    "Severity",
    # Exceptions
    "MapForgeError",
    "RegistryError",
    "ModuleLoadError",
    "DuplicateMappingError",
    "GenerationError",
    "ExtractionError",
    "GenerationCancelledError",
    "MaterializationError",
    "MappingRuntimeError",
    "UnmappedEnumValueError",
    "UnknownDerivedTypeError",
]
