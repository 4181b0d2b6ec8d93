"""Structured diagnostics.

Every component reports problems with declared mapping metadata through a
DiagnosticReporter. Diagnostics are created from a fixed catalogue of
descriptors so each one carries a stable code and severity.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from map_forge.core.enums import Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceLocation:
    """Where a declaration lives. File and line are best-effort."""

    qualname: str
    module: str
    file: str | None = None
    line: int | None = None
    member: str | None = None

    def __str__(self) -> str:
        where = f"{self.file}:{self.line}" if self.file and self.line else self.module
        target = f"{self.qualname}.{self.member}" if self.member else self.qualname
        return f"{where} ({target})"

    def with_member(self, member: str) -> SourceLocation:
        return SourceLocation(self.qualname, self.module, self.file, self.line, member)


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem."""

    code: str
    severity: Severity
    message: str
    location: SourceLocation | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        prefix = f"{self.location}: " if self.location else ""
        return f"{prefix}{self.severity.value} {self.code}: {self.message}"


@dataclass(frozen=True)
class DiagnosticDescriptor:
    """Catalogue entry: code, title, message template and severity."""

    code: str
    title: str
    message_format: str
    severity: Severity

    def create(self, location: SourceLocation | None, *args: object) -> Diagnostic:
        return Diagnostic(
            code=self.code,
            severity=self.severity,
            message=self.message_format.format(*args),
            location=location,
        )


# --- Object mapping ---

TYPE_NOT_OPEN = DiagnosticDescriptor(
    code="MAP001",
    title="Mapping type must be open to augmentation",
    message_format="Type '{0}' must be a user-defined class that is not marked final "
    "to enable mapping generation",
    severity=Severity.ERROR,
)

TARGET_NOT_COMPATIBLE = DiagnosticDescriptor(
    code="MAP002",
    title="Target type is not structurally compatible",
    message_format="Target type '{0}' of '{1}' is not a compatible shape: {2}",
    severity=Severity.ERROR,
)

RENAME_TARGET_NOT_FOUND = DiagnosticDescriptor(
    code="MAP003",
    title="MapProperty target not found",
    message_format="Field '{0}' with MapProperty('{1}') specifies target field '{1}' "
    "which does not exist on target type '{2}'",
    severity=Severity.ERROR,
)

REQUIRED_SLOT_NOT_MAPPED = DiagnosticDescriptor(
    code="MAP004",
    title="Required field on target type has no mapping",
    message_format="Required field '{0}' on target type '{1}' has no mapping from source type '{2}'",
    severity=Severity.WARNING,
)

MEMBER_NOT_FOUND = DiagnosticDescriptor(
    code="MAP005",
    title="Referenced member not found",
    message_format="{0} '{1}' referenced by the mapping to '{2}' does not exist on '{3}'",
    severity=Severity.ERROR,
)

MEMBER_INVALID_SIGNATURE = DiagnosticDescriptor(
    code="MAP006",
    title="Referenced member has an invalid signature",
    message_format="{0} '{1}' on '{2}' has an invalid signature: {3}",
    severity=Severity.ERROR,
)

FACTORY_AND_INSTANCE = DiagnosticDescriptor(
    code="MAP007",
    title="Factory and instance are mutually exclusive",
    message_format="Mapping from '{0}' to '{1}' specifies both factory '{2}' and instance '{3}'",
    severity=Severity.ERROR,
)

INSTANCE_INVALID = DiagnosticDescriptor(
    code="MAP008",
    title="Instance member is not a target instance",
    message_format="Instance '{0}' on '{1}' must hold an instance of '{2}': {3}",
    severity=Severity.ERROR,
)

DERIVED_PAIR_NOT_MAPPED = DiagnosticDescriptor(
    code="MAP009",
    title="Derived type pair has no mapping",
    message_format="Derived type pair '{0}' -> '{1}' declared on '{2}' has no mapping directive; "
    "the branch is omitted",
    severity=Severity.WARNING,
)

PROJECTION_FIELD_OMITTED = DiagnosticDescriptor(
    code="MAP010",
    title="Projection cannot bind target field",
    message_format="Field '{0}' on target type '{1}' is not a constructor parameter; "
    "projection '{2}' leaves it at its default",
    severity=Severity.WARNING,
)

PROJECTION_NOT_GENERATED = DiagnosticDescriptor(
    code="MAP011",
    title="Projection not generated",
    message_format="Projection '{0}' is not generated: required field '{1}' on target type '{2}' "
    "has no identity or coercion mapping",
    severity=Severity.WARNING,
)

# --- Enum mapping ---

TARGET_NOT_ENUM = DiagnosticDescriptor(
    code="ENUM001",
    title="Target type must be an enum",
    message_format="Target type '{0}' of enum '{1}' must be an enum",
    severity=Severity.ERROR,
)

UNMAPPED_ENUM_VALUE = DiagnosticDescriptor(
    code="ENUM002",
    title="Enum value has no matching target value",
    message_format="Enum value '{0}.{1}' has no matching value in target enum '{2}'",
    severity=Severity.WARNING,
)


class DiagnosticReporter:
    """Collects diagnostics in report order.

    Thread-safe so a reporter can be shared, though the engine gives every
    job its own reporter and merges them in job order.
    """

    def __init__(self, *, muted: bool = False) -> None:
        self._diagnostics: list[Diagnostic] = []
        self._lock = threading.Lock()
        self._muted = muted

    def report(self, diagnostic: Diagnostic) -> None:
        if self._muted:
            return
        with self._lock:
            self._diagnostics.append(diagnostic)
        if diagnostic.is_error:
            logger.error("%s", diagnostic)
        else:
            logger.warning("%s", diagnostic)

    def extend(self, diagnostics: list[Diagnostic] | tuple[Diagnostic, ...]) -> None:
        """Append already-logged diagnostics without logging them again."""
        if self._muted:
            return
        with self._lock:
            self._diagnostics.extend(diagnostics)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(self._diagnostics)

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if not d.is_error)

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)
