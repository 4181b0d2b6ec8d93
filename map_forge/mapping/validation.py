"""Directive validation.

Checks declared mapping metadata before any plan is built. Every problem is
reported as a diagnostic; an error makes the declaring type's generation
fail without affecting other types.
"""

from __future__ import annotations

import inspect
import logging
import typing
from collections.abc import Sequence
from enum import Enum
from typing import Any

from map_forge.core.diagnostics import (
    DERIVED_PAIR_NOT_MAPPED,
    FACTORY_AND_INSTANCE,
    INSTANCE_INVALID,
    MEMBER_INVALID_SIGNATURE,
    MEMBER_NOT_FOUND,
    RENAME_TARGET_NOT_FOUND,
    TARGET_NOT_COMPATIBLE,
    TARGET_NOT_ENUM,
    DiagnosticReporter,
)
from map_forge.mapping.planner import target_slots, uses_constructor
from map_forge.mapping.strategy import Link, LinkIndex
from map_forge.model.descriptors import DerivedTypePair, MappingDirective, TypeDescriptor
from map_forge.model.extractor import TypeModelExtractor

logger = logging.getLogger(__name__)

_NO_RETURN = object()


class DirectiveValidator:
    """Validates the directives declared on one type."""

    def __init__(self, extractor: TypeModelExtractor, reporter: DiagnosticReporter) -> None:
        self._extractor = extractor
        self._reporter = reporter

    def validate_type(self, descriptor: TypeDescriptor) -> bool:
        """Validate every directive of ``descriptor``; False if any error was reported."""
        errors_before = len(self._reporter.errors)
        if self._extractor.check_open(descriptor, self._reporter):
            for directive in descriptor.directives:
                self.validate(descriptor, directive)
        ok = len(self._reporter.errors) == errors_before
        if not ok:
            logger.info("Skipping generation for %s: invalid mapping metadata", descriptor.qualname)
        return ok

    def validate(self, source: TypeDescriptor, directive: MappingDirective) -> None:
        if source.is_enum:
            self._validate_enum(source, directive)
            return

        target = directive.target
        if not self._validate_target(source, directive):
            return

        if directive.factory and directive.instance:
            self._reporter.report(
                FACTORY_AND_INSTANCE.create(
                    source.location_for(),
                    source.name,
                    target.__name__,
                    directive.factory,
                    directive.instance,
                )
            )
        if directive.before_map:
            self._check_static_member(
                source, directive, directive.before_map, "BeforeMap hook", (source.py_type,), None
            )
        if directive.after_map:
            self._check_static_member(
                source,
                directive,
                directive.after_map,
                "AfterMap hook",
                (source.py_type, target),
                None,
            )
        if directive.factory:
            self._check_static_member(source, directive, directive.factory, "Factory", (), target)
        if directive.instance:
            self._check_instance(source, directive, directive.instance)

        self._check_renames(source, directive)

    # --- target shape ---

    def _validate_enum(self, source: TypeDescriptor, directive: MappingDirective) -> None:
        target = directive.target
        if not (isinstance(target, type) and issubclass(target, Enum)):
            self._reporter.report(
                TARGET_NOT_ENUM.create(source.location_for(), _name(target), source.name)
            )

    def _validate_target(self, source: TypeDescriptor, directive: MappingDirective) -> bool:
        target = directive.target
        reason = self._incompatibility(source, directive)
        if reason is not None:
            self._reporter.report(
                TARGET_NOT_COMPATIBLE.create(source.location_for(), _name(target), source.name, reason)
            )
            return False
        return True

    def _incompatibility(self, source: TypeDescriptor, directive: MappingDirective) -> str | None:
        target = directive.target
        if not isinstance(target, type):
            return "not a class"
        if issubclass(target, Enum):
            return "an enum can only be the target of an enum"
        if target.__module__ == "builtins":
            return "built-in types have no fields to map"
        descriptor = self._extractor.extract(target)
        if (
            inspect.isabstract(target)
            and uses_constructor(directive, reverse=False)
            and not source.derived_pairs
        ):
            return "abstract types cannot be constructed"
        if directive.update_target and descriptor.is_frozen:
            return "update_target requires a mutable target, but the target is frozen"
        if directive.bidirectional and source.is_abstract:
            return f"the reverse mapping would construct the abstract type '{source.name}'"
        return None

    # --- hooks, factory, instance ---

    def _check_static_member(
        self,
        owner: TypeDescriptor,
        directive: MappingDirective,
        name: str,
        label: str,
        param_types: Sequence[type],
        return_type: type | None,
    ) -> bool:
        cls = owner.py_type
        location = owner.location_for(name)
        try:
            raw = inspect.getattr_static(cls, name)
        except AttributeError:
            self._reporter.report(
                MEMBER_NOT_FOUND.create(location, label, name, directive.target.__name__, owner.name)
            )
            return False

        if not isinstance(raw, (staticmethod, classmethod)):
            return self._invalid(location, label, name, owner, "must be a staticmethod or classmethod")

        member = getattr(cls, name)
        try:
            signature = inspect.signature(member)
        except (TypeError, ValueError):
            return True
        arity = len(param_types)
        try:
            signature.bind(*range(arity))
        except TypeError:
            return self._invalid(
                location,
                label,
                name,
                owner,
                f"expected {arity} parameter(s), got {signature}",
            )

        try:
            hints = typing.get_type_hints(raw.__func__)
        except Exception as e:  # noqa: BLE001 - unresolvable annotations are not checked
            logger.debug("Skipping annotation checks for %s.%s: %s", owner.qualname, name, e)
            return True

        params = list(signature.parameters.values())[:arity]
        for param, expected in zip(params, param_types):  # noqa: B905
            annotation = hints.get(param.name)
            if isinstance(annotation, type) and not issubclass(expected, annotation):
                return self._invalid(
                    location,
                    label,
                    name,
                    owner,
                    f"parameter '{param.name}' is annotated '{annotation.__name__}', "
                    f"expected '{expected.__name__}'",
                )

        returned = hints.get("return", _NO_RETURN)
        if return_type is None:
            if returned is not _NO_RETURN and returned is not type(None) and returned is not None:
                return self._invalid(location, label, name, owner, "must return None")
        elif isinstance(returned, type) and not issubclass(returned, return_type):
            return self._invalid(
                location,
                label,
                name,
                owner,
                f"returns '{returned.__name__}', expected '{return_type.__name__}'",
            )
        return True

    def _check_instance(self, owner: TypeDescriptor, directive: MappingDirective, name: str) -> None:
        target = directive.target
        location = owner.location_for(name)
        try:
            value = inspect.getattr_static(owner.py_type, name)
        except AttributeError:
            self._reporter.report(
                MEMBER_NOT_FOUND.create(location, "Instance", name, target.__name__, owner.name)
            )
            return
        if isinstance(value, (staticmethod, classmethod, property)) or callable(value):
            reason = "the member is callable"
        elif not isinstance(value, target):
            reason = f"it holds a '{type(value).__name__}'"
        else:
            return
        self._reporter.report(
            INSTANCE_INVALID.create(location, name, owner.name, target.__name__, reason)
        )

    def _invalid(
        self, location: Any, label: str, name: str, owner: TypeDescriptor, reason: str
    ) -> bool:
        self._reporter.report(MEMBER_INVALID_SIGNATURE.create(location, label, name, owner.name, reason))
        return False

    # --- renames ---

    def _check_renames(self, source: TypeDescriptor, directive: MappingDirective) -> None:
        target = self._extractor.extract(directive.target)
        slots = target_slots(
            target,
            include_private=directive.include_private_members,
            constructor=uses_constructor(directive, reverse=False),
        )
        names = {n.lower() for slot in slots for n in slot.names}
        for field in source.visible_fields(directive.include_private_members):
            if field.rename and field.rename.lower() not in names:
                self._reporter.report(
                    RENAME_TARGET_NOT_FOUND.create(
                        source.location_for(field.name), field.name, field.rename, target.name
                    )
                )


def resolve_derived_pairs(
    descriptor: TypeDescriptor, links: LinkIndex, reporter: DiagnosticReporter
) -> tuple[tuple[DerivedTypePair, Link], ...]:
    """Derived pairs that have a generated function; MAP009 for the others."""
    branches: list[tuple[DerivedTypePair, Link]] = []
    for pair in descriptor.derived_pairs:
        link = links.get(pair.source, pair.target)
        if link is None:
            reporter.report(
                DERIVED_PAIR_NOT_MAPPED.create(
                    descriptor.location_for(),
                    _name(pair.source),
                    _name(pair.target),
                    descriptor.name,
                )
            )
            continue
        branches.append((pair, link))
    return tuple(branches)


def _name(obj: object) -> str:
    return getattr(obj, "__name__", repr(obj))
