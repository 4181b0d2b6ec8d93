"""Field Resolution Planner.

For one (source, target) direction, resolves every target slot to a source
attribute path:

1. source fields after inheritance collapsing and ignoring;
2. target slots: constructor parameters in signature order, then remaining
   settable fields in declaration order;
3. rename overrides first, then a case-insensitive comparison with the name
   strategy applied to the side carrying the directive;
4. flattening of object-typed source fields for slots still unmatched;
5. strategy selection; required slots left unresolved get one MAP004 warning.

Projections are planned separately against the target constructor and keep
only identity and coercion correspondences.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from map_forge.core.diagnostics import (
    PROJECTION_FIELD_OMITTED,
    PROJECTION_NOT_GENERATED,
    REQUIRED_SLOT_NOT_MAPPED,
    DiagnosticReporter,
)
from map_forge.core.enums import ConversionKind
from map_forge.mapping.naming import apply_strategy, flattened_name
from map_forge.mapping.plan import Conversion, FieldCorrespondence, MappingPlan, TargetSlot
from map_forge.mapping.strategy import ConversionSelector, LinkIndex
from map_forge.model.descriptors import FieldDescriptor, MappingDirective, TypeDescriptor
from map_forge.model.extractor import TypeModelExtractor

logger = logging.getLogger(__name__)

_DELEGATING = (ConversionKind.NESTED, ConversionKind.POLYMORPHIC, ConversionKind.COLLECTION)


def uses_constructor(directive: MappingDirective, reverse: bool) -> bool:
    """Factory and instance replace construction in the forward direction only."""
    return reverse or not (directive.factory or directive.instance)


def target_slots(
    target: TypeDescriptor, *, include_private: bool, constructor: bool = True
) -> tuple[TargetSlot, ...]:
    """Ordered slots of ``target``.

    Constructor parameters are always slots unless their field is ignored;
    the private-member switch filters settable fields only.
    """
    fields_by_name = {f.name: f for f in target.fields}
    slots: list[TargetSlot] = []
    covered: set[str] = set()

    if constructor:
        for index, param in enumerate(target.constructor):
            field = fields_by_name.get(param.name)
            if field is not None and field.ignored:
                continue
            slots.append(
                TargetSlot(
                    name=param.name,
                    type_ref=field.type_ref if field is not None else param.type_ref,
                    required=param.required,
                    settable=field.settable if field is not None else False,
                    constructor_index=index,
                    positional=param.positional,
                    keyword=param.keyword,
                    aliases=(field.alias,) if field is not None and field.alias else (),
                )
            )
            covered.add(param.name)

    for field in target.fields:
        if field.name in covered or field.ignored or not field.settable:
            continue
        if not include_private and not field.is_public:
            continue
        slots.append(
            TargetSlot(
                name=field.name,
                type_ref=field.type_ref,
                required=field.required and constructor,
                settable=True,
                keyword=field.name,
                aliases=(field.alias,) if field.alias else (),
            )
        )
    return tuple(slots)


class FieldResolutionPlanner:
    """Builds MappingPlans, including the sub-plans of delegating fields.

    One planner serves one generation job. Sub-plans are memoized per
    (source, target) pair, built with a muted reporter and guarded against
    cycles (a self-referencing type gets no nested sub-plan).
    """

    def __init__(
        self,
        extractor: TypeModelExtractor,
        links: LinkIndex,
        reporter: DiagnosticReporter,
    ) -> None:
        self._extractor = extractor
        self._links = links
        self._reporter = reporter
        self._selector = ConversionSelector(links)
        self._memo: dict[tuple[type, type], MappingPlan] = {}
        self._in_progress: set[tuple[type, type]] = set()

    def plan(
        self,
        source: TypeDescriptor,
        target: TypeDescriptor,
        directive: MappingDirective,
        *,
        function_name: str,
        reverse: bool = False,
        declaring: TypeDescriptor | None = None,
    ) -> MappingPlan:
        """Plan one direction, reporting MAP004 coverage warnings."""
        return self._plan(
            source, target, directive, function_name, reverse, declaring or source, self._reporter
        )

    def plan_projection(
        self,
        source: TypeDescriptor,
        target: TypeDescriptor,
        directive: MappingDirective,
        *,
        function_name: str,
        reverse: bool = False,
        declaring: TypeDescriptor | None = None,
    ) -> MappingPlan | None:
        """Plan a single construction expression over the target's constructor.

        Only constructor slots fed by identity or coercion are kept, whether or
        not the directive names a factory or instance. A resolvable field outside
        the constructor gets MAP010. A required constructor slot that cannot be
        bound gets MAP011 and no plan is returned.
        """
        declaring = declaring or source
        key = (source.py_type, target.py_type)
        self._in_progress.add(key)
        try:
            full = self._build(
                source,
                target,
                directive,
                function_name,
                reverse,
                declaring,
                DiagnosticReporter(muted=True),
                constructor=True,
            )
        finally:
            self._in_progress.discard(key)
        kept = tuple(c for c in full.correspondences if c.slot.in_constructor and c.conversion.is_direct)
        bound = {c.slot.name for c in kept}

        blocking = [s for s in full.slots if s.in_constructor and s.required and s.name not in bound]
        for slot in blocking:
            self._reporter.report(
                PROJECTION_NOT_GENERATED.create(
                    declaring.location_for(slot.name), function_name, slot.name, target.name
                )
            )
        if blocking:
            return None

        for corr in full.correspondences:
            if not corr.slot.in_constructor and corr.conversion.is_direct:
                self._reporter.report(
                    PROJECTION_FIELD_OMITTED.create(
                        declaring.location_for(corr.slot.name), corr.slot.name, target.name, function_name
                    )
                )
        return replace(
            full,
            correspondences=kept,
            unresolved=tuple(s for s in full.slots if s.name not in bound),
        )

    def _plan(
        self,
        source: TypeDescriptor,
        target: TypeDescriptor,
        directive: MappingDirective,
        function_name: str,
        reverse: bool,
        declaring: TypeDescriptor,
        reporter: DiagnosticReporter,
    ) -> MappingPlan:
        key = (source.py_type, target.py_type)
        self._in_progress.add(key)
        try:
            plan = self._build(source, target, directive, function_name, reverse, declaring, reporter)
        finally:
            self._in_progress.discard(key)
        self._memo.setdefault(key, plan)
        return plan

    def _build(
        self,
        source: TypeDescriptor,
        target: TypeDescriptor,
        directive: MappingDirective,
        function_name: str,
        reverse: bool,
        declaring: TypeDescriptor,
        reporter: DiagnosticReporter,
        *,
        constructor: bool | None = None,
    ) -> MappingPlan:
        include_private = directive.include_private_members
        strategy = directive.property_name_strategy
        if constructor is None:
            constructor = uses_constructor(directive, reverse)
        slots = target_slots(target, include_private=include_private, constructor=constructor)
        fields = source.visible_fields(include_private)

        # The strategy transforms names on the side carrying the directive.
        def source_key(name: str) -> str:
            return (name if reverse else apply_strategy(name, strategy)).lower()

        def slot_keys(slot: TargetSlot) -> list[str]:
            return [(apply_strategy(n, strategy) if reverse else n).lower() for n in slot.names]

        renamed: dict[str, FieldDescriptor] = {}
        by_name: dict[str, FieldDescriptor] = {}
        for f in fields:
            if f.rename:
                renamed.setdefault(f.rename.lower(), f)
                continue
            by_name.setdefault(source_key(f.name), f)
        for f in fields:
            if f.alias and not f.rename:
                by_name.setdefault(source_key(f.alias), f)

        flattened: dict[str, tuple[FieldDescriptor, ...]] | None = None
        correspondences: list[FieldCorrespondence] = []
        unresolved: list[TargetSlot] = []

        for slot in slots:
            path = self._match_direct(slot, renamed, by_name, slot_keys(slot))
            if path is None and directive.enable_flattening:
                if flattened is None:
                    flattened = self._flattened_candidates(source, fields, include_private, source_key)
                path = next((flattened[k] for k in slot_keys(slot) if k in flattened), None)

            if path is None:
                unresolved.append(slot)
                continue

            conversion = self._selector.select(path[-1].type_ref, slot.type_ref)
            if not conversion.resolved:
                unresolved.append(slot)
                continue
            correspondences.append(
                FieldCorrespondence(
                    slot=slot,
                    path=path,
                    conversion=conversion,
                    nested_plan=self._sub_plan(conversion),
                )
            )

        for slot in unresolved:
            if slot.required:
                reporter.report(
                    REQUIRED_SLOT_NOT_MAPPED.create(
                        declaring.location_for(slot.name), slot.name, target.name, source.name
                    )
                )

        logger.debug(
            "Planned %s -> %s%s: %d resolved, %d unresolved",
            source.qualname,
            target.qualname,
            " (reverse)" if reverse else "",
            len(correspondences),
            len(unresolved),
        )
        return MappingPlan(
            source=source,
            target=target,
            directive=directive,
            function_name=function_name,
            reverse=reverse,
            correspondences=tuple(correspondences),
            unresolved=tuple(unresolved),
            uses_constructor=constructor,
            slots=slots,
        )

    @staticmethod
    def _match_direct(
        slot: TargetSlot,
        renamed: dict[str, FieldDescriptor],
        by_name: dict[str, FieldDescriptor],
        keys: list[str],
    ) -> tuple[FieldDescriptor, ...] | None:
        # Rename targets are explicit names: compared without the strategy.
        for name in slot.names:
            field = renamed.get(name.lower())
            if field is not None:
                return (field,)
        for key in keys:
            field = by_name.get(key)
            if field is not None:
                return (field,)
        return None

    def _flattened_candidates(
        self,
        source: TypeDescriptor,
        fields: tuple[FieldDescriptor, ...],
        include_private: bool,
        source_key: Callable[[str], str],
    ) -> dict[str, tuple[FieldDescriptor, ...]]:
        candidates: dict[str, tuple[FieldDescriptor, ...]] = {}

        def walk(prefix: str, path: tuple[FieldDescriptor, ...], visited: frozenset[type]) -> None:
            nested = self._extractor.extract(path[-1].type_ref.py_type)
            for child in nested.visible_fields(include_private):
                name = flattened_name(prefix, child.name)
                child_path = (*path, child)
                candidates.setdefault(source_key(name), child_path)
                child_type = child.type_ref.py_type
                if child.type_ref.is_object and child_type not in visited:
                    walk(name, child_path, visited | {child_type})

        for f in fields:
            if f.type_ref.is_object and not f.rename:
                walk(f.name, (f,), frozenset({source.py_type, f.type_ref.py_type}))
        return candidates

    def _sub_plan(self, conversion: Conversion) -> MappingPlan | None:
        while conversion.kind is ConversionKind.COLLECTION and conversion.element is not None:
            conversion = conversion.element
        if conversion.kind not in _DELEGATING or conversion.source_type is None:
            return None

        link = self._links.get(conversion.source_type.py_type, conversion.target_type.py_type)
        if link is None:
            return None
        key = (link.source, link.target)
        if key in self._in_progress:
            return None
        if key in self._memo:
            return self._memo[key]

        source = self._extractor.extract(link.source)
        target = self._extractor.extract(link.target)
        declaring = self._extractor.extract(link.declaring_type)
        return self._plan(
            source,
            target,
            link.directive,
            link.function_name,
            link.reverse,
            declaring,
            DiagnosticReporter(muted=True),
        )
