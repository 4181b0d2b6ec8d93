"""Code Synthesizer.

Renders MappingPlans and EnumMappingPlans into Python function source.

Construction binds the contiguous prefix of resolved positional constructor
parameters positionally and the remaining ones by keyword; settable slots
outside the constructor are assigned afterwards. Hook order is fixed:
``before(source)``, construction and assignments, ``after(source, target)``.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from map_forge.codegen.imports import ImportSet
from map_forge.codegen.writer import CodeWriter
from map_forge.core.config import GeneratorConfig
from map_forge.core.enums import CollectionShape, ConversionKind, FunctionKind, ValueKind
from map_forge.core.exceptions import UnknownDerivedTypeError, UnmappedEnumValueError
from map_forge.mapping.enums import EnumMappingPlan
from map_forge.mapping.naming import (
    map_method_name,
    projection_function_name,
    projection_method_name,
    update_function_name,
    update_method_name,
)
from map_forge.mapping.plan import Conversion, FieldCorrespondence, MappingPlan
from map_forge.mapping.strategy import Link
from map_forge.model.descriptors import DerivedTypePair
from map_forge.runtime import parse_bool

logger = logging.getLogger(__name__)

_RUNTIME_MODULE = "map_forge.runtime"
_MAX_INLINE_ARGS = 3

_PARSERS = {
    ValueKind.INTEGER: "int",
    ValueKind.FLOAT: "float",
}
_ISO_TYPES = {
    ValueKind.DATETIME: datetime,
    ValueKind.DATE: date,
    ValueKind.TIME: time,
}


@dataclass(frozen=True)
class GeneratedFunction:
    """One synthesized function.

    ``text`` holds import placeholders until the engine resolves them.
    """

    name: str
    kind: FunctionKind
    source: type
    target: type
    text: str
    method_name: str | None = None
    reverse: bool = False

    def resolved(self, text: str) -> GeneratedFunction:
        return GeneratedFunction(
            self.name, self.kind, self.source, self.target, text, self.method_name, self.reverse
        )


class CodeSynthesizer:
    """Renders plans into function text, recording referenced objects in ``imports``."""

    def __init__(self, config: GeneratorConfig, imports: ImportSet) -> None:
        self._config = config
        self._imports = imports

    # --- object mappings ---

    def map_function(self, plan: MappingPlan) -> GeneratedFunction:
        directive = plan.directive
        source_ref = self._ref(plan.source.py_type)
        target_ref = self._ref(plan.target.py_type)
        hooks = not plan.reverse
        writer = self._writer()

        with writer.block(f"def {plan.function_name}(source: {source_ref}) -> {target_ref}:"):
            self._docstring(writer, f"Map {plan.source.name} to {plan.target.name}.")
            if hooks and directive.before_map:
                writer.line(f"{source_ref}.{directive.before_map}(source)")

            assignments = plan.assignment_correspondences
            after = directive.after_map if hooks else None
            inline = plan.uses_constructor and not assignments and not after
            if not plan.uses_constructor:
                if directive.factory:
                    writer.line(f"target = {source_ref}.{directive.factory}()")
                else:
                    copier = self._imports.ref(copy.copy)
                    writer.line(f"target = {copier}({source_ref}.{directive.instance})")
            else:
                self._construct(writer, "return " if inline else "target = ", target_ref, plan)

            if not inline:
                for corr in assignments:
                    writer.line(f"target.{corr.slot.name} = {self._value(corr)}")
                if after:
                    writer.line(f"{source_ref}.{after}(source, target)")
                writer.line("return target")

        return self._function(plan, FunctionKind.MAP, writer, map_method_name(plan.target.py_type))

    def update_function(self, plan: MappingPlan) -> GeneratedFunction:
        directive = plan.directive
        source_ref = self._ref(plan.source.py_type)
        target_ref = self._ref(plan.target.py_type)
        hooks = not plan.reverse
        name = update_function_name(plan.source.py_type, plan.target.py_type)
        writer = self._writer()

        with writer.block(f"def {name}(source: {source_ref}, target: {target_ref}) -> None:"):
            self._docstring(writer, f"Update an existing {plan.target.name} from {plan.source.name}.")
            body = [c for c in plan.correspondences if c.slot.settable]
            if hooks and directive.before_map:
                writer.line(f"{source_ref}.{directive.before_map}(source)")
            for corr in body:
                writer.line(f"target.{corr.slot.name} = {self._value(corr)}")
            if hooks and directive.after_map:
                writer.line(f"{source_ref}.{directive.after_map}(source, target)")
            if not body and not (hooks and (directive.before_map or directive.after_map)):
                writer.line("return None")

        return GeneratedFunction(
            name=name,
            kind=FunctionKind.UPDATE,
            source=plan.source.py_type,
            target=plan.target.py_type,
            text=writer.render(),
            method_name=update_method_name(plan.target.py_type),
            reverse=plan.reverse,
        )

    def projection_function(self, plan: MappingPlan) -> GeneratedFunction:
        """Single return expression over identity and coercion constructor slots."""
        source_ref = self._ref(plan.source.py_type)
        target_ref = self._ref(plan.target.py_type)
        name = projection_function_name(plan.source.py_type, plan.target.py_type)
        writer = self._writer()

        with writer.block(f"def {name}(source: {source_ref}) -> {target_ref}:"):
            self._docstring(writer, f"Project {plan.source.name} to {plan.target.name}.")
            self._construct(writer, "return ", target_ref, plan, direct_only=True)

        return GeneratedFunction(
            name=name,
            kind=FunctionKind.PROJECTION,
            source=plan.source.py_type,
            target=plan.target.py_type,
            text=writer.render(),
            method_name=projection_method_name(plan.target.py_type),
            reverse=plan.reverse,
        )

    def dispatcher(
        self, plan: MappingPlan, branches: tuple[tuple[DerivedTypePair, Link], ...]
    ) -> GeneratedFunction:
        """Polymorphic base mapping: branch on the runtime type of ``source``."""
        directive = plan.directive
        source_ref = self._ref(plan.source.py_type)
        target_ref = self._ref(plan.target.py_type)
        error = self._imports.ref(UnknownDerivedTypeError, module=_RUNTIME_MODULE)
        after = directive.after_map
        assign = "target = " if after else "return "
        writer = self._writer()

        with writer.block(f"def {plan.function_name}(source: {source_ref}) -> {target_ref}:"):
            self._docstring(
                writer,
                f"Map {plan.source.name} to {plan.target.name} by the runtime type of source.",
            )
            if directive.before_map:
                writer.line(f"{source_ref}.{directive.before_map}(source)")
            with writer.block("match source:"):
                for pair, link in branches:
                    with writer.block(f"case {self._ref(pair.source)}():"):
                        writer.line(f"{assign}{link.function_name}(source)")
                with writer.block("case _:"):
                    writer.line(f'raise {error}(type(source).__name__, "{plan.source.name}")')
            if after:
                writer.line(f"{source_ref}.{after}(source, target)")
                writer.line("return target")

        return self._function(plan, FunctionKind.MAP, writer, map_method_name(plan.target.py_type))

    # --- enums ---

    def enum_function(self, plan: EnumMappingPlan) -> GeneratedFunction:
        source_ref = self._ref(plan.source.py_type)
        target_ref = self._ref(plan.target.py_type)
        error = self._imports.ref(UnmappedEnumValueError, module=_RUNTIME_MODULE)
        writer = self._writer()

        with writer.block(f"def {plan.function_name}(source: {source_ref}) -> {target_ref}:"):
            self._docstring(writer, f"Map {plan.source.name} values to {plan.target.name}.")
            with writer.block("match source:"):
                for match in plan.matches:
                    with writer.block(f"case {source_ref}.{match.source_member}:"):
                        writer.line(f"return {target_ref}.{match.target_member}")
                with writer.block("case _:"):
                    writer.line(f'raise {error}(source, "{plan.target.name}")')

        return GeneratedFunction(
            name=plan.function_name,
            kind=FunctionKind.ENUM,
            source=plan.source.py_type,
            target=plan.target.py_type,
            text=writer.render(),
            method_name=map_method_name(plan.target.py_type),
            reverse=plan.reverse,
        )

    # --- construction ---

    def _construct(
        self,
        writer: CodeWriter,
        prefix: str,
        target_ref: str,
        plan: MappingPlan,
        *,
        direct_only: bool = False,
    ) -> None:
        by_slot = {
            c.slot.name: c
            for c in plan.constructor_correspondences
            if not direct_only or c.conversion.is_direct
        }
        constructor_slots = sorted(
            (s for s in plan.slots if s.in_constructor), key=lambda s: s.constructor_index or 0
        )

        args: list[str] = []
        keywords: list[str] = []
        extra: list[str] = []
        positional = True
        for slot in constructor_slots:
            corr = by_slot.get(slot.name)
            if corr is None:
                positional = False
                continue
            value = self._value(corr)
            if positional and slot.positional:
                args.append(value)
                continue
            positional = False
            if slot.keyword.isidentifier():
                keywords.append(f"{slot.keyword}={value}")
            else:
                extra.append(f'"{slot.keyword}": {value}')

        if extra:
            keywords.append("**{" + ", ".join(extra) + "}")
        self._call(writer, prefix, target_ref, args + keywords)

    def _call(self, writer: CodeWriter, prefix: str, callee: str, args: list[str]) -> None:
        if len(args) <= _MAX_INLINE_ARGS:
            writer.line(f"{prefix}{callee}({', '.join(args)})")
            return
        with writer.block(f"{prefix}{callee}("):
            for arg in args:
                writer.line(f"{arg},")
        writer.line(")")

    # --- values ---

    def _value(self, corr: FieldCorrespondence) -> str:
        """Expression reading the source path and converting it for the slot."""
        access = "source"
        guards: list[str] = []
        for index, field in enumerate(corr.path):
            access = f"{access}.{field.name}"
            if index < len(corr.path) - 1 and field.nullable:
                guards.append(access)
        leaf = corr.path[-1]
        if leaf.nullable and corr.conversion.kind is not ConversionKind.IDENTITY:
            guards.append(access)

        expr = self._convert(corr.conversion, access, depth=0)
        if guards:
            condition = " or ".join(f"{g} is None" for g in guards)
            return f"None if {condition} else {expr}"
        return expr

    def _convert(self, conversion: Conversion, value: str, depth: int) -> str:
        match conversion.kind:
            case ConversionKind.IDENTITY:
                return value
            case ConversionKind.COERCION:
                return self._coerce(conversion, value)
            case ConversionKind.ENUM_MAPPING | ConversionKind.NESTED | ConversionKind.POLYMORPHIC:
                return f"{conversion.function_name}({value})"
            case ConversionKind.ENUM_CAST:
                return f"{self._ref(conversion.target_type.py_type)}({value}.value)"
            case ConversionKind.COLLECTION:
                return self._project(conversion, value, depth)
            case _:
                raise ValueError(f"Cannot render unresolved conversion for {value}")

    def _coerce(self, conversion: Conversion, value: str) -> str:
        assert conversion.source_type is not None
        source_kind = conversion.source_type.kind
        target_kind = conversion.target_type.kind
        if target_kind is ValueKind.TEXT:
            if source_kind in _ISO_TYPES:
                return f"{value}.isoformat()"
            return f"str({value})"
        if target_kind in _PARSERS:
            return f"{_PARSERS[target_kind]}({value})"
        if target_kind in _ISO_TYPES:
            return f"{self._imports.ref(_ISO_TYPES[target_kind])}.fromisoformat({value})"
        if target_kind is ValueKind.DECIMAL:
            return f"{self._imports.ref(Decimal)}({value})"
        if target_kind is ValueKind.UUID:
            return f"{self._imports.ref(UUID)}({value})"
        if target_kind is ValueKind.BOOLEAN:
            return f"{self._imports.ref(parse_bool, module=_RUNTIME_MODULE)}({value})"
        raise ValueError(f"No coercion from {source_kind.value} to {target_kind.value}")

    def _project(self, conversion: Conversion, value: str, depth: int) -> str:
        element = conversion.element
        assert element is not None
        target = conversion.target_type
        shape = target.shape or CollectionShape.LIST

        if element.kind is ConversionKind.IDENTITY:
            match shape:
                case CollectionShape.LIST:
                    return f"list({value})"
                case CollectionShape.WRAPPER:
                    return f"{self._ref(target.py_type)}({value})"
                case _:
                    return f"tuple({value})"

        item = "item" if depth == 0 else f"item{depth}"
        item_expr = self._convert(element, item, depth + 1)
        if element.source_type is not None and element.source_type.nullable:
            item_expr = f"None if {item} is None else {item_expr}"
        match shape:
            case CollectionShape.LIST:
                return f"[{item_expr} for {item} in {value}]"
            case CollectionShape.WRAPPER:
                return f"{self._ref(target.py_type)}([{item_expr} for {item} in {value}])"
            case _:
                return f"tuple({item_expr} for {item} in {value})"

    # --- helpers ---

    def _ref(self, obj: type) -> str:
        return self._imports.ref(obj)

    def _writer(self) -> CodeWriter:
        return CodeWriter(self._config.indent)

    def _docstring(self, writer: CodeWriter, text: str) -> None:
        if self._config.emit_docstrings:
            writer.docstring(text)

    @staticmethod
    def _function(
        plan: MappingPlan, kind: FunctionKind, writer: CodeWriter, method_name: str
    ) -> GeneratedFunction:
        return GeneratedFunction(
            name=plan.function_name,
            kind=kind,
            source=plan.source.py_type,
            target=plan.target.py_type,
            text=writer.render(),
            method_name=method_name,
            reverse=plan.reverse,
        )
