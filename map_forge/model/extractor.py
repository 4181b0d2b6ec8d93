"""Type Model Extractor.

Builds TypeDescriptors from static declaration information only: class
annotations, dataclass/pydantic field metadata, ``__init__`` signatures,
properties and enum members. No instance is ever created.

Descriptors are memoized by type identity plus a fingerprint of the
declaration, so incremental passes only rebuild types whose declaration
changed.
"""

from __future__ import annotations

import dataclasses
import hashlib
import inspect
import logging
import threading
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

from map_forge.annotations import MapIgnore, MapProperty, declared_derived_types, declared_directives
from map_forge.core.diagnostics import TYPE_NOT_OPEN, DiagnosticReporter, SourceLocation
from map_forge.core.enums import TypeKind, Visibility
from map_forge.core.exceptions import ExtractionError
from map_forge.model.descriptors import (
    ConstructorParameter,
    EnumDescriptor,
    EnumMember,
    FieldDescriptor,
    TypeDescriptor,
)
from map_forge.model.types import classify, split_annotated

logger = logging.getLogger(__name__)

_PY_TPFLAGS_HEAPTYPE = 1 << 9
_FRAMEWORK_ROOTS = frozenset(
    {"builtins", "abc", "typing", "enum", "pydantic", "collections", "_collections_abc"}
)


def _is_framework(klass: type) -> bool:
    return klass.__module__.split(".")[0] in _FRAMEWORK_ROOTS


def _is_pydantic_model(cls: type) -> bool:
    return issubclass(cls, BaseModel) and cls is not BaseModel


def _is_named_tuple(cls: type) -> bool:
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def _own_annotation_names(klass: type) -> list[str]:
    try:
        names = list(inspect.get_annotations(klass))
    except Exception:  # noqa: BLE001 - broken annotations are treated as absent
        return []
    return [n for n in names if not n.startswith("__")]


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar", "InitVar", "dataclasses.InitVar"))
    return typing.get_origin(annotation) is typing.ClassVar or annotation is typing.ClassVar or (
        isinstance(annotation, dataclasses.InitVar)
    )


def _resolve_hints(func: Any) -> dict[str, Any]:
    """Resolve a function's annotations, falling back to the raw ones."""
    try:
        return typing.get_type_hints(func, include_extras=True)
    except Exception as e:  # noqa: BLE001 - unresolvable forward references
        logger.debug("Falling back to raw annotations for %r: %s", func, e)
        try:
            return dict(inspect.get_annotations(func))
        except Exception:  # noqa: BLE001
            return {}


def _class_hints(cls: type) -> dict[str, Any]:
    """Evaluate annotations of each user class in the chain, root to leaf.

    Framework bases are skipped so their internal annotations never need to
    resolve. A class whose annotations do not evaluate keeps them as strings.
    """
    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if _is_framework(klass):
            continue
        try:
            hints.update(inspect.get_annotations(klass, eval_str=True))
        except Exception as e:  # noqa: BLE001 - unresolvable forward references
            logger.debug("Falling back to raw annotations for %s: %s", klass.__qualname__, e)
            try:
                hints.update(inspect.get_annotations(klass))
            except Exception:  # noqa: BLE001
                continue
    return hints


def _markers(metadata: tuple[Any, ...]) -> tuple[bool, str | None]:
    ignored = any(isinstance(m, MapIgnore) for m in metadata)
    rename = next((m.target_name for m in metadata if isinstance(m, MapProperty)), None)
    return ignored, rename


def _visibility(name: str) -> Visibility:
    return Visibility.PRIVATE if name.startswith("_") else Visibility.PUBLIC


def _location(cls: type) -> SourceLocation:
    file: str | None = None
    line: int | None = None
    try:
        file = inspect.getsourcefile(cls)
        line = inspect.getsourcelines(cls)[1]
    except (OSError, TypeError):
        pass
    return SourceLocation(qualname=cls.__qualname__, module=cls.__module__, file=file, line=line)


def is_open_to_augmentation(cls: type) -> bool:
    """User-defined (heap) class not marked ``@typing.final``."""
    return bool(cls.__flags__ & _PY_TPFLAGS_HEAPTYPE) and not getattr(cls, "__final__", False)


@dataclass
class _FieldDraft:
    name: str
    annotation: Any
    declaring_type: str
    is_property: bool = False
    settable: bool = True


class TypeModelExtractor:
    """Builds and memoizes TypeDescriptors.

    Safe to share between threads; extraction of the same type twice returns
    the cached descriptor as long as its declaration fingerprint is unchanged.
    """

    def __init__(self) -> None:
        self._cache: dict[type, TypeDescriptor] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def extract(self, cls: type) -> TypeDescriptor:
        """Return the descriptor for ``cls``, building it if the declaration changed."""
        if not isinstance(cls, type):
            raise ExtractionError(repr(cls), "not a class")

        fingerprint = self.fingerprint(cls)
        with self._lock:
            cached = self._cache.get(cls)
            if cached is not None and cached.fingerprint == fingerprint:
                self.hits += 1
                return cached
            self.misses += 1

        descriptor = self._build(cls, fingerprint)
        with self._lock:
            self._cache[cls] = descriptor
        logger.debug("Extracted %s (%d fields)", descriptor.qualname, len(descriptor.fields))
        return descriptor

    def check_open(self, descriptor: TypeDescriptor, reporter: DiagnosticReporter) -> bool:
        """Report MAP001 when the declaring type cannot be augmented."""
        if descriptor.is_open:
            return True
        reporter.report(TYPE_NOT_OPEN.create(descriptor.location_for(), descriptor.qualname))
        return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    # --- fingerprint ---

    def fingerprint(self, cls: type) -> str:
        """Hash of everything the descriptor is derived from."""
        parts: list[str] = [cls.__module__, cls.__qualname__, repr(getattr(cls, "__final__", False))]
        for klass in reversed(cls.__mro__):
            if _is_framework(klass):
                continue
            parts.append(klass.__qualname__)
            try:
                annotations = inspect.get_annotations(klass)
            except Exception:  # noqa: BLE001
                annotations = {}
            parts.extend(f"{k}:{v!r}" for k, v in annotations.items())
            parts.extend(
                f"{k}:property:{v.fset is not None}"
                for k, v in vars(klass).items()
                if isinstance(v, property)
            )
            init = vars(klass).get("__init__")
            if init is not None:
                try:
                    parts.append(str(inspect.signature(init)))
                except (TypeError, ValueError):
                    parts.append("init")
        if issubclass(cls, Enum):
            parts.extend(f"{m.name}={m.value!r}" for m in cls)
        if dataclasses.is_dataclass(cls):
            params = getattr(cls, "__dataclass_params__", None)
            parts.append(repr(params))
        if _is_pydantic_model(cls):
            parts.append(repr(cls.model_config))
        parts.extend(repr(d) for d in declared_directives(cls))
        parts.extend(repr(p) for p in declared_derived_types(cls))
        return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()

    # --- build ---

    def _build(self, cls: type, fingerprint: str) -> TypeDescriptor:
        chain = tuple(k.__qualname__ for k in reversed(cls.__mro__) if not _is_framework(k))
        common: dict[str, Any] = {
            "py_type": cls,
            "name": cls.__name__,
            "qualname": cls.__qualname__,
            "module": cls.__module__,
            "chain": chain,
            "directives": declared_directives(cls),
            "derived_pairs": declared_derived_types(cls),
            "is_open": is_open_to_augmentation(cls),
            "is_abstract": inspect.isabstract(cls),
            "fingerprint": fingerprint,
            "location": _location(cls),
        }

        if issubclass(cls, Enum):
            members = tuple(EnumMember(m.name, m.value) for m in cls)
            return TypeDescriptor(
                kind=TypeKind.ENUM, enum=EnumDescriptor(members), is_frozen=True, **common
            )

        hints = _class_hints(cls)
        drafts = self._collect_drafts(cls, hints)

        if _is_pydantic_model(cls):
            fields, constructor, frozen = self._pydantic_shape(cls, drafts)
            kind = TypeKind.RECORD
        elif dataclasses.is_dataclass(cls):
            fields, constructor, frozen = self._dataclass_shape(cls, drafts)
            kind = TypeKind.RECORD
        elif _is_named_tuple(cls):
            fields, constructor, frozen = self._named_tuple_shape(cls, drafts)
            kind = TypeKind.RECORD
        else:
            fields, constructor, frozen = self._plain_shape(cls, drafts)
            kind = TypeKind.CLASS

        return TypeDescriptor(
            kind=kind, fields=fields, constructor=constructor, is_frozen=frozen, **common
        )

    def _collect_drafts(self, cls: type, hints: dict[str, Any]) -> dict[str, _FieldDraft]:
        """Walk the chain root to leaf; the most-derived declaration wins.

        Insertion order is the first declaration's position, matching how
        dataclasses order inherited fields.
        """
        drafts: dict[str, _FieldDraft] = {}
        for klass in reversed(cls.__mro__):
            if _is_framework(klass):
                continue
            for name in _own_annotation_names(klass):
                annotation = hints.get(name)
                if annotation is None or _is_class_var(annotation):
                    continue
                drafts[name] = _FieldDraft(name, annotation, klass.__qualname__)
            for name, member in vars(klass).items():
                if not isinstance(member, property) or name.startswith("__"):
                    continue
                annotation = Any
                if member.fget is not None:
                    annotation = _resolve_hints(member.fget).get("return", Any)
                drafts[name] = _FieldDraft(
                    name,
                    annotation,
                    klass.__qualname__,
                    is_property=True,
                    settable=member.fset is not None,
                )
        return drafts

    def _field(
        self,
        draft: _FieldDraft,
        *,
        settable: bool,
        required: bool,
        alias: str | None = None,
        extra_metadata: tuple[Any, ...] = (),
    ) -> FieldDescriptor:
        annotation, metadata = split_annotated(draft.annotation)
        ignored, rename = _markers(metadata + extra_metadata)
        return FieldDescriptor(
            name=draft.name,
            type_ref=classify(annotation),
            declaring_type=draft.declaring_type,
            visibility=_visibility(draft.name),
            ignored=ignored,
            rename=rename,
            readable=True,
            settable=settable,
            required=required,
            alias=alias if alias and alias != draft.name else None,
        )

    def _dataclass_shape(
        self, cls: type, drafts: dict[str, _FieldDraft]
    ) -> tuple[tuple[FieldDescriptor, ...], tuple[ConstructorParameter, ...], bool]:
        frozen = bool(cls.__dataclass_params__.frozen)  # type: ignore[attr-defined]
        dc_fields = {f.name: f for f in dataclasses.fields(cls)}
        fields: list[FieldDescriptor] = []
        constructor: list[ConstructorParameter] = []
        for name, draft in drafts.items():
            dc_field = dc_fields.get(name)
            if dc_field is None:
                fields.append(self._field(draft, settable=draft.settable and not frozen, required=False))
                continue
            required = (
                dc_field.init
                and dc_field.default is dataclasses.MISSING
                and dc_field.default_factory is dataclasses.MISSING
            )
            descriptor = self._field(draft, settable=not frozen, required=required)
            fields.append(descriptor)
            if dc_field.init:
                constructor.append(
                    ConstructorParameter(
                        name=name,
                        type_ref=descriptor.type_ref,
                        required=required,
                        positional=not dc_field.kw_only,
                        keyword=name,
                    )
                )
        # Keyword-only fields are moved after positional ones by dataclasses.
        constructor.sort(key=lambda p: not p.positional)
        return tuple(fields), tuple(constructor), frozen

    def _pydantic_shape(
        self, cls: type, drafts: dict[str, _FieldDraft]
    ) -> tuple[tuple[FieldDescriptor, ...], tuple[ConstructorParameter, ...], bool]:
        model_fields = cls.model_fields  # type: ignore[attr-defined]
        frozen = bool(cls.model_config.get("frozen", False))  # type: ignore[attr-defined]
        fields: list[FieldDescriptor] = []
        constructor: list[ConstructorParameter] = []
        for name, draft in drafts.items():
            info = model_fields.get(name)
            if info is None:
                if draft.is_property:
                    fields.append(self._field(draft, settable=draft.settable, required=False))
                continue
            alias = info.validation_alias if isinstance(info.validation_alias, str) else info.alias
            descriptor = self._field(
                draft,
                settable=not frozen and not info.frozen,
                required=info.is_required(),
                alias=alias,
                extra_metadata=tuple(info.metadata),
            )
            fields.append(descriptor)
            constructor.append(
                ConstructorParameter(
                    name=name,
                    type_ref=descriptor.type_ref,
                    required=descriptor.required,
                    positional=False,
                    keyword=alias or name,
                )
            )
        return tuple(fields), tuple(constructor), frozen

    def _named_tuple_shape(
        self, cls: type, drafts: dict[str, _FieldDraft]
    ) -> tuple[tuple[FieldDescriptor, ...], tuple[ConstructorParameter, ...], bool]:
        defaults = getattr(cls, "_field_defaults", {})
        fields: list[FieldDescriptor] = []
        constructor: list[ConstructorParameter] = []
        for name in cls._fields:  # type: ignore[attr-defined]
            draft = drafts.get(name) or _FieldDraft(name, Any, cls.__qualname__)
            descriptor = self._field(draft, settable=False, required=name not in defaults)
            fields.append(descriptor)
            constructor.append(
                ConstructorParameter(
                    name=name,
                    type_ref=descriptor.type_ref,
                    required=descriptor.required,
                    positional=True,
                    keyword=name,
                )
            )
        return tuple(fields), tuple(constructor), True

    def _plain_shape(
        self, cls: type, drafts: dict[str, _FieldDraft]
    ) -> tuple[tuple[FieldDescriptor, ...], tuple[ConstructorParameter, ...], bool]:
        """Annotated attributes and properties, plus ``__init__`` parameters.

        A parameter without a same-named attribute is assumed to be stored
        under its own name (``self.id = id``).
        """
        parameters = self._init_parameters(cls)
        required_params = {p.name for p, _ in parameters if p.required}
        merged = dict(drafts)
        for param, annotation in parameters:
            if param.name not in merged:
                merged[param.name] = _FieldDraft(param.name, annotation, cls.__qualname__)
        fields = tuple(
            self._field(draft, settable=draft.settable, required=name in required_params)
            for name, draft in merged.items()
        )
        return fields, tuple(p for p, _ in parameters), False

    def _init_parameters(self, cls: type) -> list[tuple[ConstructorParameter, Any]]:
        if cls.__init__ is object.__init__:  # type: ignore[misc]
            return []
        try:
            signature = inspect.signature(cls)
        except (TypeError, ValueError):
            return []
        hints = _resolve_hints(cls.__init__)  # type: ignore[misc]
        params: list[tuple[ConstructorParameter, Any]] = []
        for name, param in signature.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            raw = hints.get(name, param.annotation)
            if raw is inspect.Parameter.empty:
                raw = Any
            annotation, _ = split_annotated(raw)
            constructor_param = ConstructorParameter(
                name=name,
                type_ref=classify(annotation),
                required=param.default is inspect.Parameter.empty,
                positional=param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD),
                keyword=name,
            )
            params.append((constructor_param, raw))
        return params
