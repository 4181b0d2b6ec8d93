"""Classification of declared field types.

A TypeRef is the normalized view of one annotation: what kind of value it
holds, whether None is allowed, and for collections the element type and the
shape the generator materializes.
"""

from __future__ import annotations

import collections
import collections.abc
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, get_args, get_origin
from uuid import UUID

from map_forge.core.enums import CollectionShape, ValueKind

_SCALAR_KINDS: dict[Any, ValueKind] = {
    str: ValueKind.TEXT,
    bool: ValueKind.BOOLEAN,
    int: ValueKind.INTEGER,
    float: ValueKind.FLOAT,
    Decimal: ValueKind.DECIMAL,
    UUID: ValueKind.UUID,
    datetime: ValueKind.DATETIME,
    date: ValueKind.DATE,
    time: ValueKind.TIME,
}

# Kinds that may be coerced to and from text.
COERCIBLE_KINDS = frozenset(
    {
        ValueKind.INTEGER,
        ValueKind.FLOAT,
        ValueKind.DECIMAL,
        ValueKind.BOOLEAN,
        ValueKind.UUID,
        ValueKind.DATETIME,
        ValueKind.DATE,
        ValueKind.TIME,
    }
)

_LIST_ORIGINS = (
    list,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
)
_READ_ONLY_ORIGINS = (collections.abc.Sequence,)
_WRAPPER_BASES = (list, tuple, collections.UserList)
_UNION_TYPES = (typing.Union, types.UnionType)


@dataclass(frozen=True, eq=False)
class TypeRef:
    """Normalized declared type of a field or constructor parameter."""

    kind: ValueKind
    py_type: Any
    nullable: bool = False
    element: TypeRef | None = None
    shape: CollectionShape | None = None

    @property
    def name(self) -> str:
        return type_display_name(self.py_type)

    @property
    def is_object(self) -> bool:
        return self.kind is ValueKind.OBJECT

    @property
    def is_enum(self) -> bool:
        return self.kind is ValueKind.ENUM

    @property
    def is_collection(self) -> bool:
        return self.kind is ValueKind.COLLECTION

    def same_type(self, other: TypeRef) -> bool:
        """True when both refer to the same type, ignoring nullability."""
        if self.kind is ValueKind.OTHER or other.kind is ValueKind.OTHER:
            return self.kind is other.kind and self.py_type == other.py_type
        return self.py_type == other.py_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeRef):
            return NotImplemented
        return self.same_type(other) and self.nullable == other.nullable

    def __hash__(self) -> int:
        return hash((self.kind, repr(self.py_type), self.nullable))

    def __repr__(self) -> str:
        suffix = " | None" if self.nullable else ""
        return f"TypeRef({self.kind.value}: {self.name}{suffix})"


def type_display_name(tp: Any) -> str:
    """Readable name for a class or typing construct."""
    if isinstance(tp, type) and not get_args(tp):
        return tp.__name__
    if isinstance(tp, str):
        return tp
    if isinstance(tp, typing.ForwardRef):
        return tp.__forward_arg__
    return repr(tp).replace("typing.", "").replace("collections.abc.", "")


def _strip_optional(tp: Any) -> tuple[Any, bool]:
    if get_origin(tp) in _UNION_TYPES:
        args = get_args(tp)
        rest = tuple(a for a in args if a is not type(None))
        if len(rest) == len(args):
            return tp, False
        if len(rest) == 1:
            return rest[0], True
        return typing.Union[rest], True  # noqa: UP007
    return tp, False


def _is_user_class(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and tp.__module__ not in ("builtins", "typing", "collections.abc", "types")
        and not issubclass(tp, Enum)
    )


def wrapper_element(tp: type) -> Any | None:
    """Element type of a user collection class such as ``class Tags(list[str])``."""
    if not isinstance(tp, type) or not issubclass(tp, _WRAPPER_BASES):
        return None
    for klass in tp.__mro__:
        for base in getattr(klass, "__orig_bases__", ()):
            origin = get_origin(base)
            args = get_args(base)
            if origin in _WRAPPER_BASES and args:
                if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
                    continue
                return args[0]
    return Any


def classify(annotation: Any) -> TypeRef:
    """Build a TypeRef from a resolved annotation."""
    tp, nullable = _strip_optional(annotation)

    if get_origin(tp) is Annotated:
        inner = classify(get_args(tp)[0])
        return _with_nullable(inner, nullable or inner.nullable)

    if tp is Any or tp is object:
        return TypeRef(ValueKind.ANY, tp, nullable)
    if isinstance(tp, (str, typing.ForwardRef)):
        return TypeRef(ValueKind.OTHER, tp, nullable)

    kind = _SCALAR_KINDS.get(tp)
    if kind is not None:
        return TypeRef(kind, tp, nullable)

    if isinstance(tp, type) and issubclass(tp, Enum):
        return TypeRef(ValueKind.ENUM, tp, nullable)

    origin = get_origin(tp)
    args = get_args(tp)

    if tp is list or origin in _LIST_ORIGINS:
        element = classify(args[0]) if args else TypeRef(ValueKind.ANY, Any)
        return TypeRef(ValueKind.COLLECTION, tp, nullable, element, CollectionShape.LIST)

    if tp is tuple or origin is tuple:
        if not args:
            return TypeRef(
                ValueKind.COLLECTION, tp, nullable, TypeRef(ValueKind.ANY, Any), CollectionShape.TUPLE
            )
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeRef(
                ValueKind.COLLECTION, tp, nullable, classify(args[0]), CollectionShape.TUPLE
            )
        # Heterogeneous tuples are fixed records, not projectable collections.
        return TypeRef(ValueKind.OTHER, tp, nullable)

    if origin in _READ_ONLY_ORIGINS:
        element = classify(args[0]) if args else TypeRef(ValueKind.ANY, Any)
        return TypeRef(ValueKind.COLLECTION, tp, nullable, element, CollectionShape.READ_ONLY)

    if _is_user_class(tp):
        element_tp = wrapper_element(tp)
        if element_tp is not None:
            return TypeRef(
                ValueKind.COLLECTION, tp, nullable, classify(element_tp), CollectionShape.WRAPPER
            )
        return TypeRef(ValueKind.OBJECT, tp, nullable)

    return TypeRef(ValueKind.OTHER, tp, nullable)


def _with_nullable(ref: TypeRef, nullable: bool) -> TypeRef:
    if ref.nullable == nullable:
        return ref
    return TypeRef(ref.kind, ref.py_type, nullable, ref.element, ref.shape)


def split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Return the annotation without ``Annotated`` plus its metadata.

    Metadata nested inside ``Optional[Annotated[...]]`` is collected as well.
    """
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        inner, more = split_annotated(base)
        return inner, tuple(metadata) + more
    if get_origin(annotation) in _UNION_TYPES:
        collected: list[Any] = []
        parts = []
        for arg in get_args(annotation):
            inner, more = split_annotated(arg)
            parts.append(inner)
            collected.extend(more)
        if collected:
            return typing.Union[tuple(parts)], tuple(collected)  # noqa: UP007
    return annotation, ()
