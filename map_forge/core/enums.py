"""Enumerations shared across the generator."""

from __future__ import annotations

from enum import Enum


class PropertyNameStrategy(Enum):
    """Casing applied to field names on the side carrying a mapping directive."""

    IDENTITY = "identity"
    CAMEL = "camel"
    SNAKE = "snake"
    KEBAB = "kebab"


class TypeKind(Enum):
    """Shape of a declared type."""

    CLASS = "class"
    RECORD = "record"
    ENUM = "enum"


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ValueKind(Enum):
    """Classification of a declared field type."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    UUID = "uuid"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    ENUM = "enum"
    OBJECT = "object"
    COLLECTION = "collection"
    ANY = "any"
    OTHER = "other"


class CollectionShape(Enum):
    """Materialized form of a projected collection."""

    LIST = "list"
    TUPLE = "tuple"
    READ_ONLY = "read_only"
    WRAPPER = "wrapper"


class ConversionKind(Enum):
    """Conversion strategy chosen for a single field correspondence."""

    IDENTITY = "identity"
    COERCION = "coercion"
    ENUM_MAPPING = "enum_mapping"
    ENUM_CAST = "enum_cast"
    NESTED = "nested"
    COLLECTION = "collection"
    POLYMORPHIC = "polymorphic"
    UNRESOLVED = "unresolved"


class Severity(Enum):
    """Diagnostic severity. Errors stop generation for the declaring type."""

    ERROR = "error"
    WARNING = "warning"


class FunctionKind(Enum):
    """Kind of generated function."""

    MAP = "map"
    UPDATE = "update"
    PROJECTION = "projection"
    ENUM = "enum"
