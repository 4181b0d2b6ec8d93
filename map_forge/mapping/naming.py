"""Name casing and generated-name helpers."""

from __future__ import annotations

import re

from map_forge.core.enums import PropertyNameStrategy

# Acronym runs ("HTTPRequest" -> HTTP, Request), capitalized words, lower runs, digits.
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def split_words(name: str) -> list[str]:
    """Split an identifier in any casing into its words."""
    words: list[str] = []
    for chunk in re.split(r"[_\-\s]+", name):
        words.extend(_WORD_RE.findall(chunk))
    return words


def _leading_underscores(name: str) -> str:
    return name[: len(name) - len(name.lstrip("_"))]


def to_camel(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    head, *rest = words
    return _leading_underscores(name) + head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def to_snake(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    return _leading_underscores(name) + "_".join(w.lower() for w in words)


def to_kebab(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    return _leading_underscores(name) + "-".join(w.lower() for w in words)


def apply_strategy(name: str, strategy: PropertyNameStrategy) -> str:
    """Transform ``name`` with the given casing strategy."""
    match strategy:
        case PropertyNameStrategy.CAMEL:
            return to_camel(name)
        case PropertyNameStrategy.SNAKE:
            return to_snake(name)
        case PropertyNameStrategy.KEBAB:
            return to_kebab(name)
        case _:
            return name


def flattened_name(parent: str, child: str) -> str:
    """Slot name for ``parent.child`` under flattening.

    Lower-case parents join with an underscore (``address_city``); any other
    casing concatenates (``AddressCity``, ``addressCity``).
    """
    if parent == parent.lower():
        return f"{parent}_{child}"
    return parent + child[:1].upper() + child[1:]


def map_function_name(source: type, target: type) -> str:
    return f"map_{to_snake(source.__name__)}_to_{to_snake(target.__name__)}"


def update_function_name(source: type, target: type) -> str:
    return f"update_{to_snake(target.__name__)}_from_{to_snake(source.__name__)}"


def projection_function_name(source: type, target: type) -> str:
    return f"project_{to_snake(source.__name__)}_to_{to_snake(target.__name__)}"


def map_method_name(target: type) -> str:
    return f"map_to_{to_snake(target.__name__)}"


def update_method_name(target: type) -> str:
    return f"update_{to_snake(target.__name__)}"


def projection_method_name(target: type) -> str:
    return f"project_to_{to_snake(target.__name__)}"
