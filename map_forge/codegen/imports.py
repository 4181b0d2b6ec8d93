"""Import bookkeeping for generated modules.

Synthesized function text refers to classes and helpers through placeholder
tokens (``${module:Name}``). Tokens are replaced by final aliases only when
all jobs of a pass are merged, so aliasing of same-named classes from
different modules does not depend on job scheduling.
"""

from __future__ import annotations

import re
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

_TOKEN_RE = re.compile(r"\$\{([\w.]+):(\w+)\}")
_LOCAL_PREFIX = "__locals__"


@dataclass(frozen=True, order=True)
class ImportRef:
    module: str
    name: str

    @property
    def is_local(self) -> bool:
        """A class defined inside a function: bindable, never importable."""
        return self.module.startswith(_LOCAL_PREFIX)

    @property
    def is_stdlib(self) -> bool:
        return self.module.split(".")[0] in sys.stdlib_module_names

    @property
    def token(self) -> str:
        return f"${{{self.module}:{self.name}}}"


class ImportSet:
    """Objects referenced by generated code, keyed by where they are imported from."""

    def __init__(self) -> None:
        self._objects: dict[ImportRef, Any] = {}

    def ref(self, obj: Any, *, module: str | None = None) -> str:
        """Placeholder expression for ``obj`` (nested classes keep their dotted path)."""
        qualname: str = getattr(obj, "__qualname__", obj.__name__)
        if "<locals>" in qualname:
            key = ImportRef(f"{_LOCAL_PREFIX}{id(obj)}", obj.__name__)
            self._objects.setdefault(key, obj)
            return key.token

        root, _, rest = qualname.partition(".")
        owner_module = obj.__module__
        root_obj = obj if not rest else getattr(sys.modules[owner_module], root)
        key = ImportRef(module or owner_module, root)
        self._objects.setdefault(key, root_obj)
        return key.token + (f".{rest}" if rest else "")

    def merge(self, other: ImportSet) -> None:
        for key, obj in other._objects.items():
            self._objects.setdefault(key, obj)

    def aliases(self) -> dict[ImportRef, str]:
        """Deterministic aliases: the first module (sorted) keeps the plain name."""
        by_name: dict[str, list[ImportRef]] = defaultdict(list)
        for key in sorted(self._objects):
            by_name[key.name].append(key)
        aliases: dict[ImportRef, str] = {}
        for name, keys in by_name.items():
            for index, key in enumerate(keys, start=1):
                aliases[key] = name if index == 1 else f"{name}_{index}"
        return aliases

    def resolve(self, text: str, aliases: dict[ImportRef, str]) -> str:
        return _TOKEN_RE.sub(lambda m: aliases[ImportRef(m.group(1), m.group(2))], text)

    def bindings(self, aliases: dict[ImportRef, str]) -> dict[str, Any]:
        """Namespace used to execute generated code without its import lines."""
        return {aliases[key]: obj for key, obj in self._objects.items()}

    def render(self, aliases: dict[ImportRef, str]) -> list[str]:
        """``from x import y`` lines: standard library first, then the rest."""
        groups: list[list[str]] = []
        for stdlib in (True, False):
            modules: dict[str, list[str]] = defaultdict(list)
            for key in sorted(self._objects):
                if key.is_local or key.is_stdlib is not stdlib:
                    continue
                alias = aliases[key]
                modules[key.module].append(key.name if alias == key.name else f"{key.name} as {alias}")
            if modules:
                groups.append(
                    [f"from {module} import {', '.join(names)}" for module, names in sorted(modules.items())]
                )
        lines: list[str] = []
        for group in groups:
            if lines:
                lines.append("")
            lines.extend(group)
        return lines

    def __len__(self) -> int:
        return len(self._objects)
