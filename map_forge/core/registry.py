"""Mapping Registry - discovers classes carrying mapping directives.

Modules are imported by name; packages are walked recursively:

    MappingRegistry("myapp.models")        -> myapp.models and its submodules
    MappingRegistry(myapp.models.billing)  -> an already imported module
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType

from map_forge.annotations import declared_derived_types, declared_directives
from map_forge.core.exceptions import DuplicateMappingError, ModuleLoadError
from map_forge.mapping.naming import map_function_name

logger = logging.getLogger(__name__)


class MappingRegistry:
    """Collects declaring types in a deterministic order.

    Types keep module order, then definition order within a module. A type
    pair declared more than once keeps its first declaration; two different
    pairs that would produce the same generated function name are rejected.

    Args:
        modules: Module names or module objects to scan.

    Raises:
        ModuleLoadError: If a module cannot be imported.
        DuplicateMappingError: If two type pairs resolve to the same function name.
    """

    def __init__(self, *modules: str | ModuleType) -> None:
        self._types: dict[type, None] = {}
        self._function_owners: dict[str, str] = {}
        self._function_pairs: dict[str, tuple[type, type]] = {}
        self._modules: list[str] = []
        for module in modules:
            self._load(module)

    def _load(self, module: str | ModuleType) -> None:
        loaded = self._import(module) if isinstance(module, str) else module
        self._scan(loaded)
        if hasattr(loaded, "__path__"):
            names = sorted(
                info.name
                for info in pkgutil.walk_packages(loaded.__path__, prefix=f"{loaded.__name__}.")
            )
            for name in names:
                self._scan(self._import(name))

    @staticmethod
    def _import(name: str) -> ModuleType:
        try:
            return importlib.import_module(name)
        except ImportError as e:
            raise ModuleLoadError(name, str(e)) from e

    def _scan(self, module: ModuleType) -> None:
        if module.__name__ in self._modules:
            return
        self._modules.append(module.__name__)
        found = 0
        for obj in list(vars(module).values()):
            if inspect.isclass(obj) and obj.__module__ == module.__name__:
                if declared_directives(obj) or declared_derived_types(obj):
                    self.register(obj)
                    found += 1
        logger.debug("Scanned %s: %d declaring types", module.__name__, found)

    def register(self, cls: type) -> None:
        """Add a declaring type.

        Raises:
            DuplicateMappingError: If one of its pairs shares a function name with a different pair.
        """
        if cls in self._types:
            return
        pairs: list[tuple[type, type]] = []
        for directive in declared_directives(cls):
            pairs.append((cls, directive.target))
            if directive.bidirectional:
                pairs.append((directive.target, cls))
        owner = f"{cls.__module__}.{cls.__qualname__}"
        claimed: dict[str, tuple[type, type]] = {}
        for source, target in pairs:
            name = map_function_name(source, target)
            known = self._function_pairs.get(name) or claimed.get(name)
            if known is None:
                claimed[name] = (source, target)
            elif known == (source, target):
                logger.warning(
                    "Mapping %s -> %s is declared more than once; the first declaration wins",
                    source.__name__,
                    target.__name__,
                )
            else:
                raise DuplicateMappingError(name, self._function_owners.get(name, owner), owner)
        for name, pair in claimed.items():
            self._function_pairs[name] = pair
            self._function_owners[name] = owner
        self._types[cls] = None

    def has(self, cls: type) -> bool:
        """Check if a class is registered."""
        return cls in self._types

    @property
    def types(self) -> list[type]:
        """Registered declaring types in discovery order."""
        return list(self._types)

    @property
    def function_names(self) -> list[str]:
        """Generated map function names, sorted alphabetically."""
        return sorted(self._function_owners)

    @property
    def modules(self) -> list[str]:
        return list(self._modules)

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, cls: object) -> bool:
        return cls in self._types
