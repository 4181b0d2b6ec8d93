"""
Example 05: Generating a Module from a Package

This example writes model declarations to a temporary package, discovers
them with MappingRegistry and writes the generated module next to them.
"""

import importlib
import sys
import tempfile
from pathlib import Path

from map_forge import GeneratorConfig, MappingEngine, MappingRegistry

MODELS = '''
from dataclasses import dataclass

from map_forge import map_to


@dataclass
class ProductDto:
    sku: str
    price: str


@map_to(ProductDto)
@dataclass
class Product:
    sku: str
    price: float
'''


def main():
    root = Path(tempfile.mkdtemp())
    package = root / "shop"
    package.mkdir()
    (package / "__init__.py").write_text("")
    (package / "models.py").write_text(MODELS)
    sys.path.insert(0, str(root))

    print("=== Generating a Module ===\n")

    registry = MappingRegistry("shop")
    print(f"1. Discovered: {[t.__name__ for t in registry.types]}")
    print(f"   Functions:  {registry.function_names}\n")

    engine = MappingEngine(GeneratorConfig(max_workers=2, emit_docstrings=False))
    result = engine.generate(registry.types)
    (package / "mappings.py").write_text(result.source)
    print("2. shop/mappings.py:")
    print(result.source)

    models = importlib.import_module("shop.models")
    mappings = importlib.import_module("shop.mappings")
    print("3. Imported and called:")
    print(f"   {mappings.map_product_to_product_dto(models.Product('A-1', 9.5))}")
    print("\n   Same thing from the command line: map-forge generate shop -o shop/mappings.py")


if __name__ == "__main__":
    main()
