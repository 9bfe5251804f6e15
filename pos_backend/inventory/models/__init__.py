"""
PATH: inventory/models/__init__.py

Inventory models export surface.
"""

from .product import Product

__all__ = [
    "Product",
]
