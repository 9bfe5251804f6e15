# inventory/services/exceptions.py

"""
CATALOG SERVICE ERRORS

Centralized domain errors for catalog lookups and writes.
"""


class CatalogError(Exception):
    """Base exception for all catalog service failures."""


class NotFoundError(CatalogError):
    """Raised when a SKU / product id does not resolve to an active product."""


class DuplicateKeyError(CatalogError):
    """Raised when a create collides with an existing SKU."""
