"""Product domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class ProductAlreadyExists(Exception):
    """A product with the same GTIN already exists."""


class ProductNotFound(Exception):
    """The requested product does not exist."""


class ProductAccessDenied(Exception):
    """The caller does not own the product it tries to change."""


class InvalidProductData(Exception):
    """The merged product state breaks a field rule (e.g. temperature range)."""


class StorageUnavailable(Exception):
    """The relational store failed; the transaction was rolled back."""
