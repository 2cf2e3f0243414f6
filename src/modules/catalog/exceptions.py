"""Catalog domain exceptions.

Raised by the catalog service and repository; views translate them into
HTTP responses.
"""

from __future__ import annotations


class ProductAlreadyExists(Exception):
    """A product with the same SKU already exists."""


class ProductNotFound(Exception):
    """The product (or the requested size of it) does not exist, is
    inactive, or has been soft-deleted."""


class LastVariant(Exception):
    """A product must keep at least one size."""
