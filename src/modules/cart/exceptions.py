"""Cart domain exceptions."""

from __future__ import annotations


class CartLineNotFound(Exception):
    """The line does not exist in the caller's cart."""
