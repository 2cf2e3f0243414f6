"""Cart repository contract.  Every method is scoped to one user."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.cart.models import CartLine


class ICartRepository(ABC):
    @abstractmethod
    def list_for_user(self, user_id: str) -> List[CartLine]:
        """Lines of the user's cart, oldest first."""

    @abstractmethod
    def find_line(
        self, user_id: str, product_id: UUID, size: str, for_update: bool = False
    ) -> Optional[CartLine]:
        """The user's line for (product, size), optionally row-locked."""

    @abstractmethod
    def save(self, line: CartLine) -> CartLine:
        """Persist a line."""

    @abstractmethod
    def delete_line(self, user_id: str, line_id: str) -> bool:
        """Remove one line; ``False`` if the user has no such line."""

    @abstractmethod
    def clear(self, user_id: str) -> int:
        """Remove every line of the user's cart; returns the count."""
