"""Django ORM implementation of the cart repository."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from django.core.exceptions import ValidationError

from modules.cart.models import CartLine
from modules.cart.repositories.interfaces import ICartRepository


class CartDjangoRepository(ICartRepository):
    def list_for_user(self, user_id: str) -> List[CartLine]:
        return list(CartLine.objects.filter(user_id=user_id).order_by("created_at", "id"))

    def find_line(
        self, user_id: str, product_id: UUID, size: str, for_update: bool = False
    ) -> Optional[CartLine]:
        queryset = CartLine.objects.filter(
            user_id=user_id, product_id=product_id, size=size
        )
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.first()

    def save(self, line: CartLine) -> CartLine:
        line.save()
        return line

    def delete_line(self, user_id: str, line_id: str) -> bool:
        try:
            deleted, _ = CartLine.objects.filter(user_id=user_id, id=line_id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def clear(self, user_id: str) -> int:
        deleted, _ = CartLine.objects.filter(user_id=user_id).delete()
        return deleted
