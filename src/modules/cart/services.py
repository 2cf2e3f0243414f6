"""Cart service layer.

Every operation is scoped to the caller's ``RequestContext``; a line id
belonging to someone else behaves exactly like an unknown id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.db import transaction

from modules.cart.exceptions import CartLineNotFound
from modules.cart.models import CartLine
from modules.catalog.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.cart.dtos import AddCartLineDTO
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.core.context import RequestContext

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    @transaction.atomic
    def add_line(self, ctx: RequestContext, dto: AddCartLineDTO) -> CartLine:
        """Add a product/size to the cart, merging with an existing line.

        Raises:
            ProductNotFound: the product is unknown, not sellable, or does
                not come in the requested size.
        """
        variant = self._product_repo.get_variant(dto.product_id, dto.size)
        if variant is None:
            raise ProductNotFound(
                f"Product {dto.product_id} is not available in size '{dto.size}'."
            )
        product = variant.product

        line = self._cart_repo.find_line(
            ctx.user_id, dto.product_id, dto.size, for_update=True
        )
        if line is None:
            line = CartLine(
                user_id=ctx.user_id,
                product_id=dto.product_id,
                size=dto.size,
                quantity=dto.quantity,
            )
        else:
            line.quantity += dto.quantity

        line.unit_price = variant.price
        line.title = product.title
        line.summary = product.summary
        line.image = product.image
        line = self._cart_repo.save(line)

        logger.info(
            "cart.line_added",
            user_id=ctx.user_id,
            product_id=str(dto.product_id),
            size=dto.size,
            quantity=line.quantity,
        )
        return line

    def remove_line(self, ctx: RequestContext, line_id: str) -> None:
        """Raises:
        CartLineNotFound: the caller has no such line.
        """
        if not self._cart_repo.delete_line(ctx.user_id, line_id):
            raise CartLineNotFound(f"Cart line {line_id} not found.")
        logger.info("cart.line_removed", user_id=ctx.user_id, line_id=str(line_id))

    def list_lines(self, ctx: RequestContext) -> List[CartLine]:
        return self._cart_repo.list_for_user(ctx.user_id)

    def clear(self, ctx: RequestContext) -> int:
        removed = self._cart_repo.clear(ctx.user_id)
        logger.info("cart.cleared", user_id=ctx.user_id, removed=removed)
        return removed
