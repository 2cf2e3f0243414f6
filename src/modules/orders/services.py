"""Order service layer (Use Cases).

Checkout, cancellation, fulfilment status changes and payment outcome for
the Order aggregate.  Every write is atomic; the service defines the
unit-of-work boundary and the stock reservation shares it.

Rules enforced:
- Checkout with an empty cart fails before anything is written.
- Stock for every cart line is reserved (all-or-nothing) before the order
  row exists; order items copy the cart line snapshots (price, title,
  summary, image) unchanged.
- Cash-on-delivery orders start ``RECEIVED``; online orders start
  ``PENDING`` until the payment adapter answers.
- Cancellation and payment failure release the reservation before the
  operation returns.  Release is idempotent.
- Only administrators move orders along the fulfilment pipeline.
- A caller that neither owns an order nor is an administrator cannot tell
  it apart from a missing one.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.core.context import RequestContext
from modules.inventory.dtos import StockRequestDTO
from modules.orders.constants import OrderStatus, PaymentMode
from modules.orders.dtos import CashOnDelivery, OnlinePayment
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderPaymentConfirmed,
    OrderPaymentFailed,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    AdminRequired,
    EmptyCart,
    IdempotencyKeyConflict,
    InvalidTransition,
    NotCancellable,
    OrderNotFound,
)
from modules.payments.exceptions import PaymentDenied, PaymentTimeout

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.inventory.services import StockReservationService
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.gateways import IPaymentGateway

logger = structlog.get_logger(__name__)


def schedule_payment_confirmation(order_id: str) -> None:
    """Queue the background confirmation of an online payment."""
    from modules.orders.tasks import confirm_order_payment

    confirm_order_payment.delay(order_id)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection.
    ``payment_gateway`` is resolved from settings on first use when not
    supplied.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        reservation_service: StockReservationService,
        payment_gateway: Optional[IPaymentGateway] = None,
        payment_scheduler: Callable[[str], None] = schedule_payment_confirmation,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._reservations = reservation_service
        self._gateway = payment_gateway
        self._schedule_payment = payment_scheduler

    @property
    def payment_gateway(self) -> IPaymentGateway:
        if self._gateway is None:
            from modules.payments.gateways import get_payment_gateway

            self._gateway = get_payment_gateway()
        return self._gateway

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, ctx: RequestContext, dto: CreateOrderDTO) -> Order:
        """Turn the caller's cart into an order.

        Raises:
            EmptyCart: the cart has no lines.
            InsufficientStock: a line cannot be covered; nothing is written.
            IdempotencyKeyConflict: the key belongs to another caller.
        """
        log = logger.bind(user_id=ctx.user_id)

        if dto.idempotency_key:
            existing = self._replay(ctx, dto.idempotency_key)
            if existing:
                return existing

        lines = self._cart_repo.list_for_user(ctx.user_id)
        if not lines:
            log.info("order.empty_cart")
            raise EmptyCart("The cart is empty.")

        log.info("order.creation_started", line_count=len(lines))

        try:
            # A lost race on the idempotency key rolls back the reservation too.
            with transaction.atomic():
                return self._place(ctx, dto, lines)
        except IntegrityError:
            winner = (
                self._replay(ctx, dto.idempotency_key, lock=True)
                if dto.idempotency_key
                else None
            )
            if winner is None:
                raise
            return winner

    def _replay(self, ctx: RequestContext, key: str, lock: bool = False) -> Order | None:
        """The order already placed under *key*, if any.

        Raises:
            IdempotencyKeyConflict: the key belongs to another caller.
        """
        existing = self._order_repo.get_by_idempotency_key(key, for_update=lock)
        if not existing:
            return None
        if not existing.is_owned_by(ctx.user_id):
            raise IdempotencyKeyConflict("Idempotency key already used for another order.")
        logger.info(
            "order.idempotency_hit",
            user_id=ctx.user_id,
            order_id=str(existing.id),
            key=key,
        )
        return existing

    def _place(self, ctx: RequestContext, dto: CreateOrderDTO, lines: list) -> Order:
        log = logger.bind(user_id=ctx.user_id)

        reservation = self._reservations.reserve_and_decrement(
            [
                StockRequestDTO(
                    product_id=line.product_id, size=line.size, quantity=line.quantity
                )
                for line in lines
            ],
            user_id=ctx.user_id,
        )

        # Lines are copied as the shopper saw them in the cart.
        items = [
            {
                "product_id": line.product_id,
                "size": line.size,
                "title": line.title,
                "summary": line.summary,
                "image": line.image,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
            }
            for line in lines
        ]

        payment = dto.payment
        if isinstance(payment, CashOnDelivery):
            initial_status = OrderStatus.RECEIVED
            payment_mode = PaymentMode.CASH_ON_DELIVERY
            payment_id = ""
        elif isinstance(payment, OnlinePayment):
            initial_status = OrderStatus.PENDING
            payment_mode = PaymentMode.ONLINE
            payment_id = payment.gateway_reference
        else:
            raise TypeError(f"Unsupported payment {type(payment).__name__}.")

        order = self._order_repo.create(
            {
                "user_id": ctx.user_id,
                "status": initial_status,
                "payment_mode": payment_mode,
                "payment_id": payment_id,
                "address": dto.address,
                "notes": dto.notes,
                "reservation_id": reservation.id,
                "idempotency_key": dto.idempotency_key,
                "items": items,
            }
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                user_id=ctx.user_id,
                status=initial_status,
                payment_mode=payment_mode,
                total_amount=str(order.total_amount),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=initial_status,
            notes="Order placed",
            user_id=ctx.user_id,
        )

        self._cart_repo.clear(ctx.user_id)

        if payment_mode == PaymentMode.ONLINE:
            order_id = str(order.id)
            transaction.on_commit(lambda: self._schedule_payment(order_id))

        log.info(
            "order.created",
            order_id=str(order.id),
            status=initial_status,
            payment_mode=payment_mode,
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def cancel_order(
        self, ctx: RequestContext, order_id: str, notes: str = ""
    ) -> Order:
        """Cancel an order and give its stock back.

        Raises:
            OrderNotFound: unknown order, or not visible to the caller.
            NotCancellable: shipped, delivered, cancelled or failed.
        """
        order = self._lock_visible(ctx, order_id)
        return self._cancel(ctx, order, notes)

    @transaction.atomic
    def update_status(
        self,
        ctx: RequestContext,
        order_id: str,
        new_status: str,
        notes: str = "",
    ) -> Order:
        """Administrator move along the fulfilment pipeline.

        ``CANCELLED`` is routed through cancellation so stock is released.

        Raises:
            AdminRequired: the caller is not an administrator.
            OrderNotFound: unknown order.
            InvalidTransition: *new_status* is not reachable.
            NotCancellable: cancellation requested for a shipped or
                terminal order.
        """
        if not ctx.is_admin:
            raise AdminRequired("Only administrators can change order status.")

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        if new_status == OrderStatus.CANCELLED:
            return self._cancel(ctx, order, notes)

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
        )
        if not order.admin_can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidTransition(order.status, new_status)

        self._transition(order, new_status, notes, ctx)
        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id)) or order

    def confirm_payment(self, order_id: str, timeout: Optional[float] = None) -> Order:
        """Ask the payment adapter about a ``PENDING`` order and apply the answer.

        The gateway is called outside any transaction so no row lock is held
        while waiting.  A decline, a timeout or a negative answer fails the
        order and releases its stock.

        Raises:
            OrderNotFound: unknown order.
            InvalidTransition: the order is not ``PENDING``.
            PaymentGatewayError: the gateway could not be reached; the order
                stays ``PENDING``.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.status != OrderStatus.PENDING:
            raise InvalidTransition(order.status, OrderStatus.RECEIVED)

        log = logger.bind(order_id=str(order_id), payment_id=order.payment_id)
        log.info("payment.confirmation_requested", timeout=timeout)

        reason = ""
        try:
            confirmed = self.payment_gateway.confirm(
                str(order.id), order.payment_id, timeout=timeout
            )
            if not confirmed:
                reason = "Payment not confirmed."
        except PaymentDenied as exc:
            confirmed = False
            reason = str(exc) or "Payment declined."
        except PaymentTimeout as exc:
            confirmed = False
            reason = str(exc) or "Payment confirmation timed out."

        return self._apply_payment_result(str(order.id), confirmed, reason)

    def expire_pending_orders(self, older_than: Optional[timedelta] = None) -> int:
        """Fail ``PENDING`` orders whose payment never arrived.

        Returns the number of orders moved to ``FAILED``.
        """
        if older_than is None:
            older_than = timedelta(minutes=settings.PENDING_ORDER_EXPIRY_MINUTES)
        cutoff = timezone.now() - older_than

        expired = 0
        for order_id in self._order_repo.list_pending_before(cutoff):
            if self._expire(str(order_id)):
                expired += 1

        logger.info(
            "order.pending_expired",
            expired=expired,
            older_than_minutes=older_than.total_seconds() / 60,
        )
        return expired

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, ctx: RequestContext, order_id: str) -> Order:
        """Raises:
        OrderNotFound: unknown order, or not visible to the caller.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order or not self._can_see(ctx, order):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(
        self, ctx: RequestContext, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet:
        """Orders visible to the caller: all for administrators, own otherwise."""
        scoped = dict(filters or {})
        if not ctx.is_admin:
            scoped["user_id"] = ctx.user_id
        return self._order_repo.list(scoped)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _can_see(ctx: RequestContext, order: Order) -> bool:
        return ctx.is_admin or order.is_owned_by(ctx.user_id)

    def _lock_visible(self, ctx: RequestContext, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order or not self._can_see(ctx, order):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _cancel(self, ctx: RequestContext, order: Order, notes: str) -> Order:
        log = logger.bind(order_id=str(order.id), current_status=order.status)
        if not order.is_cancellable:
            log.warning("order.cancel_not_allowed")
            raise NotCancellable(f"Cannot cancel order in status {order.status}.")

        old_status = order.status
        self._release_stock(order, reason="cancelled")
        order.add_domain_event(
            OrderCancelled(aggregate_id=order.id, old_status=old_status, reason=notes)
        )
        self._transition(
            order, OrderStatus.CANCELLED, notes or "Order cancelled", ctx
        )
        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def _apply_payment_result(self, order_id: str, confirmed: bool, reason: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order_id, payment_id=order.payment_id)
        if order.status != OrderStatus.PENDING:
            # Cancelled or expired while the gateway was being asked.
            log.warning("payment.result_ignored", status=order.status)
            return self._order_repo.get_by_id(order_id) or order

        if confirmed:
            order.add_domain_event(
                OrderPaymentConfirmed(aggregate_id=order.id, payment_id=order.payment_id)
            )
            self._transition(
                order, OrderStatus.RECEIVED, "Payment confirmed", RequestContext.system()
            )
            log.info("payment.order_received")
        else:
            self._fail(order, reason)
            log.info("payment.order_failed", reason=reason)
        return self._order_repo.get_by_id(order_id) or order

    @transaction.atomic
    def _expire(self, order_id: str) -> bool:
        order = self._order_repo.get_for_update(order_id)
        if not order or order.status != OrderStatus.PENDING:
            return False
        self._fail(order, "Payment confirmation timed out.")
        return True

    def _fail(self, order: Order, reason: str) -> None:
        self._release_stock(order, reason="payment_failed")
        order.add_domain_event(
            OrderPaymentFailed(
                aggregate_id=order.id, payment_id=order.payment_id, reason=reason
            )
        )
        self._transition(order, OrderStatus.FAILED, reason, RequestContext.system())

    def _release_stock(self, order: Order, reason: str) -> None:
        if order.reservation_id is None:
            return
        released = self._reservations.release(str(order.reservation_id), reason=reason)
        logger.info(
            "order.stock_released",
            order_id=str(order.id),
            reservation_id=str(order.reservation_id),
            released=released,
        )

    def _transition(
        self, order: Order, new_status: str, notes: str, actor: RequestContext
    ) -> None:
        old_status = order.status
        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=new_status
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=notes,
            old_status=old_status,
            user_id=actor.user_id,
        )


def build_order_service(
    payment_gateway: Optional[IPaymentGateway] = None,
) -> OrderService:
    """``OrderService`` wired to the Django repositories."""
    from modules.cart.repositories.django_repository import CartDjangoRepository
    from modules.catalog.repositories.django_repository import ProductDjangoRepository
    from modules.inventory.repositories.django_repository import (
        ReservationDjangoRepository,
    )
    from modules.inventory.services import StockReservationService
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        reservation_service=StockReservationService(
            stock_store=ProductDjangoRepository(),
            reservation_repository=ReservationDjangoRepository(),
        ),
        payment_gateway=payment_gateway,
    )
