"""Payment confirmation adapter.

The gateway protocol itself is external; this module only asks it whether
a payment reference was captured for an order::

    POST {PAYMENT_GATEWAY_URL}
    {"order_id": "...", "gateway_reference": "..."}

    200 {"status": "confirmed"}   -> True
    200 {"status": "declined"}    -> PaymentDenied
    402                           -> PaymentDenied
    timeout                       -> PaymentTimeout
    anything else                 -> PaymentGatewayError
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx
import structlog
from django.conf import settings

from modules.payments.exceptions import (
    PaymentDenied,
    PaymentGatewayError,
    PaymentTimeout,
)

logger = structlog.get_logger(__name__)

CONFIRMED = "confirmed"
DECLINED = "declined"


class IPaymentGateway(ABC):
    @abstractmethod
    def confirm(
        self,
        order_id: str,
        gateway_reference: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """Ask the gateway whether the payment went through.

        Raises:
            PaymentDenied: the gateway declined.
            PaymentTimeout: no answer within *timeout* seconds.
            PaymentGatewayError: any other failure.
        """


class HttpPaymentGateway(IPaymentGateway):
    """Synchronous ``httpx`` client for the confirmation endpoint."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def confirm(
        self,
        order_id: str,
        gateway_reference: str,
        timeout: Optional[float] = None,
    ) -> bool:
        log = logger.bind(order_id=str(order_id), gateway_reference=gateway_reference)
        wait = self.timeout if timeout is None else timeout

        with httpx.Client(transport=self._transport, timeout=wait) as client:
            try:
                response = client.post(
                    self.url,
                    headers=self._headers(),
                    json={
                        "order_id": str(order_id),
                        "gateway_reference": gateway_reference,
                    },
                )
            except httpx.TimeoutException as e:
                log.warning("payment.timeout", timeout=wait)
                raise PaymentTimeout(
                    f"No confirmation for order {order_id} within {wait}s."
                ) from e
            except httpx.HTTPError as e:
                log.error("payment.gateway_unreachable", error=str(e))
                raise PaymentGatewayError(str(e)) from e

        if response.status_code == httpx.codes.PAYMENT_REQUIRED:
            log.info("payment.denied", status_code=response.status_code)
            raise PaymentDenied(f"Payment for order {order_id} was declined.")

        try:
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            log.error("payment.gateway_error", status_code=response.status_code)
            raise PaymentGatewayError(
                f"Gateway answered {response.status_code}."
            ) from e
        except ValueError as e:
            log.error("payment.gateway_bad_response")
            raise PaymentGatewayError("Gateway answered with invalid JSON.") from e

        outcome = str(body.get("status", "")).lower() if isinstance(body, dict) else ""
        if outcome == CONFIRMED:
            log.info("payment.confirmed")
            return True
        if outcome == DECLINED:
            log.info("payment.denied", reason=body.get("reason", ""))
            raise PaymentDenied(
                body.get("reason") or f"Payment for order {order_id} was declined."
            )

        log.error("payment.gateway_unknown_status", status=outcome)
        raise PaymentGatewayError(f"Unknown payment status '{outcome}'.")


def get_payment_gateway() -> IPaymentGateway:
    """Gateway configured from settings."""
    return HttpPaymentGateway(
        url=settings.PAYMENT_GATEWAY_URL,
        api_key=settings.PAYMENT_GATEWAY_API_KEY,
        timeout=settings.PAYMENT_CONFIRMATION_TIMEOUT_SECONDS,
    )
