"""Payment confirmation exceptions.

``PaymentDenied`` and ``PaymentTimeout`` are final answers for an order;
``PaymentGatewayError`` means the gateway could not be asked and the
confirmation may be retried.
"""

from __future__ import annotations


class PaymentError(Exception):
    """Base for payment confirmation failures."""


class PaymentDenied(PaymentError):
    """The gateway declined the payment."""


class PaymentTimeout(PaymentError):
    """The gateway did not answer within the confirmation timeout."""


class PaymentGatewayError(PaymentError):
    """Transport or protocol failure talking to the gateway."""
