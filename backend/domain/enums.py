"""
Domain enums for orders, gateway statuses, and confirmation outcomes.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class GatewayPaymentStatus(str, Enum):
    """
    Canonical payment status derived from a PayPay response body.

    UNKNOWN is not a negative outcome: the body could not be classified
    and the caller may ask again later.
    """
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"
    UNKNOWN = "unknown"


class ConfirmationStatus(str, Enum):
    """Fixed outcome codes of the confirmation endpoint."""
    ALREADY_PAID = "ALREADY_PAID"
    COMPLETED = "COMPLETED"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    BAD_TOKEN = "BAD_TOKEN"
    NO_MPID = "NO_MPID"
    BAD_MERCHANT_PAYMENT_ID = "BAD_MERCHANT_PAYMENT_ID"
    ORDER_FAILED = "ORDER_FAILED"
    MISSING = "MISSING"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        """True when polling again cannot change the answer."""
        return self is not ConfirmationStatus.ERROR
