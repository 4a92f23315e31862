"""
Custom exception classes for PayPay gateway queries.

These describe the query itself failing, not the payment failing. A
declined or cancelled payment is a normalized status, never an exception.
"""


class GatewayError(Exception):
    """Base class for gateway query failures."""

    def __init__(self, message: str, merchant_payment_id: str | None = None):
        super().__init__(message)
        self.merchant_payment_id = merchant_payment_id


class GatewayUnavailable(GatewayError):
    """Raised on transport/protocol errors and timeouts talking to PayPay."""
    pass


class GatewayMalformedResponse(GatewayError):
    """Raised when PayPay answered but no response body could be extracted."""
    pass
