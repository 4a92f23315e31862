"""
Pydantic models for request/response validation.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Payment Confirmation ────────────────────────────────────────────

class ConfirmPaymentRequest(ApiBase):
    """Buyer returning from PayPay asks the backend to confirm the order."""
    order_id: Optional[str] = Field(None, alias="orderId")
    token: Optional[str] = Field(None, description="Order return token")
    merchant_payment_id: Optional[str] = Field(
        None,
        alias="merchantPaymentId",
        description="Optional; must match the order's stored value when sent",
    )

    @field_validator("order_id", "token", "merchant_payment_id", mode="before")
    @classmethod
    def _scalar_to_str(cls, v: Any) -> Any:
        # Numeric ids from JS clients are accepted as their string form.
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return v


class ConfirmPaymentResponse(ApiBase):
    """
    Confirmation outcome. Always delivered with HTTP 200.

    `status` is one of the fixed codes (ALREADY_PAID, COMPLETED, ...) or the
    raw PayPay status when the payment is still open or was declined.
    `retryable` tells the client whether polling again can change the answer.
    """
    ok: bool
    status: str
    retryable: bool
    paid: bool = False
    order_id: Optional[str] = Field(None, alias="orderId")
    gateway_status: Optional[str] = Field(None, alias="gatewayStatus")
    retry_after: Optional[int] = Field(None, alias="retryAfter")


# ── Order Status ────────────────────────────────────────────────────

class OrderStatusData(ApiBase):
    order_id: str = Field(..., alias="orderId")
    status: str
    paid_at: Optional[datetime] = Field(None, alias="paidAt")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    total: int
