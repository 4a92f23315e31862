"""
Payment Routes — PayPay return-flow endpoints

Endpoints:
    POST /api/confirm-paypay-payment  — confirm an order after the PayPay redirect
    GET  /api/order-status            — token-gated order status lookup

The confirmation endpoint always answers 200; the business outcome is in
the body's `status`, and `retryable` says whether polling again can help.
"""
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import get_gateway_client
from domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from domain.responses import StandardErrorResponse, success_response
from models import ConfirmPaymentRequest, ConfirmPaymentResponse, OrderStatusData
from services import confirmation_service, order_store
from services.gateway_client import GatewayClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["payments"])


async def _read_confirm_request(request: Request) -> ConfirmPaymentRequest:
    """Parse the body leniently: anything unusable counts as missing fields."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        return ConfirmPaymentRequest()
    try:
        return ConfirmPaymentRequest.model_validate(payload)
    except PydanticValidationError:
        return ConfirmPaymentRequest()


@router.post("/confirm-paypay-payment", response_model=ConfirmPaymentResponse)
async def confirm_paypay_payment(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    """
    Confirm a PayPay payment for an order.

    Body: { orderId, token, merchantPaymentId? }
    """
    req = await _read_confirm_request(request)
    result = await confirmation_service.confirm_payment(
        db,
        gateway,
        order_id=req.order_id,
        token=req.token,
        merchant_payment_id=req.merchant_payment_id,
    )
    return ConfirmPaymentResponse(
        ok=result.ok,
        status=result.status,
        retryable=result.retryable,
        paid=result.paid,
        order_id=result.order_id,
        gateway_status=result.gateway_status,
        retry_after=result.retry_after_seconds,
    )


@router.get(
    "/order-status",
    responses={
        400: {"model": StandardErrorResponse},
        403: {"model": StandardErrorResponse},
        404: {"model": StandardErrorResponse},
    },
)
async def get_order_status(
    order_id: str = Query("", alias="orderId"),
    token: str = Query(""),
    db: AsyncSession = Depends(get_db),
):
    """Order status for the holder of the order's return token."""
    if not order_id or not token:
        raise ValidationError("orderId and token are required", details={"need": ["orderId", "token"]})

    order = await order_store.find_order(db, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    if not order_store.verify_return_token(order, token):
        raise PermissionDeniedError("Invalid order token")

    data = OrderStatusData(
        order_id=order.id,
        status=order.status,
        paid_at=order.paid_at,
        payment_method=order.payment_method,
        total=order.total or 0,
    )
    return success_response(data.model_dump(mode="json", by_alias=True))
