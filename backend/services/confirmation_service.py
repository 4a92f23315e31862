"""
Payment confirmation service — the request-level state machine behind
POST /api/confirm-paypay-payment.

Flow for one request:

    missing fields        → MISSING
    unknown order         → ORDER_NOT_FOUND
    token mismatch        → BAD_TOKEN            (checked before anything else
                                                  about the order is revealed)
    already paid          → ALREADY_PAID         (no gateway call, no write)
    already failed        → ORDER_FAILED
    no merchant payment id→ NO_MPID
    client mpid mismatch  → BAD_MERCHANT_PAYMENT_ID
    gateway query failed  → ERROR (retryable, no write)
    gateway COMPLETED     → compare-and-set pending → paid
                              won  → COMPLETED
                              lost → whatever the order now is
    gateway pending/unknown → raw PayPay status (retryable, no write)
    gateway failed        → raw PayPay status (terminal, no write)

Every branch returns a ConfirmationResult; nothing raises to the caller.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings, settings
from domain.constants import UNKNOWN_GATEWAY_STATUS
from domain.enums import ConfirmationStatus, GatewayPaymentStatus, OrderStatus
from exceptions import GatewayError
from services import order_store
from services.gateway_client import GatewayClient
from services.status_normalizer import NormalizedStatus, normalize_payment_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationPolicy:
    gateway_attempts: int = 1
    retry_after_seconds: int = 3

    @classmethod
    def from_settings(cls, s: Settings) -> "ConfirmationPolicy":
        return cls(
            gateway_attempts=max(1, s.gateway_attempts),
            retry_after_seconds=s.confirm_retry_after_seconds,
        )


@dataclass(frozen=True)
class ConfirmationResult:
    ok: bool
    status: str
    retryable: bool
    paid: bool = False
    order_id: str | None = None
    gateway_status: str | None = None
    retry_after_seconds: int | None = None


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class _Outcome:
    """Builds results bound to one request's order id and policy."""

    def __init__(self, order_id: str | None, policy: ConfirmationPolicy):
        self.order_id = order_id
        self.policy = policy

    def fixed(self, status: ConfirmationStatus, *, ok: bool = False, paid: bool = False,
              gateway_status: str | None = None) -> ConfirmationResult:
        retryable = not status.is_terminal
        return ConfirmationResult(
            ok=ok,
            status=status.value,
            retryable=retryable,
            paid=paid,
            order_id=self.order_id,
            gateway_status=gateway_status,
            retry_after_seconds=self.policy.retry_after_seconds if retryable else None,
        )

    def gateway(self, raw_status: str, *, ok: bool, retryable: bool) -> ConfirmationResult:
        return ConfirmationResult(
            ok=ok,
            status=raw_status,
            retryable=retryable,
            order_id=self.order_id,
            gateway_status=raw_status,
            retry_after_seconds=self.policy.retry_after_seconds if retryable else None,
        )

    def settled(self, order_status: Any, gateway_status: str | None = None) -> ConfirmationResult | None:
        """Result for an order that is no longer pending, or None if it is."""
        try:
            current = OrderStatus(_clean(order_status).lower())
        except ValueError:
            logger.error(f"Order {self.order_id} has unrecognized status {order_status!r}")
            return self.fixed(ConfirmationStatus.ERROR)
        if not current.is_terminal:
            return None
        if current is OrderStatus.PAID:
            return self.fixed(ConfirmationStatus.ALREADY_PAID, ok=True, paid=True,
                              gateway_status=gateway_status)
        return self.fixed(ConfirmationStatus.ORDER_FAILED)


async def _query_gateway(
    gateway: GatewayClient, merchant_payment_id: str, policy: ConfirmationPolicy
) -> NormalizedStatus | None:
    """Query PayPay up to policy.gateway_attempts times; None if every query failed."""
    for attempt in range(1, policy.gateway_attempts + 1):
        try:
            body = await gateway.query_status(merchant_payment_id)
        except GatewayError as e:
            logger.warning(
                f"Gateway query {attempt}/{policy.gateway_attempts} for "
                f"{merchant_payment_id} failed: {type(e).__name__}: {e}"
            )
            continue
        return normalize_payment_status(body)
    return None


async def _confirm(
    db: AsyncSession,
    gateway: GatewayClient,
    out: _Outcome,
    *,
    order_id: str,
    token: str,
    merchant_payment_id: str,
    policy: ConfirmationPolicy,
) -> ConfirmationResult:
    order = await order_store.find_order(db, order_id)
    if order is None:
        return out.fixed(ConfirmationStatus.ORDER_NOT_FOUND)

    if not order_store.verify_return_token(order, token):
        logger.warning(f"Confirmation for order {order_id} rejected: bad return token")
        return out.fixed(ConfirmationStatus.BAD_TOKEN)

    settled = out.settled(order.status, gateway_status="COMPLETED")
    if settled is not None:
        return settled

    stored_mpid = _clean(order.merchant_payment_id)
    if not stored_mpid:
        return out.fixed(ConfirmationStatus.NO_MPID)
    if merchant_payment_id and merchant_payment_id != stored_mpid:
        logger.warning(f"Confirmation for order {order_id} rejected: merchantPaymentId mismatch")
        return out.fixed(ConfirmationStatus.BAD_MERCHANT_PAYMENT_ID)

    normalized = await _query_gateway(gateway, stored_mpid, policy)
    if normalized is None:
        return out.fixed(ConfirmationStatus.ERROR)

    if normalized.status is GatewayPaymentStatus.COMPLETED:
        if await order_store.mark_paid(db, order_id, datetime.utcnow()):
            return out.fixed(ConfirmationStatus.COMPLETED, ok=True, paid=True,
                             gateway_status=normalized.raw_status)
        # Another request won the compare-and-set.
        current = await order_store.refresh_status(db, order_id)
        return out.settled(current, gateway_status=normalized.raw_status) or out.fixed(
            ConfirmationStatus.ERROR
        )

    if normalized.gateway_error:
        logger.warning(f"PayPay rejected status query for {stored_mpid}: {normalized.result_info}")
        return out.fixed(ConfirmationStatus.ERROR)

    raw = normalized.raw_status or UNKNOWN_GATEWAY_STATUS
    if normalized.status is GatewayPaymentStatus.FAILED:
        logger.info(f"Order {order_id}: PayPay reports payment {raw}; order left pending")
        return out.gateway(raw, ok=False, retryable=False)
    return out.gateway(raw, ok=True, retryable=True)


async def confirm_payment(
    db: AsyncSession,
    gateway: GatewayClient,
    *,
    order_id: Any,
    token: Any,
    merchant_payment_id: Any = None,
    policy: ConfirmationPolicy | None = None,
) -> ConfirmationResult:
    """
    Confirm a PayPay payment for an order on behalf of the buyer.

    Holds no lock and keeps no state between calls; the conditional write in
    order_store.mark_paid() is what makes concurrent calls safe.
    """
    policy = policy or ConfirmationPolicy.from_settings(settings)
    order_id = _clean(order_id)
    out = _Outcome(order_id or None, policy)

    if not order_id or not _clean(token):
        return out.fixed(ConfirmationStatus.MISSING)
    # compared as sent, never stripped
    token = str(token)

    try:
        return await _confirm(
            db,
            gateway,
            out,
            order_id=order_id,
            token=token,
            merchant_payment_id=_clean(merchant_payment_id),
            policy=policy,
        )
    except Exception:
        logger.error(f"Payment confirmation for order {order_id} failed", exc_info=True)
        try:
            await db.rollback()
        except Exception as e:
            logger.error(f"Rollback after failed confirmation raised: {e}")
        return out.fixed(ConfirmationStatus.ERROR)
