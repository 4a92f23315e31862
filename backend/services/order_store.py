"""
Order store — the reads and the single conditional write the payment
confirmation flow performs on the orders table.

The database is the only serialization point: mark_paid() is a
compare-and-set on status, so concurrent confirmers of one order (on one
process or many) cannot both win.
"""
import hmac
import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order
from domain.enums import OrderStatus

logger = logging.getLogger(__name__)


async def find_order(db: AsyncSession, order_id: str) -> Order | None:
    # populate_existing: a long-lived session must not serve a stale status
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def refresh_status(db: AsyncSession, order_id: str) -> str | None:
    """Re-read the current status straight from the database."""
    res = await db.execute(select(Order.status).where(Order.id == order_id))
    return res.scalar_one_or_none()


def verify_return_token(order: Order, token: str) -> bool:
    """Constant-time token check. Orders without a token never verify."""
    stored = order.return_token or ""
    if not stored or not token:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), str(token).encode("utf-8"))


async def mark_paid(db: AsyncSession, order_id: str, paid_at: datetime | None = None) -> bool:
    """
    Transition pending → paid and commit.

    Returns True only for the caller whose UPDATE changed the row. The
    commit happens before returning, so anything keyed off a True result
    sees a durable paid order.
    """
    paid_at = paid_at or datetime.utcnow()
    res = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == OrderStatus.PENDING.value)
        .values(status=OrderStatus.PAID.value, paid_at=paid_at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    won = res.rowcount == 1
    if won:
        logger.info(f"Order {order_id} marked paid at {paid_at.isoformat()}")
    else:
        logger.info(f"Order {order_id} was no longer pending; paid transition skipped")
    return won
