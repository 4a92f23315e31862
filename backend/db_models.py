"""
SQLAlchemy ORM models for the storefront backend.

Tables:
    orders — purchase records created at checkout and confirmed via PayPay

Only the columns the payment confirmation flow reads or writes are mapped;
the checkout step owns the rest of the row.
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Index

from database import Base
from domain.enums import OrderStatus


def _new_order_id() -> str:
    return uuid.uuid4().hex


class Order(Base):
    """A storefront order awaiting (or past) PayPay payment."""
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, default=_new_order_id)
    status = Column(
        String(20), nullable=False, default=OrderStatus.PENDING.value, index=True
    )  # pending | paid | failed
    merchant_payment_id = Column(String(64), nullable=True, unique=True)  # PayPay merchantPaymentId
    return_token = Column(String(128), nullable=True)  # secret handed to the buyer's return URL
    payment_method = Column(String(30), nullable=True)
    total = Column(Integer, nullable=False, default=0)  # JPY
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    paid_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_orders_status_created", "status", "created_at"),
    )
