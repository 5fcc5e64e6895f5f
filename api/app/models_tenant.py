"""Storefront database models.

Menu items keep their variants and addon groups inline as JSON so a single
row is a complete catalog snapshot. Orders store their pricing breakdown as a
JSON copy of the summary the customer agreed to; nothing is recomputed from
live menu or coupon rows.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class MenuItem(Base):
    """Menu items with inline variants and addon groups."""

    __tablename__ = "menu_items"

    id = Column(String, primary_key=True)
    store_id = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    variants = Column(JSON, nullable=False, default=list)
    addon_groups = Column(JSON, nullable=False, default=list)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class DeliveryZone(Base):
    """Delivery areas of a store."""

    __tablename__ = "delivery_zones"

    id = Column(String, primary_key=True)
    store_id = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False, default="")
    fee = Column(Numeric(10, 2), nullable=False, default=0)
    minimum_order = Column(Numeric(10, 2), nullable=False, default=0)


class Coupon(Base):
    """Discount coupons."""

    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    discount_type = Column(String, nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    min_subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    max_discount = Column(Numeric(10, 2), nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    max_uses = Column(Integer, nullable=True)
    per_user_limit = Column(Integer, nullable=True)
    uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    applicable_stores = Column(JSON, nullable=False, default=list)


class CouponRedemption(Base):
    """One row per coupon use on a placed order."""

    __tablename__ = "coupon_redemptions"
    __table_args__ = (UniqueConstraint("coupon_id", "order_no"),)

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=False)
    user_id = Column(String, nullable=True, index=True)
    order_no = Column(String, nullable=False)
    redeemed_at = Column(DateTime(timezone=True), server_default=func.now())


class Order(Base):
    """Placed orders with their frozen pricing."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_no = Column(String, unique=True, nullable=False)
    store_id = Column(String, nullable=True, index=True)
    user_id = Column(String, nullable=True, index=True)
    status = Column(String, nullable=False, default="pending")
    delivery_method = Column(String, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    pricing = Column(JSON, nullable=False)
    delivery = Column(JSON, nullable=False)
    summary_hash = Column(String, nullable=False)
    idempotency_key = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
