# distribution_hub/db_models.py
"""
SQLAlchemy ORM Models for Distribution Hub.

Three tables: customers, addresses (owned by customers) and products.
"""
from __future__ import annotations
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Optional, List
import enum
import uuid

from sqlalchemy import (
    String, Integer, Boolean, Text, DateTime, Time, Float,
    Numeric, ForeignKey, Index, CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from distribution_hub.database import Base

# ============================================================================
# ENUMS (matching PostgreSQL ENUMs)
# ============================================================================

class AccountStatus(str, enum.Enum):
    active = "active"
    credit_hold = "credit_hold"
    closed = "closed"


class UnitOfMeasure(str, enum.Enum):
    cylinder = "cylinder"
    kg = "kg"


class ProductStatus(str, enum.Enum):
    active = "active"
    end_of_sale = "end_of_sale"
    obsolete = "obsolete"


# Statuses eligible for default listings and for uniqueness checks
LIVE_PRODUCT_STATUSES = (ProductStatus.active, ProductStatus.end_of_sale)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )


# ============================================================================
# 1. CUSTOMERS
# ============================================================================

class Customer(TimestampMixin, Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    external_id: Mapped[Optional[str]] = mapped_column(String(100))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[Optional[str]] = mapped_column(String(50))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    account_status: Mapped[AccountStatus] = mapped_column(
        SQLEnum(AccountStatus, name="account_status"),
        default=AccountStatus.active,
        nullable=False
    )
    credit_terms_days: Mapped[int] = mapped_column(Integer, default=30, nullable=False)

    # Relationships (never lazy-loaded from async code; deletes cascade in the database)
    addresses: Mapped[List["Address"]] = relationship(
        back_populates="customer",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("credit_terms_days >= 0", name="ck_customers_credit_terms"),
        Index("idx_customers_created_at", "created_at"),
    )


# ============================================================================
# 2. ADDRESSES
# ============================================================================

class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[Optional[str]] = mapped_column(String(100))
    line1: Mapped[str] = mapped_column(String(255), nullable=False)
    line2: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    country: Mapped[str] = mapped_column(String(2), default="US", nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    delivery_window_start: Mapped[Optional[time]] = mapped_column(Time)
    delivery_window_end: Mapped[Optional[time]] = mapped_column(Time)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    instructions: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="addresses")

    __table_args__ = (
        Index("idx_addresses_customer", "customer_id"),
        Index("idx_addresses_customer_primary", "customer_id",
              postgresql_where="is_primary = true"),
    )


# ============================================================================
# 3. PRODUCTS
# ============================================================================

class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # unique among non-obsolete rows only, enforced by the lifecycle service
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    unit_of_measure: Mapped[UnitOfMeasure] = mapped_column(
        SQLEnum(UnitOfMeasure, name="unit_of_measure"),
        nullable=False
    )
    status: Mapped[ProductStatus] = mapped_column(
        SQLEnum(ProductStatus, name="product_status"),
        default=ProductStatus.active,
        nullable=False
    )
    capacity_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 3))
    tare_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 3))
    valve_type: Mapped[Optional[str]] = mapped_column(String(50))
    barcode_uid: Mapped[Optional[str]] = mapped_column(String(100))

    __table_args__ = (
        Index("idx_products_sku", "sku"),
        Index("idx_products_barcode", "barcode_uid", postgresql_where="barcode_uid IS NOT NULL"),
        Index("idx_products_status", "status"),
        CheckConstraint("capacity_kg IS NULL OR (capacity_kg > 0 AND capacity_kg <= 500)",
                        name="ck_products_capacity"),
        CheckConstraint("tare_weight_kg IS NULL OR (tare_weight_kg > 0 AND tare_weight_kg <= 500)",
                        name="ck_products_tare"),
    )
