from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.tourcms.models import Base, TimestampMixin


class ProductType(TimestampMixin, Base):
    __tablename__ = "product_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    # Upper-case code stored on Product.type, e.g. "HAJI", "UMROH"
    slug: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Product(TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("idx_products_type", "type"),
        Index("idx_products_active_featured", "is_active", "is_featured"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    discount_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    duration: Mapped[str] = mapped_column(String(100), nullable=False)  # e.g. "12 Hari"
    type: Mapped[str] = mapped_column(String(64), nullable=False)  # ProductType.slug
    departure: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    quota: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quota_filled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    itinerary: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # [{day, title, description}]
    images: Mapped[str] = mapped_column(Text, nullable=False, default="")  # comma-separated URLs

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
