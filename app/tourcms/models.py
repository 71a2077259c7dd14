from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="admin")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class AuditEvent(Base):
    """
    Append-only trail of admin changes (who changed which record, from where).
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "product.create"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Product"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.tourcms.modules.catalog.models import Product, ProductType  # noqa: E402,F401
from app.tourcms.modules.blog.models import Blog  # noqa: E402,F401
from app.tourcms.modules.gallery.models import Gallery  # noqa: E402,F401
from app.tourcms.modules.homepage.models import (  # noqa: E402,F401
    HeroButton,
    HeroSection,
    HeroStat,
    Testimonial,
    WhyChooseUs,
)
from app.tourcms.modules.partners.models import Partner, PartnerSection  # noqa: E402,F401
from app.tourcms.modules.social_media.models import SocialMedia  # noqa: E402,F401
from app.tourcms.modules.site_settings.models import Setting  # noqa: E402,F401
from app.tourcms.modules.media.models import Media  # noqa: E402,F401
from app.tourcms.modules.visitor_stats.models import VisitorStat  # noqa: E402,F401
