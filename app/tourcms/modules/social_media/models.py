from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.tourcms.models import Base, TimestampMixin


class SocialMedia(TimestampMixin, Base):
    __tablename__ = "social_media"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    icon: Mapped[str] = mapped_column(String(64), nullable=False)  # icon component name, e.g. "Instagram"
    url: Mapped[str] = mapped_column(Text, nullable=False)
    bg_color: Mapped[str] = mapped_column(String(64), nullable=False, default="bg-blue-500")
    hover_color: Mapped[str] = mapped_column(String(64), nullable=False, default="bg-blue-600")
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
