"""Ad copy variant of an AI generated item."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newslatch.db import Base, utcnow


class AdVariant(Base):
    """
    Biến thể quảng cáo: headline/body/cta theo ngôn ngữ audience (+ bản EN nếu khác tiếng Anh).
    tone: professional | casual | urgent | ...; focus: general | benefit | feature | ...
    Không được xóa variant cuối cùng của một item (check qua ai_generated_items.variant_count).
    """

    __tablename__ = "ad_variants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ai_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("ai_generated_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    variant_label: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    headline: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    headline_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body_en: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tone: Mapped[str] = mapped_column(String(64), nullable=False, default="professional")
    focus: Mapped[str] = mapped_column(String(64), nullable=False, default="general")
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    ai_item = relationship("AiGeneratedItem", back_populates="variants")
