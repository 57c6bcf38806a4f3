"""AI generated item (ad content built from a news item)."""
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newslatch.db import Base, utcnow


class AiGeneratedItem(Base):
    """
    Kết quả LLM cho một tin: headline/link nguồn, clickbait, relevance_score (0-100), trend,
    ad_placement {headline, body, cta, headline_en?, body_en?}, tags, keywords, ảnh.
    Luôn tạo với is_published=False. Xóa item => cascade variants + landing page.
    """

    __tablename__ = "ai_generated_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    campaign_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    headline: Mapped[str] = mapped_column(Text, nullable=False)
    clickbait: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    relevance_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    trend: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tooltip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ad_placement: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    variant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    favorite_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
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

    campaign = relationship("Campaign", back_populates="ai_items")
    variants = relationship(
        "AdVariant",
        back_populates="ai_item",
        cascade="all, delete-orphan",
        order_by="AdVariant.display_order",
    )
    landing_page = relationship(
        "LandingPage",
        back_populates="ai_item",
        uselist=False,
        cascade="all, delete-orphan",
    )
