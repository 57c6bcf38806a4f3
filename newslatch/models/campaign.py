"""Campaign model."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newslatch.db import Base, utcnow


class Campaign(Base):
    """
    Campaign của user: URL đích, mô tả sản phẩm, target audience và bộ lọc RSS.
    rss_categories / rss_countries: list code (vd. ["tech"], ["US"]); rỗng = không feed nào match.
    get_updates + updates_hour: lịch chạy scheduled update (giờ UTC).
    """

    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    product_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    target_audience: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rss_categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    rss_countries: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    get_updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updates_hour: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
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

    ai_items = relationship(
        "AiGeneratedItem",
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
