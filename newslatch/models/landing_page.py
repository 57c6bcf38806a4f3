"""Landing page generated for an AI item (1:1)."""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newslatch.db import Base, utcnow


class LandingPage(Base):
    """
    sections: list có thứ tự {subtitle, paragraphs[], image_url?, image_prompt?, cta?}.
    Public fetch theo slug (chỉ is_active) tăng view_count.
    """

    __tablename__ = "landing_pages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ai_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("ai_generated_items.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
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

    ai_item = relationship("AiGeneratedItem", back_populates="landing_page")
