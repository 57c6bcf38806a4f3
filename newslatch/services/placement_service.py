"""
Ad placement feed: item published mới nhất của campaign render thành HTML creatives
(300x250, 300x100) cho ad server bên ngoài.
"""
from html import escape
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem, Campaign

logger = get_logger(__name__)

DEFAULT_CTA = "Learn More"
MIME_TYPE = "text/html"
LANGUAGE = "en"

_STYLE = (
    "margin:0;font-family:Arial,Helvetica,sans-serif;overflow:hidden;box-sizing:border-box;"
    "border:1px solid #e5e7eb;background:#fff;color:#111827"
)


def _image_tag(image_url: Optional[str], width: int, height: int) -> str:
    if not image_url:
        return ""
    return (
        f'<img src="{escape(image_url)}" alt="" '
        f'style="width:{width}px;height:{height}px;object-fit:cover;display:block">'
    )


def render_300x250(title: str, description: str, image_url: Optional[str], click_url: str, cta: str) -> str:
    return (
        f'<div style="width:300px;height:250px;{_STYLE}">'
        f'<a href="{escape(click_url)}" target="_blank" rel="noopener" style="color:inherit;text-decoration:none">'
        f"{_image_tag(image_url, 300, 120)}"
        f'<div style="padding:8px 10px">'
        f'<div style="font-size:15px;font-weight:bold;line-height:1.2;max-height:36px;overflow:hidden">{escape(title)}</div>'
        f'<div style="font-size:12px;line-height:1.3;margin-top:4px;max-height:32px;overflow:hidden">{escape(description)}</div>'
        f'<span style="display:inline-block;margin-top:6px;padding:4px 10px;background:#2563eb;color:#fff;'
        f'border-radius:4px;font-size:12px">{escape(cta)}</span>'
        f"</div></a></div>"
    )


def render_300x100(title: str, description: str, image_url: Optional[str], click_url: str, cta: str) -> str:
    return (
        f'<div style="width:300px;height:100px;{_STYLE}">'
        f'<a href="{escape(click_url)}" target="_blank" rel="noopener" '
        f'style="color:inherit;text-decoration:none;display:flex;height:100%">'
        f"{_image_tag(image_url, 100, 100)}"
        f'<div style="padding:6px 8px;flex:1;min-width:0">'
        f'<div style="font-size:13px;font-weight:bold;line-height:1.2;max-height:32px;overflow:hidden">{escape(title)}</div>'
        f'<div style="font-size:11px;line-height:1.2;margin-top:2px;max-height:28px;overflow:hidden">{escape(description)}</div>'
        f'<span style="font-size:11px;color:#2563eb;font-weight:bold">{escape(cta)} &rsaquo;</span>'
        f"</div></a></div>"
    )


CREATIVE_FORMATS = ((300, 250, render_300x250), (300, 100, render_300x100))


def build_creatives(campaign_id: UUID, item: AiGeneratedItem) -> list[dict[str, Any]]:
    placement = item.ad_placement or {}
    title = placement.get("headline") or item.headline
    description = placement.get("body") or item.description or ""
    cta = placement.get("cta") or DEFAULT_CTA
    click_url = item.link or "#"
    return [
        {
            "campaignId": str(campaign_id),
            "creativeId": str(item.id),
            "width": width,
            "height": height,
            "adm": render(title, description, item.image_url, click_url, cta),
            "mimeType": MIME_TYPE,
            "language": LANGUAGE,
        }
        for width, height, render in CREATIVE_FORMATS
    ]


def parse_campaign_id(raw: Optional[str]) -> UUID:
    if not raw:
        raise AppError(ErrorKind.VALIDATION, "Missing campaign_id parameter", "Provide ?campaign_id=")
    try:
        return UUID(raw)
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, "Invalid campaign_id parameter", f"'{raw}' is not a valid id") from None


async def get_latest_placement(db: AsyncSession, campaign_id: UUID) -> dict[str, Any]:
    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise AppError(ErrorKind.NOT_FOUND, "Campaign not found", f"No campaign with id {campaign_id}")
    r = await db.execute(
        select(AiGeneratedItem)
        .where(AiGeneratedItem.campaign_id == campaign_id, AiGeneratedItem.is_published.is_(True))
        .order_by(AiGeneratedItem.created_at.desc(), AiGeneratedItem.id)
        .limit(1)
    )
    item = r.scalar_one_or_none()
    if item is None:
        raise AppError(
            ErrorKind.NOT_FOUND,
            "No published items found for this campaign",
            f"Campaign {campaign.name} has no published AI content",
        )
    logger.info("placement.served", campaign_id=str(campaign_id), item_id=str(item.id))
    return {
        "success": True,
        "campaign": {"id": str(campaign.id), "name": campaign.name},
        "ads": build_creatives(campaign.id, item),
        "item": {
            "id": str(item.id),
            "headline": item.headline,
            "clickbait": item.clickbait,
            "link": item.link,
            "relevance_score": item.relevance_score,
            "trend": item.trend,
            "description": item.description,
            "tooltip": item.tooltip,
            "ad_placement": item.ad_placement,
            "tags": item.tags or [],
            "created_at": item.created_at.isoformat() if item.created_at else None,
            "updated_at": item.updated_at.isoformat() if item.updated_at else None,
        },
    }
