"""Campaign CRUD (owner-scoped) + ownership checks dùng chung."""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem, Campaign
from newslatch.schemas.campaign import CampaignCreate, CampaignUpdate

logger = get_logger(__name__)


def _normalize_codes(values: Optional[list[str]], upper: bool = False) -> list[str]:
    """Bỏ trùng/rỗng, giữ thứ tự. Country code viết hoa, category viết thường."""
    out: list[str] = []
    for value in values or []:
        code = str(value).strip()
        code = code.upper() if upper else code.lower()
        if code and code not in out:
            out.append(code)
    return out


def campaign_context(campaign: Optional[Campaign]) -> dict[str, Any]:
    """Dict cho prompt builder; campaign None => giá trị mặc định."""
    if campaign is None:
        return {"name": "Campaign", "url": None, "description": None, "product_description": None,
                "target_audience": None, "tags": []}
    return {
        "name": campaign.name,
        "url": campaign.url,
        "description": campaign.description,
        "product_description": campaign.product_description,
        "target_audience": campaign.target_audience,
        "tags": list(campaign.tags or []),
    }


async def get_owned_campaign(db: AsyncSession, campaign_id: UUID, user_id: UUID) -> Campaign:
    """404 nếu không tồn tại, 403 nếu không phải owner."""
    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise AppError(ErrorKind.NOT_FOUND, "Campaign not found", f"No campaign with id {campaign_id}")
    if campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this campaign")
    return campaign


async def get_owned_item(db: AsyncSession, item_id: UUID, user_id: UUID) -> tuple[AiGeneratedItem, Campaign]:
    """AI item + campaign của nó; 404 item không tồn tại, 403 không phải owner."""
    item = await db.get(AiGeneratedItem, item_id)
    if item is None:
        raise AppError(ErrorKind.NOT_FOUND, "AI item not found", f"No AI generated item with id {item_id}")
    campaign = await db.get(Campaign, item.campaign_id)
    if campaign is None or campaign.user_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, "Access denied", "You do not own this content")
    return item, campaign


async def create_campaign(db: AsyncSession, user_id: UUID, payload: CampaignCreate) -> Campaign:
    campaign = Campaign(
        user_id=user_id,
        name=payload.name.strip(),
        url=payload.url,
        tags=[t.strip() for t in payload.tags if t and t.strip()],
        description=payload.description,
        product_description=payload.product_description,
        target_audience=payload.target_audience,
        rss_categories=_normalize_codes(payload.rss_categories),
        rss_countries=_normalize_codes(payload.rss_countries, upper=True),
        get_updates=payload.get_updates,
        updates_hour=payload.updates_hour,
    )
    db.add(campaign)
    await db.flush()
    logger.info("campaign.created", campaign_id=str(campaign.id), user_id=str(user_id))
    return campaign


async def list_campaigns(db: AsyncSession, user_id: UUID) -> list[Campaign]:
    r = await db.execute(
        select(Campaign).where(Campaign.user_id == user_id).order_by(Campaign.created_at.desc())
    )
    return list(r.scalars().all())


async def update_campaign(db: AsyncSession, campaign: Campaign, payload: CampaignUpdate) -> Campaign:
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        changes["name"] = changes["name"].strip()
    if "rss_categories" in changes:
        changes["rss_categories"] = _normalize_codes(changes["rss_categories"])
    if "rss_countries" in changes:
        changes["rss_countries"] = _normalize_codes(changes["rss_countries"], upper=True)
    if "tags" in changes:
        changes["tags"] = [t.strip() for t in changes["tags"] or [] if t and t.strip()]
    for key, value in changes.items():
        if key in ("name", "get_updates") and value is None:
            continue
        setattr(campaign, key, value)
    await db.flush()
    logger.info("campaign.updated", campaign_id=str(campaign.id), fields=sorted(changes))
    return campaign


async def delete_campaign(db: AsyncSession, campaign: Campaign) -> None:
    """Xóa campaign; ORM cascade xóa AI items, variants, landing pages."""
    campaign_id = campaign.id
    await db.delete(campaign)
    await db.flush()
    logger.info("campaign.deleted", campaign_id=str(campaign_id))
