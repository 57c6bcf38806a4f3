"""
Sinh thêm một section (subtitle + paragraphs) cho landing page theo loại nội dung.
Không trừ credit; usage LLM vẫn được ghi vào ai_usage_logs.
"""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.models import AiGeneratedItem, Campaign, LandingPage
from newslatch.schemas.landing_page import GenerateParagraphRequest
from newslatch.services.ai_usage_service import log_llm_usage
from newslatch.services.landing_page_service import get_owned_landing_page
from newslatch.services.llm_service import LLMService, LLMValidationError, require_fields
from newslatch.services.prompts import build_paragraph_prompt

logger = get_logger(__name__)

FEATURE = "paragraph"
CONTEXT_MAX_CHARS = 4000


def default_context(page: LandingPage, campaign: Optional[Campaign]) -> str:
    """Context khi client không gửi: title, campaign và nội dung các section hiện có."""
    lines = [f"Landing page title: {page.title}"]
    if campaign is not None:
        lines.append(f"Campaign: {campaign.name}")
        for label, value in (
            ("Business description", campaign.description),
            ("Product/service", campaign.product_description),
            ("Target audience", campaign.target_audience),
        ):
            if value:
                lines.append(f"{label}: {value}")
    for section in page.sections or []:
        if section.get("subtitle"):
            lines.append(f"## {section['subtitle']}")
        lines.extend(str(p) for p in section.get("paragraphs") or [])
    return "\n".join(lines)[:CONTEXT_MAX_CHARS]


def parse_generated_section(data: dict[str, Any]) -> dict[str, Any]:
    """subtitle rỗng hoặc không còn paragraph nào => LLMValidationError (500)."""
    require_fields(data, {"subtitle": str, "paragraphs": list})
    paragraphs = [str(p).strip() for p in data["paragraphs"] if str(p).strip()]
    if not paragraphs:
        raise LLMValidationError("The AI response contains no paragraphs")
    image_prompt = str(data.get("image_prompt") or "").strip() or None
    cta = str(data.get("cta") or "").strip() or None
    return {
        "subtitle": data["subtitle"].strip(),
        "paragraphs": paragraphs,
        "image_prompt": image_prompt,
        "cta": cta,
    }


async def generate_paragraph(
    db: AsyncSession,
    user_id: UUID,
    payload: GenerateParagraphRequest,
    llm: LLMService,
    settings: Settings,
) -> dict[str, Any]:
    prompt = (payload.prompt or "").strip()
    content_type = (payload.content_type or "").strip()
    if payload.landing_page_id is None or not prompt or not content_type:
        raise AppError(
            ErrorKind.VALIDATION,
            "Missing required fields",
            "landingPageId, prompt and contentType are required",
        )
    page = await get_owned_landing_page(db, payload.landing_page_id, user_id)

    context = (payload.context or "").strip()
    if not context:
        item = await db.get(AiGeneratedItem, page.ai_item_id)
        campaign = await db.get(Campaign, item.campaign_id) if item else None
        context = default_context(page, campaign)

    system, user = build_paragraph_prompt(content_type, prompt, context)
    result = await llm.complete_json(system, user, feature=FEATURE)
    section = parse_generated_section(result.data)
    await log_llm_usage(db, settings, user_id, FEATURE, result)
    logger.info("paragraph.generated", page_id=str(page.id), content_type=content_type)
    return {"success": True, "section": section, "contentType": content_type}
