"""
Gợi ý tags + description cho campaign từ URL website (LLM).
Luôn trả đúng SUGGESTED_TAG_COUNT tags; LLM lỗi => fallback theo keyword trong domain.
"""
from typing import Any, Optional
from urllib.parse import urlparse

from newslatch.config import Settings
from newslatch.errors import AppError, ErrorKind
from newslatch.logging_config import get_logger
from newslatch.schemas.suggestions import CampaignSuggestionResponse
from newslatch.services.llm_service import (
    LLMError,
    LLMFailurePolicy,
    LLMService,
    apply_failure_policy,
    require_fields,
)
from newslatch.services.prompts import build_suggestion_prompt

logger = get_logger(__name__)

FEATURE = "campaign_suggestions"
SUGGESTED_TAG_COUNT = 15
SOURCE_AI = "ai-generated"
SOURCE_FALLBACK = "fallback"

PADDING_TAGS = (
    "business", "technology", "innovation", "solutions", "digital",
    "services", "productivity", "automation", "efficiency", "growth",
    "professional", "enterprise", "software", "platform", "tools",
)

GENERIC_DESCRIPTION = (
    "This company provides innovative digital solutions to help businesses improve their operations "
    "and achieve their goals. They focus on delivering technology-driven services that enhance "
    "productivity and efficiency. Their platform is designed to meet the evolving needs of modern enterprises."
)

# (domain keywords, tags, description)
DOMAIN_PROFILES: tuple[tuple[tuple[str, ...], tuple[str, ...], str], ...] = (
    (
        ("tech", "software", "app"),
        (
            "technology", "software", "development", "digital", "innovation",
            "saas", "platform", "solutions", "automation", "cloud",
            "data", "analytics", "mobile", "web", "api",
        ),
        "This technology company develops innovative software solutions that help businesses streamline "
        "their operations and enhance productivity. They specialize in creating digital platforms and tools "
        "that solve complex business challenges. Their software is designed to scale with growing "
        "enterprises and adapt to changing market needs.",
    ),
    (
        ("health", "medical", "care"),
        (
            "healthcare", "medical", "wellness", "patient-care", "health-tech",
            "digital-health", "telemedicine", "medical-devices", "diagnostics", "treatment",
            "prevention", "medical-software", "health-data", "clinical", "therapeutic",
        ),
        "This healthcare company provides innovative medical solutions that improve patient outcomes and "
        "healthcare delivery. They focus on developing technology and services that address critical "
        "healthcare challenges and enhance the quality of care. Their solutions are designed to support "
        "healthcare providers and improve patient experiences.",
    ),
    (
        ("finance", "bank", "pay"),
        (
            "finance", "fintech", "banking", "payments", "financial-services",
            "digital-banking", "investment", "lending", "cryptocurrency", "blockchain",
            "financial-tech", "money-management", "trading", "insurance", "wealth",
        ),
        "This financial technology company delivers innovative solutions that transform how people and "
        "businesses manage their finances. They specialize in creating digital financial services that are "
        "secure, efficient, and accessible. Their platform helps users make better financial decisions and "
        "achieve their financial goals.",
    ),
)


def validate_site_url(url: str) -> str:
    """http(s) URL có host; ngược lại 400."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise AppError(ErrorKind.VALIDATION, "Invalid URL format", "Provide a full http(s) URL")
    return candidate


def normalize_tags(raw: list[Any], count: int = SUGGESTED_TAG_COUNT) -> list[str]:
    """Lowercase, bỏ trùng, cắt còn `count`, thiếu thì pad bằng PADDING_TAGS."""
    tags: list[str] = []
    for value in raw:
        tag = str(value).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    tags = tags[:count]
    for pad in PADDING_TAGS:
        if len(tags) >= count:
            break
        if pad not in tags:
            tags.append(pad)
    return tags


def fallback_suggestions(url: str, name: Optional[str] = None) -> CampaignSuggestionResponse:
    domain = (urlparse(url).hostname or "").lower()
    tags, description = list(PADDING_TAGS), GENERIC_DESCRIPTION
    for keywords, profile_tags, profile_description in DOMAIN_PROFILES:
        if any(k in domain for k in keywords):
            tags, description = list(profile_tags), profile_description
            break
    if name:
        description = description.replace("This company", name, 1)
    return CampaignSuggestionResponse(
        suggested_tags=normalize_tags(tags),
        suggested_description=description,
        source=SOURCE_FALLBACK,
    )


async def suggest_campaign_settings(
    url: str,
    name: Optional[str],
    llm: LLMService,
    settings: Settings,
) -> CampaignSuggestionResponse:
    site_url = validate_site_url(url)
    name = (name or "").strip() or None
    system, user = build_suggestion_prompt(site_url, name, SUGGESTED_TAG_COUNT)
    policy = LLMFailurePolicy.parse(settings.suggestions_llm_failure_policy)
    try:
        result = await llm.complete_json(system, user, feature=FEATURE)
        require_fields(result.data, {"suggested_tags": list, "suggested_description": str})
    except LLMError as e:
        logger.warning("suggestions.llm_failed", url=site_url, error=e.error, details=e.details)
        return apply_failure_policy(policy, e, lambda: fallback_suggestions(site_url, name), FEATURE)

    tags = normalize_tags(result.data["suggested_tags"])
    logger.info("suggestions.generated", url=site_url, tags=len(tags))
    return CampaignSuggestionResponse(
        suggested_tags=tags,
        suggested_description=result.data["suggested_description"].strip(),
        source=SOURCE_AI,
    )
