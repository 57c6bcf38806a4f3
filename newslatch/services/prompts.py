"""
Prompt templates cho mọi call LLM (JSON mode).
Mỗi builder trả về (system, user); output schema được mô tả ngay trong prompt.
"""
import json
from typing import Any, Optional

COUNTRY_LANGUAGES = {
    "US": "English",
    "GB": "English",
    "CA": "English",
    "DE": "German",
    "FR": "French",
    "ES": "Spanish",
    "IT": "Italian",
}
DEFAULT_LANGUAGE = "English"

VARIANT_TONES = ("professional", "casual", "urgent", "friendly", "authoritative", "playful")
VARIANT_FOCUSES = ("general", "benefit", "feature", "emotion", "social-proof", "urgency")

JSON_ONLY = "Always respond with a single valid JSON object and nothing else."


def language_for_countries(countries: Optional[list[str]]) -> str:
    """Ngôn ngữ theo country đầu tiên của campaign; không có / không biết => English."""
    for code in countries or []:
        language = COUNTRY_LANGUAGES.get(str(code).strip().upper())
        if language:
            return language
    return DEFAULT_LANGUAGE


def _campaign_block(campaign: dict[str, Any]) -> str:
    return (
        f"Campaign name: {campaign.get('name') or 'N/A'}\n"
        f"Website: {campaign.get('url') or 'N/A'}\n"
        f"Business description: {campaign.get('description') or 'N/A'}\n"
        f"Product/service: {campaign.get('product_description') or 'N/A'}\n"
        f"Target audience: {campaign.get('target_audience') or 'N/A'}\n"
        f"Tags: {', '.join(campaign.get('tags') or []) or 'N/A'}"
    )


def build_content_prompt(
    news: list[dict[str, str]],
    category_tags: list[str],
    campaign: dict[str, Any],
) -> tuple[str, str]:
    """
    news: [{"headline", "link"}]. Kết quả: {"results": [...], "trend_summary", "campaign_strategy"}.
    """
    topics = ", ".join(category_tags) or "the campaign's market"
    system = (
        "You are a performance marketer who turns breaking news into lead-generation ad hooks. " + JSON_ONLY
    )
    user = (
        "You receive a list of recent news articles (newsArray), each with a headline and a link.\n\n"
        f"Campaign context:\n{_campaign_block(campaign)}\n\n"
        f"Goal: pick the 3-5 articles most useful for online lead generation around: {topics}. "
        "Favour emerging trends (repeated themes, growing urgency) and include indirect matches "
        "(a storm article can matter for roofing even if roofing is not mentioned).\n\n"
        "For each chosen article return:\n"
        "- headline: the original headline\n"
        "- clickbait: a casual, viral one-line hook optimised for CTR\n"
        "- link: the link exactly as given in newsArray\n"
        "- relevance_score: integer 0-100\n"
        "- trend: short trend label\n"
        f"- description: why this article creates urgency for {topics}\n"
        "- tooltip: casual 3-4 sentence explanation driving urgency\n"
        "- ad_placement: {\"headline\", \"body\", \"cta\"} ready-to-run ad copy\n"
        "- tags: 3-6 lowercase tags; keywords: 3-6 search keywords\n"
        "- image_prompt: one English sentence describing an ad image for this hook\n\n"
        "Output format:\n"
        '{"results": [{"headline": "", "clickbait": "", "link": "", "relevance_score": 0, "trend": "", '
        '"description": "", "tooltip": "", "ad_placement": {"headline": "", "body": "", "cta": ""}, '
        '"tags": [], "keywords": [], "image_prompt": ""}], '
        '"trend_summary": "overview of the top 1-2 trends", '
        '"campaign_strategy": "one paragraph on how the campaign should use these trends"}\n\n'
        f"newsArray:\n{json.dumps({'newsArray': news}, ensure_ascii=False)}\n\n"
        "Return only 3-5 results in exactly this JSON format."
    )
    return system, user


def build_variant_prompt(
    item: dict[str, Any],
    campaign: dict[str, Any],
    count: int,
    options: dict[str, Any],
    language: str,
) -> tuple[str, str]:
    """Kết quả: {"variants": [{variant_label, headline, body, cta, headline_en?, body_en?, image_prompt, tone, focus}]}."""
    vary = [name for name in ("headline", "body", "cta") if options.get(f"vary_{name}", True)] or ["headline"]
    tones = [t for t in options.get("tones") or [] if t] or list(VARIANT_TONES[:3])
    needs_english = language != DEFAULT_LANGUAGE
    translation_rule = (
        f"Write headline, body and cta in {language}, and add headline_en and body_en with English translations."
        if needs_english
        else "Write everything in English; set headline_en and body_en to null."
    )
    placement = item.get("ad_placement") or {}
    system = "You are a senior direct-response copywriter producing A/B test ad variants. " + JSON_ONLY
    user = (
        f"Campaign:\n{_campaign_block(campaign)}\n\n"
        "Original ad:\n"
        f"Headline: {placement.get('headline') or item.get('headline')}\n"
        f"Body: {placement.get('body') or item.get('description') or ''}\n"
        f"CTA: {placement.get('cta') or 'Learn More'}\n"
        f"News hook: {item.get('clickbait') or ''} (trend: {item.get('trend') or 'n/a'})\n\n"
        f"Create {count} distinct variants. Vary: {', '.join(vary)}. Use these tones across variants: "
        f"{', '.join(tones)}. Focus options: {', '.join(VARIANT_FOCUSES)}.\n"
        f"{translation_rule}\n"
        "Rules: headline max 40 characters, body max 125 characters, cta max 20 characters; "
        "image_prompt is always English and describes a photo-realistic ad image.\n\n"
        'Output format: {"variants": [{"variant_label": "Variant A", "headline": "", "body": "", "cta": "", '
        '"headline_en": null, "body_en": null, "image_prompt": "", "tone": "", "focus": ""}]}'
    )
    return system, user


def build_landing_page_prompt(
    item: dict[str, Any],
    campaign: dict[str, Any],
    article_text: str,
    section_count: int,
) -> tuple[str, str]:
    """Kết quả: {"title", "sections": [{subtitle, paragraphs[], image_prompt, cta}]}."""
    system = (
        "You are an expert direct-response copywriter who builds long-form sales landing pages. " + JSON_ONLY
    )
    user = (
        f"Campaign:\n{_campaign_block(campaign)}\n\n"
        f"Ad headline: {item.get('headline')}\n"
        f"Hook: {item.get('clickbait') or ''}\n"
        f"Why it matters: {item.get('description') or ''}\n\n"
        f"Source article text (may be truncated):\n{article_text}\n\n"
        f"Write a landing page with exactly {section_count} sections that moves the reader from the news "
        "event to the campaign's offer: hook, problem, agitation, solution, benefits, proof, objections, "
        "offer and a closing call to action.\n"
        "Each section has:\n"
        "- subtitle: string\n"
        "- paragraphs: 2-4 persuasive paragraphs (strings)\n"
        "- image_prompt: English description of an illustrative image\n"
        "- cta: button text for sections that end with a call to action, otherwise null\n\n"
        'Output format: {"title": "", "sections": [{"subtitle": "", "paragraphs": [""], '
        '"image_prompt": "", "cta": null}]}'
    )
    return system, user


def build_suggestion_prompt(url: str, name: Optional[str], tag_count: int) -> tuple[str, str]:
    """Kết quả: {"suggested_tags": [...], "suggested_description": str}."""
    company = f' (company name: "{name}")' if name else ""
    system = (
        "You are a marketing expert who analyses companies and drafts campaign settings. " + JSON_ONLY
    )
    user = (
        f'Analyse the company website at "{url}"{company} and provide:\n'
        f"1. {tag_count} tags describing the business, industry, audience and solutions "
        "(lowercase single words or short phrases; no generic words like company, business, service, innovation).\n"
        "2. A 3-4 sentence description: what the company does, the main problem it solves, "
        "and its target market.\n"
        "If you cannot access the website, infer from the domain and company name.\n\n"
        'Output format: {"suggested_tags": ["tag1", "tag2"], "suggested_description": ""}'
    )
    return system, user


PARAGRAPH_CONTENT_TYPES = {
    "product-description": "Describe the product or service: what it is, what it does and why it stands out.",
    "problem-solution": "Name the reader's problem, make it felt, then present the offer as the solution.",
    "social-proof": "Build trust with results, testimonials-style statements and credibility signals.",
    "urgency-scarcity": "Give the reader an honest reason to act now (timing, limited availability).",
    "benefit-focused": "Turn features into concrete outcomes the reader cares about.",
    "story-telling": "Tell a short story of someone like the reader who got the result with this offer.",
    "comparison": "Compare the offer with the usual alternatives and show why it wins.",
    "how-it-works": "Explain in simple steps how the reader goes from sign-up to result.",
    "objection-handling": "Raise the most likely objections and answer each one convincingly.",
    "call-to-value": "Close with a call to action that restates the value the reader gets.",
}
DEFAULT_PARAGRAPH_INSTRUCTION = "Write a persuasive paragraph for a sales landing page."


def build_paragraph_prompt(content_type: str, prompt: str, context: str) -> tuple[str, str]:
    """Một section mới cho landing page. Kết quả: {"subtitle", "paragraphs": [...], "image_prompt", "cta"}."""
    instruction = PARAGRAPH_CONTENT_TYPES.get(content_type, DEFAULT_PARAGRAPH_INSTRUCTION)
    system = (
        "You are an expert direct-response copywriter who writes sections for sales landing pages. " + JSON_ONLY
    )
    user = (
        f"Landing page context:\n{context}\n\n"
        f"Section type: {content_type}\n"
        f"Goal: {instruction}\n"
        f"Writer's request: {prompt}\n\n"
        "Write one section in the same language and voice as the context:\n"
        "- subtitle: string\n"
        "- paragraphs: 1-3 persuasive paragraphs (strings)\n"
        "- image_prompt: English description of an illustrative image\n"
        "- cta: button text if the section ends with a call to action, otherwise null\n\n"
        'Output format: {"subtitle": "", "paragraphs": [""], "image_prompt": "", "cta": null}'
    )
    return system, user
