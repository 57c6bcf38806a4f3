"""API ad variants: generate (LLM), list theo item, patch, delete."""
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.config import Settings, get_settings
from newslatch.db import get_db
from newslatch.dependencies import CurrentUser, get_current_user, get_llm_service
from newslatch.schemas.variants import AdVariantOut, AdVariantPatchRequest, GenerateVariantsRequest
from newslatch.services.campaign_service import get_owned_item
from newslatch.services.credit_service import require_credits
from newslatch.services.llm_service import LLMService
from newslatch.services.variant_service import (
    delete_variant,
    generate_variants,
    get_owned_variant,
    list_variants,
    update_variant,
)
from newslatch.utils.query_params import ensure_uuid_query

router = APIRouter(tags=["ad_variants"])


@router.post("/generate-ad-variants")
async def post_generate_ad_variants(
    payload: GenerateVariantsRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """402 hết credit, 404 item, 403 không phải owner, 500 output LLM không hợp lệ."""
    await require_credits(db, user.id, "generate ad variants")
    item, campaign = await get_owned_item(db, payload.ai_item_id, user.id)
    variants = await generate_variants(db, item, campaign, payload.count, payload.options, llm, settings)
    return {
        "success": True,
        "message": f"Generated {len(variants)} ad variants",
        "variants": [AdVariantOut.model_validate(v).model_dump(mode="json") for v in variants],
        "count": len(variants),
        "variant_count": item.variant_count,
        "ai_item_id": str(item.id),
    }


@router.get("/ad-variants")
async def get_ad_variants(
    ai_item_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    item_id = ensure_uuid_query("ai_item_id", ai_item_id)
    item, _ = await get_owned_item(db, item_id, user.id)
    variants = await list_variants(db, item.id)
    return {
        "success": True,
        "variants": [AdVariantOut.model_validate(v).model_dump(mode="json") for v in variants],
        "count": len(variants),
        "ai_item_id": str(item.id),
    }


@router.patch("/ad-variants/{variant_id}", response_model=AdVariantOut)
async def patch_ad_variant(
    variant_id: UUID,
    payload: AdVariantPatchRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AdVariantOut:
    variant, item = await get_owned_variant(db, variant_id, user.id)
    return AdVariantOut.model_validate(await update_variant(db, variant, item, payload))


@router.delete("/ad-variants/{variant_id}")
async def delete_ad_variant(
    variant_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """400 nếu đây là variant cuối cùng của item."""
    variant, item = await get_owned_variant(db, variant_id, user.id)
    remaining = await delete_variant(db, variant, item)
    return {"success": True, "message": "Variant deleted", "variant_count": remaining}
