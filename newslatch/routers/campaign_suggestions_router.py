"""API ai-campaign-suggestions: gợi ý tags + description từ URL website."""
from fastapi import APIRouter, Depends

from newslatch.config import Settings, get_settings
from newslatch.dependencies import CurrentUser, get_current_user, get_llm_service
from newslatch.schemas.suggestions import CampaignSuggestionRequest, CampaignSuggestionResponse
from newslatch.services.campaign_suggestion_service import suggest_campaign_settings
from newslatch.services.llm_service import LLMService

router = APIRouter(tags=["campaign_suggestions"])


@router.post("/ai-campaign-suggestions", response_model=CampaignSuggestionResponse)
async def post_campaign_suggestions(
    payload: CampaignSuggestionRequest,
    user: CurrentUser = Depends(get_current_user),
    llm: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> CampaignSuggestionResponse:
    return await suggest_campaign_settings(payload.url, payload.name, llm, settings)
