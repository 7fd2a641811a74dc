"""Assist router - templates, cadence presets, inference and suggestions."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from goalflow.dependencies import get_inference_service, get_suggestion_service
from goalflow.models.goal import TrackingCategory
from goalflow.models.inference import InferenceRequest, InferenceResult
from goalflow.models.suggestion import CadencePreset, GoalSuggestion, PromptTemplate, SuggestionRequest
from goalflow.services import catalog
from goalflow.services.inference_service import GoalInferenceService, infer_with_fallback
from goalflow.services.suggestion_service import GoalSuggestionError, GoalSuggestionService


router = APIRouter(tags=["assist"])


@router.get("/templates", response_model=list[PromptTemplate])
async def list_templates(
    category: Optional[TrackingCategory] = Query(None, description="Focus area"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of templates"),
):
    """Prompt templates for a focus area. Category-agnostic templates are always included."""
    templates = catalog.templates(category)
    return templates[:limit] if limit else templates


@router.get("/cadence-presets", response_model=list[CadencePreset])
async def list_cadence_presets():
    """Ready-made reminder rhythms."""
    return list(catalog.CADENCE_PRESETS)


@router.post("/inference", response_model=InferenceResult)
async def infer_goal(
    request: InferenceRequest,
    service: GoalInferenceService = Depends(get_inference_service),
):
    """
    Infer a goal configuration from a sentence.

    - Falls back to keyword inference when the model is unavailable or fails
    """
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Describe what you want to track")
    return await infer_with_fallback(service, request.text)


@router.post("/suggestions", response_model=list[GoalSuggestion])
async def suggest_questions(
    request: SuggestionRequest,
    service: GoalSuggestionService = Depends(get_suggestion_service),
):
    """
    Suggest tracking questions for a goal.

    - Returns 400 without a title or description
    - Returns 502 when the model cannot produce suggestions
    """
    try:
        return await service.suggestions(request.title, request.description, request.limit)
    except GoalSuggestionError as e:
        code = 400 if str(e) == GoalSuggestionError.MISSING_INPUT else 502
        raise HTTPException(status_code=code, detail=str(e))
