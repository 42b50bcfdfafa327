"""
Learning Router for the style-learning loop.

Endpoints:
- POST /patterns/generate - Re-mine content patterns from ratings
- GET /patterns/suggestions - Active patterns for a niche / tone / template type
- POST /patterns/applications - Record that a pattern was applied
- GET /preferences/{user_id} - Learning preferences (created on first access)
- PUT /preferences/{user_id} - Patch learning preferences
- GET /recommendations - Style recommendation for the next prompt
- GET /recommendations/top-style - Style summary of the best-rated content
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import limiter
from ..models import (
    Niche,
    PatternApplicationCreate,
    PatternGenerateRequest,
    PatternResponse,
    Platform,
    PreferencesResponse,
    TemplateType,
)
from ..pattern_extractor import (
    PatternExtractor,
    SQLAlchemyPatternRepository,
    get_content_suggestions,
    track_pattern_application,
)
from ..preference_store import PreferenceStore
from ..recommendation_engine import RecommendationEngine, build_style_instructions

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["learning"],
)


def _value(enum_value) -> Optional[str]:
    return enum_value.value if enum_value is not None else None


# =============================================================================
# Patterns
# =============================================================================

@router.post("/patterns/generate")
@limiter.limit(settings.rate_limit_writes)
async def generate_patterns(
    request: Request,
    body: Optional[PatternGenerateRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Re-mine content patterns and overwrite the stored ones per group.

    Only ratings at or above minRating (default from settings) count.
    """
    min_rating = body.min_rating if body is not None else settings.pattern_min_rating
    rows = PatternExtractor(db).refresh_patterns(SQLAlchemyPatternRepository(db), min_rating)

    logger.info(f"Pattern generation produced {len(rows)} patterns (minRating={min_rating})")
    return {
        "patterns_generated": len(rows),
        "min_rating": min_rating,
        "patterns": [PatternResponse.model_validate(row) for row in rows],
    }


@router.get("/patterns/suggestions", response_model=List[PatternResponse])
async def get_suggestions(
    niche: Optional[Niche] = None,
    tone: Optional[str] = None,
    template_type: Optional[TemplateType] = Query(None, alias="templateType"),
    db: Session = Depends(get_db)
):
    return get_content_suggestions(db, niche=_value(niche), tone=tone, template_type=_value(template_type))


@router.post("/patterns/applications")
@limiter.limit(settings.rate_limit_writes)
async def record_pattern_application(
    body: PatternApplicationCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    application = track_pattern_application(
        db,
        body.content_history_id,
        pattern_id=body.pattern_id,
        application_strength=body.application_strength,
        modified_attributes=body.modified_attributes,
    )
    return {
        "id": application.id,
        "content_history_id": application.content_history_id,
        "pattern_id": application.pattern_id,
        "application_strength": application.application_strength,
        "modified_attributes": application.modified_attributes,
        "applied_at": application.applied_at,
    }


# =============================================================================
# Preferences
# =============================================================================

@router.get("/preferences/{user_id}", response_model=PreferencesResponse)
async def get_preferences(user_id: int, db: Session = Depends(get_db)):
    """Preferences for the user; defaults are stored on first access."""
    return PreferenceStore(db).get_or_create(user_id)


@router.put("/preferences/{user_id}", response_model=PreferencesResponse)
@limiter.limit(settings.rate_limit_writes)
async def update_preferences(
    user_id: int,
    request: Request,
    patch: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db)
):
    """
    Patch learning preferences.

    Unknown fields and out-of-range thresholds are rejected with 422.
    """
    return PreferenceStore(db).update(user_id, patch)


# =============================================================================
# Recommendations
# =============================================================================

@router.get("/recommendations")
async def get_recommendations(
    user_id: int = Query(..., alias="userId"),
    niche: Optional[Niche] = None,
    template_type: Optional[str] = Query(None, alias="templateType"),
    tone: Optional[str] = None,
    platform: Optional[Platform] = None,
    db: Session = Depends(get_db)
):
    """
    Style recommendation built from the user's ratings and AI evaluations.

    `recommendation` is null when there is nothing to learn from yet.
    """
    result = RecommendationEngine(db).recommend(
        user_id,
        niche=_value(niche),
        template_type=template_type,
        tone=tone,
        platform=_value(platform),
    )
    return {"recommendation": result.to_dict() if result else None}


@router.get("/recommendations/top-style")
async def get_top_style(
    user_id: int = Query(..., alias="userId"),
    niche: Optional[Niche] = None,
    platform: Optional[Platform] = None,
    tone: Optional[str] = None,
    template_type: Optional[str] = Query(None, alias="templateType"),
    db: Session = Depends(get_db)
):
    style = RecommendationEngine(db).get_top_rated_content_for_style(
        user_id,
        niche=_value(niche),
        platform=_value(platform),
        tone=tone,
        template_type=template_type,
    )
    return {
        "style": style.to_dict() if style else None,
        "instructions": build_style_instructions(style),
    }
