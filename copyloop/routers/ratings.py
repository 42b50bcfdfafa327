"""
Ratings Router.

Endpoints:
- POST /ratings - Save (insert or update) a human rating
- GET /ratings/stats - Rating statistics summary
- GET /ratings/insights - Newest content with heuristic viral scores
- GET /ratings/{content_history_id} - Rating for a content item
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import limiter
from ..models import RatingCreate, RatingResponse
from ..rating_store import RatingStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ratings",
    tags=["ratings"],
)


@router.post("", response_model=RatingResponse)
@limiter.limit(settings.rate_limit_writes)
async def save_rating(
    body: RatingCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Save a rating for a content item.

    Creates the rating for (contentHistoryId, userId) or updates it; a
    missing userId is the shared anonymous rating.
    """
    rating = RatingStore(db).save_rating(
        body.content_history_id,
        user_id=body.user_id,
        overall_rating=body.overall_rating,
        platform_ratings=body.platform_ratings(),
        notes=body.notes,
    )
    return rating


@router.get("/stats")
async def get_rating_stats(
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db)
):
    """Totals, averages and top niches / tones."""
    return RatingStore(db).get_rating_stats(user_id)


@router.get("/insights")
async def get_performance_insights(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    return {"insights": RatingStore(db).get_content_performance_insights(limit)}


@router.get("/{content_history_id}", response_model=Optional[RatingResponse])
async def get_rating(
    content_history_id: int,
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db)
):
    """Rating for the content item, or null if it has not been rated."""
    return RatingStore(db).get_rating(content_history_id, user_id)
