"""
Evaluations Router.

Endpoints:
- POST /evaluations - Store an AI evaluation produced elsewhere
- POST /evaluations/{content_history_id}/run - Evaluate now with the configured LLMs
- GET /evaluations/{content_history_id} - All evaluations of a content item
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..ai_evaluator import ContentEvaluator, EvaluationProvider
from ..config import settings
from ..database import get_db
from ..dependencies import get_evaluation_providers, limiter
from ..models import EvaluationCreate, EvaluationResponse
from ..rating_store import RatingStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/evaluations",
    tags=["evaluations"],
)


@router.post("", response_model=EvaluationResponse)
@limiter.limit(settings.rate_limit_writes)
async def store_evaluation(
    body: EvaluationCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """Store (or replace) one evaluator's scores; the overall score is derived."""
    evaluation = RatingStore(db).store_ai_evaluation(
        body.content_history_id,
        body.evaluator_model,
        body.virality_score,
        body.clarity_score,
        body.persuasiveness_score,
        body.creativity_score,
        justifications={
            "virality": body.virality_justification,
            "clarity": body.clarity_justification,
            "persuasiveness": body.persuasiveness_justification,
            "creativity": body.creativity_justification,
        },
        needs_revision=body.needs_revision,
        improvement_suggestions=body.improvement_suggestions,
    )
    return EvaluationResponse.from_db(evaluation)


@router.post("/{content_history_id}/run")
@limiter.limit(settings.rate_limit_evaluations)
async def run_evaluation(
    content_history_id: int,
    request: Request,
    db: Session = Depends(get_db),
    providers: List[EvaluationProvider] = Depends(get_evaluation_providers)
):
    """
    Evaluate a content item with every configured provider.

    Rate limited; each provider is a paid LLM call.
    """
    run = await ContentEvaluator(db, providers).evaluate_content(content_history_id)
    return {
        "content_history_id": run.content_history_id,
        "evaluations": [EvaluationResponse.from_db(e) for e in run.evaluations],
        "errors": run.errors,
    }


@router.get("/{content_history_id}", response_model=List[EvaluationResponse])
async def list_evaluations(
    content_history_id: int,
    db: Session = Depends(get_db)
):
    return [EvaluationResponse.from_db(e) for e in RatingStore(db).get_evaluations(content_history_id)]
