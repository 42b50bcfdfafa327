"""
Rating Store.

Persistence boundary for the two rating sources of the feedback loop:

- Human ratings: overall + per-platform, 1-100, one row per
  (content, user). A missing user id is one shared anonymous bucket.
- AI evaluations: four 1-10 sub-scores whose mean (one decimal) is the
  overall score, one row per (content, evaluator model).

Both writes are upserts and validate everything before touching the store.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from numbers import Integral
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .constants import (
    MAX_AI_SCORE,
    MAX_USER_RATING,
    MIN_AI_SCORE,
    MIN_USER_RATING,
    RATING_PLATFORMS,
)
from .content_analyzer import analyze_content, calculate_viral_score
from .database import commit_or_raise
from .db_models import DBContentEvaluation, DBContentHistory, DBContentRating
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_SUB_SCORES = ("virality", "clarity", "persuasiveness", "creativity")


def _validate_range(field: str, value, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(field, f"must be an integer between {low} and {high}")
    if not low <= value <= high:
        raise ValidationError(field, f"{value} is outside the allowed range {low}-{high}")


def compute_overall_score(virality: int, clarity: int, persuasiveness: int, creativity: int) -> Decimal:
    """Arithmetic mean of the four sub-scores, rounded half-up to one decimal."""
    total = Decimal(virality + clarity + persuasiveness + creativity)
    return (total / Decimal(4)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class RatingStore:
    """Human ratings and AI evaluations of generated content."""

    def __init__(self, db: Session):
        self.db = db

    # =============================================================================
    # Human Ratings
    # =============================================================================

    def _rating_query(self, content_history_id: int, user_id: Optional[int]):
        query = self.db.query(DBContentRating).filter(
            DBContentRating.content_history_id == content_history_id
        )
        if user_id is None:
            return query.filter(DBContentRating.user_id.is_(None))
        return query.filter(DBContentRating.user_id == user_id)

    def save_rating(
        self,
        content_history_id: int,
        user_id: Optional[int] = None,
        overall_rating: Optional[int] = None,
        platform_ratings: Optional[Dict[str, Optional[int]]] = None,
        notes: Optional[str] = None
    ) -> DBContentRating:
        """
        Insert or update the rating for (content_history_id, user_id).

        Args:
            content_history_id: Rated content
            user_id: Rating user, None for the anonymous bucket
            overall_rating: 1-100, required when creating a new rating
            platform_ratings: {platform: 1-100} for instagram/tiktok/youtube/twitter
            notes: Freeform notes

        Returns:
            The stored rating row

        Raises:
            ValidationError: A rating is out of range or a platform is unknown
            NotFoundError: The content does not exist
            StoreError: The write failed
        """
        platform_ratings = platform_ratings or {}

        if overall_rating is not None:
            _validate_range("overall_rating", overall_rating, MIN_USER_RATING, MAX_USER_RATING)
        for platform, value in platform_ratings.items():
            if platform not in RATING_PLATFORMS:
                raise ValidationError("platform", f"unknown platform '{platform}'")
            if value is not None:
                _validate_range(f"{platform}_rating", value, MIN_USER_RATING, MAX_USER_RATING)

        if self.db.get(DBContentHistory, content_history_id) is None:
            raise NotFoundError("ContentHistory", content_history_id)

        rating = self._rating_query(content_history_id, user_id).first()

        if rating is None:
            if overall_rating is None:
                raise ValidationError("overall_rating", "required when creating a rating")
            rating = DBContentRating(
                content_history_id=content_history_id,
                user_id=user_id,
                overall_rating=overall_rating,
                notes=notes,
            )
            self.db.add(rating)
            created = True
        else:
            if overall_rating is not None:
                rating.overall_rating = overall_rating
            if notes is not None:
                rating.notes = notes
            rating.updated_at = datetime.utcnow()
            created = False

        for platform, value in platform_ratings.items():
            if value is not None:
                setattr(rating, f"{platform}_rating", value)

        commit_or_raise(self.db, "save_rating")
        self.db.refresh(rating)

        logger.info(
            f"{'Created' if created else 'Updated'} rating: content={content_history_id}, "
            f"user={user_id}, overall={rating.overall_rating}"
        )
        return rating

    def get_rating(self, content_history_id: int, user_id: Optional[int] = None) -> Optional[DBContentRating]:
        """Rating for (content_history_id, user_id), or None if not rated yet."""
        return self._rating_query(content_history_id, user_id).first()

    # =============================================================================
    # AI Evaluations
    # =============================================================================

    def store_ai_evaluation(
        self,
        content_history_id: int,
        evaluator_model: str,
        virality_score: int,
        clarity_score: int,
        persuasiveness_score: int,
        creativity_score: int,
        justifications: Optional[Dict[str, str]] = None,
        needs_revision: bool = False,
        improvement_suggestions: Optional[str] = None
    ) -> DBContentEvaluation:
        """
        Insert or update the evaluation for (content_history_id, evaluator_model).

        The overall score is always derived here from the sub-scores.

        Raises:
            ValidationError: A sub-score is outside 1-10 or the model name is empty
            NotFoundError: The content does not exist
            StoreError: The write failed
        """
        scores = {
            "virality": virality_score,
            "clarity": clarity_score,
            "persuasiveness": persuasiveness_score,
            "creativity": creativity_score,
        }
        for name, value in scores.items():
            _validate_range(f"{name}_score", value, MIN_AI_SCORE, MAX_AI_SCORE)
        if not evaluator_model:
            raise ValidationError("evaluator_model", "must not be empty")

        if self.db.get(DBContentHistory, content_history_id) is None:
            raise NotFoundError("ContentHistory", content_history_id)

        overall = compute_overall_score(**scores)
        justifications = justifications or {}

        evaluation = self.db.query(DBContentEvaluation).filter(
            DBContentEvaluation.content_history_id == content_history_id,
            DBContentEvaluation.evaluator_model == evaluator_model
        ).first()

        if evaluation is None:
            evaluation = DBContentEvaluation(
                content_history_id=content_history_id,
                evaluator_model=evaluator_model,
            )
            self.db.add(evaluation)

        for name in _SUB_SCORES:
            setattr(evaluation, f"{name}_score", scores[name])
            setattr(evaluation, f"{name}_justification", justifications.get(name))
        evaluation.overall_score = overall
        evaluation.needs_revision = needs_revision
        evaluation.improvement_suggestions = improvement_suggestions

        commit_or_raise(self.db, "store_ai_evaluation")
        self.db.refresh(evaluation)

        logger.info(
            f"Stored AI evaluation: content={content_history_id}, model={evaluator_model}, "
            f"overall={overall}"
        )
        return evaluation

    def get_evaluations(self, content_history_id: int) -> List[DBContentEvaluation]:
        """All AI evaluations of a content item, oldest first."""
        return self.db.query(DBContentEvaluation).filter(
            DBContentEvaluation.content_history_id == content_history_id
        ).order_by(DBContentEvaluation.created_at, DBContentEvaluation.id).all()

    # =============================================================================
    # Statistics
    # =============================================================================

    def get_rating_stats(self, user_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Summary of stored human ratings.

        Returns:
            Dictionary with total count, average overall and per-platform
            ratings, and the top 5 niches / tones by average rating
        """
        base = self.db.query(DBContentRating)
        if user_id is not None:
            base = base.filter(DBContentRating.user_id == user_id)

        total = base.count()
        stats: Dict[str, Any] = {
            "total_ratings": total,
            "average_overall_rating": 0.0,
            "average_platform_ratings": {p: 0.0 for p in RATING_PLATFORMS},
            "top_performing_niches": [],
            "top_performing_tones": [],
        }
        if total == 0:
            return stats

        avg_overall = base.with_entities(func.avg(DBContentRating.overall_rating)).scalar()
        stats["average_overall_rating"] = round(float(avg_overall or 0), 2)

        for platform in RATING_PLATFORMS:
            column = getattr(DBContentRating, f"{platform}_rating")
            avg = base.with_entities(func.avg(column)).scalar()
            stats["average_platform_ratings"][platform] = round(float(avg), 2) if avg is not None else 0.0

        for key, column in (("top_performing_niches", DBContentHistory.niche),
                            ("top_performing_tones", DBContentHistory.tone)):
            avg_col = func.avg(DBContentRating.overall_rating)
            rows = base.join(
                DBContentHistory, DBContentRating.content_history_id == DBContentHistory.id
            ).with_entities(
                column, avg_col, func.count(DBContentRating.id)
            ).group_by(column).order_by(avg_col.desc()).limit(5).all()
            stats[key] = [
                {"name": name, "average_rating": round(float(avg), 2), "count": count}
                for name, avg, count in rows
            ]

        return stats

    def get_content_performance_insights(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest content with its structural analysis and heuristic viral score."""
        recent = self.db.query(DBContentHistory).order_by(
            DBContentHistory.created_at.desc()
        ).limit(limit).all()

        insights = []
        for content in recent:
            analysis = analyze_content(content.output_text, content.prompt_text)
            insights.append({
                "id": content.id,
                "niche": content.niche,
                "tone": content.tone,
                "content_type": content.content_type,
                "word_count": analysis.word_count,
                "emotional_tone": analysis.emotional_tone,
                "hook_type": analysis.hook_type,
                "call_to_action_style": analysis.call_to_action_style,
                "viral_score": calculate_viral_score(analysis),
            })
        return insights
