"""
Tests for the rating store.

Human ratings (range checks, upsert by content/user, anonymous bucket),
AI evaluations (derived overall score, upsert by model) and the
statistics / insight summaries.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from copyloop.db_models import DBContentEvaluation, DBContentRating
from copyloop.exceptions import NotFoundError, StoreError, ValidationError
from copyloop.rating_store import RatingStore, compute_overall_score


@pytest.fixture
def store(db_session):
    return RatingStore(db_session)


# =============================================================================
# Human Ratings
# =============================================================================

class TestSaveRating:
    """save_rating validation and upsert behaviour."""

    def test_create_rating(self, store, make_content):
        content = make_content()

        rating = store.save_rating(content.id, user_id=1, overall_rating=85, notes="Great hook")

        assert rating.id is not None
        assert rating.overall_rating == 85
        assert rating.notes == "Great hook"
        assert rating.user_id == 1

    def test_rating_above_100_rejected(self, store, make_content, db_session):
        content = make_content()

        with pytest.raises(ValidationError):
            store.save_rating(content.id, user_id=1, overall_rating=101)

        assert db_session.query(DBContentRating).count() == 0

    def test_rating_boundaries_accepted(self, store, make_content):
        first = make_content()
        second = make_content()

        assert store.save_rating(first.id, user_id=1, overall_rating=100).overall_rating == 100
        assert store.save_rating(second.id, user_id=1, overall_rating=1).overall_rating == 1

    @pytest.mark.parametrize("bad_value", [0, -5, 50.5, "80", True])
    def test_invalid_overall_values_rejected(self, store, make_content, bad_value):
        content = make_content()

        with pytest.raises(ValidationError):
            store.save_rating(content.id, user_id=1, overall_rating=bad_value)

    def test_platform_rating_out_of_range_rejected(self, store, make_content):
        content = make_content()

        with pytest.raises(ValidationError):
            store.save_rating(content.id, user_id=1, overall_rating=80, platform_ratings={"tiktok": 150})

    def test_unknown_platform_rejected(self, store, make_content):
        content = make_content()

        with pytest.raises(ValidationError):
            store.save_rating(content.id, user_id=1, overall_rating=80, platform_ratings={"myspace": 80})

    def test_missing_content(self, store):
        with pytest.raises(NotFoundError):
            store.save_rating(9999, user_id=1, overall_rating=80)

    def test_new_rating_requires_overall(self, store, make_content):
        content = make_content()

        with pytest.raises(ValidationError):
            store.save_rating(content.id, user_id=1, platform_ratings={"instagram": 80})

    def test_upsert_is_idempotent(self, store, make_content, db_session):
        content = make_content()

        first = store.save_rating(content.id, user_id=1, overall_rating=80)
        second = store.save_rating(content.id, user_id=1, overall_rating=80)

        assert first.id == second.id
        assert db_session.query(DBContentRating).count() == 1

    def test_update_keeps_unspecified_fields(self, store, make_content):
        content = make_content()
        store.save_rating(
            content.id, user_id=1, overall_rating=70,
            platform_ratings={"instagram": 90}, notes="First pass"
        )

        updated = store.save_rating(content.id, user_id=1, overall_rating=75)

        assert updated.overall_rating == 75
        assert updated.instagram_rating == 90
        assert updated.notes == "First pass"

    def test_anonymous_ratings_share_one_bucket(self, store, make_content, db_session):
        content = make_content()

        store.save_rating(content.id, overall_rating=60)
        store.save_rating(content.id, overall_rating=65)
        store.save_rating(content.id, user_id=7, overall_rating=90)

        assert db_session.query(DBContentRating).count() == 2
        assert store.get_rating(content.id).overall_rating == 65
        assert store.get_rating(content.id, user_id=7).overall_rating == 90

    def test_get_rating_unrated_returns_none(self, store, make_content):
        content = make_content()

        assert store.get_rating(content.id, user_id=1) is None


# =============================================================================
# AI Evaluations
# =============================================================================

class TestAIEvaluations:
    """store_ai_evaluation derives the overall score and upserts by model."""

    def test_overall_is_mean_of_sub_scores(self, store, make_content):
        content = make_content()

        evaluation = store.store_ai_evaluation(content.id, "gpt-4o", 8, 9, 7, 10)

        assert float(evaluation.overall_score) == 8.5

    def test_overall_rounds_half_up(self):
        assert compute_overall_score(7, 7, 7, 8) == Decimal("7.3")
        assert compute_overall_score(5, 5, 5, 5) == Decimal("5.0")

    def test_upsert_by_model(self, store, make_content, db_session):
        content = make_content()

        store.store_ai_evaluation(content.id, "gpt-4o", 5, 5, 5, 5)
        updated = store.store_ai_evaluation(content.id, "gpt-4o", 9, 9, 9, 9, needs_revision=True)
        store.store_ai_evaluation(content.id, "claude", 6, 6, 6, 6)

        assert float(updated.overall_score) == 9.0
        assert updated.needs_revision is True
        assert db_session.query(DBContentEvaluation).count() == 2

    def test_justifications_are_stored(self, store, make_content):
        content = make_content()

        evaluation = store.store_ai_evaluation(
            content.id, "gpt-4o", 8, 8, 8, 8,
            justifications={"virality": "Strong hook", "clarity": "Clear"},
            improvement_suggestions="1. Shorten the intro",
        )

        assert evaluation.virality_justification == "Strong hook"
        assert evaluation.clarity_justification == "Clear"
        assert evaluation.creativity_justification is None
        assert evaluation.improvement_suggestions == "1. Shorten the intro"

    @pytest.mark.parametrize("scores", [(0, 5, 5, 5), (5, 11, 5, 5), (5, 5, 5, 7.5)])
    def test_out_of_range_scores_rejected(self, store, make_content, db_session, scores):
        content = make_content()

        with pytest.raises(ValidationError):
            store.store_ai_evaluation(content.id, "gpt-4o", *scores)

        assert db_session.query(DBContentEvaluation).count() == 0

    def test_empty_model_rejected(self, store, make_content):
        content = make_content()

        with pytest.raises(ValidationError):
            store.store_ai_evaluation(content.id, "", 5, 5, 5, 5)

    def test_missing_content(self, store):
        with pytest.raises(NotFoundError):
            store.store_ai_evaluation(4242, "gpt-4o", 5, 5, 5, 5)

    def test_get_evaluations(self, store, make_content):
        content = make_content()
        store.store_ai_evaluation(content.id, "gpt-4o", 8, 8, 8, 8)
        store.store_ai_evaluation(content.id, "claude", 6, 6, 6, 6)

        models = [e.evaluator_model for e in store.get_evaluations(content.id)]

        assert models == ["gpt-4o", "claude"]


# =============================================================================
# Statistics
# =============================================================================

class TestRatingStats:
    def test_empty_stats(self, store):
        stats = store.get_rating_stats()

        assert stats["total_ratings"] == 0
        assert stats["average_overall_rating"] == 0.0
        assert stats["top_performing_niches"] == []

    def test_stats_summary(self, store, make_content):
        glow = make_content(niche="skincare", tone="friendly")
        mask = make_content(niche="skincare", tone="luxury")
        phone = make_content(niche="tech", tone="friendly")
        store.save_rating(glow.id, user_id=1, overall_rating=90, platform_ratings={"tiktok": 80})
        store.save_rating(mask.id, user_id=1, overall_rating=80)
        store.save_rating(phone.id, user_id=1, overall_rating=60)
        store.save_rating(phone.id, user_id=2, overall_rating=10)

        stats = store.get_rating_stats(user_id=1)

        assert stats["total_ratings"] == 3
        assert stats["average_overall_rating"] == pytest.approx(76.67)
        assert stats["average_platform_ratings"]["tiktok"] == 80.0
        assert stats["average_platform_ratings"]["youtube"] == 0.0
        assert stats["top_performing_niches"][0] == {"name": "skincare", "average_rating": 85.0, "count": 2}
        assert stats["top_performing_niches"][1]["name"] == "tech"
        assert stats["top_performing_tones"][0]["name"] == "luxury"

    def test_all_users_stats(self, store, make_content):
        content = make_content()
        store.save_rating(content.id, user_id=1, overall_rating=90)
        store.save_rating(content.id, user_id=2, overall_rating=70)

        assert store.get_rating_stats()["total_ratings"] == 2


class TestPerformanceInsights:
    def test_newest_first_with_viral_score(self, store, make_content):
        make_content(output_text="Old post about a gentle cleanser.")
        newest = make_content(output_text="This is amazing! Would you try it?", prompt_text="Did you know?")

        insights = store.get_content_performance_insights(limit=1)

        assert len(insights) == 1
        assert insights[0]["id"] == newest.id
        assert insights[0]["emotional_tone"] == "excited"
        assert insights[0]["hook_type"] == "question"
        assert 0 <= insights[0]["viral_score"] <= 100


# =============================================================================
# Store failures
# =============================================================================

class TestStoreErrors:
    def test_commit_failure_becomes_store_error(self, store, make_content, db_session, monkeypatch):
        content = make_content()
        rollback = MagicMock(wraps=db_session.rollback)
        monkeypatch.setattr(db_session, "commit", MagicMock(side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))))
        monkeypatch.setattr(db_session, "rollback", rollback)

        with pytest.raises(StoreError) as exc_info:
            store.save_rating(content.id, user_id=1, overall_rating=80)

        assert exc_info.value.operation == "save_rating"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        rollback.assert_called_once()
