"""
Recommendation Engine.

Answers "how should I write this" from the user's own ratings and from AI
evaluations. Both sources are normalized onto the 0-100 user scale
(AI 1-10 scores x10) before they are merged, so an AI 7.0 and a user 70
carry equal weight.
"""

import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .constants import (
    AI_SCORE_SCALE,
    NO_RECOMMENDATION_TEXT,
    RATING_PLATFORMS,
    RECOMMEND_BEST_CONTENT,
    RECOMMEND_MERGED_LIMIT,
    RECOMMEND_MIN_AI_SCORE,
    RECOMMEND_MIN_USER_RATING,
    RECOMMEND_SOURCE_LIMIT,
    TOP_STYLE_EXAMPLE_LENGTH,
    TOP_STYLE_HASHTAGS,
    TOP_STYLE_MIN_AI_SCORE,
    TOP_STYLE_MIN_USER_RATING,
)
from .content_analyzer import analyze_content
from .db_models import DBContentEvaluation, DBContentHistory, DBContentRating
from .preference_store import PreferenceStore

logger = logging.getLogger(__name__)

HASHTAG_PATTERN = re.compile(r"#\w+")

SOURCE_USER = "user_ratings"
SOURCE_AI = "ai_evaluations"


@dataclass
class RatedSample:
    """One content item with its rating on the common 0-100 scale."""
    content: DBContentHistory
    normalized_rating: float
    source: str
    platform_ratings: Dict[str, Optional[int]] = field(default_factory=dict)


@dataclass
class StyleRecommendation:
    recommendation: str
    common_tones: List[str]
    successful_templates: List[str]
    average_rating: int
    best_content: List[str]
    top_performing_structures: List[str]
    platform_insights: List[Dict[str, Any]]
    user_sample_count: int
    ai_sample_count: int
    most_common_tone: Optional[str] = None
    most_common_template: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TopRatedStyle:
    """Condensed style of the very best content, ready for prompt building."""
    tone_summary: str
    structure_hint: str
    top_hashtags: List[str]
    high_rated_caption_example: str
    sample_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _unique(values) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def _most_common(values) -> Optional[str]:
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def merge_samples(user_samples: List[RatedSample], ai_samples: List[RatedSample], limit: int) -> List[RatedSample]:
    """
    Merge both sources, one entry per content id, best first.

    A content item present in both keeps its higher normalized rating;
    on a tie the user sample wins.
    """
    best: Dict[int, RatedSample] = {}
    for sample in user_samples + ai_samples:
        current = best.get(sample.content.id)
        if current is None or sample.normalized_rating > current.normalized_rating:
            best[sample.content.id] = sample

    # sorted() is stable, so equal ratings keep user-then-AI order
    merged = sorted(best.values(), key=lambda s: s.normalized_rating, reverse=True)
    return merged[:limit]


class RecommendationEngine:
    """Builds style recommendations from rated and AI-evaluated content."""

    def __init__(self, db: Session):
        self.db = db

    # =============================================================================
    # Sample collection
    # =============================================================================

    def _user_samples(self, user_id: int, niche: Optional[str], min_rating: int) -> List[RatedSample]:
        query = self.db.query(DBContentHistory, DBContentRating).join(
            DBContentRating, DBContentRating.content_history_id == DBContentHistory.id
        ).filter(
            DBContentRating.user_id == user_id,
            DBContentRating.overall_rating >= min_rating
        )
        if niche:
            query = query.filter(DBContentHistory.niche == niche)

        rows = query.order_by(
            DBContentRating.overall_rating.desc(),
            DBContentHistory.created_at.desc()
        ).limit(RECOMMEND_SOURCE_LIMIT).all()

        return [
            RatedSample(
                content=content,
                normalized_rating=float(rating.overall_rating),
                source=SOURCE_USER,
                platform_ratings={p: rating.platform_rating(p) for p in RATING_PLATFORMS},
            )
            for content, rating in rows
        ]

    def _ai_samples(self, niche: Optional[str], min_score: float) -> List[RatedSample]:
        query = self.db.query(DBContentHistory, DBContentEvaluation).join(
            DBContentEvaluation, DBContentEvaluation.content_history_id == DBContentHistory.id
        ).filter(
            DBContentEvaluation.overall_score >= min_score
        )
        if niche:
            query = query.filter(DBContentHistory.niche == niche)

        rows = query.order_by(
            DBContentEvaluation.overall_score.desc(),
            DBContentHistory.created_at.desc()
        ).limit(RECOMMEND_SOURCE_LIMIT).all()

        return [
            RatedSample(
                content=content,
                normalized_rating=round(float(evaluation.overall_score) * AI_SCORE_SCALE, 1),
                source=SOURCE_AI,
            )
            for content, evaluation in rows
        ]

    def _collect(self, user_id: int, niche: Optional[str], min_user: int, min_ai: float) -> List[RatedSample]:
        user_samples = self._user_samples(user_id, niche, min_user)
        ai_samples = self._ai_samples(niche, min_ai)
        return merge_samples(user_samples, ai_samples, RECOMMEND_MERGED_LIMIT)

    def _smart_learning_disabled(self, user_id: int) -> bool:
        prefs = PreferenceStore(self.db).get(user_id)
        return prefs is not None and not prefs.use_smart_learning

    # =============================================================================
    # Recommendations
    # =============================================================================

    def recommend(
        self,
        user_id: int,
        niche: Optional[str] = None,
        template_type: Optional[str] = None,
        tone: Optional[str] = None,
        platform: Optional[str] = None
    ) -> Optional[StyleRecommendation]:
        """
        Style recommendation for the next piece of content.

        Args:
            user_id: Whose ratings to learn from
            niche: Restrict samples to one niche
            template_type: Requested template; compared with the most successful one
            tone: Requested tone; compared with the most successful one
            platform: Adds per-platform averages when given

        Returns:
            StyleRecommendation, or None when there is nothing to learn from
            or the user turned smart learning off
        """
        if self._smart_learning_disabled(user_id):
            logger.info(f"Smart learning disabled for user {user_id}, skipping recommendation")
            return None

        samples = self._collect(user_id, niche, RECOMMEND_MIN_USER_RATING, RECOMMEND_MIN_AI_SCORE)
        if not samples:
            return None

        analyses = [analyze_content(s.content.output_text, s.content.prompt_text) for s in samples]
        user_subset = [s for s in samples if s.source == SOURCE_USER]
        ai_subset = [s for s in samples if s.source == SOURCE_AI]

        tones = [s.content.tone for s in samples]
        templates = [s.content.content_type for s in samples]

        result = StyleRecommendation(
            recommendation="",
            common_tones=_unique(tones),
            successful_templates=_unique(templates),
            average_rating=round(sum(s.normalized_rating for s in samples) / len(samples)),
            best_content=[s.content.output_text for s in samples[:RECOMMEND_BEST_CONTENT]],
            top_performing_structures=_unique(a.structure_signature() for a in analyses),
            platform_insights=self._platform_insights(platform, user_subset, ai_subset) if platform else [],
            user_sample_count=len(user_subset),
            ai_sample_count=len(ai_subset),
            most_common_tone=_most_common(tones),
            most_common_template=_most_common(templates),
        )
        result.recommendation = self._recommendation_text(result, tone, template_type)

        logger.info(
            f"Recommendation for user {user_id} niche={niche}: {len(user_subset)} user-rated, "
            f"{len(ai_subset)} AI-evaluated samples, average {result.average_rating}"
        )
        return result

    def _platform_insights(
        self,
        platform: str,
        user_subset: List[RatedSample],
        ai_subset: List[RatedSample]
    ) -> List[Dict[str, Any]]:
        insights = []

        platform_values = [
            s.platform_ratings.get(platform) for s in user_subset
            if s.platform_ratings.get(platform) is not None
        ]
        if platform_values:
            insights.append({
                "platform": platform,
                "average_rating": round(sum(platform_values) / len(platform_values), 2),
                "sample_count": len(platform_values),
                "source": SOURCE_USER,
            })

        if ai_subset:
            insights.append({
                "platform": platform,
                "average_rating": round(sum(s.normalized_rating for s in ai_subset) / len(ai_subset), 2),
                "sample_count": len(ai_subset),
                "source": SOURCE_AI,
            })

        return insights

    @staticmethod
    def _recommendation_text(
        result: StyleRecommendation,
        requested_tone: Optional[str],
        requested_template: Optional[str]
    ) -> str:
        parts = []
        if result.common_tones:
            parts.append(f"Your best-performing content uses {', '.join(result.common_tones)} tones.")
        if result.successful_templates:
            parts.append(f"Successful formats: {', '.join(result.successful_templates)}.")
        if result.top_performing_structures:
            parts.append(f"Top structures: {'; '.join(result.top_performing_structures)}.")
        for insight in result.platform_insights:
            parts.append(
                f"On {insight['platform']} your content averages {insight['average_rating']}/100 "
                f"({insight['source']})."
            )

        if not parts:
            return NO_RECOMMENDATION_TEXT

        if requested_tone and result.most_common_tone and requested_tone != result.most_common_tone:
            parts.append(
                f'The "{result.most_common_tone}" tone has been most successful; consider '
                f'incorporating it while keeping the requested "{requested_tone}" style.'
            )
        if requested_template and result.most_common_template and requested_template != result.most_common_template:
            parts.append(
                f'The "{result.most_common_template}" template type has shown high engagement; '
                f'borrow its successful elements where appropriate.'
            )

        parts.append(
            f"Average rating {result.average_rating}/100 from {result.user_sample_count} user-rated, "
            f"{result.ai_sample_count} AI-evaluated samples."
        )
        return " ".join(parts)

    def get_top_rated_content_for_style(
        self,
        user_id: int,
        niche: Optional[str] = None,
        platform: Optional[str] = None,
        tone: Optional[str] = None,
        template_type: Optional[str] = None
    ) -> Optional[TopRatedStyle]:
        """
        Style summary of the user's very best content (>= 85 or AI >= 8.5).

        platform, tone and template_type describe the prompt being built and
        are only logged; sampling is by niche like recommend().
        """
        samples = self._collect(user_id, niche, TOP_STYLE_MIN_USER_RATING, TOP_STYLE_MIN_AI_SCORE)
        logger.debug(
            f"Top-rated style lookup user={user_id} niche={niche} platform={platform} "
            f"tone={tone} template={template_type}: {len(samples)} samples"
        )
        if not samples:
            return None

        structures = [
            analyze_content(s.content.output_text, s.content.prompt_text).structure_signature()
            for s in samples
        ]
        hashtags = Counter()
        for sample in samples:
            hashtags.update(HASHTAG_PATTERN.findall(sample.content.output_text))

        return TopRatedStyle(
            tone_summary=_most_common(s.content.tone for s in samples) or "",
            structure_hint=_most_common(structures) or "",
            top_hashtags=[tag for tag, _ in hashtags.most_common(TOP_STYLE_HASHTAGS)],
            high_rated_caption_example=samples[0].content.output_text[:TOP_STYLE_EXAMPLE_LENGTH],
            sample_count=len(samples),
        )


def build_style_instructions(style: Optional[TopRatedStyle]) -> str:
    """Render a TopRatedStyle as the smart-style block appended to a prompt."""
    if style is None:
        return ""

    lines = [
        "SMART STYLE LEARNING (based on your highest-rated content):",
        f"- Use a tone similar to: {style.tone_summary}",
        f"- Follow this proven structure: {style.structure_hint}",
    ]
    if style.top_hashtags:
        lines.append(f"- Include these successful hashtags: {', '.join(style.top_hashtags)}")
    if style.high_rated_caption_example:
        lines.append(f'- Reference this high-performing example style: "{style.high_rated_caption_example}"')
    lines.append("")
    lines.append(
        "Mimic the patterns from your best-rated content while creating fresh, "
        "engaging content for this new product."
    )
    return "\n".join(lines)
