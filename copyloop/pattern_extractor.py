"""
Pattern Extractor.

Batch mining of highly rated (content, rating) pairs into reusable
Content Patterns, one per (niche, tone, content type) group.

Extraction itself never writes; persistence goes through a
PatternRepository so the overwrite policy can change without touching
callers.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .constants import (
    CONFIDENCE_FULL_SAMPLES,
    DEFAULT_PATTERN_MIN_RATING,
    MAX_COMMON_PHRASES,
    MIN_PATTERN_SAMPLES,
    MIN_PHRASE_FREQUENCY,
    PATTERN_PLATFORM_ALL,
)
from .content_analyzer import analyze_content
from .database import commit_or_raise
from .db_models import (
    DBContentHistory,
    DBContentPattern,
    DBContentRating,
    DBPatternApplication,
)
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ContentPatternData:
    """A mined pattern, not yet persisted."""
    pattern_name: str
    niche: str
    tone: str
    template_type: str
    average_rating: float
    sample_count: int
    confidence: float
    average_word_count: int
    common_phrases: List[str]
    emotional_tone: str
    hook_type: str
    call_to_action_style: str
    best_performing_elements: Dict[str, Any]
    platform: str = PATTERN_PLATFORM_ALL
    avoidance_patterns: List[str] = field(default_factory=list)

    @property
    def group_key(self) -> str:
        return f"{self.niche}|{self.tone}|{self.template_type}"


def _common_phrases(phrase_lists: List[tuple]) -> List[str]:
    # Counter preserves insertion order and most_common() is a stable sort,
    # so equal frequencies keep first-seen order.
    counts = Counter()
    for phrases in phrase_lists:
        counts.update(phrases)
    return [
        phrase for phrase, count in counts.most_common()
        if count >= MIN_PHRASE_FREQUENCY
    ][:MAX_COMMON_PHRASES]


class PatternExtractor:
    """Groups rated content and turns each large enough group into a pattern."""

    def __init__(self, db: Session):
        self.db = db

    def _fetch_rated_content(self, min_rating: int):
        return self.db.query(DBContentHistory, DBContentRating).join(
            DBContentRating, DBContentRating.content_history_id == DBContentHistory.id
        ).filter(
            DBContentRating.overall_rating >= min_rating
        ).order_by(
            DBContentRating.overall_rating.desc(),
            DBContentHistory.created_at.desc()
        ).all()

    def extract_patterns(self, min_rating: int = DEFAULT_PATTERN_MIN_RATING) -> List[ContentPatternData]:
        """
        Mine content patterns from ratings at or above min_rating.

        Groups with fewer than MIN_PATTERN_SAMPLES members are dropped.
        Tone, hook and CTA tags come from the first (highest rated) member.

        Args:
            min_rating: Minimum overall rating (1-100) for a sample to count

        Returns:
            One ContentPatternData per surviving group
        """
        rows = self._fetch_rated_content(min_rating)

        groups: Dict[str, list] = {}
        for content, rating in rows:
            key = f"{content.niche}|{content.tone}|{content.content_type}"
            groups.setdefault(key, []).append((content, rating))

        patterns = []
        for key, members in groups.items():
            if len(members) < MIN_PATTERN_SAMPLES:
                logger.debug(f"[PatternExtractor] Skipping group {key}: only {len(members)} samples")
                continue
            patterns.append(self._build_pattern(members))

        logger.info(
            f"[PatternExtractor] Extracted {len(patterns)} patterns from {len(groups)} groups "
            f"({len(rows)} ratings >= {min_rating})"
        )
        return patterns

    def _build_pattern(self, members: list) -> ContentPatternData:
        analyses = [analyze_content(c.output_text, c.prompt_text) for c, _ in members]
        ratings = [r.overall_rating for _, r in members]
        first_content = members[0][0]
        first = analyses[0]

        sample_count = len(members)
        average_rating = round(sum(ratings) / sample_count, 2)
        phrases = _common_phrases([a.phrases for a in analyses])

        return ContentPatternData(
            pattern_name=f"{first_content.niche} {first_content.tone} {first_content.content_type}",
            niche=first_content.niche,
            tone=first_content.tone,
            template_type=first_content.content_type,
            average_rating=average_rating,
            sample_count=sample_count,
            confidence=min(sample_count / CONFIDENCE_FULL_SAMPLES, 1.0),
            average_word_count=round(sum(a.word_count for a in analyses) / sample_count),
            common_phrases=phrases,
            emotional_tone=first.emotional_tone,
            hook_type=first.hook_type,
            call_to_action_style=first.call_to_action_style,
            best_performing_elements={
                "avgRating": average_rating,
                "topPhrases": phrases[:5],
                "sampleIds": [c.id for c, _ in members],
            },
        )

    def refresh_patterns(
        self,
        repository: "PatternRepository",
        min_rating: int = DEFAULT_PATTERN_MIN_RATING
    ) -> List[DBContentPattern]:
        """Extract patterns and hand them to the repository; returns the saved rows."""
        patterns = self.extract_patterns(min_rating)
        return repository.save_patterns(patterns)


# =============================================================================
# Persistence
# =============================================================================

class PatternRepository(ABC):
    """Where mined patterns live and how a new run replaces an old one."""

    @abstractmethod
    def save_patterns(self, patterns: List[ContentPatternData]) -> List[DBContentPattern]:
        """Persist a run's patterns."""
        pass

    @abstractmethod
    def get_active_patterns(
        self,
        niche: Optional[str] = None,
        tone: Optional[str] = None,
        template_type: Optional[str] = None,
        platform: Optional[str] = None
    ) -> List[DBContentPattern]:
        """Active patterns matching the given filters, best first."""
        pass

    @abstractmethod
    def track_application(
        self,
        content_history_id: int,
        pattern_id: Optional[int] = None,
        application_strength: float = 1.0,
        modified_attributes: Optional[List[str]] = None
    ) -> DBPatternApplication:
        """Record that a pattern was applied to a content item."""
        pass


class SQLAlchemyPatternRepository(PatternRepository):
    """
    Relational pattern store.

    A run overwrites the row for each (niche, tone, template_type, platform)
    group it produced; groups it did not produce are left untouched.
    """

    def __init__(self, db: Session):
        self.db = db

    def save_patterns(self, patterns: List[ContentPatternData]) -> List[DBContentPattern]:
        saved = []
        for data in patterns:
            row = self.db.query(DBContentPattern).filter(
                DBContentPattern.niche == data.niche,
                DBContentPattern.tone == data.tone,
                DBContentPattern.template_type == data.template_type,
                DBContentPattern.platform == data.platform
            ).first()

            if row is None:
                row = DBContentPattern(
                    niche=data.niche,
                    tone=data.tone,
                    template_type=data.template_type,
                    platform=data.platform,
                )
                self.db.add(row)

            row.pattern_name = data.pattern_name
            row.average_rating = Decimal(str(data.average_rating))
            row.sample_count = data.sample_count
            row.confidence = data.confidence
            row.average_word_count = data.average_word_count
            row.common_phrases = list(data.common_phrases)
            row.emotional_tone = data.emotional_tone
            row.hook_type = data.hook_type
            row.call_to_action_style = data.call_to_action_style
            row.best_performing_elements = dict(data.best_performing_elements)
            row.avoidance_patterns = list(data.avoidance_patterns)
            row.is_active = True
            row.updated_at = datetime.utcnow()
            saved.append(row)

        commit_or_raise(self.db, "save_patterns")
        for row in saved:
            self.db.refresh(row)

        logger.info(f"[PatternExtractor] Saved {len(saved)} patterns")
        return saved

    def get_active_patterns(
        self,
        niche: Optional[str] = None,
        tone: Optional[str] = None,
        template_type: Optional[str] = None,
        platform: Optional[str] = None
    ) -> List[DBContentPattern]:
        query = self.db.query(DBContentPattern).filter(DBContentPattern.is_active.is_(True))
        if niche:
            query = query.filter(DBContentPattern.niche == niche)
        if tone:
            query = query.filter(DBContentPattern.tone == tone)
        if template_type:
            query = query.filter(DBContentPattern.template_type == template_type)
        if platform:
            query = query.filter(DBContentPattern.platform == platform)
        return query.order_by(
            DBContentPattern.average_rating.desc(),
            DBContentPattern.sample_count.desc()
        ).all()

    def track_application(
        self,
        content_history_id: int,
        pattern_id: Optional[int] = None,
        application_strength: float = 1.0,
        modified_attributes: Optional[List[str]] = None
    ) -> DBPatternApplication:
        if isinstance(application_strength, bool) or not isinstance(application_strength, (int, float)):
            raise ValidationError("application_strength", "must be a number between 0 and 1")
        if not 0.0 <= application_strength <= 1.0:
            raise ValidationError("application_strength", f"{application_strength} is outside 0-1")

        if self.db.get(DBContentHistory, content_history_id) is None:
            raise NotFoundError("ContentHistory", content_history_id)
        if pattern_id is not None and self.db.get(DBContentPattern, pattern_id) is None:
            raise NotFoundError("ContentPattern", pattern_id)

        application = DBPatternApplication(
            content_history_id=content_history_id,
            pattern_id=pattern_id,
            application_strength=float(application_strength),
            modified_attributes=list(modified_attributes or []),
        )
        self.db.add(application)
        commit_or_raise(self.db, "track_application")
        self.db.refresh(application)

        logger.info(
            f"Tracked pattern application: content={content_history_id}, "
            f"pattern={pattern_id}, strength={application_strength}"
        )
        return application


# =============================================================================
# Convenience functions
# =============================================================================

def get_content_suggestions(
    db: Session,
    niche: Optional[str] = None,
    tone: Optional[str] = None,
    template_type: Optional[str] = None
) -> List[DBContentPattern]:
    """Active patterns for a niche / tone / template type, highest rated first."""
    return SQLAlchemyPatternRepository(db).get_active_patterns(
        niche=niche, tone=tone, template_type=template_type
    )


def track_pattern_application(
    db: Session,
    content_history_id: int,
    pattern_id: Optional[int] = None,
    application_strength: float = 1.0,
    modified_attributes: Optional[List[str]] = None
) -> DBPatternApplication:
    """Append a PatternApplication row."""
    return SQLAlchemyPatternRepository(db).track_application(
        content_history_id,
        pattern_id=pattern_id,
        application_strength=application_strength,
        modified_attributes=modified_attributes,
    )
