"""
SQLAlchemy database models.

Maps the rating / pattern-learning domain to relational tables.
Separate from Pydantic models (models.py) which handle API validation.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DBContentHistory(Base):
    """
    Generated content, owned by the generation pipeline.

    Read-only from this subsystem's point of view.
    """
    __tablename__ = "content_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    niche = Column(String(50), nullable=False, index=True)
    tone = Column(String(50), nullable=False)
    content_type = Column(String(100), nullable=False)  # template type
    product_name = Column(String(255), nullable=True)
    prompt_text = Column(Text, nullable=True)  # hook / originating prompt
    output_text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    ratings = relationship("DBContentRating", back_populates="content", cascade="all, delete-orphan")
    evaluations = relationship("DBContentEvaluation", back_populates="content", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_content_history_group', 'niche', 'tone', 'content_type'),
    )

    def __repr__(self):
        return f"<DBContentHistory(id={self.id}, niche='{self.niche}', type='{self.content_type}')>"


class DBContentRating(Base):
    """Human rating of a content item (overall + per-platform, 1-100)."""
    __tablename__ = "content_ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_history_id = Column(Integer, ForeignKey("content_history.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # NULL = shared anonymous bucket

    overall_rating = Column(Integer, nullable=False, index=True)
    instagram_rating = Column(Integer, nullable=True)
    tiktok_rating = Column(Integer, nullable=True)
    youtube_rating = Column(Integer, nullable=True)
    twitter_rating = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    rated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    content = relationship("DBContentHistory", back_populates="ratings")

    __table_args__ = (
        Index('idx_rating_content_user', 'content_history_id', 'user_id', unique=True),
    )

    def platform_rating(self, platform: str):
        """Rating for one of the tracked platforms, or None."""
        return getattr(self, f"{platform}_rating", None)

    def __repr__(self):
        return f"<DBContentRating(content={self.content_history_id}, user={self.user_id}, overall={self.overall_rating})>"


class DBContentEvaluation(Base):
    """AI evaluator rating of a content item (four 1-10 sub-scores)."""
    __tablename__ = "content_evaluations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_history_id = Column(Integer, ForeignKey("content_history.id", ondelete="CASCADE"), nullable=False, index=True)
    evaluator_model = Column(String(100), nullable=False)

    virality_score = Column(Integer, nullable=False)
    clarity_score = Column(Integer, nullable=False)
    persuasiveness_score = Column(Integer, nullable=False)
    creativity_score = Column(Integer, nullable=False)

    virality_justification = Column(Text, nullable=True)
    clarity_justification = Column(Text, nullable=True)
    persuasiveness_justification = Column(Text, nullable=True)
    creativity_justification = Column(Text, nullable=True)

    # Always the mean of the four sub-scores, one decimal place
    overall_score = Column(Numeric(4, 1), nullable=False, index=True)
    needs_revision = Column(Boolean, default=False, nullable=False)
    improvement_suggestions = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    content = relationship("DBContentHistory", back_populates="evaluations")

    __table_args__ = (
        Index('idx_evaluation_content_model', 'content_history_id', 'evaluator_model', unique=True),
    )

    def __repr__(self):
        return f"<DBContentEvaluation(content={self.content_history_id}, model='{self.evaluator_model}', overall={self.overall_score})>"


class DBContentPattern(Base):
    """Mined description of what well-rated content looks like for a group."""
    __tablename__ = "content_patterns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    pattern_name = Column(String(255), nullable=False)
    niche = Column(String(50), nullable=False, index=True)
    template_type = Column(String(100), nullable=False)
    tone = Column(String(50), nullable=False)
    platform = Column(String(50), default="all", nullable=False)

    average_rating = Column(Numeric(5, 2), nullable=False)
    sample_count = Column(Integer, nullable=False)
    confidence = Column(Float, nullable=False)  # 0.0 - 1.0
    average_word_count = Column(Integer, nullable=True)
    common_phrases = Column(JSON, nullable=False, default=list)

    # Taken from the first sample of the group, not aggregated
    emotional_tone = Column(String(50), nullable=True)
    hook_type = Column(String(50), nullable=True)
    call_to_action_style = Column(String(50), nullable=True)

    best_performing_elements = Column(JSON, nullable=True)  # {avgRating, topPhrases, sampleIds}
    avoidance_patterns = Column(JSON, nullable=True, default=list)  # reserved
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    applications = relationship("DBPatternApplication", back_populates="pattern")

    __table_args__ = (
        Index('idx_pattern_group', 'niche', 'tone', 'template_type', 'platform', unique=True),
        Index('idx_pattern_active_rating', 'is_active', 'average_rating'),
    )

    def __repr__(self):
        return f"<DBContentPattern(id={self.id}, name='{self.pattern_name}', samples={self.sample_count})>"


class DBUserContentPreferences(Base):
    """Per-user learning configuration."""
    __tablename__ = "user_content_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, unique=True, nullable=False, index=True)

    use_smart_learning = Column(Boolean, default=True, nullable=False)
    learning_intensity = Column(String(20), default="moderate", nullable=False)  # conservative, moderate, aggressive
    min_overall_rating = Column(Integer, default=70, nullable=False)
    min_platform_rating = Column(Integer, default=65, nullable=False)
    personalized_weights = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<DBUserContentPreferences(user={self.user_id}, intensity='{self.learning_intensity}')>"


class DBPatternApplication(Base):
    """Append-only record that a pattern was applied to a content item."""
    __tablename__ = "pattern_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_history_id = Column(Integer, ForeignKey("content_history.id", ondelete="CASCADE"), nullable=False, index=True)
    pattern_id = Column(Integer, ForeignKey("content_patterns.id", ondelete="SET NULL"), nullable=True, index=True)
    application_strength = Column(Float, default=1.0, nullable=False)  # 0.0 - 1.0
    modified_attributes = Column(JSON, nullable=False, default=list)
    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    pattern = relationship("DBContentPattern", back_populates="applications")

    def __repr__(self):
        return f"<DBPatternApplication(content={self.content_history_id}, pattern={self.pattern_id})>"
