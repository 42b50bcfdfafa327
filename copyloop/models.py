"""Data models and schemas for the CopyLoop backend."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums for validated parameters
# =============================================================================

class Niche(str, Enum):
    """Supported content verticals. DEFAULT holds the shared fallback templates."""
    DEFAULT = "default"
    SKINCARE = "skincare"
    TECH = "tech"
    FASHION = "fashion"
    FITNESS = "fitness"
    FOOD = "food"
    TRAVEL = "travel"
    PET = "pet"


class TemplateType(str, Enum):
    """Structural formats of generated content."""
    ORIGINAL = "original"
    COMPARISON = "comparison"
    CAPTION = "caption"
    PROS_CONS = "pros_cons"
    ROUTINE = "routine"
    BEGINNER_KIT = "beginner_kit"
    DEMO_SCRIPT = "demo_script"
    DRUGSTORE_DUPE = "drugstore_dupe"
    PERSONAL_REVIEW = "personal_review"
    SURPRISE_ME = "surprise_me"
    TIKTOK_BREAKDOWN = "tiktok_breakdown"
    DRY_SKIN_LIST = "dry_skin_list"
    TOP5_UNDER25 = "top5_under25"
    INFLUENCER_CAPTION = "influencer_caption"
    RECIPE = "recipe"
    PACKING_LIST = "packing_list"
    SEO_BLOG = "seo_blog"
    SHORT_VIDEO = "short_video"
    PRODUCT_COMPARISON = "product_comparison"
    ROUTINE_KIT = "routine_kit"


class Platform(str, Enum):
    """Platforms that carry their own rating column."""
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    TWITTER = "twitter"


class LearningIntensity(str, Enum):
    """How strongly learned style is applied to new prompts."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class FallbackLevel(str, Enum):
    """Which tier of the template chain produced a prompt."""
    EXACT = "exact"
    DEFAULT = "default"
    GENERIC = "generic"


# =============================================================================
# Rating Models
# =============================================================================

class RatingCreate(BaseModel):
    """POST body for saving a human rating."""
    model_config = ConfigDict(populate_by_name=True)

    content_history_id: int = Field(..., alias="contentHistoryId")
    user_id: Optional[int] = Field(None, alias="userId")
    overall_rating: Optional[int] = Field(None, alias="overallRating")
    instagram_rating: Optional[int] = Field(None, alias="instagramRating")
    tiktok_rating: Optional[int] = Field(None, alias="tiktokRating")
    youtube_rating: Optional[int] = Field(None, alias="youtubeRating")
    twitter_rating: Optional[int] = Field(None, alias="twitterRating")
    notes: Optional[str] = None

    def platform_ratings(self) -> Dict[str, int]:
        """Only the platform ratings that were supplied."""
        ratings = {
            "instagram": self.instagram_rating,
            "tiktok": self.tiktok_rating,
            "youtube": self.youtube_rating,
            "twitter": self.twitter_rating,
        }
        return {k: v for k, v in ratings.items() if v is not None}


class RatingResponse(BaseModel):
    """Stored human rating."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_history_id: int
    user_id: Optional[int]
    overall_rating: int
    instagram_rating: Optional[int] = None
    tiktok_rating: Optional[int] = None
    youtube_rating: Optional[int] = None
    twitter_rating: Optional[int] = None
    notes: Optional[str] = None
    rated_at: datetime
    updated_at: datetime


# =============================================================================
# AI Evaluation Models
# =============================================================================

class EvaluationCreate(BaseModel):
    """POST body for storing an AI evaluation produced elsewhere."""
    model_config = ConfigDict(populate_by_name=True)

    content_history_id: int = Field(..., alias="contentHistoryId")
    evaluator_model: str = Field(..., alias="evaluatorModel", min_length=1, max_length=100)
    virality_score: int = Field(..., alias="viralityScore")
    clarity_score: int = Field(..., alias="clarityScore")
    persuasiveness_score: int = Field(..., alias="persuasivenessScore")
    creativity_score: int = Field(..., alias="creativityScore")
    virality_justification: Optional[str] = Field(None, alias="viralityJustification")
    clarity_justification: Optional[str] = Field(None, alias="clarityJustification")
    persuasiveness_justification: Optional[str] = Field(None, alias="persuasivenessJustification")
    creativity_justification: Optional[str] = Field(None, alias="creativityJustification")
    needs_revision: bool = Field(False, alias="needsRevision")
    improvement_suggestions: Optional[str] = Field(None, alias="improvementSuggestions")


class EvaluationResponse(BaseModel):
    """Stored AI evaluation; overall_score is the one-decimal string form."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_history_id: int
    evaluator_model: str
    virality_score: int
    clarity_score: int
    persuasiveness_score: int
    creativity_score: int
    virality_justification: Optional[str] = None
    clarity_justification: Optional[str] = None
    persuasiveness_justification: Optional[str] = None
    creativity_justification: Optional[str] = None
    overall_score: str
    needs_revision: bool
    improvement_suggestions: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_db(cls, evaluation) -> "EvaluationResponse":
        data = {c: getattr(evaluation, c) for c in cls.model_fields if c != "overall_score"}
        return cls(overall_score=f"{float(evaluation.overall_score):.1f}", **data)


# =============================================================================
# Pattern Models
# =============================================================================

class PatternGenerateRequest(BaseModel):
    """Trigger for re-mining patterns."""
    model_config = ConfigDict(populate_by_name=True)

    min_rating: int = Field(70, alias="minRating", ge=1, le=100)


class PatternResponse(BaseModel):
    """Mined content pattern."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    pattern_name: str
    niche: str
    template_type: str
    tone: str
    platform: str
    average_rating: float
    sample_count: int
    confidence: float
    average_word_count: Optional[int] = None
    common_phrases: List[str] = []
    emotional_tone: Optional[str] = None
    hook_type: Optional[str] = None
    call_to_action_style: Optional[str] = None
    best_performing_elements: Optional[Dict[str, Any]] = None
    is_active: bool = True


class PatternApplicationCreate(BaseModel):
    """POST body for tracking a pattern application."""
    model_config = ConfigDict(populate_by_name=True)

    content_history_id: int = Field(..., alias="contentHistoryId")
    pattern_id: Optional[int] = Field(None, alias="patternId")
    application_strength: float = Field(1.0, alias="applicationStrength")
    modified_attributes: List[str] = Field(default_factory=list, alias="modifiedAttributes")


# =============================================================================
# Preference Models
# =============================================================================

class PreferencesUpdate(BaseModel):
    """Partial patch of a user's learning preferences."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    use_smart_learning: Optional[bool] = Field(None, alias="useSmartLearning")
    learning_intensity: Optional[LearningIntensity] = Field(None, alias="learningIntensity")
    min_overall_rating: Optional[int] = Field(None, alias="minOverallRating", ge=1, le=100)
    min_platform_rating: Optional[int] = Field(None, alias="minPlatformRating", ge=1, le=100)
    personalized_weights: Optional[Dict[str, Any]] = Field(None, alias="personalizedWeights")


class PreferencesResponse(BaseModel):
    """Stored learning preferences."""
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    use_smart_learning: bool
    learning_intensity: str
    min_overall_rating: int
    min_platform_rating: int
    personalized_weights: Optional[Dict[str, Any]] = None
    updated_at: datetime


# =============================================================================
# Template Models
# =============================================================================

class TemplateResolveRequest(BaseModel):
    """Request to resolve a prompt template."""
    model_config = ConfigDict(populate_by_name=True)

    niche: Niche
    template_type: TemplateType = Field(..., alias="templateType")
    product_name: str = Field(..., alias="productName", min_length=1)
    tone: str = "friendly"
    trend_context: str = Field("", alias="trendContext")
