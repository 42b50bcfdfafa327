"""
Application Constants for the CopyLoop backend.

Centralizes rating scales, learning thresholds and analyzer keyword lists.

Note: Dynamic configuration (from environment variables) lives in config.py.
This file only contains true constants that don't change between environments.
"""

# =============================================================================
# Rating Scales
# =============================================================================

MIN_USER_RATING = 1
MAX_USER_RATING = 100
MIN_AI_SCORE = 1
MAX_AI_SCORE = 10
AI_SCORE_SCALE = 10  # AI 1-10 scores are multiplied by this onto the 0-100 scale

RATING_PLATFORMS = ("instagram", "tiktok", "youtube", "twitter")

# =============================================================================
# Pattern Extraction
# =============================================================================

DEFAULT_PATTERN_MIN_RATING = 70
MIN_PATTERN_SAMPLES = 3  # Below this a group is not a trustworthy pattern
CONFIDENCE_FULL_SAMPLES = 10  # confidence = min(samples / 10, 1)
MIN_PHRASE_FREQUENCY = 2
MAX_COMMON_PHRASES = 10
PATTERN_PLATFORM_ALL = "all"

# =============================================================================
# Recommendation Thresholds
# =============================================================================

RECOMMEND_MIN_USER_RATING = 69
RECOMMEND_MIN_AI_SCORE = 6.9
RECOMMEND_SOURCE_LIMIT = 15
RECOMMEND_MERGED_LIMIT = 10
RECOMMEND_BEST_CONTENT = 3

TOP_STYLE_MIN_USER_RATING = 85
TOP_STYLE_MIN_AI_SCORE = 8.5
TOP_STYLE_HASHTAGS = 5
TOP_STYLE_EXAMPLE_LENGTH = 200

NO_RECOMMENDATION_TEXT = (
    "Generate more content and rate it to unlock personalized style recommendations."
)

# =============================================================================
# Preferences
# =============================================================================

DEFAULT_MIN_OVERALL_RATING = 70
DEFAULT_MIN_PLATFORM_RATING = 65
DEFAULT_LEARNING_INTENSITY = "moderate"

# =============================================================================
# Content Analyzer Keywords (checked in this priority order)
# =============================================================================

EXCITED_WORDS = ("amazing", "incredible", "wow", "fantastic", "!", "insane", "viral", "trending")
URGENT_WORDS = ("now", "today", "hurry", "limited", "urgent", "only", "last chance")
CALM_WORDS = ("gentle", "peaceful", "smooth", "subtle", "quiet")

STORY_HOOK_WORDS = ("story", "when")
SUBTLE_CTA_WORDS = ("maybe", "consider")

# =============================================================================
# Templates
# =============================================================================

DEFAULT_NICHE = "default"
