"""
Content Analyzer.

Turns raw generated text (and the hook it was generated from) into shallow
structural signals shared by the pattern extractor and the recommendation
engine:

- word count and sentence list
- 3-word phrase shingles (a frequency-counting corpus, not deduplicated)
- emotional tone, hook type and call-to-action style tags

Everything here is pure: no I/O, no state, no exceptions for string input.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import (
    CALM_WORDS,
    EXCITED_WORDS,
    STORY_HOOK_WORDS,
    SUBTLE_CTA_WORDS,
    URGENT_WORDS,
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_DIGIT = re.compile(r"\d")

# Checked in order; the first category with a keyword hit wins.
_TONE_PRIORITY = (
    ("excited", EXCITED_WORDS),
    ("urgent", URGENT_WORDS),
    ("calm", CALM_WORDS),
)


@dataclass(frozen=True)
class ContentAnalysis:
    """Structural features of one piece of content."""
    word_count: int
    sentences: Tuple[str, ...]
    phrases: Tuple[str, ...]
    emotional_tone: str
    hook_type: str
    call_to_action_style: str

    def structure_signature(self) -> str:
        """Compact "hook → N sentences → cta" description used to compare structures."""
        return f"{self.hook_type} → {len(self.sentences)} sentences → {self.call_to_action_style}"


def _detect_tone(lowered: str) -> str:
    for tone, keywords in _TONE_PRIORITY:
        if any(word in lowered for word in keywords):
            return tone
    return "neutral"


def _detect_hook_type(hook: Optional[str]) -> str:
    if not hook:
        return "statement"
    if "?" in hook:
        return "question"
    if _DIGIT.search(hook):
        return "stat"
    lowered = hook.lower()
    if any(word in lowered for word in STORY_HOOK_WORDS):
        return "story"
    return "statement"


def _detect_cta_style(text: str) -> str:
    if "?" in text:
        return "question"
    lowered = text.lower()
    if any(word in lowered for word in SUBTLE_CTA_WORDS):
        return "subtle"
    return "direct"


def _shingles(text: str, size: int = 3) -> Tuple[str, ...]:
    words = text.lower().split()
    return tuple(" ".join(words[i:i + size]) for i in range(len(words) - size + 1))


def analyze_content(text: str, hook: Optional[str] = None) -> ContentAnalysis:
    """
    Extract structural signals from generated content.

    Args:
        text: Generated output text
        hook: Optional originating hook; only it decides the hook type

    Returns:
        ContentAnalysis for the text
    """
    sentences = tuple(s for s in _SENTENCE_SPLIT.split(text) if s.strip())

    return ContentAnalysis(
        word_count=len(text.split()),
        sentences=sentences,
        phrases=_shingles(text),
        emotional_tone=_detect_tone(text.lower()),
        hook_type=_detect_hook_type(hook),
        call_to_action_style=_detect_cta_style(text),
    )


def calculate_viral_score(analysis: ContentAnalysis) -> int:
    """
    Heuristic 0-100 virality estimate from an analysis.

    Short-form platforms favour 15-50 word copy with an excited tone and a
    question hook; long copy is penalised.
    """
    score = 50

    if 15 <= analysis.word_count <= 50:
        score += 15
    elif 50 < analysis.word_count <= 100:
        score += 10
    elif analysis.word_count > 100:
        score -= 5

    score += {"excited": 20, "urgent": 10, "neutral": 5}.get(analysis.emotional_tone, 0)
    score += {"question": 15, "story": 10, "stat": 8}.get(analysis.hook_type, 0)
    score += {"question": 12, "direct": 8, "subtle": 5}.get(analysis.call_to_action_style, 0)

    return min(100, max(0, score))
