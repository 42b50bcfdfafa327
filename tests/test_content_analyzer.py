"""
Tests for the content analyzer.

Covers word/sentence/phrase extraction, the tone / hook / CTA tagging rules
and the heuristic viral score.
"""

import pytest

from copyloop.content_analyzer import analyze_content, calculate_viral_score


# =============================================================================
# Structure
# =============================================================================

class TestStructure:
    """Word counts, sentences and phrase shingles."""

    def test_word_count_and_sentences(self):
        analysis = analyze_content("Wow. This is great! Really?")

        assert analysis.word_count == 5
        assert len(analysis.sentences) == 3

    def test_empty_text(self):
        analysis = analyze_content("")

        assert analysis.word_count == 0
        assert analysis.sentences == ()
        assert analysis.phrases == ()

    def test_phrases_are_lowercased_three_word_shingles(self):
        analysis = analyze_content("One Two three four")

        assert analysis.phrases == ("one two three", "two three four")

    def test_short_text_has_no_phrases(self):
        assert analyze_content("two words").phrases == ()

    def test_phrases_keep_repeats(self):
        """Shingles are a frequency corpus, so repeats are not collapsed."""
        phrases = analyze_content("buy it now buy it now").phrases

        assert phrases.count("buy it now") == 2

    def test_analysis_is_deterministic(self):
        text = "This serum is amazing. Try it today!"

        assert analyze_content(text, "Why?") == analyze_content(text, "Why?")

    def test_structure_signature(self):
        analysis = analyze_content("Love it. Buy it here.", hook="Why?")

        assert analysis.structure_signature() == "question → 2 sentences → direct"


# =============================================================================
# Tags
# =============================================================================

class TestEmotionalTone:
    """Tone keywords are checked excited > urgent > calm."""

    def test_excited_beats_urgent(self):
        assert analyze_content("This is amazing and you need it now").emotional_tone == "excited"

    def test_exclamation_is_excited(self):
        assert analyze_content("Love this serum!").emotional_tone == "excited"

    def test_urgent(self):
        assert analyze_content("Hurry, the sale ends today").emotional_tone == "urgent"

    def test_calm(self):
        assert analyze_content("A gentle cleanser for sensitive skin").emotional_tone == "calm"

    def test_neutral(self):
        assert analyze_content("This cleanser removes makeup well").emotional_tone == "neutral"


class TestHookType:
    """Hook type comes from the hook alone, never from the body text."""

    @pytest.mark.parametrize("hook,expected", [
        ("Did you know this?", "question"),
        ("3 reasons to try it", "stat"),
        ("The story of my skin", "story"),
        ("When I tried it", "story"),
        ("Try this serum", "statement"),
        ("", "statement"),
        (None, "statement"),
    ])
    def test_hook_classification(self, hook, expected):
        assert analyze_content("Body text here", hook=hook).hook_type == expected

    def test_question_in_body_does_not_make_question_hook(self):
        analysis = analyze_content("Is this the best serum?")

        assert analysis.hook_type == "statement"
        assert analysis.call_to_action_style == "question"


class TestCallToAction:
    def test_question(self):
        assert analyze_content("Would you try it?").call_to_action_style == "question"

    def test_subtle(self):
        assert analyze_content("Maybe give it a try.").call_to_action_style == "subtle"

    def test_direct(self):
        assert analyze_content("Grab yours.").call_to_action_style == "direct"


# =============================================================================
# Viral score
# =============================================================================

class TestViralScore:
    def test_score_is_capped_at_100(self):
        text = "This amazing serum changed my routine and my skin in two weeks flat so would you give it a go?"
        analysis = analyze_content(text, hook="Did you know?")

        assert 15 <= analysis.word_count <= 50
        assert calculate_viral_score(analysis) == 100

    def test_long_neutral_copy(self):
        analysis = analyze_content("word " * 120)

        # 50 - 5 (long) + 5 (neutral) + 0 (statement) + 8 (direct)
        assert calculate_viral_score(analysis) == 58

    def test_mid_length_calm_stat_subtle(self):
        analysis = analyze_content("gentle maybe " + "word " * 58, hook="5 tips")

        assert analysis.word_count == 60
        # 50 + 10 (51-100 words) + 0 (calm) + 8 (stat) + 5 (subtle)
        assert calculate_viral_score(analysis) == 73
