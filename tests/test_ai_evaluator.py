"""
Tests for AI content evaluation.

No real LLM calls: providers are MockEvaluationProvider instances or
unittest.mock patches of the SDK clients.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from copyloop.ai_evaluator import (
    ContentEvaluator,
    MockEvaluationProvider,
    OpenAIEvaluationProvider,
    build_evaluation_prompt,
    create_evaluation_providers,
    parse_evaluation,
)
from copyloop.config import settings
from copyloop.db_models import DBContentEvaluation
from copyloop.exceptions import (
    ConfigurationError,
    LLMError,
    LLMResponseParseError,
    MissingAPIKeyError,
    NotFoundError,
)

VALID_REPLY = {
    "viralityScore": 8,
    "clarityScore": 9,
    "persuasivenessScore": 7,
    "creativityScore": 10,
    "viralityJustification": "Strong hook.",
    "clarityJustification": "Easy to follow.",
    "persuasivenessJustification": "",
    "creativityJustification": "Fresh angle.",
    "needsRevision": False,
    "improvementSuggestions": "1. Add a stronger CTA",
}


# =============================================================================
# Parsing
# =============================================================================

class TestParseEvaluation:
    def test_bare_json(self):
        result = parse_evaluation(json.dumps(VALID_REPLY))

        assert (result.virality_score, result.clarity_score,
                result.persuasiveness_score, result.creativity_score) == (8, 9, 7, 10)
        assert result.justifications == {
            "virality": "Strong hook.",
            "clarity": "Easy to follow.",
            "creativity": "Fresh angle.",
        }
        assert result.needs_revision is False
        assert result.improvement_suggestions == "1. Add a stronger CTA"

    def test_json_wrapped_in_prose(self):
        raw = "Here is my evaluation:\n```json\n" + json.dumps(VALID_REPLY) + "\n```\nHope it helps!"

        assert parse_evaluation(raw).creativity_score == 10

    def test_fractional_scores_are_rounded(self):
        reply = dict(VALID_REPLY, viralityScore=7.6, clarityScore="6")

        result = parse_evaluation(json.dumps(reply))

        assert result.virality_score == 8
        assert result.clarity_score == 6

    def test_suggestion_list_is_joined(self):
        reply = dict(VALID_REPLY, improvementSuggestions=["1. Shorter", "2. Bolder"])

        assert parse_evaluation(json.dumps(reply)).improvement_suggestions == "1. Shorter\n2. Bolder"

    @pytest.mark.parametrize("raw", [
        "no json here",
        "",
        "[1, 2, 3]",
        json.dumps({"viralityScore": 8}),
        json.dumps(dict(VALID_REPLY, clarityScore="very clear")),
    ])
    def test_unparseable_replies(self, raw):
        with pytest.raises(LLMResponseParseError):
            parse_evaluation(raw)


class TestPrompt:
    def test_prompt_includes_content_and_context(self, make_content):
        content = make_content(output_text="Glow like never before", niche="skincare", tone="bold")

        prompt = build_evaluation_prompt(content)

        assert "Glow like never before" in prompt
        assert "- Niche: skincare" in prompt
        assert "- Tone: bold" in prompt
        assert '"viralityScore": <1-10>' in prompt


# =============================================================================
# Providers
# =============================================================================

class TestProviders:
    async def test_mock_provider(self):
        provider = MockEvaluationProvider(scores=(5, 9, 9, 9))

        result = await provider.evaluate("prompt")

        assert result.virality_score == 5
        assert result.needs_revision is True
        assert provider.prompts == ["prompt"]

    async def test_openai_provider_parses_reply(self):
        provider = OpenAIEvaluationProvider(api_key="sk-test", model="gpt-4o")
        reply = MagicMock()
        reply.choices = [MagicMock(message=MagicMock(content=json.dumps(VALID_REPLY)))]
        provider.client = MagicMock()
        provider.client.chat.completions.create = AsyncMock(return_value=reply)

        result = await provider.evaluate("prompt")

        assert result.clarity_score == 9
        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"] == {"type": "json_object"}

    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", None)

        with pytest.raises(MissingAPIKeyError):
            OpenAIEvaluationProvider()

    def test_create_mock_provider(self):
        providers = create_evaluation_providers(["mock"])

        assert len(providers) == 1
        assert isinstance(providers[0], MockEvaluationProvider)

    def test_providers_without_keys_are_skipped(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", None)
        monkeypatch.setattr(settings, "anthropic_api_key", None)

        assert create_evaluation_providers(["openai", "anthropic"]) == []

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            create_evaluation_providers(["bard"])


# =============================================================================
# ContentEvaluator
# =============================================================================

class TestContentEvaluator:
    async def test_every_provider_is_stored(self, db_session, make_content, mock_evaluators):
        content = make_content()

        run = await ContentEvaluator(db_session, mock_evaluators).evaluate_content(content.id)

        assert run.errors == {}
        scores = {e.evaluator_model: float(e.overall_score) for e in run.evaluations}
        assert scores == {"mock-gpt": 8.5, "mock-claude": 7.0}
        assert all("Check out this product" in p for p in mock_evaluators[0].prompts)

    async def test_rerun_replaces_evaluations(self, db_session, make_content, mock_evaluators):
        content = make_content()
        evaluator = ContentEvaluator(db_session, mock_evaluators)

        await evaluator.evaluate_content(content.id)
        await evaluator.evaluate_content(content.id)

        assert db_session.query(DBContentEvaluation).count() == 2

    async def test_failing_provider_is_recorded(self, db_session, make_content):
        content = make_content()
        providers = [
            MockEvaluationProvider(model_name="ok"),
            MockEvaluationProvider(model_name="broken", error=LLMResponseParseError()),
            MockEvaluationProvider(model_name="wild", scores=(11, 5, 5, 5)),
        ]

        run = await ContentEvaluator(db_session, providers).evaluate_content(content.id)

        assert [e.evaluator_model for e in run.evaluations] == ["ok"]
        assert set(run.errors) == {"broken", "wild"}

    async def test_all_providers_failing(self, db_session, make_content):
        content = make_content()
        providers = [MockEvaluationProvider(error=RuntimeError("timeout"))]

        with pytest.raises(LLMError):
            await ContentEvaluator(db_session, providers).evaluate_content(content.id)

    async def test_no_providers(self, db_session, make_content):
        content = make_content()

        with pytest.raises(LLMError):
            await ContentEvaluator(db_session, []).evaluate_content(content.id)

    async def test_missing_content(self, db_session, mock_evaluators):
        with pytest.raises(NotFoundError):
            await ContentEvaluator(db_session, mock_evaluators).evaluate_content(12345)
