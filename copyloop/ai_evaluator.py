"""
AI content evaluation.

Asks hosted LLMs to score a content item on virality, clarity,
persuasiveness and creativity (1-10 each) and stores every answer through
RatingStore.store_ai_evaluation, which derives the overall score.

Providers are interchangeable behind EvaluationProvider so tests (and
deployments without API keys) can use MockEvaluationProvider.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import anthropic
from openai import AsyncOpenAI
from sqlalchemy.orm import Session
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .config import settings
from .db_models import DBContentEvaluation, DBContentHistory
from .exceptions import (
    ConfigurationError,
    LLMError,
    LLMResponseParseError,
    MissingAPIKeyError,
    NotFoundError,
    ValidationError,
)
from .rating_store import RatingStore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional social media content evaluator specializing in viral content "
    "optimization. Provide detailed, constructive feedback with specific, actionable "
    "improvement suggestions in valid JSON format only."
)

EVALUATION_PROMPT = """You are an expert content evaluator for social media marketing. Evaluate the following content on a scale of 1-10 for each metric.

CONTENT TO EVALUATE:
{content}

EVALUATION CRITERIA:
1. VIRALITY (1-10): How likely is this content to be shared? Consider hooks, emotional triggers and shareability.
2. CLARITY (1-10): How clear and easy to understand is the message?
3. PERSUASIVENESS (1-10): How compelling is it for driving action? Consider call-to-action strength.
4. CREATIVITY (1-10): How original is the angle? Penalize generic formats.

Give 3-5 specific, actionable improvement suggestions as a numbered list, lowest-scoring metrics first.

CONTEXT:
- Niche: {niche}
- Content Type: {content_type}
- Tone: {tone}

Respond with JSON only, in this format:
{{
  "viralityScore": <1-10>,
  "clarityScore": <1-10>,
  "persuasivenessScore": <1-10>,
  "creativityScore": <1-10>,
  "viralityJustification": "<2-3 sentences>",
  "clarityJustification": "<2-3 sentences>",
  "persuasivenessJustification": "<2-3 sentences>",
  "creativityJustification": "<2-3 sentences>",
  "needsRevision": <true/false>,
  "improvementSuggestions": "<numbered list>"
}}"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_SCORE_KEYS = {
    "virality": "viralityScore",
    "clarity": "clarityScore",
    "persuasiveness": "persuasivenessScore",
    "creativity": "creativityScore",
}


@dataclass
class EvaluationResult:
    """One evaluator's verdict on a content item."""
    virality_score: int
    clarity_score: int
    persuasiveness_score: int
    creativity_score: int
    justifications: Dict[str, str] = field(default_factory=dict)
    needs_revision: bool = False
    improvement_suggestions: Optional[str] = None


@dataclass
class EvaluationRun:
    """Outcome of evaluating one content item with several providers."""
    content_history_id: int
    evaluations: List[DBContentEvaluation] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


def build_evaluation_prompt(content: DBContentHistory) -> str:
    return EVALUATION_PROMPT.format(
        content=content.output_text,
        niche=content.niche,
        content_type=content.content_type,
        tone=content.tone,
    )


def parse_evaluation(raw: str) -> EvaluationResult:
    """
    Parse an evaluator reply into an EvaluationResult.

    Accepts bare JSON or JSON wrapped in prose / code fences.

    Raises:
        LLMResponseParseError: No JSON object with the four scores was found
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        match = _JSON_OBJECT.search(raw or "")
        if not match:
            raise LLMResponseParseError("JSON")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise LLMResponseParseError("JSON") from e

    if not isinstance(data, dict):
        raise LLMResponseParseError("JSON object")

    scores = {}
    for name, key in _SCORE_KEYS.items():
        try:
            scores[name] = int(round(float(data[key])))
        except (KeyError, TypeError, ValueError) as e:
            raise LLMResponseParseError(f"JSON with numeric '{key}'") from e

    justifications = {
        name: str(data[f"{name}Justification"])
        for name in _SCORE_KEYS
        if data.get(f"{name}Justification")
    }
    suggestions = data.get("improvementSuggestions")
    if isinstance(suggestions, list):
        suggestions = "\n".join(str(s) for s in suggestions)

    return EvaluationResult(
        virality_score=scores["virality"],
        clarity_score=scores["clarity"],
        persuasiveness_score=scores["persuasiveness"],
        creativity_score=scores["creativity"],
        justifications=justifications,
        needs_revision=bool(data.get("needsRevision", False)),
        improvement_suggestions=suggestions,
    )


# =============================================================================
# Providers
# =============================================================================

class EvaluationProvider(ABC):
    """Abstract base class for content evaluators."""

    model_name: str = "unknown"

    @abstractmethod
    async def evaluate(self, prompt: str) -> EvaluationResult:
        """
        Score content described by an evaluation prompt.

        Args:
            prompt: Output of build_evaluation_prompt()

        Returns:
            Parsed EvaluationResult
        """
        pass


class OpenAIEvaluationProvider(EvaluationProvider):
    """OpenAI chat completions with JSON response format."""

    def __init__(self, api_key: str = None, model: str = None, max_tokens: int = None):
        self.api_key = api_key or settings.openai_api_key
        if not self.api_key:
            raise MissingAPIKeyError("OPENAI_API_KEY")

        self.client = AsyncOpenAI(
            api_key=self.api_key,
            max_retries=0  # tenacity handles retries
        )
        self.model_name = model or settings.openai_evaluation_model
        self.max_tokens = max_tokens or settings.evaluation_max_tokens

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
        reraise=True
    )
    async def _call_openai(self, prompt: str) -> str:
        logger.info(f"Calling OpenAI evaluator with model: {self.model_name}")
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0.3,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content or ""

    async def evaluate(self, prompt: str) -> EvaluationResult:
        raw = await self._call_openai(prompt)
        logger.debug(f"OpenAI evaluator raw response: {raw[:200]}")
        return parse_evaluation(raw)


class AnthropicEvaluationProvider(EvaluationProvider):
    """Anthropic messages API; JSON is extracted from the text reply."""

    def __init__(self, api_key: str = None, model: str = None, max_tokens: int = None):
        self.api_key = api_key or settings.anthropic_api_key
        if not self.api_key:
            raise MissingAPIKeyError("ANTHROPIC_API_KEY")

        self.client = anthropic.AsyncAnthropic(api_key=self.api_key, max_retries=0)
        self.model_name = model or settings.anthropic_evaluation_model
        self.max_tokens = max_tokens or settings.evaluation_max_tokens

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((Exception,)),
        reraise=True
    )
    async def _call_anthropic(self, prompt: str) -> str:
        logger.info(f"Calling Anthropic evaluator with model: {self.model_name}")
        msg = await self.client.messages.create(
            model=self.model_name,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return msg.content[0].text if msg.content else ""

    async def evaluate(self, prompt: str) -> EvaluationResult:
        raw = await self._call_anthropic(prompt)
        logger.debug(f"Anthropic evaluator raw response: {raw[:200]}")
        return parse_evaluation(raw)


class MockEvaluationProvider(EvaluationProvider):
    """
    Mock evaluator for testing.

    Returns fixed scores without making API calls, or raises `error` when set.
    """

    def __init__(
        self,
        model_name: str = "mock-evaluator",
        scores: Sequence[int] = (8, 9, 7, 10),
        error: Exception = None
    ):
        self.model_name = model_name
        self.scores = tuple(scores)
        self.error = error
        self.prompts: List[str] = []

    async def evaluate(self, prompt: str) -> EvaluationResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        virality, clarity, persuasiveness, creativity = self.scores
        return EvaluationResult(
            virality_score=virality,
            clarity_score=clarity,
            persuasiveness_score=persuasiveness,
            creativity_score=creativity,
            justifications={"virality": "Mock justification"},
            needs_revision=min(self.scores) < 6,
            improvement_suggestions="1. [HOOK IMPROVEMENT]: Mock suggestion",
        )


def create_evaluation_providers(names: Optional[List[str]] = None) -> List[EvaluationProvider]:
    """
    Build providers from configuration.

    Providers whose API key is missing are skipped with a warning.

    Raises:
        ConfigurationError: An unknown provider name is configured
    """
    names = names if names is not None else settings.evaluation_provider_list
    providers: List[EvaluationProvider] = []
    for name in names:
        try:
            if name == "openai":
                providers.append(OpenAIEvaluationProvider())
            elif name == "anthropic":
                providers.append(AnthropicEvaluationProvider())
            elif name == "mock":
                providers.append(MockEvaluationProvider())
            else:
                raise ConfigurationError("COPYLOOP_EVALUATION_PROVIDERS", f"unknown provider '{name}'")
        except MissingAPIKeyError as e:
            logger.warning(f"Skipping {name} evaluator: {e}")
    return providers


# =============================================================================
# Evaluator
# =============================================================================

class ContentEvaluator:
    """Runs every configured provider on a content item and stores the results."""

    def __init__(self, db: Session, providers: List[EvaluationProvider]):
        self.db = db
        self.providers = providers
        self.rating_store = RatingStore(db)

    async def evaluate_content(self, content_history_id: int) -> EvaluationRun:
        """
        Evaluate one content item with all providers concurrently.

        A failing provider is recorded in EvaluationRun.errors; the others
        are still stored.

        Raises:
            NotFoundError: The content does not exist
            LLMError: No provider is configured, or every provider failed
        """
        content = self.db.get(DBContentHistory, content_history_id)
        if content is None:
            raise NotFoundError("ContentHistory", content_history_id)
        if not self.providers:
            raise LLMError("No evaluation providers configured")

        prompt = build_evaluation_prompt(content)
        results = await asyncio.gather(
            *(provider.evaluate(prompt) for provider in self.providers),
            return_exceptions=True
        )

        run = EvaluationRun(content_history_id=content_history_id)
        for provider, result in zip(self.providers, results):
            if isinstance(result, BaseException):
                logger.error(f"Evaluation by {provider.model_name} failed for content {content_history_id}: {result}")
                run.errors[provider.model_name] = str(result)
                continue

            try:
                evaluation = self.rating_store.store_ai_evaluation(
                    content_history_id,
                    provider.model_name,
                    result.virality_score,
                    result.clarity_score,
                    result.persuasiveness_score,
                    result.creativity_score,
                    justifications=result.justifications,
                    needs_revision=result.needs_revision,
                    improvement_suggestions=result.improvement_suggestions,
                )
            except ValidationError as e:
                logger.error(f"Evaluator {provider.model_name} returned out-of-range scores: {e}")
                run.errors[provider.model_name] = str(e)
                continue
            run.evaluations.append(evaluation)

        if not run.evaluations:
            raise LLMError(f"All evaluators failed for content {content_history_id}: {run.errors}")

        logger.info(
            f"Evaluated content {content_history_id}: {len(run.evaluations)} stored, "
            f"{len(run.errors)} failed"
        )
        return run
