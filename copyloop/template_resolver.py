"""
Template Resolver.

Resolves a prompt template for (niche, template type) through a fixed chain:

    exact   - the niche's own template
    default - the shared "default" niche's template (warning logged)
    generic - a synthesized one-line prompt (warning logged)

Templates come from <templates_dir>/<niche>.json, with built-in fallbacks
when a file is missing. A file that exists but cannot be parsed sends every
lookup for that niche to the generic level with an error log; resolution
never raises for load problems.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import DEFAULT_NICHE
from .exceptions import TemplateLoadError, ValidationError
from .models import FallbackLevel, Niche, TemplateType

logger = logging.getLogger(__name__)

GENERIC_TEMPLATE = (
    "Write about {product} for the {niche} niche using a {tone} tone in the format "
    "of a {templateType} (generic fallback). {trendContext}"
)

FALLBACK_DEFAULT_TEMPLATES = {
    "original": "Write a detailed review of {product} in {tone}. Cover its key features, benefits, and who it is best for. {trendContext}",
    "comparison": "Write a comparison between {product} and similar products in its category. Use {tone} and highlight the unique selling points of each. {trendContext}",
    "caption": "Create a social media caption for {product} in {tone}. The caption should be engaging and include relevant hashtags. {trendContext}",
    "pros_cons": "List the main pros and cons of {product} in {tone}. Start with a brief overview, then provide bullet points for pros and cons. {trendContext}",
    "routine": "Create a routine incorporating {product} in {tone}. Include step-by-step instructions and explain how this product fits into it. {trendContext}",
    "beginner_kit": "Create a beginner's guide to using {product} in {tone}. Explain what it is, how to use it, and tips for first-time users. {trendContext}",
    "demo_script": "Write a demonstration script for {product} in {tone}. Walk the viewer through using the product step by step. {trendContext}",
    "drugstore_dupe": "Identify and compare affordable alternatives to {product} in {tone}. Explain how each dupe stacks up against the original. {trendContext}",
    "personal_review": "Write a personal review of {product} in {tone}, in first person as if you have used it for a month. {trendContext}",
    "surprise_me": "Create unique, creative content about {product} in {tone}. Make it stand out from typical product posts. {trendContext}",
    "tiktok_breakdown": "Write a 30-60 second TikTok script about {product} in {tone} that covers the key points quickly. {trendContext}",
    "dry_skin_list": "Create a list of recommendations including {product} for people with dry skin in {tone}. Explain why each one helps. {trendContext}",
    "top5_under25": "Create a \"Top 5 Products Under $25\" list including {product} in {tone}. Focus on value and quality. {trendContext}",
    "influencer_caption": "Write an influencer-style caption for {product} in {tone}. Keep it personal and end with a call to action. {trendContext}",
}

FALLBACK_NICHE_TEMPLATES = {
    "skincare": {
        "original": "As a skincare specialist, write a detailed review of {product} in {tone}. Discuss ingredients, skin benefits, and application. {trendContext}",
        "routine": "Create a morning and evening skincare routine built around {product} in {tone}. {trendContext}",
    },
    "tech": {
        "original": "As a tech reviewer, analyze {product} in {tone}. Cover specifications, performance, and user experience. {trendContext}",
        "comparison": "Compare {product} with its main competitors in {tone}. Focus on specs and price-to-performance. {trendContext}",
    },
    "fashion": {
        "original": "As a fashion expert, review {product} in {tone}. Discuss fabric quality, styling options, and current trends. {trendContext}",
        "influencer_caption": "Write a fashion influencer caption for {product} in {tone} with styling tips and outfit pairings. {trendContext}",
    },
    "fitness": {
        "original": "As a fitness trainer, review {product} in {tone}. Discuss workout benefits, proper use, and expected results. {trendContext}",
        "routine": "Create a workout routine incorporating {product} in {tone}, with warm-up, main set, and cool-down. {trendContext}",
    },
    "food": {
        "original": "As a culinary expert, review {product} in {tone}. Discuss flavor, ingredient quality, and recipe uses. {trendContext}",
        "recipe": "Create a recipe featuring {product} in {tone} with ingredients, steps, and serving suggestions. {trendContext}",
    },
    "travel": {
        "original": "As a travel expert, review {product} in {tone}. Discuss usefulness on the road, durability, and packability. {trendContext}",
        "packing_list": "Create a categorized travel packing list including {product} in {tone}. {trendContext}",
    },
    "pet": {
        "original": "As a pet care specialist, review {product} in {tone}. Discuss benefits for pets, safety, and usage. {trendContext}",
        "routine": "Create a daily, weekly, and monthly pet care routine incorporating {product} in {tone}. {trendContext}",
    },
}


def _fallback_niche_info(niche: str) -> Dict[str, Any]:
    if niche == DEFAULT_NICHE:
        return {
            "name": "General Content",
            "description": "Universal templates for all content types",
            "icon": "file-text",
            "keywords": ["universal", "general", "content"],
        }
    return {
        "name": niche.capitalize(),
        "description": f"Content for {niche} products and services",
        "icon": "file-text",
        "keywords": [niche],
    }


@dataclass(frozen=True)
class NicheTemplates:
    """Everything loaded for one niche."""
    templates: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    info: Dict[str, Any] = field(default_factory=dict)
    source: str = "builtin"
    error: Optional[str] = None


@dataclass(frozen=True)
class ResolvedTemplate:
    text: str
    fallback_level: FallbackLevel
    niche: str
    template_type: str


class TemplateCache:
    """
    Read-mostly map of niche -> NicheTemplates.

    reload() builds a complete new map and then swaps the reference, so a
    reader sees either the old map or the new one, never a partial build.
    """

    def __init__(self, templates_dir: Union[str, Path]):
        self.templates_dir = Path(templates_dir)
        self._lock = threading.Lock()
        self._niches: Dict[str, NicheTemplates] = {}
        self.reload()

    def _read_file(self, niche: str) -> Optional[dict]:
        path = self.templates_dir / f"{niche}.json"
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise TemplateLoadError(niche, str(e)) from e
        if not isinstance(data, dict) or not isinstance(data.get("templates"), dict):
            raise TemplateLoadError(niche, "missing 'templates' object")
        return data

    def _load_niche(self, niche: str) -> NicheTemplates:
        try:
            data = self._read_file(niche)
        except TemplateLoadError as e:
            logger.error(f"[PromptFactory] {e}")
            return NicheTemplates(info=_fallback_niche_info(niche), source="error", error=str(e))

        if data is None:
            builtin = FALLBACK_DEFAULT_TEMPLATES if niche == DEFAULT_NICHE else FALLBACK_NICHE_TEMPLATES.get(niche, {})
            return NicheTemplates(templates=dict(builtin), info=_fallback_niche_info(niche))

        templates, metadata = {}, {}
        for template_type, entry in data["templates"].items():
            if isinstance(entry, dict) and isinstance(entry.get("template"), str):
                templates[template_type] = entry["template"]
                metadata[template_type] = dict(entry)
            elif isinstance(entry, str):
                templates[template_type] = entry

        return NicheTemplates(
            templates=templates,
            metadata=metadata,
            info=data.get("niche_info") or _fallback_niche_info(niche),
            source="file",
        )

    def reload(self) -> Dict[str, NicheTemplates]:
        """Rebuild the whole cache from disk and swap it in."""
        fresh = {niche.value: self._load_niche(niche.value) for niche in Niche}
        with self._lock:
            self._niches = fresh

        loaded = sum(len(n.templates) for n in fresh.values())
        logger.info(f"Loaded {loaded} templates for {len(fresh)} niches from {self.templates_dir}")
        return fresh

    def get(self, niche: str) -> NicheTemplates:
        """Templates for one niche; raises TemplateLoadError if its file was malformed."""
        entry = self._niches.get(niche)
        if entry is None:
            return NicheTemplates()
        if entry.error:
            raise TemplateLoadError(niche, entry.error)
        return entry

    def snapshot(self) -> Dict[str, NicheTemplates]:
        return self._niches


def _coerce_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field_name, f"'{value}' is not one of: {allowed}")


def _fill(template: str, values: Dict[str, str]) -> str:
    # Only known placeholders are substituted; any other braces stay literal.
    for key, value in values.items():
        template = template.replace("{" + key + "}", value)
    return template


class TemplateResolver:
    """Resolves and fills prompt templates with the exact/default/generic chain."""

    def __init__(self, cache: TemplateCache):
        self.cache = cache

    def resolve(
        self,
        niche: Union[str, Niche],
        template_type: Union[str, TemplateType],
        product_name: str,
        tone: str,
        trend_context: str = ""
    ) -> ResolvedTemplate:
        """
        Resolve a template and substitute its placeholders.

        Raises:
            ValidationError: niche or template_type is not a known value
        """
        niche = _coerce_enum(Niche, niche, "niche").value
        template_type = _coerce_enum(TemplateType, template_type, "template_type").value

        template = None
        level = FallbackLevel.GENERIC
        try:
            template = self.cache.get(niche).templates.get(template_type)
            if template is not None:
                level = FallbackLevel.EXACT
            elif niche != DEFAULT_NICHE:
                template = self.cache.get(DEFAULT_NICHE).templates.get(template_type)
                if template is not None:
                    level = FallbackLevel.DEFAULT
        except TemplateLoadError as e:
            logger.error(f"[PromptFactory] Template load error, using generic fallback: {e}")
            template = None
            level = FallbackLevel.GENERIC

        if template is None:
            template = GENERIC_TEMPLATE

        if level != FallbackLevel.EXACT:
            logger.warning(
                f"[PromptFactory] Fallback used: niche={niche} templateType={template_type} "
                f"fallbackLevel={level.value}"
            )

        text = _fill(template, {
            "product": product_name,
            "tone": tone,
            "trendContext": trend_context or "",
            "niche": niche,
            "templateType": template_type,
        })
        return ResolvedTemplate(text=text.strip(), fallback_level=level, niche=niche, template_type=template_type)

    def get_template_metadata(self, niche: Union[str, Niche], template_type: Union[str, TemplateType]) -> Optional[Dict[str, Any]]:
        """Title / description / icon / example for a template, niche first then default."""
        niche = _coerce_enum(Niche, niche, "niche").value
        template_type = _coerce_enum(TemplateType, template_type, "template_type").value

        for candidate in (niche, DEFAULT_NICHE):
            try:
                metadata = self.cache.get(candidate).metadata.get(template_type)
            except TemplateLoadError:
                continue
            if metadata:
                return metadata
        return None

    def niche_info(self, niche: Union[str, Niche]) -> Dict[str, Any]:
        """Display information for a niche."""
        niche = _coerce_enum(Niche, niche, "niche").value
        entry = self.cache.snapshot().get(niche)
        return dict(entry.info) if entry else _fallback_niche_info(niche)
