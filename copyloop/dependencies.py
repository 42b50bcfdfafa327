"""
Shared Dependencies for the CopyLoop API.

Provides:
- The rate limiter shared by all routers
- The process-wide template cache / resolver
- Evaluation provider construction
"""

import logging
from typing import List

from slowapi import Limiter
from slowapi.util import get_remote_address

from .ai_evaluator import EvaluationProvider, create_evaluation_providers
from .config import settings
from .template_resolver import TemplateCache, TemplateResolver

logger = logging.getLogger(__name__)

# =============================================================================
# Rate Limiting
# =============================================================================

# Disabled in test mode
limiter = Limiter(key_func=get_remote_address, enabled=not settings.testing)

# =============================================================================
# Service Instances
# =============================================================================

_template_resolver: TemplateResolver = None


def get_template_resolver() -> TemplateResolver:
    """Process-wide resolver; the cache is loaded on first use."""
    global _template_resolver
    if _template_resolver is None:
        _template_resolver = TemplateResolver(TemplateCache(settings.templates_dir))
        logger.info(f"Template resolver initialized from {settings.templates_dir}")
    return _template_resolver


def get_evaluation_providers() -> List[EvaluationProvider]:
    """Evaluator providers from COPYLOOP_EVALUATION_PROVIDERS."""
    return create_evaluation_providers()
