"""
API Routers for the CopyLoop backend.

Each router handles a specific domain:
- ratings: Human rating capture and rating statistics
- evaluations: AI evaluator scores (stored or run on demand)
- learning: Pattern mining, learning preferences, style recommendations
- templates: Prompt template resolution and cache reload
"""

from . import ratings, evaluations, learning, templates

__all__ = ["ratings", "evaluations", "learning", "templates"]
