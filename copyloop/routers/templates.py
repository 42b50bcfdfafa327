"""
Templates Router.

Endpoints:
- POST /templates/resolve - Resolve and fill a prompt template
- POST /templates/reload - Reload template files from disk
- GET /templates/niches/{niche} - Display info for a niche
- GET /templates/{niche}/{template_type} - Metadata for a template
"""

import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_template_resolver
from ..exceptions import NotFoundError
from ..models import Niche, TemplateResolveRequest, TemplateType
from ..template_resolver import TemplateResolver

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/templates",
    tags=["templates"],
)


@router.post("/resolve")
async def resolve_template(
    body: TemplateResolveRequest,
    resolver: TemplateResolver = Depends(get_template_resolver)
):
    """Resolve a template through the exact / default / generic chain."""
    resolved = resolver.resolve(
        body.niche,
        body.template_type,
        body.product_name,
        body.tone,
        body.trend_context,
    )
    return {
        "prompt": resolved.text,
        "fallback_level": resolved.fallback_level.value,
        "niche": resolved.niche,
        "template_type": resolved.template_type,
    }


@router.post("/reload")
async def reload_templates(resolver: TemplateResolver = Depends(get_template_resolver)):
    niches = resolver.cache.reload()
    return {
        "niches": len(niches),
        "templates": sum(len(n.templates) for n in niches.values()),
        "errors": {name: n.error for name, n in niches.items() if n.error},
    }


@router.get("/niches/{niche}")
async def get_niche_info(niche: Niche, resolver: TemplateResolver = Depends(get_template_resolver)):
    return resolver.niche_info(niche)


@router.get("/{niche}/{template_type}")
async def get_template_metadata(
    niche: Niche,
    template_type: TemplateType,
    resolver: TemplateResolver = Depends(get_template_resolver)
):
    metadata = resolver.get_template_metadata(niche, template_type)
    if metadata is None:
        raise NotFoundError("TemplateMetadata", f"{niche.value}/{template_type.value}")
    return metadata
