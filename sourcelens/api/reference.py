"""Wikipedia lookups, historical-context overviews and suggested references."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from sourcelens.api.deps import get_dispatcher, get_reference_suggester, get_wikipedia
from sourcelens.api.schemas import SuggestedReferencesRequest, WikiOverviewRequest
from sourcelens.errors import FallbackExhausted, ProviderError, RequestValidationFailed
from sourcelens.models.model_config import get_model_by_id
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.prompts import build_wiki_overview_prompt
from sourcelens.orchestrator.references import ReferenceSuggester
from sourcelens.orchestrator.text import require_fields
from sourcelens.orchestrator.wikipedia import WikipediaClient, page_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reference"])

OVERVIEW_MAX_TOKENS = 200


def overview_chain():
    """Gemini first, Claude when Gemini fails."""
    return [
        (get_model_by_id("gemini-flash-lite"), {"temperature": 0.2, "max_tokens": OVERVIEW_MAX_TOKENS}),
        (get_model_by_id("claude-sonnet"), {"temperature": 0.4, "max_tokens": OVERVIEW_MAX_TOKENS}),
    ]


@router.get("/wikipedia")
async def wikipedia(
    title: str | None = None,
    kind: str | None = Query(default=None, alias="type"),
    client: WikipediaClient = Depends(get_wikipedia),
):
    if not title:
        raise RequestValidationFailed("Missing or invalid title parameter")
    try:
        return await client.lookup(title, kind)
    except ProviderError as exc:
        logger.error("Wikipedia lookup for %r failed: %s", title, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"summary": None, "fullUrl": page_url(title), "error": exc.message},
        )


@router.post("/generate-wiki-overview")
async def generate_wiki_overview(
    req: WikiOverviewRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    if not req.title:
        raise RequestValidationFailed("Missing title parameter")
    logger.info("Wiki overview for %r (type=%s)", req.title, req.type)

    prompt = build_wiki_overview_prompt(req.title, req.type, req.source_context or {})
    try:
        text, model = await dispatcher.generate_with_fallback(overview_chain(), prompt)
    except FallbackExhausted as exc:
        raise FallbackExhausted(
            "Both Gemini and Claude LLMs failed to generate a summary", exc.errors
        ) from exc

    return {"summary": text.strip(), "type": req.type, "title": req.title, "model": model.id}


@router.post("/suggested-references")
async def suggested_references(
    req: SuggestedReferencesRequest,
    suggester: ReferenceSuggester = Depends(get_reference_suggester),
):
    """Five ranked scholarly references for a source.

    Provider and parsing failures still answer 200, with a single Google
    Scholar search entry in place of the references.
    """
    require_fields(source=req.source, metadata=req.metadata)
    return await suggester.suggest(req.source, req.metadata, req.perspective, req.model_id)
