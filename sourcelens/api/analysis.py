"""Source analysis and information extraction routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_dispatcher
from sourcelens.api.schemas import (
    ExpandAnalysisRequest,
    ExtractInfoRequest,
    ExtractMetadataRequest,
    HighlightSegmentsRequest,
    SourceAnalysisRequest,
    SuggestExtractionRequest,
)
from sourcelens.errors import FallbackExhausted, ProviderError, RequestValidationFailed
from sourcelens.models.model_config import char_budget, get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.parsing import (
    parse_analysis_response,
    parse_extraction_suggestion,
    parse_highlight_segments,
    parse_metadata_response,
    process_extracted_info,
)
from sourcelens.orchestrator.prompts import (
    EXTRACTION_SYSTEM_PROMPT,
    JSON_ONLY_SYSTEM_PROMPT,
    METADATA_SYSTEM_PROMPT,
    build_counter_narrative_prompt,
    build_detailed_analysis_prompt,
    build_expand_analysis_prompt,
    build_extraction_prompt,
    build_highlight_prompt,
    build_initial_analysis_prompt,
    build_suggest_extraction_prompt,
)
from sourcelens.orchestrator.text import (
    MAX_FULL_CONTENT_SIZE,
    require_fields,
    sample_document,
    truncate_text,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])

SUGGESTION_MODEL_ID = "gemini-flash"
SUGGESTION_EXCERPT_LIMIT = 8000
EXTRACTION_MODEL_ID = "gemini-flash-lite"
EXTRACTION_MAX_TOKENS = 31_000
EXPANSION_MODEL_ID = "gemini-flash"
METADATA_MODEL_ID = "gpt-4o-mini"
HIGHLIGHT_MODEL_ID = "gemini-flash"
HIGHLIGHT_FALLBACK_MODEL_ID = "gpt-4o-mini"


@router.post("/initial-analysis")
async def initial_analysis(
    req: SourceAnalysisRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Summary, preliminary analysis and three follow-up questions."""
    require_fields(source=req.source, metadata=req.metadata)
    model = req.resolve_model()
    logger.info("Initial analysis: %d chars with %s", len(req.source), model.id)

    metadata = SourceMetadata.from_dict(req.metadata)
    source = truncate_text(req.source, char_budget(model))
    prompt = build_initial_analysis_prompt(source, metadata, req.perspective)
    raw = await dispatcher.generate(model, prompt)

    analysis = parse_analysis_response(raw)
    return {"analysis": analysis.to_dict(), "rawPrompt": prompt, "rawResponse": raw}


@router.post("/detailed-analysis")
async def detailed_analysis(
    req: SourceAnalysisRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    require_fields(source=req.source, metadata=req.metadata)
    model = req.resolve_model(legacy_default="claude")
    logger.info("Detailed analysis: %d chars with %s", len(req.source), model.id)

    metadata = SourceMetadata.from_dict(req.metadata)
    source = truncate_text(req.source, char_budget(model))
    prompt = build_detailed_analysis_prompt(source, metadata, req.perspective)
    raw = await dispatcher.generate(model, prompt, temperature=0.5, max_tokens=500)
    return {"analysis": raw, "rawPrompt": prompt, "rawResponse": raw}


@router.post("/counter-narrative")
async def counter_narrative(
    req: SourceAnalysisRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    require_fields(source=req.source, metadata=req.metadata)
    model = req.resolve_model(legacy_default="claude")
    logger.info("Counter-narrative: %d chars with %s", len(req.source), model.id)

    metadata = SourceMetadata.from_dict(req.metadata)
    source = truncate_text(req.source, char_budget(model))
    prompt = build_counter_narrative_prompt(source, metadata, req.perspective)
    raw = await dispatcher.generate(model, prompt, temperature=0.7, max_tokens=1500)
    return {"narrative": raw, "rawPrompt": prompt, "rawResponse": raw}


@router.post("/suggest-extraction")
async def suggest_extraction(
    req: SuggestExtractionRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Ask the model what list or table is worth extracting from a document."""
    require_fields("Missing content", content=req.content)
    model = get_model_by_id(req.model_id or SUGGESTION_MODEL_ID)
    logger.info("Suggesting extraction for %d chars with %s", len(req.content), model.id)

    excerpt = truncate_text(req.content, SUGGESTION_EXCERPT_LIMIT, "...")
    prompt = build_suggest_extraction_prompt(excerpt)
    raw = await dispatcher.generate(
        model, prompt, temperature=0.3, max_tokens=1000, json_mode=True
    )

    suggestion = parse_extraction_suggestion(raw)
    return {**suggestion, "prompt": prompt, "rawResponse": raw, "modelUsed": model.name}


@router.post("/extract-info")
async def extract_info(
    req: ExtractInfoRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Extract a list or table of items matching a query from a document."""
    require_fields("Missing required fields (content, query)", content=req.content, query=req.query)
    model = get_model_by_id(req.model_id or EXTRACTION_MODEL_ID)

    content_length = len(req.content)
    sampled = content_length > MAX_FULL_CONTENT_SIZE
    content = sample_document(req.content) if sampled else req.content
    strategy = "chunked" if sampled else "full"
    logger.info(
        "Extracting with %s from %d chars (strategy: %s)", model.name, content_length, strategy
    )

    prompt = build_extraction_prompt(content, req.query, req.format, sampled)
    raw = await dispatcher.generate(
        model,
        prompt,
        system=EXTRACTION_SYSTEM_PROMPT,
        temperature=0.2,
        max_tokens=model.max_tokens or EXTRACTION_MAX_TOKENS,
    )

    return {
        "extractedInfo": process_extracted_info(raw, req.format),
        "contentStrategy": strategy,
        "contentLength": content_length,
        "format": req.format,
        "rawResponse": raw,
        "modelUsed": model.name,
        "chunkingApplied": sampled,
    }


@router.post("/expand-analysis")
async def expand_analysis(
    req: ExpandAnalysisRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Elaborate one section of a detailed analysis around a user question."""
    require_fields(
        "Missing required fields for expansion",
        section_key=req.section_key,
        section_title=req.section_title,
        original_content=req.original_content,
        user_input=req.user_input,
    )
    model = get_model_by_id(EXPANSION_MODEL_ID)
    prompt = build_expand_analysis_prompt(
        req.section_title, req.original_content, req.user_input, req.full_analysis or ""
    )
    logger.info("Expanding section %r with %s", req.section_key, model.api_model)

    expanded = await dispatcher.generate(model, prompt, temperature=0.5, max_tokens=250)
    if not expanded.strip():
        logger.error("Model returned an empty expansion for %r", req.section_key)
        raise ProviderError("Failed to generate expansion text.")
    return {"expandedText": expanded}


@router.post("/extract-metadata")
async def extract_metadata(
    req: ExtractMetadataRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Guess title, author, date and descriptive fields from raw document text."""
    require_fields("Text is required", text=req.text)
    model = get_model_by_id(METADATA_MODEL_ID)
    raw = await dispatcher.generate(
        model,
        req.text,
        system=METADATA_SYSTEM_PROMPT,
        temperature=0.4,
        json_mode=True,
    )
    return parse_metadata_response(raw)


@router.post("/highlight-segments")
async def highlight_segments(
    req: HighlightSegmentsRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Score the passages of a document that best match a query."""
    require_fields("Missing required fields (content, query)", content=req.content, query=req.query)
    if req.num_segments < 1:
        raise RequestValidationFailed("numSegments must be a positive integer")
    model = get_model_by_id(req.model_id or HIGHLIGHT_MODEL_ID)
    prompt = build_highlight_prompt(req.content, req.query, req.num_segments)

    def parse(text: str) -> list[dict]:
        return parse_highlight_segments(text, req.content, req.num_segments)

    if model.provider == "google":
        chain = [
            (model, {"temperature": 0.1, "max_tokens": 8000}),
            (
                get_model_by_id(HIGHLIGHT_FALLBACK_MODEL_ID),
                {"temperature": 0.2, "max_tokens": 6000, "json_mode": True},
            ),
        ]
        try:
            segments, raw, _ = await dispatcher.parse_with_fallback(chain, prompt, parse)
        except FallbackExhausted as exc:
            raise FallbackExhausted("Error processing highlight request", exc.errors) from exc
    else:
        overrides = {"temperature": 0.2, "max_tokens": 6000}
        if model.provider == "anthropic":
            overrides["system"] = JSON_ONLY_SYSTEM_PROMPT
        else:
            overrides["json_mode"] = True
        raw = await dispatcher.generate(model, prompt, **overrides)
        segments = parse(raw)

    return {
        "segments": segments,
        "query": req.query,
        "totalSegments": len(segments),
        "rawPrompt": prompt,
        "rawResponse": raw,
    }
