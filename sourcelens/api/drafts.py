"""Draft writing assistance and document summarization routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_db, get_dispatcher, require_user
from sourcelens.api.schemas import DraftAssistRequest, SummarizeDraftRequest, SummarizeTextRequest
from sourcelens.db.database import Database
from sourcelens.errors import NotFound, RequestValidationFailed
from sourcelens.models.draft import DocumentSummary, Draft
from sourcelens.models.library import LibraryKind
from sourcelens.models.model_config import DEFAULT_MODEL_ID, ModelConfig, get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.parsing import parse_numbered_suggestions, parse_summary_response
from sourcelens.orchestrator.prompts import (
    DRAFT_ACTIONS,
    build_draft_assist_prompt,
    build_summarize_draft_prompt,
    build_summarize_text_prompt,
)
from sourcelens.orchestrator.text import require_fields, truncate_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["drafts"])

DRAFT_CONTEXT_LIMIT = 10_000
SOURCE_EXCERPT_LIMIT = 5000
DRAFT_ASSIST_MAX_TOKENS = 5500

SUMMARY_TEXT_LIMIT = 300_000
SUMMARY_MAX_TOKENS = 300_000
SUMMARY_MODEL_ID = "gemini-flash-lite"
DRAFT_TRUNCATION_NOTICE = "\n\n[Note: Draft was truncated due to length.]"


@router.post("/draft-assist")
async def draft_assist(
    req: DraftAssistRequest,
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """Relate, critique or bridge a highlighted passage of a saved draft."""
    require_fields(
        "Missing required parameters (action, highlightedText, draftId)",
        action=req.action,
        highlightedText=req.highlighted_text,
        draftId=req.draft_id,
    )
    if req.action not in DRAFT_ACTIONS:
        raise RequestValidationFailed("Invalid action specified", {"action": req.action})
    if req.action == "relate" and not req.source_id:
        raise RequestValidationFailed("Missing sourceId for 'relate' action")

    source_content = ""
    source_metadata: dict = {}
    if req.action == "relate":
        source = await db.get_item(LibraryKind.SOURCES, user_id, req.source_id)
        if source is None:
            raise NotFound(f"Source not found (ID: {req.source_id})")
        source_content = str(source.get("content") or "")
        source_metadata = source.get("metadata") or {}

    item = await db.get_item(LibraryKind.DRAFTS, user_id, req.draft_id)
    if item is None:
        raise NotFound(f"Draft not found (ID: {req.draft_id})")
    draft = Draft.from_item(item)
    title = item.get("title") or req.draft_title or draft.title

    model = get_model_by_id(req.model_id or DEFAULT_MODEL_ID)
    logger.info("Draft assist %r on draft %s with %s", req.action, req.draft_id, model.id)

    prompt = build_draft_assist_prompt(
        req.action,
        req.highlighted_text,
        title,
        truncate_text(draft.content, DRAFT_CONTEXT_LIMIT, "\n...[draft truncated]"),
        source_metadata=source_metadata,
        source_excerpt=truncate_text(source_content, SOURCE_EXCERPT_LIMIT, "\n...[truncated]"),
        analytic_framework=req.analytic_framework,
        feedback=req.feedback,
    )
    raw = await dispatcher.generate(
        model,
        prompt,
        temperature=0.5 if req.action == "segue" else 0.7,
        max_tokens=DRAFT_ASSIST_MAX_TOKENS,
    )

    remark, suggestions = parse_numbered_suggestions(raw, DRAFT_ACTIONS[req.action])
    return {"suggestions": suggestions, "action": req.action, "remark": remark}


def _summary_model(model_id: str | None) -> ModelConfig:
    model = get_model_by_id(model_id or SUMMARY_MODEL_ID)
    if model.provider != "google":
        logger.warning("Summaries require a Google model, using %s instead of %s", SUMMARY_MODEL_ID, model.id)
        model = get_model_by_id(SUMMARY_MODEL_ID)
    return model


async def _summarize(dispatcher: Dispatcher, model: ModelConfig, prompt: str) -> DocumentSummary:
    raw = await dispatcher.generate(
        model, prompt, temperature=0.2, max_tokens=SUMMARY_MAX_TOKENS, json_mode=True
    )
    return parse_summary_response(raw)


def _summary_body(summary: DocumentSummary, original: str, processed: str) -> dict:
    return {
        "overallSummary": summary.overall_summary,
        "sections": [s.to_dict() for s in summary.sections],
        "totalSections": len(summary.sections),
        "originalTextLength": len(original),
        "processedTextLength": len(processed),
    }


@router.post("/summarize-text")
async def summarize_text(
    req: SummarizeTextRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Split a document into titled sections with one-sentence summaries."""
    require_fields("Text is required", text=req.text)
    model = _summary_model(req.model_id)
    logger.info("Summarizing %d chars of text with %s", len(req.text), model.id)

    text = truncate_text(req.text, SUMMARY_TEXT_LIMIT)
    prompt = build_summarize_text_prompt(text, SourceMetadata.from_dict(req.metadata))
    summary = await _summarize(dispatcher, model, prompt)
    return _summary_body(summary, req.text, text)


@router.post("/summarize-draft")
async def summarize_draft(
    req: SummarizeDraftRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    content = req.draft.content if req.draft else None
    require_fields("Draft content is required", content=content)
    model = _summary_model(req.model_id)
    title = req.draft.title or "Untitled Draft"
    logger.info("Summarizing draft %r (%d chars) with %s", title, len(content), model.id)

    text = truncate_text(content, SUMMARY_TEXT_LIMIT, DRAFT_TRUNCATION_NOTICE)
    prompt = build_summarize_draft_prompt(text, title)
    summary = await _summarize(dispatcher, model, prompt)
    return {**_summary_body(summary, content, text), "wordCount": len(content.split())}
