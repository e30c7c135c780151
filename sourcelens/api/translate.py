"""Source translation with style, scope and annotation controls."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_dispatcher
from sourcelens.api.schemas import TranslateRequest
from sourcelens.models.model_config import get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.text import require_fields
from sourcelens.orchestrator.translation import (
    TRANSLATOR_SYSTEM_PROMPT,
    TranslationOptions,
    build_translation_prompt,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["translate"])

DEFAULT_TRANSLATION_MODEL_ID = "gemini-2.0-pro-exp-02-05"
GOOGLE_MAX_TOKENS = 8192
MAX_TOKENS = 4000


@router.post("/translate")
async def translate(req: TranslateRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    require_fields("Missing source text", source=req.source)
    model = get_model_by_id(req.model_id or DEFAULT_TRANSLATION_MODEL_ID)
    options = TranslationOptions(
        target_language=req.target_language,
        translation_scope=req.translation_scope,
        explanation_level=req.explanation_level,
        literal_to_poetic=req.literal_to_poetic,
        preserve_line_breaks=req.preserve_line_breaks,
        include_alternatives=req.include_alternatives,
        is_continuation=req.is_continuation,
        continuation_context=req.continuation_context,
    )
    logger.info(
        "Translating %d chars to %s with %s (scope=%s, explanations=%s, chunk=%d)",
        len(req.source), options.target_language, model.id,
        options.translation_scope, options.explanation_level, req.continuation_index,
    )

    prompt = build_translation_prompt(req.source, SourceMetadata.from_dict(req.metadata), options)
    if model.provider == "google":
        raw = await dispatcher.generate(model, prompt, temperature=0.3, max_tokens=GOOGLE_MAX_TOKENS)
    else:
        raw = await dispatcher.generate(
            model, prompt, system=TRANSLATOR_SYSTEM_PROMPT, temperature=0.3, max_tokens=MAX_TOKENS
        )

    return {
        "translation": raw,
        "rawPrompt": prompt,
        "rawResponse": raw,
        "modelUsed": model.name,
        "targetLanguage": options.target_language,
        "translationScope": options.translation_scope,
        "explanationLevel": options.explanation_level,
    }
