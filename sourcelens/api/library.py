"""Saved library routes: per-user rows, the auth-agnostic adapter and next-step hints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from sourcelens.api.deps import get_db, get_dispatcher, get_library, require_user
from sourcelens.api.schemas import NextStepsRequest
from sourcelens.db.database import Database
from sourcelens.errors import NotFound, ProviderError, RequestValidationFailed
from sourcelens.models.library import LibraryKind
from sourcelens.models.model_config import get_model_by_id
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.prompts import build_next_steps_prompt
from sourcelens.storage.library import LibraryStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["library"])

NEXT_STEPS_MODEL_ID = "gemini-flash-lite"
DEFAULT_NEXT_STEP = (
    "Consider reviewing your recent sources to identify patterns or contradictions, "
    "then create notes to capture your insights."
)
FAILED_NEXT_STEP = (
    "Consider continuing your analysis of recent documents or exploring the library "
    "to find related sources."
)


# --- /api/user-data: logged-in users only ---


@router.get("/user-data")
async def get_user_data(
    data_type: str | None = Query(default=None, alias="type"),
    item_id: str | None = Query(default=None, alias="id"),
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
):
    kind = LibraryKind.parse(data_type)
    return {"data": await db.get_items(kind, user_id, item_id)}


@router.post("/user-data")
async def create_user_data(
    item: dict[str, Any] = Body(...),
    data_type: str | None = Query(default=None, alias="type"),
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
):
    kind = LibraryKind.parse(data_type)
    saved = await db.add_item(kind, user_id, item)
    logger.info("Saved %s item %s for user %s", kind.value, saved["id"], user_id)
    return {"data": saved}


@router.patch("/user-data")
async def update_user_data(
    updates: dict[str, Any] = Body(...),
    data_type: str | None = Query(default=None, alias="type"),
    item_id: str | None = Query(default=None, alias="id"),
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
):
    if not data_type or not item_id:
        raise RequestValidationFailed("Missing parameters")
    kind = LibraryKind.parse(data_type)
    updated = await db.update_item(kind, user_id, item_id, updates)
    if updated is None:
        raise NotFound(f"Item not found (ID: {item_id})")
    return {"data": updated}


@router.delete("/user-data")
async def delete_user_data(
    data_type: str | None = Query(default=None, alias="type"),
    item_id: str | None = Query(default=None, alias="id"),
    user_id: str = Depends(require_user),
    db: Database = Depends(get_db),
):
    if not data_type or not item_id:
        raise RequestValidationFailed("Missing parameters")
    kind = LibraryKind.parse(data_type)
    await db.delete_item(kind, user_id, item_id)
    return {"success": True}


# --- /api/library: database when a user is known, local storage otherwise ---


@router.get("/library/{kind}")
async def list_library(kind: str, library: LibraryStorage = Depends(get_library)):
    items = await library.get_items(kind)
    return {"items": items, "persistent": library.is_persistent}


@router.post("/library/{kind}")
async def save_library_item(
    kind: str,
    item: dict[str, Any] = Body(...),
    library: LibraryStorage = Depends(get_library),
):
    return {"id": await library.save_item(kind, item)}


@router.patch("/library/{kind}/{item_id}")
async def update_library_item(
    kind: str,
    item_id: str,
    updates: dict[str, Any] = Body(...),
    library: LibraryStorage = Depends(get_library),
):
    await library.update_item(kind, item_id, updates)
    return {"success": True}


@router.delete("/library/{kind}/{item_id}")
async def delete_library_item(
    kind: str, item_id: str, library: LibraryStorage = Depends(get_library)
):
    await library.delete_item(kind, item_id)
    return {"success": True}


# --- Dashboard ---


@router.post("/next-steps")
async def next_steps(req: NextStepsRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Suggest what a researcher could do next from their library activity."""
    if not req.stats:
        raise RequestValidationFailed("Missing required fields")
    prompt = build_next_steps_prompt(req.stats, req.recent_sources, req.recent_notes)
    try:
        suggestion = await dispatcher.generate(
            get_model_by_id(NEXT_STEPS_MODEL_ID), prompt, temperature=0.4, max_tokens=200
        )
    except ProviderError as exc:
        logger.error("Next-steps suggestion failed: %s (%s)", exc.message, exc.detail)
        return JSONResponse(
            status_code=500,
            content={"message": "Error generating suggestions", "suggestion": FAILED_NEXT_STEP},
        )
    return {"suggestion": suggestion.strip() or DEFAULT_NEXT_STEP}
