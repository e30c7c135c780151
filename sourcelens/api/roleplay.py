"""Conversation with a simulated historical author."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_roleplay
from sourcelens.api.schemas import RoleplayRequest
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.roleplay import AuthorRoleplay
from sourcelens.orchestrator.text import require_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["roleplay"])


@router.post("/roleplay")
async def roleplay(req: RoleplayRequest, author: AuthorRoleplay = Depends(get_roleplay)):
    """Initialize a character sketch, or answer a message as the author.

    With ``initialize`` the sketch is regenerated and nothing is sent to
    the roleplay model.
    """
    require_fields(source=req.source, metadata=req.metadata)
    metadata = SourceMetadata.from_dict(req.metadata)

    profile = await author.character(req.source, metadata, refresh=req.initialize)
    portrait = author.has_portrait(metadata)
    if req.initialize:
        return {
            "response": "Well?",
            **profile.to_dict(),
            "hasPortrait": portrait,
            "rawPrompt": "Character sketch initialization",
            "rawResponse": "Roleplay initialized",
        }

    conversation = [(m.role, m.content) for m in req.conversation]
    logger.info("Roleplay as %s (%d prior messages)", metadata.author, len(conversation))
    response, raw, prompt = await author.reply(
        req.source, metadata, req.message, conversation, profile, model_id=req.model
    )
    return {
        "response": response,
        "rawPrompt": prompt,
        "rawResponse": raw,
        **profile.to_dict(),
        "hasPortrait": portrait,
    }
