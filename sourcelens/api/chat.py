"""Conversational follow-up about a single source."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_conversations, get_dispatcher
from sourcelens.api.schemas import ChatRequest
from sourcelens.backends.base import Message
from sourcelens.models.model_config import get_model_by_id
from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.conversations import ConversationStore
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.prompts import build_chat_system_prompt
from sourcelens.orchestrator.text import require_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 800


@router.post("/chat")
async def chat(
    req: ChatRequest,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    conversations: ConversationStore = Depends(get_conversations),
):
    """Answer a chat message with the source as context.

    The server keeps the last ten messages per conversation id; client
    history only seeds a conversation the server has not seen.
    """
    require_fields(message=req.message, source=req.source, metadata=req.metadata)
    # "gpt" selects the OpenAI chat model, anything else Claude
    model = get_model_by_id("gpt" if req.model == "gpt" else "claude")

    history = [Message(role=m.role, content=m.content) for m in req.history]
    session_id, conversation = conversations.touch(req.conversation_id, history)
    conversations.append(session_id, Message(role="user", content=req.message))
    logger.info(
        "Chat message in %s (%d messages) with %s", session_id, len(conversation.messages), model.id
    )

    system_prompt = build_chat_system_prompt(req.source, SourceMetadata.from_dict(req.metadata))
    reply = await dispatcher.converse(
        model,
        list(conversation.messages),
        system=system_prompt,
        temperature=CHAT_TEMPERATURE,
        max_tokens=CHAT_MAX_TOKENS,
    )
    reply = reply or "No response generated"
    conversations.append(session_id, Message(role="assistant", content=reply))

    return {
        "rawResponse": reply,
        "rawPrompt": system_prompt,
        "conversationId": session_id,
        "historyLength": len(conversation.messages),
    }
