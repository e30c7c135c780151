"""In-process chat history with idle-session eviction."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from sourcelens.backends.base import Message

logger = logging.getLogger(__name__)

MAX_HISTORY_LENGTH = 10  # five user/assistant turns


@dataclass
class Conversation:
    messages: list[Message] = field(default_factory=list)
    last_activity: float = 0.0


class ConversationStore:
    """Maps session ids to recent messages.

    State lives in this process only; it is not shared between instances
    and is lost on restart.
    """

    def __init__(
        self,
        max_age_seconds: float = 3600,
        max_history: int = MAX_HISTORY_LENGTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_age_seconds = max_age_seconds
        self.max_history = max_history
        self.clock = clock
        self._sessions: dict[str, Conversation] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Conversation | None:
        return self._sessions.get(session_id)

    def new_session_id(self) -> str:
        return f"session_{int(self.clock() * 1000)}_{secrets.token_hex(4)}"

    def touch(self, session_id: str | None, history: list[Message] | None = None) -> tuple[str, Conversation]:
        """Return (session_id, conversation), creating it if needed.

        Client-supplied history seeds a conversation only while it is empty.
        """
        session_id = session_id or self.new_session_id()
        conversation = self._sessions.get(session_id)
        if conversation is None:
            conversation = Conversation()
            self._sessions[session_id] = conversation
        conversation.last_activity = self.clock()
        if history and not conversation.messages:
            conversation.messages = list(history[-self.max_history:])
        return session_id, conversation

    def append(self, session_id: str, message: Message) -> None:
        conversation = self._sessions[session_id]
        conversation.messages.append(message)
        if len(conversation.messages) > self.max_history:
            conversation.messages = conversation.messages[-self.max_history:]

    def cleanup(self, now: float | None = None) -> int:
        """Drop sessions idle longer than max_age_seconds; return how many."""
        now = self.clock() if now is None else now
        expired = [
            sid for sid, conv in self._sessions.items()
            if now - conv.last_activity > self.max_age_seconds
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Evicted %d idle chat sessions", len(expired))
        return len(expired)

    async def run_cleanup(self, interval_seconds: float) -> None:
        """Run cleanup forever at a fixed interval; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval_seconds)
            self.cleanup()
