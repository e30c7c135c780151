"""FastAPI dependencies for shared application state."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from sourcelens.config import settings
from sourcelens.db.database import Database
from sourcelens.errors import AuthenticationRequired
from sourcelens.orchestrator.conversations import ConversationStore
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.references import ReferenceSuggester
from sourcelens.orchestrator.roleplay import AuthorRoleplay
from sourcelens.orchestrator.wikipedia import WikipediaClient
from sourcelens.storage.library import LibraryStorage


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_conversations(request: Request) -> ConversationStore:
    return request.app.state.conversations


def get_wikipedia(request: Request) -> WikipediaClient:
    return request.app.state.wikipedia


def get_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """The authenticated user id, forwarded by the upstream auth gateway."""
    return x_user_id or None


def require_user(user_id: str | None = Depends(get_user_id)) -> str:
    if not user_id:
        raise AuthenticationRequired("Unauthorized: No active session")
    return user_id


def get_library(request: Request, user_id: str | None = Depends(get_user_id)) -> LibraryStorage:
    return LibraryStorage(request.app.state.db, request.app.state.local_storage, user_id)


def get_reference_suggester(
    request: Request, dispatcher: Dispatcher = Depends(get_dispatcher)
) -> ReferenceSuggester:
    return ReferenceSuggester(dispatcher, request.app.state.reference_cache)


def get_roleplay(request: Request, dispatcher: Dispatcher = Depends(get_dispatcher)) -> AuthorRoleplay:
    return AuthorRoleplay(dispatcher, request.app.state.character_cache, settings.portraits_dir)
