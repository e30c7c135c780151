"""SourceLens — FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sourcelens.api import analysis, chat, connections, drafts, library, reference, roleplay, translate
from sourcelens.config import settings
from sourcelens.db.database import Database
from sourcelens.errors import SourceLensError
from sourcelens.orchestrator.conversations import ConversationStore
from sourcelens.orchestrator.dispatcher import Dispatcher
from sourcelens.orchestrator.references import ResponseCache
from sourcelens.orchestrator.roleplay import CharacterCache
from sourcelens.orchestrator.wikipedia import WikipediaClient
from sourcelens.storage.local import LocalStorage

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database(settings.database_path)
    await db.connect()
    conversations = ConversationStore(max_age_seconds=settings.chat_max_age_seconds)

    app.state.db = db
    app.state.local_storage = LocalStorage(settings.local_storage_path)
    app.state.conversations = conversations
    app.state.dispatcher = Dispatcher()
    app.state.wikipedia = WikipediaClient()
    app.state.reference_cache = ResponseCache(settings.references_cache_ttl_seconds)
    app.state.character_cache = CharacterCache()

    cleanup = asyncio.create_task(
        conversations.run_cleanup(settings.chat_cleanup_interval_seconds)
    )
    logger.info("SourceLens started (database: %s)", settings.database_path)
    yield

    cleanup.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup
    await db.close()


app = FastAPI(
    title="SourceLens",
    description="Primary-source analysis with multiple LLM providers",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---


@app.exception_handler(SourceLensError)
async def sourcelens_error_handler(request: Request, exc: SourceLensError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_body()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "message": "Invalid request body",
            "kind": "validation",
            "error": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": str(exc) or "Internal server error", "kind": "internal"},
    )


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(analysis.router)
app.include_router(connections.router)
app.include_router(drafts.router)
app.include_router(chat.router)
app.include_router(reference.router)
app.include_router(library.router)
app.include_router(roleplay.router)
app.include_router(translate.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sourcelens.main:app", host=settings.host, port=settings.port)
