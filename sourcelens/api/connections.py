"""Connection graph routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sourcelens.api.deps import get_dispatcher
from sourcelens.api.schemas import ConnectionsRequest, ExpandConnectionsRequest
from sourcelens.orchestrator.connections import ConnectionsGenerator
from sourcelens.orchestrator.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["connections"])


@router.post("")
async def generate_connections(
    req: ConnectionsRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    logger.info("Connections requested (model: %s)", req.model_id or "default")
    graph = await ConnectionsGenerator(dispatcher).generate(
        req.source, req.metadata, req.model_id, req.parent_node_id
    )
    return graph.to_dict()


@router.post("/expand")
async def expand_connections(
    req: ExpandConnectionsRequest, dispatcher: Dispatcher = Depends(get_dispatcher)
):
    logger.info("Expansion requested (model: %s)", req.model_id or "default")
    graph = await ConnectionsGenerator(dispatcher).expand(
        req.source_node,
        req.original_source,
        req.existing_connections,
        req.graph_data,
        req.model_id,
    )
    return graph.to_dict()
