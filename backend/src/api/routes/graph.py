"""HTTP API routes for the knowledge graph."""

from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.graph import GraphData, GraphFilters
from ...services.graph import GraphProjector
from ..dependencies import get_graph_projector
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/graph", response_model=GraphData, response_model_by_alias=True)
async def get_graph_data(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    projector: Annotated[GraphProjector, Depends(get_graph_projector)],
    category_id: Optional[str] = Query(None, description="Only notes in this category"),
    tag_ids: Optional[List[str]] = Query(None, description="Notes carrying any of these tags"),
) -> GraphData:
    """Retrieve graph visualization data."""
    try:
        return projector.get_graph_data(auth.user_id, category_id=category_id, tag_ids=tag_ids)
    except Exception as e:
        logger.exception("Graph projection failed")
        raise HTTPException(status_code=500, detail=f"Failed to fetch graph data: {str(e)}")


@router.get("/api/graph/filters", response_model=GraphFilters)
async def get_graph_filters(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    projector: Annotated[GraphProjector, Depends(get_graph_projector)],
) -> GraphFilters:
    """Categories and tags that can be used to filter the graph."""
    try:
        return projector.get_filter_options(auth.user_id)
    except Exception as e:
        logger.exception("Graph filter lookup failed")
        raise HTTPException(status_code=500, detail=f"Failed to fetch graph filters: {str(e)}")


__all__ = ["router"]
