"""Knowledge-graph payload models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GraphNode(BaseModel):
    """A single note in the graph."""

    id: str = Field(..., description="Note id")
    label: str = Field(..., description="Display title of the note")
    title: str = Field(..., description="Hover title (same as label)")
    color: str = Field(..., description="Category color, first tag color or the default")
    category: Optional[str] = Field(None, description="Category name, if any")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    size: int = Field(..., ge=20, le=50, description="Size derived from link degree")


class GraphEdge(BaseModel):
    """A directed connection between two notes."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Edge id (edge-<link id>)")
    from_: str = Field(..., alias="from", description="Source note id")
    to: str = Field(..., description="Target note id")
    arrows: str = Field(default="to")
    value: int = Field(default=1, description="Edge weight")


class GraphData(BaseModel):
    """Top-level graph payload."""

    nodes: List[GraphNode]
    edges: List[GraphEdge]


class GraphFilterOption(BaseModel):
    """Category or tag offered as a graph filter."""

    id: str
    name: str
    color: Optional[str] = None


class GraphFilters(BaseModel):
    categories: List[GraphFilterOption]
    tags: List[GraphFilterOption]


__all__ = ["GraphNode", "GraphEdge", "GraphData", "GraphFilterOption", "GraphFilters"]
