"""Project notes and note links into a renderable knowledge graph."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..models.graph import GraphData, GraphEdge, GraphFilterOption, GraphFilters, GraphNode
from .config import DEFAULT_NODE_COLOR, get_config
from .database import DatabaseService

logger = logging.getLogger(__name__)

MIN_NODE_SIZE = 20
MAX_NODE_SIZE = 50
SIZE_PER_LINK = 2


def node_size(outgoing: int, incoming: int) -> int:
    """Size grows with link degree, clamped to [20, 50]."""
    size = MIN_NODE_SIZE + SIZE_PER_LINK * (outgoing + incoming)
    return max(MIN_NODE_SIZE, min(MAX_NODE_SIZE, size))


def node_color(
    category_color: Optional[str],
    tag_colors: Sequence[Optional[str]],
    default: str = DEFAULT_NODE_COLOR,
) -> str:
    """Category color, else the first tag's color, else ``default``."""
    if category_color:
        return category_color
    if tag_colors and tag_colors[0]:
        return tag_colors[0]
    return default


class GraphProjector:
    """Build graph payloads from the current note and link rows."""

    def __init__(
        self,
        db_service: DatabaseService | None = None,
        *,
        default_color: str | None = None,
    ) -> None:
        self.db_service = db_service or DatabaseService()
        self.default_color = default_color or get_config().graph_default_color

    def get_graph_data(
        self,
        user_id: str,
        *,
        category_id: Optional[str] = None,
        tag_ids: Optional[Sequence[str]] = None,
    ) -> GraphData:
        start_time = time.time()

        clauses = ["n.user_id = ?"]
        params: List[object] = [user_id]
        if category_id:
            clauses.append("n.category_id = ?")
            params.append(category_id)
        if tag_ids:
            placeholders = ", ".join("?" for _ in tag_ids)
            clauses.append(
                "EXISTS (SELECT 1 FROM note_tags nt "
                f"WHERE nt.note_id = n.id AND nt.tag_id IN ({placeholders}))"
            )
            params.extend(tag_ids)

        conn = self.db_service.connect()
        try:
            note_rows = conn.execute(
                f"""
                SELECT
                    n.id,
                    n.title,
                    c.name AS category_name,
                    c.color AS category_color,
                    (SELECT COUNT(*) FROM note_links l WHERE l.source_id = n.id) AS outgoing,
                    (SELECT COUNT(*) FROM note_links l WHERE l.target_id = n.id) AS incoming
                FROM notes n
                LEFT JOIN categories c ON c.id = n.category_id
                WHERE {" AND ".join(clauses)}
                ORDER BY n.created_at ASC, n.rowid ASC
                """,
                params,
            ).fetchall()
            tag_rows = conn.execute(
                """
                SELECT nt.note_id, t.name, t.color
                FROM note_tags nt
                JOIN tags t ON t.id = nt.tag_id
                JOIN notes n ON n.id = nt.note_id
                WHERE n.user_id = ?
                ORDER BY nt.rowid
                """,
                (user_id,),
            ).fetchall()
            link_rows = conn.execute(
                """
                SELECT l.id, l.source_id, l.target_id
                FROM note_links l
                JOIN notes n ON n.id = l.source_id
                WHERE n.user_id = ?
                ORDER BY l.rowid
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()

        tags_by_note: Dict[str, List[Tuple[str, Optional[str]]]] = {}
        for row in tag_rows:
            tags_by_note.setdefault(row["note_id"], []).append((row["name"], row["color"]))

        node_map: Dict[str, GraphNode] = {}
        for row in note_rows:
            note_tags = tags_by_note.get(row["id"], [])
            node_map[row["id"]] = GraphNode(
                id=row["id"],
                label=row["title"],
                title=row["title"],
                color=node_color(
                    row["category_color"],
                    [color for _, color in note_tags],
                    self.default_color,
                ),
                category=row["category_name"],
                tags=[name for name, _ in note_tags],
                size=node_size(int(row["outgoing"]), int(row["incoming"])),
            )

        edges: List[GraphEdge] = []
        seen: Set[Tuple[str, str]] = set()
        for row in link_rows:
            key = (row["source_id"], row["target_id"])
            if key in seen or key[0] not in node_map or key[1] not in node_map:
                continue
            seen.add(key)
            edges.append(
                GraphEdge(id=f"edge-{row['id']}", from_=key[0], to=key[1], arrows="to", value=1)
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Graph projected",
            extra={
                "user_id": user_id,
                "category_id": category_id,
                "tag_filter_count": len(tag_ids or []),
                "nodes_count": len(node_map),
                "edges_count": len(edges),
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return GraphData(nodes=list(node_map.values()), edges=edges)

    def get_filter_options(self, user_id: str) -> GraphFilters:
        """Categories and tags in use by the user's notes, ordered by name."""
        conn = self.db_service.connect()
        try:
            categories = conn.execute(
                """
                SELECT c.id, c.name, c.color
                FROM categories c
                WHERE EXISTS (
                    SELECT 1 FROM notes n WHERE n.category_id = c.id AND n.user_id = ?
                )
                ORDER BY c.name ASC
                """,
                (user_id,),
            ).fetchall()
            tags = conn.execute(
                """
                SELECT t.id, t.name, t.color
                FROM tags t
                WHERE EXISTS (
                    SELECT 1 FROM note_tags nt
                    JOIN notes n ON n.id = nt.note_id
                    WHERE nt.tag_id = t.id AND n.user_id = ?
                )
                ORDER BY t.name ASC
                """,
                (user_id,),
            ).fetchall()
        finally:
            conn.close()

        return GraphFilters(
            categories=[GraphFilterOption(**dict(row)) for row in categories],
            tags=[GraphFilterOption(**dict(row)) for row in tags],
        )


__all__ = ["GraphProjector", "node_size", "node_color", "MIN_NODE_SIZE", "MAX_NODE_SIZE"]
