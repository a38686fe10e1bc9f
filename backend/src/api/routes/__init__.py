"""HTTP API route handlers."""

from . import auth, comments, graph, notes, posts, search, system, taxonomy

__all__ = ["auth", "notes", "graph", "search", "taxonomy", "posts", "comments", "system"]
