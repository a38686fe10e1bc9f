"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers
from .routes import auth, comments, graph, notes, posts, search, system, taxonomy
from .routes.system import install_memory_handler
from ..services.config import get_config
from ..services.database import init_database

logger = logging.getLogger(__name__)

install_memory_handler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    logger.info("Running startup: initializing database...")
    db_path = init_database()
    logger.info("Startup complete", extra={"database_path": str(db_path)})
    yield


app = FastAPI(
    title="Notegraph API",
    description="Personal knowledge base with wiki-style links and a note graph",
    version="0.1.0",
    lifespan=lifespan,
)

config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth.router, tags=["auth"])
app.include_router(notes.router, tags=["notes"])
app.include_router(search.router, tags=["search"])
app.include_router(graph.router, tags=["graph"])
app.include_router(taxonomy.router, tags=["taxonomy"])
app.include_router(posts.router, tags=["posts"])
app.include_router(comments.router, tags=["comments"])
app.include_router(system.router, tags=["system"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
