"""Entry point for running the notegraph API server."""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    # PORT=9000 python main.py
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")
    reload = os.getenv("RELOAD", "true").lower() not in {"0", "false", "no"}

    uvicorn.run(
        "src.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )
