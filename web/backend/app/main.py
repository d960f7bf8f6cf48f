"""FastAPI application for the WorldPianos moderation API.

Provides REST API endpoints wrapping the worldpianos package for:
- Moderation rule administration (create, edit, toggle, delete)
- Evaluating new submissions against the rules
- Manual approve / reject / flag actions
- Moderation logs, statistics and the review queue
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the worldpianos package is importable by adding the project root to sys.path.
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.backend.app.routers import moderation
from worldpianos import __version__

app = FastAPI(
    title="WorldPianos Moderation API",
    description=(
        "REST API for WorldPianos content moderation. "
        "Provides endpoints for rule management, content evaluation, "
        "moderator actions, logs and statistics."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(moderation.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "WorldPianos Moderation API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
