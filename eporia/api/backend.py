"""
FastAPI Backend for the Eporia Playlist Engine

Exposes playlist generation over HTTP. Authentication is handled upstream;
the requesting user arrives in the ``X-User-ID`` header.
"""

import time
from contextlib import asynccontextmanager
from typing import Dict, Optional

import structlog
from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import AppSettings, MAX_PLAYLIST_SIZE
from ..exceptions import InvalidMoodProfile, StoreFailure
from ..services.cache_manager import close_cache_manager
from ..services.playlist_engine import PlaylistEngine, create_playlist_engine
from ..utils.logging_config import setup_logging, shutdown_logging
from .logging_middleware import LoggingMiddleware

logger = structlog.get_logger(__name__)

# Global service instance
playlist_engine: Optional[PlaylistEngine] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    global playlist_engine

    settings = AppSettings.from_env()
    setup_logging(
        log_dir=settings.log_dir,
        log_level=settings.log_level,
        log_format=settings.log_format
    )

    logger.info("Initializing playlist engine", **settings.to_dict())
    playlist_engine = create_playlist_engine(settings)

    yield

    logger.info("Shutting down playlist engine")
    close_cache_manager()
    shutdown_logging()
    playlist_engine = None


app = FastAPI(
    title="Eporia Playlist API",
    description="Mood-based playlist recommendations",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: float
    version: str
    components: Dict[str, str]


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=time.time(),
        version=__version__,
        components={
            "playlist_engine": "active" if playlist_engine else "inactive",
            "track_store": type(playlist_engine.track_store).__name__ if playlist_engine else "none",
        }
    )


@app.get("/api/playlist/generate")
async def generate_playlist(
    mood: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=MAX_PLAYLIST_SIZE),
    x_user_id: Optional[str] = Header(None)
):
    """
    Generate a playlist for a mood.

    Returns ``{success, mood, count, tracks}``; each track is the stored
    document plus its ``score``.
    """
    if not mood:
        raise HTTPException(status_code=400, detail="Mood required")

    if not playlist_engine:
        raise HTTPException(status_code=503, detail="Playlist engine not available")

    user_id = x_user_id or "anonymous"
    logger.info("Generating playlist", mood_id=mood, user_id=user_id)

    try:
        playlist = await playlist_engine.generate(user_id, mood, limit=limit)
    except InvalidMoodProfile as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreFailure as e:
        logger.error("Playlist generation failed", mood_id=mood, user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Track store unavailable")

    return playlist.to_response()


@app.get("/api/playlist/moods")
async def list_moods():
    """List the moods the engine can generate playlists for."""
    if not playlist_engine:
        raise HTTPException(status_code=503, detail="Playlist engine not available")

    moods = playlist_engine.taxonomy.describe()
    return {"count": len(moods), "moods": moods}


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "timestamp": time.time(),
            "path": str(request.url)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler for unexpected errors."""
    logger.error("Unexpected error", error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": time.time(),
            "path": str(request.url)
        }
    )
