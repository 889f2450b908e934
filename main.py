from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from datetime import date
import asyncio
import logging
import os
from pathlib import Path

from album_cache import count_states
from cache import CacheManager
from config import Settings
from grid import build_grids
from lastfm_client import LastFMClient
from models import GridResponse
from months import build_month_sequence, month_index
from session import Session


logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Monthly Album Grid")

lastfm_client: LastFMClient | None = None
session: Session | None = None
session_task: asyncio.Task | None = None


def create_session(settings: Settings, client: LastFMClient, today: date | None = None) -> Session:
    """Build the month sequence and a session starting at the configured month"""
    today = today or date.today()
    first = settings.first_month(today)
    # Whole calendar years, so the first month sits somewhere inside the sequence
    months = build_month_sequence(date(first.year, 1, 1), today)
    first_index = month_index(months, first.year, first.month)
    if first_index is None:
        logger.warning("Start month %s is after %s, nothing to fetch", first, today)
        first_index = len(months)
    return Session(
        client,
        CacheManager(settings.cache_dir),
        settings.user,
        months,
        first_index,
    )


@app.on_event("startup")
async def startup_event():
    """Load settings and start the month chain"""
    global lastfm_client, session, session_task

    try:
        settings = Settings.from_environment()
    except ValidationError:
        logger.exception("Invalid settings, no grids will be fetched")
        return

    logging.getLogger().setLevel(settings.log_level)
    lastfm_client = LastFMClient(settings.api_key)
    session = create_session(settings, lastfm_client)
    session_task = asyncio.create_task(session.run())

    def _on_session_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(
                "Grid session failed",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    session_task.add_done_callback(_on_session_done)


@app.on_event("shutdown")
async def shutdown_event():
    """Close the HTTP client"""
    if lastfm_client is not None:
        await lastfm_client.close()


@app.get("/api/healthz")
async def health_check():
    """Simple health check endpoint"""
    return {"status": "ok"}


@app.get("/api/status")
async def get_status():
    """Progress of the month chain and the image loads"""
    if session is None:
        response = JSONResponse(
            {"error": "not_configured"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )
        response.headers["Cache-Control"] = "no-store"
        return response

    state = session.state
    payload = {
        "user": session.user,
        "running": session.running,
        "finished": session.finished,
        "months_fetched": len(state.fetched),
        "chain_error": state.chain_error,
        "albums": count_states(state.cache),
    }
    response = JSONResponse(payload)
    response.headers["Cache-Control"] = "no-store"
    return response


@app.get("/api/months")
async def get_months():
    """Album grids for every fetched month, most recent first"""
    if session is None:
        response = JSONResponse(
            {"error": "not_configured"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )
        response.headers["Cache-Control"] = "no-store"
        return response

    # One state snapshot, so months and cache always match
    state = session.state
    grids = build_grids(state.fetched, state.cache)
    payload = GridResponse(months=grids, total_count=len(grids))
    response = JSONResponse(payload.model_dump())
    response.headers["Cache-Control"] = "no-store"
    return response


def mount_spa() -> None:
    dist_path = Path(__file__).resolve().parent / "frontend" / "dist"
    if dist_path.exists():
        app.mount("/", StaticFiles(directory=dist_path, html=True), name="spa")


mount_spa()
