"""FastAPI backend for the chromadmin web UI."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chromadmin import __version__
from chromadmin.config import get_settings
from chromadmin.store import get_collection_store

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One CollectionStore (and id cache) per process, built at startup."""
    app.state.store = get_collection_store(settings)
    logger.info(
        "Collection store ready (default API %s, id cache TTL %ss)",
        settings.chromadmin_api_version,
        settings.chromadmin_cache_ttl_seconds,
    )
    try:
        yield
    finally:
        app.state.store.close()


app = FastAPI(
    title="chromadmin API",
    description="Admin API for Chroma vector databases (v1 and v2).",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
cors_origins = settings.cors_origin_list
cors_origin_regex = settings.cors_origin_regex
logger.info("CORS configured for origins: %s", cors_origins)
if cors_origin_regex:
    logger.info("CORS origin regex: %s", cors_origin_regex)

cors_kw: dict = {
    "allow_origins": cors_origins,
    "allow_credentials": True,
    "allow_methods": ["*"],
    "allow_headers": ["*"],
}
if cors_origin_regex:
    cors_kw["allow_origin_regex"] = cors_origin_regex
app.add_middleware(CORSMiddleware, **cors_kw)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
class HealthResponse(BaseModel):
    status: str
    version: str


@app.get("/health", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
from backend.routes import collections, records  # noqa: E402

app.include_router(collections.router, prefix="/api", tags=["collections"])
app.include_router(records.router, prefix="/api", tags=["records"])
