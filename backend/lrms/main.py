"""FastAPI application entry point."""

import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from lrms.api import land_records
from lrms.config import UPLOAD_DIR, UPLOAD_TTL_SECONDS, CORS_ORIGINS

logger = logging.getLogger(__name__)


def _cleanup_stale_uploads():
    """Delete temporary upload files left behind by interrupted requests."""
    now = time.time()
    cleaned = 0
    for f in UPLOAD_DIR.glob("*.json"):
        if now - f.stat().st_mtime > UPLOAD_TTL_SECONDS:
            f.unlink(missing_ok=True)
            cleaned += 1

    if cleaned:
        logger.info(f"Startup cleanup: removed {cleaned} stale upload file(s)")
    return cleaned


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: cleanup stale uploads on startup."""
    _cleanup_stale_uploads()
    yield


app = FastAPI(
    title="LRMS Nondh Service",
    description="Land-record uploads with nondh ordering and validity-chain computation",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(land_records.router, prefix="/api/land-records", tags=["LandRecords"])


@app.get("/api/health")
async def health():
    return {"status": "operational", "service": "LRMS Nondh Service"}
