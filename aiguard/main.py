"""
AI Guard API — FastAPI application entry point.

    uvicorn aiguard.main:app

The lifespan opens the shared HTTP session, initializes Firebase when the
Firestore history backend is selected, and builds the HistoryStore.
Pipeline errors are mapped to HTTP responses here and nowhere else.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables before any module reads them
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from aiguard.api import scans, system  # noqa: E402
from aiguard.config import settings  # noqa: E402
from aiguard.errors import (  # noqa: E402
    AnalysisError,
    IngestionError,
    MediaUnavailableError,
    PersistenceError,
)
from aiguard.history.store import build_history_store  # noqa: E402
from aiguard.integrations import firebase as firebase_module  # noqa: E402
from aiguard.integrations import http_client  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await http_client.initialize()

    if settings.history_backend == "firestore":
        firebase_module.initialize()

    app.state.history_store = build_history_store()
    logger.info(
        f"[STARTUP] History store ready ({settings.history_backend}, "
        f"capacity={settings.history_capacity})"
    )

    yield

    await http_client.close()
    logger.info("[SHUTDOWN] AI Guard API stopped")


app = FastAPI(title="AI Guard Forensic Analysis API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    logger.info(f"[ERROR HANDLER] Returning {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# MediaUnavailableError is also an AnalysisError; the bad input is the client's.
@app.exception_handler(MediaUnavailableError)
async def media_unavailable_handler(request: Request, exc: MediaUnavailableError):
    return _error_response(400, exc)


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    return _error_response(400, exc)


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    return _error_response(502, exc)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    return _error_response(503, exc)


app.include_router(system.router)
app.include_router(scans.router)
