"""
Scan routes: /scans, /scans/stream, /scans/{scan_id}

POST accepts form data (multipart or urlencoded) with a 'file' or 'url' field (plus optional
'mode'), or a JSON payload { "url": "https://...", "mode": "video" }.
A record is saved to history only when the audit succeeds.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from aiguard.analysis.ingest import MediaSource, UploadedMedia
from aiguard.core.dependencies import get_history_store
from aiguard.core.upload_limits import resolve_mode, validate_upload_size
from aiguard.errors import AIGuardError
from aiguard.history.store import HistoryStore
from aiguard.schemas.api import ScanHistoryResponse, StreamEvent, UrlScanRequest
from aiguard.schemas.forensics import MediaMode, ScanRecord
from aiguard.services.scan_service import run_scan

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scans"])


async def parse_scan_request(request: Request) -> Tuple[MediaSource, MediaMode]:
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(payload, dict) or not payload.get("url"):
            raise HTTPException(status_code=400, detail="Missing 'url' in JSON body")
        try:
            body = UrlScanRequest.model_validate(payload)
        except ValidationError:
            raise HTTPException(
                status_code=400,
                detail="Invalid scan request: 'url' must be a string and 'mode' one of 'video' or 'image'."
            )
        return body.url, body.mode

    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        file_obj = form.get("file")
        url_obj = form.get("url")
        mode_obj = form.get("mode")
        raw_mode = mode_obj if isinstance(mode_obj, str) else None

        if file_obj is not None and not isinstance(file_obj, str):
            if not isinstance(file_obj, UploadFile):
                raise HTTPException(status_code=400, detail="Invalid file upload format")
            data = await file_obj.read()
            filename = file_obj.filename or "uploaded_media"
            mode = resolve_mode(raw_mode, file_obj.content_type)
            validate_upload_size(filename, len(data), mode)
            return UploadedMedia(data=data, content_type=file_obj.content_type, filename=filename), mode

        if isinstance(url_obj, str) and url_obj.strip():
            return url_obj.strip(), resolve_mode(raw_mode)

        raise HTTPException(status_code=400, detail="Must provide 'file' or 'url' in form data")

    raise HTTPException(
        status_code=415,
        detail="Unsupported Media Type. Use multipart/form-data, form-urlencoded or application/json"
    )


@router.post("/scans", response_model=ScanRecord, status_code=201)
async def create_scan(request: Request, store: HistoryStore = Depends(get_history_store)):
    """Run a forensic audit and return the saved history record."""
    source, mode = await parse_scan_request(request)

    def log_progress(message: str) -> None:
        logger.info(f"[ROUTE] {message}")

    record = await run_scan(source, mode, store, on_progress=log_progress)
    logger.info(f"[ROUTE] Scan {record.id}: {record.status.value} ({record.probability_score})")
    return record


async def _scan_events(source: MediaSource, mode: MediaMode, store: HistoryStore) -> AsyncIterator[str]:
    queue: asyncio.Queue = asyncio.Queue()

    def push_progress(message: str) -> None:
        queue.put_nowait(StreamEvent(type="progress", message=message))

    async def worker() -> None:
        try:
            record = await run_scan(source, mode, store, on_progress=push_progress)
            queue.put_nowait(StreamEvent(type="result", record=record))
        except AIGuardError as e:
            queue.put_nowait(StreamEvent(type="error", detail=str(e)))
        except Exception as e:
            logger.error(f"[ROUTE] Streaming scan crashed: {e}")
            queue.put_nowait(StreamEvent(type="error", detail="Internal processing error."))
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(worker())
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield event.model_dump_json(exclude_none=True) + "\n"
    finally:
        if not task.done():
            task.cancel()


@router.post("/scans/stream")
async def stream_scan(request: Request, store: HistoryStore = Depends(get_history_store)):
    """Same as POST /scans, but streams progress lines (NDJSON) before the final record."""
    source, mode = await parse_scan_request(request)
    return StreamingResponse(_scan_events(source, mode, store), media_type="application/x-ndjson")


@router.get("/scans", response_model=ScanHistoryResponse)
async def list_scans(store: HistoryStore = Depends(get_history_store)):
    return {"scans": await store.list(), "capacity": store.capacity}


@router.get("/scans/{scan_id}", response_model=ScanRecord)
async def get_scan(scan_id: str, store: HistoryStore = Depends(get_history_store)):
    record = await store.get(scan_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Scan not found or evicted from history.")
    return record
