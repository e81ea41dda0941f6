"""
Scan request helpers: run the analysis pipeline for one source, persist the
resulting record, and log memory usage around it.

A record is only created after a successful AnalysisResult; a failed audit
leaves history untouched.
"""

import logging
import os
from typing import Optional

import psutil

from aiguard.analysis.ingest import MediaSource, UploadedMedia, display_filename
from aiguard.analysis.orchestrator import analyze_media, notify
from aiguard.analysis.progress import ProgressSink
from aiguard.history.store import HistoryStore
from aiguard.schemas.forensics import MediaMode, ScanRecord, ScanRecordInput, SourceType

logger = logging.getLogger(__name__)

SAVING_MESSAGE = "Saving to forensic history..."


def log_memory(stage: str) -> None:
    """Log current process and system memory usage. Only runs when DEBUG logging is active."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    process = psutil.Process(os.getpid())
    mem_info = process.memory_info()
    sys_mem = psutil.virtual_memory()
    logger.debug(
        f"[MEMORY] {stage} | "
        f"PID: {os.getpid()} | "
        f"Process RSS: {mem_info.rss / 1024 / 1024:.2f} MB | "
        f"System Available: {sys_mem.available / 1024 / 1024:.2f} MB / {sys_mem.total / 1024 / 1024:.2f} MB"
    )


async def run_scan(
    source: MediaSource,
    mode: MediaMode,
    store: HistoryStore,
    on_progress: Optional[ProgressSink] = None,
) -> ScanRecord:
    """Analyzes one source and saves it to history. Errors propagate unchanged."""
    filename = display_filename(source)
    if isinstance(source, UploadedMedia) or source.strip().startswith("data:"):
        # Pasted data URIs carry the bytes inline; there is no URL worth keeping.
        source_type, source_url = SourceType.UPLOAD, None
    else:
        source_type, source_url = SourceType.URL, source.strip()

    log_memory(f"Pre-Scan: {filename}")
    result = await analyze_media(source, mode, on_progress)
    log_memory(f"Post-Scan: {filename}")

    notify(on_progress, SAVING_MESSAGE)

    return await store.save(ScanRecordInput.from_result(
        result,
        filename=filename,
        source_type=source_type,
        source_url=source_url,
    ))
