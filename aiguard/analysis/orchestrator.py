"""
Top-level analysis pipeline — the single entry point used by the HTTP layer.

`analyze_media` orchestrates:
  1. Progress feed start (mode-specific phase messages)
  2. Ingestion (upload bytes, public URL or data URI)
  3. One Gemini forensic audit call
  4. Feed stop (always, on every exit path), then JSON decoding + classification

Nothing here retries and nothing is persisted; the caller saves the result.
"""

import logging
import time
from typing import Optional

from aiguard.analysis.ingest import IngestedMedia, MediaSource, ingest
from aiguard.analysis.progress import PHASE_MESSAGES, ProgressFeed, ProgressSink
from aiguard.analysis.verdict import decode_report
from aiguard.errors import AnalysisError, IngestionError, MediaUnavailableError
from aiguard.integrations.gemini import client as gemini_module
from aiguard.schemas.forensics import AnalysisResult, MediaMode

logger = logging.getLogger(__name__)

FETCHING_MESSAGE = "Fetching media from public URL..."
COMPLETE_MESSAGE = "Audit complete. Decoding JSON result..."
FAILURE_MESSAGE = "Forensic node failure."


def notify(on_progress: Optional[ProgressSink], message: str) -> None:
    if on_progress is None:
        return
    try:
        on_progress(message)
    except Exception as e:
        logger.warning(f"[PIPELINE] Progress sink raised: {e}")


async def analyze_media(
    source: MediaSource,
    mode: MediaMode,
    on_progress: Optional[ProgressSink] = None,
) -> AnalysisResult:
    """
    Runs one forensic audit and returns the decoded, classified result.

    Args:
        source: UploadedMedia, an http(s) URL, or a base64 data URI.
        mode: Video or image; selects phase messages and marker semantics.
        on_progress: Receives progress text. Best-effort, may be called zero times.

    Raises:
        MediaUnavailableError: ingestion failed (also an IngestionError).
        AnalysisError: the remote call failed or its response was not decodable.
    """
    mode = MediaMode(mode)
    feed = ProgressFeed(PHASE_MESSAGES[mode], lambda text: notify(on_progress, text))
    start_time = time.time()

    try:
        feed.start()

        if isinstance(source, str) and not source.startswith("data:"):
            notify(on_progress, FETCHING_MESSAGE)

        try:
            media: IngestedMedia = await ingest(source)
        except IngestionError as e:
            raise MediaUnavailableError(str(e)) from e

        logger.info(
            f"[PIPELINE] Auditing {media.filename} as {mode.value} "
            f"({len(media.data)} bytes, {media.mime_type})"
        )

        try:
            text = await gemini_module.request_forensic_report(media.data, media.mime_type, mode)
        except Exception as e:
            logger.error(f"[PIPELINE] Remote analysis failed for {media.filename}: {e}")
            raise AnalysisError(f"Remote analysis failed: {e}") from e
    except AnalysisError as e:
        feed.stop()
        notify(on_progress, str(e) or FAILURE_MESSAGE)
        raise
    finally:
        feed.stop()

    notify(on_progress, COMPLETE_MESSAGE)

    try:
        result = decode_report(text, mode)
    except AnalysisError as e:
        notify(on_progress, str(e))
        raise

    logger.info(
        f"[PIPELINE] {media.filename}: score={result.probability_score}, "
        f"status={result.status.value}, markers={len(result.markers)}, "
        f"duration={time.time() - start_time:.2f}s"
    )
    return result
