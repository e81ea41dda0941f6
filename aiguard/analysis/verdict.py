"""
Decoding and classification of the engine's JSON verdict.

Every missing or malformed field has a documented default so the result is
always fully populated:
  - confidenceScore  -> 0.0 (non-numeric values count as missing; clamped to 0-100)
  - executiveSummary -> PLACEHOLDER_SUMMARY
  - forensicMarkers  -> [] (non-object entries are skipped)
  - marker severity  -> "low"
"""

import json
import logging
import math
from typing import Any, List

from aiguard.errors import AnalysisError
from aiguard.integrations.gemini.schema import MARKERS_FIELD, SCORE_FIELD, SUMMARY_FIELD
from aiguard.schemas.forensics import (
    AnalysisResult,
    ForensicMarker,
    MediaMode,
    ScanStatus,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_SUMMARY = "No summary available."

FAKE_THRESHOLD = 75.0
SUSPICIOUS_THRESHOLD = 40.0


def classify_status(score: float) -> ScanStatus:
    """score > 75 -> fake; 40 < score <= 75 -> suspicious; score <= 40 -> clean."""
    if score > FAKE_THRESHOLD:
        return ScanStatus.FAKE
    if score > SUSPICIOUS_THRESHOLD:
        return ScanStatus.SUSPICIOUS
    return ScanStatus.CLEAN


def _extract_score(value: Any) -> float:
    # bool is an int subclass; true/false is not a score.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        value = float(value)
    except OverflowError:
        # Integers past float range still clamp by sign.
        return 100.0 if value > 0 else 0.0
    if not math.isfinite(value):
        return 0.0
    return round(min(max(value, 0.0), 100.0), 2)


def _extract_summary(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return PLACEHOLDER_SUMMARY


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _extract_markers(value: Any) -> List[ForensicMarker]:
    if not isinstance(value, list):
        return []

    markers = []
    for item in value:
        if not isinstance(item, dict):
            logger.warning(f"[VERDICT] Skipping non-object marker: {item!r}")
            continue
        markers.append(ForensicMarker(
            position=_as_text(item.get("timestamp", item.get("position"))),
            label=_as_text(item.get("label")),
            severity=item.get("severity"),
            description=_as_text(item.get("description")),
        ))
    return markers


def decode_report(text: str, mode: MediaMode) -> AnalysisResult:
    """Parses the engine's response text into an AnalysisResult. Raises AnalysisError."""
    if not text or not text.strip():
        raise AnalysisError("decode failure: empty response")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisError(f"decode failure: {e}") from e

    if not isinstance(data, dict):
        raise AnalysisError(f"decode failure: expected a JSON object, got {type(data).__name__}")

    score = _extract_score(data.get(SCORE_FIELD))

    return AnalysisResult(
        probability_score=score,
        status=classify_status(score),
        summary=_extract_summary(data.get(SUMMARY_FIELD)),
        markers=_extract_markers(data.get(MARKERS_FIELD)),
        mode=mode,
        raw=data,
    )
