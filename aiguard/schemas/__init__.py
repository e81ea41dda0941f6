from aiguard.schemas.forensics import (
    AnalysisResult,
    ForensicMarker,
    MediaMode,
    ScanRecord,
    ScanRecordInput,
    ScanStatus,
    Severity,
    SourceType,
)
from aiguard.schemas.api import ScanHistoryResponse, StreamEvent, UrlScanRequest

__all__ = [
    "AnalysisResult",
    "ForensicMarker",
    "MediaMode",
    "ScanRecord",
    "ScanRecordInput",
    "ScanStatus",
    "Severity",
    "SourceType",
    "ScanHistoryResponse",
    "StreamEvent",
    "UrlScanRequest",
]
