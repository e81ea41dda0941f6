from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MediaMode(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


class SourceType(str, Enum):
    UPLOAD = "upload"
    URL = "url"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScanStatus(str, Enum):
    CLEAN = "clean"
    SUSPICIOUS = "suspicious"
    FAKE = "fake"


class ForensicMarker(BaseModel):
    position: str = ""     # "MM:SS" for video, region label (e.g. "left hand") for images
    label: str = ""        # e.g. "[Stage 1] Facial boundary warping"
    severity: Severity = Severity.LOW
    description: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _unknown_severity_is_low(cls, value: Any) -> Severity:
        if isinstance(value, Severity):
            return value
        try:
            return Severity(str(value).strip().lower())
        except ValueError:
            return Severity.LOW


class AnalysisResult(BaseModel):
    """Decoded output of one remote forensic audit."""
    probability_score: float = Field(ge=0.0, le=100.0)
    status: ScanStatus
    summary: str = Field(min_length=1)
    markers: List[ForensicMarker] = Field(default_factory=list)
    mode: MediaMode
    raw: dict = Field(default_factory=dict)  # full decoded payload, kept for audit only


class ScanRecordInput(BaseModel):
    """Everything a history entry carries before the store assigns id/timestamp."""
    filename: str
    mode: MediaMode
    source_type: SourceType
    source_url: Optional[str] = None
    probability_score: float = Field(ge=0.0, le=100.0)
    status: ScanStatus
    summary: str = Field(min_length=1)
    markers: List[ForensicMarker] = Field(default_factory=list)
    raw: dict = Field(default_factory=dict)

    @model_validator(mode="after")
    def _source_url_matches_source_type(self):
        if self.source_type == SourceType.URL and not self.source_url:
            raise ValueError("source_url is required for url-sourced scans")
        if self.source_type == SourceType.UPLOAD and self.source_url is not None:
            raise ValueError("source_url is only allowed for url-sourced scans")
        return self

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        filename: str,
        source_type: SourceType,
        source_url: Optional[str] = None,
    ) -> "ScanRecordInput":
        return cls(
            filename=filename,
            mode=result.mode,
            source_type=source_type,
            source_url=source_url,
            probability_score=result.probability_score,
            status=result.status,
            summary=result.summary,
            markers=result.markers,
            raw=result.raw,
        )


class ScanRecord(ScanRecordInput):
    """A persisted history entry. Never mutated after the store creates it."""
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
