"""
Central application configuration.

Every tunable value lives here as a typed, documented field.
Any field can be overridden at runtime via an environment variable of the
same name (case-insensitive), e.g.:

    HISTORY_CAPACITY=25 uvicorn aiguard.main:app   # larger local history
    export HISTORY_BACKEND=firestore                # shared deployment

A `.env` file at the project root is loaded automatically.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,   # HISTORY_CAPACITY == history_capacity
        extra="ignore",         # silently drop unknown env vars
    )

    # ------------------------------------------------------------------ #
    # Gemini Client                                                       #
    # ------------------------------------------------------------------ #
    gemini_model: str = Field(
        "gemini-3-pro-preview", description="Multimodal model used for forensic audits"
    )
    gemini_http_timeout_ms: int = Field(
        300_000, description="HTTP transport timeout (ms); a full video audit is slow"
    )
    gemini_thinking_budget: int = Field(
        4096, description="Reasoning token budget per audit"
    )
    gemini_temperature: float = Field(
        1.0, description="Sampling temperature for Gemini model"
    )

    # ------------------------------------------------------------------ #
    # Progress Feed                                                       #
    # ------------------------------------------------------------------ #
    progress_interval_sec: float = Field(
        1.5, description="Seconds between progress messages while an audit runs"
    )

    # ------------------------------------------------------------------ #
    # Scan History                                                        #
    # ------------------------------------------------------------------ #
    history_capacity: int = Field(
        10, ge=1, description="Most recent scans retained; older ones are evicted on save"
    )
    history_backend: Literal["file", "firestore", "memory"] = Field(
        "file", description="Where scan history is persisted"
    )
    history_file_path: str = Field(
        "data/scan_history.json", description="JSON file used by the 'file' backend"
    )
    history_collection: str = Field(
        "scans", description="Firestore collection used by the 'firestore' backend"
    )

    # ------------------------------------------------------------------ #
    # URL Ingestion                                                       #
    # ------------------------------------------------------------------ #
    http_timeout_sec: int = Field(
        60, description="Total timeout for remote media downloads (seconds)"
    )

    # ------------------------------------------------------------------ #
    # Upload Limits (HTTP layer only)                                     #
    # ------------------------------------------------------------------ #
    max_image_upload_mb: int = Field(
        20, description="Max MB for multipart image uploads"
    )
    max_video_upload_mb: int = Field(
        200, description="Max MB for multipart video uploads"
    )

    # ------------------------------------------------------------------ #
    # Derived byte-level properties (computed from MB fields)             #
    # ------------------------------------------------------------------ #
    @property
    def max_image_upload_bytes(self) -> int:
        return self.max_image_upload_mb * 1024 * 1024

    @property
    def max_video_upload_bytes(self) -> int:
        return self.max_video_upload_mb * 1024 * 1024


# Single shared instance — import this everywhere.
settings = Settings()
