"""
Request-level validation for scan submissions: media mode resolution and
per-mode upload size limits. Limits apply to multipart uploads only; the
ingestion layer itself accepts any byte length.
"""

import logging
from typing import Optional

from fastapi import HTTPException

from aiguard.config import settings
from aiguard.schemas.forensics import MediaMode

logger = logging.getLogger(__name__)


def resolve_mode(raw_mode: Optional[str], content_type: Optional[str] = None) -> MediaMode:
    """Explicit mode wins; otherwise an image/* upload is an image scan, anything else video."""
    if raw_mode:
        try:
            return MediaMode(raw_mode.strip().lower())
        except ValueError:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid mode '{raw_mode}'. Use 'video' or 'image'."
            )
    if content_type and content_type.lower().startswith("image/"):
        return MediaMode.IMAGE
    return MediaMode.VIDEO


def validate_upload_size(filename: str, filesize: int, mode: MediaMode) -> None:
    if filesize == 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    if mode == MediaMode.IMAGE:
        limit, kind = settings.max_image_upload_bytes, "Image"
    else:
        limit, kind = settings.max_video_upload_bytes, "Video"

    if filesize > limit:
        logger.info(f"[UPLOAD] Rejected {filename}: {filesize} bytes exceeds {limit}")
        raise HTTPException(
            status_code=413,
            detail=f"{kind} too large. Max {limit // 1024 // 1024}MB allowed."
        )
