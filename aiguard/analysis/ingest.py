"""
Media ingestion: turns an uploaded blob, a public URL or a base64 data URI
into raw bytes plus a mime type ready for the Gemini request.

No size limits are enforced here (the HTTP layer owns those) and nothing is
retried: a failed download is terminal for the ingestion call.
"""

import asyncio
import base64
import binascii
import logging
import mimetypes
import posixpath
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import unquote, urlparse

import aiohttp

from aiguard.errors import FetchError, IngestionError
from aiguard.integrations import http_client as http_module

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
UPLOAD_FALLBACK_NAME = "uploaded_media"
REMOTE_FALLBACK_NAME = "remote_media"
PASTED_BASENAME = "pasted_media"

FETCH_HINT = "URL access error: ensure the link is a direct, publicly reachable media file."

# Formats mimetypes does not know about on every platform.
_EXTRA_TYPES = {
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".webp": "image/webp",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}
_EXTRA_TYPES_REVERSE = {v: k for k, v in _EXTRA_TYPES.items()}


@dataclass
class UploadedMedia:
    data: bytes
    content_type: Optional[str] = None
    filename: Optional[str] = None


@dataclass
class IngestedMedia:
    data: bytes
    mime_type: str
    filename: str


MediaSource = Union[UploadedMedia, str]


def guess_mime_type(name: str) -> Optional[str]:
    ext = posixpath.splitext(name.lower())[1]
    if ext in _EXTRA_TYPES:
        return _EXTRA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(name)
    return guessed


def _clean_content_type(value: Optional[str]) -> str:
    """Strips parameters: 'video/mp4; codecs=avc1' -> 'video/mp4'."""
    if not value:
        return ""
    return value.split(";", 1)[0].strip().lower()


def filename_from_url(url: str) -> str:
    """Last non-empty path segment of the URL, or a generic label."""
    try:
        path = urlparse(url).path
    except ValueError:
        return REMOTE_FALLBACK_NAME
    segments = [s for s in path.split("/") if s]
    if not segments:
        return REMOTE_FALLBACK_NAME
    name = unquote(segments[-1]).strip()
    return name or REMOTE_FALLBACK_NAME


def _data_uri_mime_type(header: str) -> str:
    return _clean_content_type(header[len("data:"):].split(";", 1)[0]) or DEFAULT_MIME_TYPE


def _pasted_filename(mime_type: str) -> str:
    suffix = _EXTRA_TYPES_REVERSE.get(mime_type) or mimetypes.guess_extension(mime_type) or ""
    return f"{PASTED_BASENAME}{suffix}"


def display_filename(source) -> str:
    """Name shown in scan history for a source, derived without fetching it."""
    if isinstance(source, UploadedMedia):
        return source.filename or UPLOAD_FALLBACK_NAME
    url = str(source).strip()
    if url.startswith("data:"):
        return _pasted_filename(_data_uri_mime_type(url.split(",", 1)[0]))
    return filename_from_url(url)


def _decode_data_uri(uri: str) -> IngestedMedia:
    try:
        header, data_str = uri.split(",", 1)
    except ValueError:
        raise IngestionError("Invalid data URI")

    if ";base64" not in header:
        raise IngestionError("Only base64 data URIs are supported")

    try:
        content = base64.b64decode(data_str, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.error(f"[INGEST] Error decoding data URI: {e}")
        raise IngestionError("Invalid data URI") from e

    mime_type = _data_uri_mime_type(header)
    return IngestedMedia(data=content, mime_type=mime_type, filename=_pasted_filename(mime_type))


async def _fetch_url(url: str) -> IngestedMedia:
    async with http_module.request_session() as session:
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    raise FetchError(f"{FETCH_HINT} (HTTP status {response.status})")
                content = await response.read()
                content_type = _clean_content_type(response.headers.get("Content-Type"))
        except aiohttp.ClientError as e:
            raise FetchError(f"{FETCH_HINT} ({e})") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"{FETCH_HINT} (timed out)") from e

    filename = filename_from_url(url)
    if not content_type or content_type == DEFAULT_MIME_TYPE:
        content_type = guess_mime_type(filename) or DEFAULT_MIME_TYPE

    logger.info(f"[INGEST] Downloaded {len(content)} bytes ({content_type}) from {url}")
    return IngestedMedia(data=content, mime_type=content_type, filename=filename)


def _read_upload(upload: UploadedMedia) -> IngestedMedia:
    if not isinstance(upload.data, (bytes, bytearray, memoryview)):
        raise IngestionError("Uploaded media is not readable as bytes")

    filename = display_filename(upload)
    mime_type = (
        _clean_content_type(upload.content_type)
        or guess_mime_type(filename)
        or DEFAULT_MIME_TYPE
    )
    return IngestedMedia(data=bytes(upload.data), mime_type=mime_type, filename=filename)


async def ingest(source: MediaSource) -> IngestedMedia:
    """Normalizes an upload or URL into an `IngestedMedia`. Raises IngestionError."""
    if isinstance(source, UploadedMedia):
        return _read_upload(source)

    if not isinstance(source, str):
        raise IngestionError(f"Unsupported media source: {type(source).__name__}")

    url = source.strip()
    if url.startswith("data:"):
        return _decode_data_uri(url)

    try:
        scheme = urlparse(url).scheme.lower()
    except ValueError as e:
        raise IngestionError(f"Invalid URL: {e}") from e
    if scheme not in ("http", "https"):
        raise IngestionError(f"Unsupported URL scheme: '{scheme or url}'")

    return await _fetch_url(url)
