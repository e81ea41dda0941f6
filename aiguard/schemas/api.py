from typing import List, Optional

from pydantic import BaseModel

from aiguard.schemas.forensics import MediaMode, ScanRecord


class UrlScanRequest(BaseModel):
    url: str
    mode: MediaMode = MediaMode.VIDEO


class ScanHistoryResponse(BaseModel):
    scans: List[ScanRecord]
    capacity: int


class StreamEvent(BaseModel):
    type: str                        # "progress", "result" or "error"
    message: Optional[str] = None    # progress text
    record: Optional[ScanRecord] = None
    detail: Optional[str] = None     # error text
