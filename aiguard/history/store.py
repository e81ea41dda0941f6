"""
Bounded, newest-first scan history.

HistoryStore assigns ids and timestamps, writes through a backend and then
evicts everything beyond `capacity`. The capacity is a single explicit
number (HISTORY_CAPACITY, default 10) enforced on every save.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from aiguard.config import settings
from aiguard.history.backends import HistoryBackend, build_backend
from aiguard.schemas.forensics import ScanRecord, ScanRecordInput

logger = logging.getLogger(__name__)


class HistoryStore:
    def __init__(self, backend: HistoryBackend, capacity: int = None):
        capacity = settings.history_capacity if capacity is None else capacity
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.backend = backend
        self.capacity = capacity
        self._lock = asyncio.Lock()
        self._last_timestamp: Optional[datetime] = None

    def _next_timestamp(self) -> datetime:
        # Strictly increasing, so insertion order breaks wall-clock ties.
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    async def save(self, record: ScanRecordInput) -> ScanRecord:
        """Persists a new record and returns it with its assigned id and timestamp."""
        async with self._lock:
            entity = ScanRecord(
                **record.model_dump(exclude={"id", "timestamp"}),
                id=uuid.uuid4().hex,
                timestamp=self._next_timestamp(),
            )
            saved = await self.backend.create(entity)
            evicted = await self.backend.evict(self.capacity)

        logger.info(
            f"[HISTORY] Saved scan {saved.id} ({saved.filename}, {saved.status.value})"
            + (f", evicted {evicted} old record(s)" if evicted else "")
        )
        return saved

    async def list(self) -> List[ScanRecord]:
        """Newest-first, at most `capacity` records."""
        return await self.backend.list(self.capacity)

    async def get(self, record_id: str) -> Optional[ScanRecord]:
        return await self.backend.get(record_id)


def build_history_store() -> HistoryStore:
    return HistoryStore(build_backend(), settings.history_capacity)
