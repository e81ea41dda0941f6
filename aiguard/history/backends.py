"""
Persistence backends for scan history.

Each backend stores whole ScanRecord documents and answers newest-first
queries. Capacity is not their concern: HistoryStore calls `evict(keep)` after
every insertion. All blocking I/O runs in a worker thread via
asyncio.to_thread so the event loop keeps ticking progress feeds.

  - JsonFileHistoryBackend  → one JSON array on disk (local single-user store)
  - FirestoreHistoryBackend → one document per scan in a Firestore collection
  - MemoryHistoryBackend    → process-local list (tests, ephemeral runs)
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol

from firebase_admin import firestore
from pydantic import ValidationError

from aiguard.config import settings
from aiguard.errors import PersistenceError
from aiguard.integrations import firebase as firebase_module
from aiguard.schemas.forensics import ScanRecord

logger = logging.getLogger(__name__)


class HistoryBackend(Protocol):
    async def create(self, record: ScanRecord) -> ScanRecord: ...

    async def list(self, limit: int) -> List[ScanRecord]: ...

    async def get(self, record_id: str) -> Optional[ScanRecord]: ...

    async def evict(self, keep: int) -> int: ...


def _newest_first(records: List[ScanRecord]) -> List[ScanRecord]:
    # Stable sort: records already held newest-inserted-first keep that order on ties.
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


class MemoryHistoryBackend:
    def __init__(self):
        self._records: List[ScanRecord] = []

    async def create(self, record: ScanRecord) -> ScanRecord:
        self._records.insert(0, record)
        return record

    async def list(self, limit: int) -> List[ScanRecord]:
        return _newest_first(self._records)[:limit]

    async def get(self, record_id: str) -> Optional[ScanRecord]:
        return next((r for r in self._records if r.id == record_id), None)

    async def evict(self, keep: int) -> int:
        ordered = _newest_first(self._records)
        evicted = len(ordered) - keep
        self._records = ordered[:keep]
        return max(evicted, 0)


class JsonFileHistoryBackend:
    """Newest-first JSON array in a single file, replaced atomically on write."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> List[ScanRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise PersistenceError(f"History file {self.path} does not hold a list")
            return [ScanRecord.model_validate(item) for item in raw]
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Could not read history file {self.path}: {e}") from e

    def _write(self, records: List[ScanRecord]) -> None:
        payload = json.dumps([r.model_dump(mode="json") for r in records], indent=2)
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, suffix=".tmp", delete=False
            ) as tmp_file:
                tmp_file.write(payload)
                tmp_path = tmp_file.name
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Could not write history file {self.path}: {e}") from e

    def _create_sync(self, record: ScanRecord) -> ScanRecord:
        self._write([record] + self._read())
        return record

    def _evict_sync(self, keep: int) -> int:
        ordered = _newest_first(self._read())
        if len(ordered) <= keep:
            return 0
        self._write(ordered[:keep])
        return len(ordered) - keep

    async def create(self, record: ScanRecord) -> ScanRecord:
        return await asyncio.to_thread(self._create_sync, record)

    async def list(self, limit: int) -> List[ScanRecord]:
        records = await asyncio.to_thread(self._read)
        return _newest_first(records)[:limit]

    async def get(self, record_id: str) -> Optional[ScanRecord]:
        records = await asyncio.to_thread(self._read)
        return next((r for r in records if r.id == record_id), None)

    async def evict(self, keep: int) -> int:
        return await asyncio.to_thread(self._evict_sync, keep)


class FirestoreHistoryBackend:
    """
    One document per scan, keyed by record id.

    The collection is resolved at call time through the firebase integration
    module so it picks up the client initialized during the FastAPI lifespan.
    """

    def __init__(self, collection: str = None):
        self.collection = collection or settings.history_collection

    def _collection(self):
        return firebase_module.collection(self.collection)

    def _newest_query(self):
        return self._collection().order_by("timestamp", direction=firestore.Query.DESCENDING)

    @staticmethod
    def _to_document(record: ScanRecord) -> dict:
        doc = record.model_dump(mode="json")
        # Native timestamp so Firestore orders by instant, not by ISO string.
        doc["timestamp"] = record.timestamp
        return doc

    @staticmethod
    def _from_snapshot(snapshot) -> ScanRecord:
        data = snapshot.to_dict()
        data.setdefault("id", snapshot.id)
        return ScanRecord.model_validate(data)

    def _create_sync(self, record: ScanRecord) -> ScanRecord:
        self._collection().document(record.id).set(self._to_document(record))
        return record

    def _list_sync(self, limit: int) -> List[ScanRecord]:
        return [self._from_snapshot(s) for s in self._newest_query().limit(limit).stream()]

    def _get_sync(self, record_id: str) -> Optional[ScanRecord]:
        snapshot = self._collection().document(record_id).get()
        if not snapshot.exists:
            return None
        return self._from_snapshot(snapshot)

    def _evict_sync(self, keep: int) -> int:
        evicted = 0
        for snapshot in self._newest_query().offset(keep).stream():
            snapshot.reference.delete()
            evicted += 1
        return evicted

    async def _call(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(f"[HISTORY] Firestore operation {func.__name__} failed: {e}")
            raise PersistenceError(f"Firestore operation failed: {e}") from e

    async def create(self, record: ScanRecord) -> ScanRecord:
        return await self._call(self._create_sync, record)

    async def list(self, limit: int) -> List[ScanRecord]:
        return await self._call(self._list_sync, limit)

    async def get(self, record_id: str) -> Optional[ScanRecord]:
        return await self._call(self._get_sync, record_id)

    async def evict(self, keep: int) -> int:
        return await self._call(self._evict_sync, keep)


def build_backend(kind: str = None) -> HistoryBackend:
    kind = kind or settings.history_backend
    if kind == "file":
        return JsonFileHistoryBackend(settings.history_file_path)
    if kind == "firestore":
        return FirestoreHistoryBackend(settings.history_collection)
    if kind == "memory":
        return MemoryHistoryBackend()
    raise ValueError(f"Unknown history backend: {kind}")
