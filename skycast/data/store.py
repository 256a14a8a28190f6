"""
SkyCast — Subscriber Store.

Durable table of Subscriber records keyed by subscriber_id, persisted as a
pretty-printed JSON array. Every mutation rewrites the whole file before the
call returns.

Concurrency: all handlers and the scheduler run on one asyncio event loop.
Writes are serialized by an asyncio.Lock; reads never await, so they cannot
observe a half-applied write. Callers only ever receive copies.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
from dataclasses import replace
from pathlib import Path

from skycast.core.timeutil import normalize_time
from skycast.data.models import Subscriber

logger = logging.getLogger(__name__)


class SubscriberStore:
    """JSON-file-backed storage for subscriber preferences."""

    def __init__(self, path: str | None = None, records: list[Subscriber] | None = None) -> None:
        if path is None:
            from skycast.config import settings
            path = settings.DATA_PATH

        self._path = Path(path)
        self._records: dict[int, Subscriber] = {r.subscriber_id: r for r in records or []}
        self._write_lock = asyncio.Lock()

    @classmethod
    def load(cls, path: str | None = None) -> SubscriberStore:
        """Read the backing file and build a store from it.

        Missing or empty file -> empty table. Unparseable content -> the file
        is copied to '<path>.backup' and the store starts empty.
        """
        if path is None:
            from skycast.config import settings
            path = settings.DATA_PATH

        return cls(path, _read_records(Path(path)))

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, subscriber_id: int) -> Subscriber | None:
        """Point lookup. Returns a copy, never the stored record."""
        record = self._records.get(subscriber_id)
        return replace(record) if record is not None else None

    async def get_or_default(self, subscriber_id: int) -> Subscriber:
        """Lookup, or a fresh default record (not stored)."""
        record = await self.get(subscriber_id)
        return record if record is not None else Subscriber(subscriber_id=subscriber_id)

    async def all(self) -> list[Subscriber]:
        """Snapshot copy of the whole table, in insertion order."""
        return [replace(r) for r in self._records.values()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def put(self, subscriber: Subscriber) -> None:
        """Upsert a record and persist the table.

        Raises ValueError for a malformed delivery_time.
        """
        subscriber = _normalized(subscriber)
        async with self._write_lock:
            self._upsert(subscriber)

    async def update(self, subscriber_id: int, **changes) -> Subscriber:
        """Atomically get-or-create, apply field changes, and persist.

        Returns a copy of the updated record. Raises ValueError for a
        malformed delivery_time, leaving the stored record untouched.
        """
        async with self._write_lock:
            current = self._records.get(subscriber_id) or Subscriber(subscriber_id=subscriber_id)
            updated = _normalized(replace(current, **changes))
            self._upsert(updated)
        return replace(updated)

    def _upsert(self, subscriber: Subscriber) -> None:
        # Caller holds the write lock.
        self._records[subscriber.subscriber_id] = replace(subscriber)
        self._save()

    def _save(self) -> None:
        """Rewrite the backing file. Failures are logged, memory stays authoritative."""
        payload = [r.to_dict() for r in self._records.values()]
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save subscribers to %s: %s", self._path, exc)
            return
        logger.debug("Saved %d subscribers to %s", len(payload), self._path)


def _normalized(subscriber: Subscriber) -> Subscriber:
    """Zero-pad delivery_time; raises ValueError if it is malformed."""
    if subscriber.delivery_time is None:
        return subscriber
    return replace(subscriber, delivery_time=normalize_time(subscriber.delivery_time))


def _read_records(path: Path) -> list[Subscriber]:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Data file %s not found, starting with no subscribers", path)
        return []
    except OSError as exc:
        logger.error("Failed to read data file %s: %s", path, exc)
        return []

    if not content.strip():
        logger.info("Data file %s is empty, starting with no subscribers", path)
        return []

    try:
        raw = json.loads(content)
        if not isinstance(raw, list):
            raise ValueError("top-level JSON value must be an array")
        records = [Subscriber.from_dict(item) for item in raw]
        ids = [r.subscriber_id for r in records]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate subscriber_id")
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.error("Data file %s is corrupted: %s", path, exc)
        _backup_corrupted(path)
        return []

    logger.info("Loaded %d subscribers from %s", len(records), path)
    return records


def _backup_corrupted(path: Path) -> None:
    backup_path = path.with_name(path.name + ".backup")
    try:
        shutil.copyfile(path, backup_path)
    except OSError as exc:
        logger.error("Could not back up corrupted data file: %s", exc)
        return
    logger.warning("Corrupted data file backed up to %s, starting with no subscribers", backup_path)
