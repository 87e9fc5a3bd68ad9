"""Async record stores for positions, journal entries, and prices.

Each store keeps plain dict records in a MutableMapping keyed by record id. The mapping can be:

    - a regular dict for in-memory use (tests, short-lived sessions)
    - a mutil DualCache for persistent local storage across restarts

Stores are async because callers treat them as remote collaborators. The mapping operations
themselves are synchronous, so nothing here runs concurrently with anything else.

Note: ONLY write through the store methods so changes persist. Objects returned from the
store are fresh copies rebuilt from the stored records, so mutating them changes nothing
until you pass them back into `.update()`.
"""

from __future__ import annotations

import random
from collections.abc import Callable, MutableMapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from loguru import logger
from mutil.dualcache import DualCache

from tradejournal.config import CACHE_PREFIX
from tradejournal.ledger import JournalEntry, JournalField, Position, PositionId
from tradejournal.validators import validate_journal_entry, validate_position

T = TypeVar("T")


class RecordStore(Generic[T]):
    """CRUD over a mapping of id -> record dict.

    Subclasses describe how to turn their objects into records and back via
    `encode` / `decode` and may add validation in `check`.
    """

    def __init__(self, name: str, backend: MutableMapping[str, Any] | None = None):
        self.name = name.replace(" ", "-").title()

        # default is a persistent local cache just like the other trading state
        if backend is None:
            backend = DualCache(cacheName=self.name, cachePrefix=CACHE_PREFIX)  # type: ignore[assignment]

        self.records: MutableMapping[str, Any] = backend  # type: ignore[assignment]

    @classmethod
    @contextmanager
    def temp(cls, name: str | None = None, keep=False):
        """Create a uniquely namespaced disk-backed instance then delete when complete"""
        if not name:
            name = f"Test Instance {random.randint(0, 200_000)}"

        created = cls(name)
        try:
            yield created
        finally:
            if not keep:
                created.records.destroy()  # type: ignore[attr-defined]

    @classmethod
    def memory(cls, name: str = "memory"):
        return cls(name, backend={})

    def encode(self, obj: T) -> dict[str, Any]:
        return obj  # type: ignore[return-value]

    def decode(self, record: dict[str, Any]) -> T:
        return record  # type: ignore[return-value]

    def check(self, obj: T) -> None:
        pass

    def key(self, obj: T) -> str:
        return obj.id  # type: ignore[attr-defined]

    async def create(self, obj: T) -> T:
        self.check(obj)

        key = self.key(obj)
        if key in self.records:
            raise KeyError(f"[{self.name}] Record already exists: {key}")

        self.records[key] = self.encode(obj)
        logger.debug("[{}] Created {}", self.name, key)

        return self.decode(self.records[key])

    async def get(self, key: str) -> T | None:
        if (record := self.records.get(key)) is None:
            return None

        return self.decode(record)

    async def update(self, obj: T) -> T:
        self.check(obj)

        key = self.key(obj)
        if key not in self.records:
            raise KeyError(f"[{self.name}] Cannot update missing record: {key}")

        # yes, this looks backwards, but re-setting the key is what saves to persistent storage
        self.records[key] = self.encode(obj)
        return self.decode(self.records[key])

    async def put(self, obj: T) -> T:
        """Create or replace a record."""
        self.check(obj)
        key = self.key(obj)
        self.records[key] = self.encode(obj)
        return self.decode(self.records[key])

    async def delete(self, key: str) -> None:
        if key not in self.records:
            raise KeyError(f"[{self.name}] Cannot delete missing record: {key}")

        del self.records[key]
        logger.debug("[{}] Deleted {}", self.name, key)

    async def all(self) -> list[T]:
        return [self.decode(record) for record in self.records.values()]

    async def find(self, match: Callable[[T], bool]) -> list[T]:
        return [obj for obj in await self.all() if match(obj)]

    async def clear(self) -> None:
        self.records.clear()

    def __contains__(self, key: str) -> bool:
        return key in self.records

    def __len__(self) -> int:
        return len(self.records)


class PositionStore(RecordStore[Position]):
    """Positions persisted without any derived fields.

    Loading goes through Position.from_record(), which upgrades older record shapes and
    discards any stored status, so every position read from here has its status
    recomputed from its trades."""

    def encode(self, obj: Position) -> dict[str, Any]:
        return obj.to_record()

    def decode(self, record: dict[str, Any]) -> Position:
        return Position.from_record(record)

    def check(self, obj: Position) -> None:
        validate_position(obj)

    async def get_or_raise(self, key: PositionId) -> Position:
        if not (position := await self.get(key)):
            raise KeyError(f"Position not found: {key}")

        return position


class JournalStore(RecordStore[JournalEntry]):
    def encode(self, obj: JournalEntry) -> dict[str, Any]:
        return obj.to_record()

    def decode(self, record: dict[str, Any]) -> JournalEntry:
        return JournalEntry.from_record(record)

    def check(self, obj: JournalEntry) -> None:
        validate_journal_entry(obj)

    async def find_by_position(self, position_id: PositionId) -> list[JournalEntry]:
        return await self.find(lambda e: e.position_id == position_id)

    async def find_by_trade(self, trade_id: str) -> list[JournalEntry]:
        return await self.find(lambda e: e.trade_id == trade_id)

    async def update_fields(
        self, key: str, fields: list[JournalField], executed_at=None
    ) -> JournalEntry:
        if not (entry := await self.get(key)):
            raise KeyError(f"Journal entry not found: {key}")

        entry.fields = fields
        if executed_at is not None:
            entry.executed_at = executed_at

        return await self.update(entry)
