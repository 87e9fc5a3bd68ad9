"""Daily price history per underlying, and the price snapshots P&L is computed against.

One record exists per (underlying, date). Recording a price for an existing (underlying, date)
replaces it. Only the close is used for P&L; open/high/low default to the close when a user
just types in one number.
"""

from __future__ import annotations

import asyncio
import datetime
from dataclasses import dataclass, field
from typing import Any

import arrow  # type: ignore
from loguru import logger

from tradejournal.config import PRICE_CHANGE_THRESHOLD
from tradejournal.ledger import Position, Price, now
from tradejournal.stores import RecordStore
from tradejournal.validators import validate_price_record


def today() -> str:
    return arrow.now().format("YYYY-MM-DD")


@dataclass(slots=True)
class PriceRecord:
    underlying: str
    date: str
    close: Price

    # missing open/high/low are filled from close
    open: Price | None = None
    high: Price | None = None
    low: Price | None = None

    updated_at: datetime.datetime = field(default_factory=now)

    def __post_init__(self):
        if self.open is None:
            self.open = self.close

        if self.high is None:
            self.high = self.close

        if self.low is None:
            self.low = self.close

    @property
    def id(self) -> str:
        return f"price_{self.underlying}_{self.date}"


@dataclass(slots=True, frozen=True)
class PriceChange:
    requiresConfirmation: bool
    percentChange: float
    oldPrice: Price | None
    newPrice: Price


class PriceStore(RecordStore[PriceRecord]):
    def encode(self, obj: PriceRecord) -> dict[str, Any]:
        return dict(
            underlying=obj.underlying,
            date=obj.date,
            open=obj.open,
            high=obj.high,
            low=obj.low,
            close=obj.close,
            updated_at=obj.updated_at,
        )

    def decode(self, record: dict[str, Any]) -> PriceRecord:
        return PriceRecord(**record)

    def check(self, obj: PriceRecord) -> None:
        validate_price_record(obj)


def requires_confirmation(
    old: Price | None, new: Price, threshold: float = PRICE_CHANGE_THRESHOLD
) -> bool:
    """True when a price moves more than `threshold` percent (either direction)."""
    if old is None:
        return False

    return abs((new - old) / old * 100) > threshold


@dataclass
class PriceBook:
    store: PriceStore

    async def record(self, price: PriceRecord) -> PriceRecord:
        price.updated_at = now()
        return await self.store.put(price)

    async def record_close(
        self, underlying: str, close: Price, date: str | None = None
    ) -> PriceRecord:
        return await self.record(
            PriceRecord(underlying=underlying, date=date or today(), close=close)
        )

    async def history(
        self, underlying: str, limit: int | None = None, offset: int = 0
    ) -> list[PriceRecord]:
        """All records for `underlying`, newest date first."""
        found = await self.store.find(lambda p: p.underlying == underlying)
        found.sort(key=lambda p: p.date, reverse=True)

        end = None if limit is None else offset + limit
        return found[offset:end]

    async def latest(self, underlying: str) -> PriceRecord | None:
        if got := await self.history(underlying, limit=1):
            return got[0]

        return None

    async def on_date(self, underlying: str, date: str) -> PriceRecord | None:
        return await self.store.get(PriceRecord(underlying, date, 0).id)

    async def latest_prices(self, underlyings: list[str]) -> dict[str, Price]:
        """Map of underlying -> latest close for every underlying having any price history."""
        found = await asyncio.gather(*[self.latest(u) for u in underlyings])
        return {p.underlying: p.close for p in found if p}

    async def price_map_for_position(self, position: Position) -> dict[str, Price]:
        if not position.trades:
            return {}

        return await self.latest_prices(position.underlyings)

    async def check_change(self, underlying: str, new: Price) -> PriceChange:
        previous = await self.latest(underlying)
        old = previous.close if previous else None

        confirm = requires_confirmation(old, new)
        if confirm:
            logger.warning(
                "[{}] Price change {} -> {} needs confirmation", underlying, old, new
            )

        return PriceChange(
            requiresConfirmation=confirm,
            percentChange=round((new - old) / old * 100, 2) if old else 0,
            oldPrice=old,
            newPrice=new,
        )
