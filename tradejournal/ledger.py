"""Records for positions, their trades, and the journal entries written about them.

A Position is a trading plan plus the ordered log of Trades executed against it.
Nothing derived from the trade log is stored here:

    - status (planned/open/closed) is a property computed from `trades` on every access
    - cost basis, open quantity, and P&L live in `tradejournal.metrics` as pure functions

When a Position is loaded back from storage, any `status` value found in the stored record is
discarded because the trade log is the only source of truth.

DATA FORMAT:
============

TRADE:
    - side: BUY or SELL (direction is carried by side, not by quantity sign)
    - quantity: non-negative by convention (not enforced here; see validators)
    - price: price per share/contract
    - underlying: the symbol the trade is priced against. For stocks this is the ticker,
      for options this is the full OCC symbol, so each leg of a future multi-leg position
      can be priced independently.

POSITION:
    - trades: insertion order IS execution order (timestamps are informational only)
    - journal_entry_ids: ids of journal entries written about this position
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

PositionId: TypeAlias = str
JournalId: TypeAlias = str
TradeId: TypeAlias = str

Price: TypeAlias = float
Qty: TypeAlias = float | int


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Status(str, Enum):
    PLANNED = "planned"
    OPEN = "open"
    CLOSED = "closed"


class Strategy(str, Enum):
    LONG_STOCK = "Long Stock"
    SHORT_PUT = "Short Put"


class TradeKind(str, Enum):
    STOCK = "stock"
    OPTION = "option"


class PriceBasis(str, Enum):
    STOCK = "stock"
    OPTION = "option"


class EntryType(str, Enum):
    POSITION_PLAN = "position_plan"
    TRADE_EXECUTION = "trade_execution"


def now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def generate_position_id() -> PositionId:
    return f"pos-{uuid.uuid4()}"


def generate_journal_id() -> JournalId:
    return f"journal-{uuid.uuid4()}"


def generate_trade_id() -> TradeId:
    return f"trade-{uuid.uuid4()}"


def _enumOrNone(kind: type[Enum], value: Any) -> Any:
    return None if value is None else kind(value)


@dataclass(slots=True)
class Trade:
    """One execution against a position.

    EXAMPLES:
    BUY 100 shares at $150.50: Trade(id=..., position_id=..., side=Side.BUY, quantity=100, price=150.50, underlying="AAPL")
    Sell-to-open 1 put:        Trade(..., side=Side.SELL, quantity=1, price=3.00, underlying="AAPL  250117P00145000")

    Trades are append-only. Once a trade is in a position's log we never edit it in place.
    """

    id: TradeId
    position_id: PositionId
    side: Side
    quantity: Qty
    price: Price
    underlying: str

    timestamp: datetime.datetime = field(default_factory=now)
    notes: str | None = None

    def __post_init__(self):
        # accept plain "buy"/"sell" strings from stored records or callers
        self.side = Side(self.side)

    @property
    def is_buy(self) -> bool:
        return self.side == Side.BUY

    @property
    def signed_quantity(self) -> Qty:
        return self.quantity if self.is_buy else -self.quantity

    def to_record(self) -> dict[str, Any]:
        return dict(
            id=self.id,
            position_id=self.position_id,
            side=self.side.value,
            quantity=self.quantity,
            price=self.price,
            underlying=self.underlying,
            timestamp=self.timestamp,
            notes=self.notes,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Trade:
        return cls(
            id=record["id"],
            position_id=record["position_id"],
            side=record["side"],
            quantity=record["quantity"],
            price=record["price"],
            underlying=record["underlying"],
            timestamp=record.get("timestamp") or now(),
            notes=record.get("notes"),
        )


@dataclass(slots=True)
class Position:
    """A trading plan plus every trade executed against it.

    `status` is intentionally NOT a field. It is computed from `trades` each time it is read,
    so a stale stored status can never disagree with the trade log.
    """

    id: PositionId
    symbol: str
    strategy: Strategy

    # planning fields
    target_entry_price: Price
    target_quantity: Qty
    profit_target: Price
    stop_loss: Price
    position_thesis: str

    created: datetime.datetime = field(default_factory=now)
    trade_kind: TradeKind = TradeKind.STOCK

    journal_entry_ids: list[JournalId] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)

    # option plan fields (only populated for option strategies)
    option_type: str | None = None
    strike_price: Price | None = None
    expiration_date: datetime.date | None = None
    premium_per_contract: Price | None = None
    profit_target_basis: PriceBasis | None = None
    stop_loss_basis: PriceBasis | None = None

    def __post_init__(self):
        self.symbol = self.symbol.upper()
        self.strategy = Strategy(self.strategy)
        self.trade_kind = TradeKind(self.trade_kind)
        self.profit_target_basis = _enumOrNone(PriceBasis, self.profit_target_basis)
        self.stop_loss_basis = _enumOrNone(PriceBasis, self.stop_loss_basis)

    @property
    def status(self) -> Status:
        # local import because metrics imports our types
        from tradejournal.metrics import compute_status

        return compute_status(self.trades)

    @property
    def is_option(self) -> bool:
        return self.trade_kind == TradeKind.OPTION

    @property
    def underlyings(self) -> list[str]:
        """Unique trade underlyings in first-seen order."""
        return list(dict.fromkeys(t.underlying for t in self.trades))

    def to_record(self) -> dict[str, Any]:
        """Storage shape for this position (no derived fields are written)."""
        return dict(
            id=self.id,
            symbol=self.symbol,
            strategy=self.strategy.value,
            trade_kind=self.trade_kind.value,
            target_entry_price=self.target_entry_price,
            target_quantity=self.target_quantity,
            profit_target=self.profit_target,
            stop_loss=self.stop_loss,
            position_thesis=self.position_thesis,
            created=self.created,
            journal_entry_ids=list(self.journal_entry_ids),
            trades=[t.to_record() for t in self.trades],
            option_type=self.option_type,
            strike_price=self.strike_price,
            expiration_date=self.expiration_date,
            premium_per_contract=self.premium_per_contract,
            profit_target_basis=self.profit_target_basis.value
            if self.profit_target_basis
            else None,
            stop_loss_basis=self.stop_loss_basis.value
            if self.stop_loss_basis
            else None,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Position:
        """Rebuild a position from storage, upgrading older record shapes on the way.

        Older records may be missing `journal_entry_ids`, `trades`, `strategy`, or `trade_kind`,
        and may carry a `status` written by earlier versions. Missing collections become empty,
        missing classifications default to a long stock plan, and `status` is dropped.
        """
        return cls(
            id=record["id"],
            symbol=record["symbol"],
            strategy=record.get("strategy") or Strategy.LONG_STOCK,
            target_entry_price=record["target_entry_price"],
            target_quantity=record["target_quantity"],
            profit_target=record["profit_target"],
            stop_loss=record["stop_loss"],
            position_thesis=record["position_thesis"],
            created=record.get("created") or now(),
            trade_kind=record.get("trade_kind") or TradeKind.STOCK,
            journal_entry_ids=list(record.get("journal_entry_ids") or []),
            trades=[Trade.from_record(t) for t in record.get("trades") or []],
            option_type=record.get("option_type"),
            strike_price=record.get("strike_price"),
            expiration_date=record.get("expiration_date"),
            premium_per_contract=record.get("premium_per_contract"),
            profit_target_basis=record.get("profit_target_basis"),
            stop_loss_basis=record.get("stop_loss_basis"),
        )


@dataclass(slots=True)
class JournalField:
    name: str
    prompt: str
    response: str


@dataclass(slots=True)
class JournalEntry:
    """A free-form journal entry attached to a position plan or to one trade execution."""

    id: JournalId
    entry_type: EntryType
    fields: list[JournalField] = field(default_factory=list)

    position_id: PositionId | None = None
    trade_id: TradeId | None = None

    created_at: datetime.datetime = field(default_factory=now)
    executed_at: datetime.datetime | None = None

    def __post_init__(self):
        self.entry_type = EntryType(self.entry_type)

    def get_field(self, name: str) -> JournalField | None:
        for f in self.fields:
            if f.name == name:
                return f

        return None

    def to_record(self) -> dict[str, Any]:
        return dict(
            id=self.id,
            entry_type=self.entry_type.value,
            fields=[dict(name=f.name, prompt=f.prompt, response=f.response) for f in self.fields],
            position_id=self.position_id,
            trade_id=self.trade_id,
            created_at=self.created_at,
            executed_at=self.executed_at,
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> JournalEntry:
        return cls(
            id=record["id"],
            entry_type=record["entry_type"],
            fields=[JournalField(**f) for f in record.get("fields") or []],
            position_id=record.get("position_id"),
            trade_id=record.get("trade_id"),
            created_at=record.get("created_at") or now(),
            executed_at=record.get("executed_at"),
        )


# Default prompts shown when writing journal entries for each entry type
JOURNAL_PROMPTS: dict[EntryType, list[tuple[str, str, bool]]] = {
    EntryType.POSITION_PLAN: [
        (
            "thesis",
            "Why are you planning this position? What's your market outlook and strategy?",
            True,
        ),
        ("emotional_state", "How are you feeling about this trade?", False),
        (
            "market_conditions",
            "Describe current market environment and how it affects this trade",
            False,
        ),
        ("execution_strategy", "How will you enter and exit this position?", False),
    ],
    EntryType.TRADE_EXECUTION: [
        ("execution_notes", "Describe the execution", False),
        ("emotional_state", "How do you feel about this execution?", False),
        (
            "market_conditions",
            "Describe current market environment and how it affects this trade",
            False,
        ),
        ("execution_strategy", "How will you enter and exit this position?", False),
    ],
}
