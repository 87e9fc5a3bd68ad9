"""Create linked records across two independent stores with compensating rollback.

Positions and journal entries live in separate stores with no shared transaction, so
"create both or neither" is approximated with a two-step write plus one compensating action:

    NOT_STARTED -> JOURNAL_CREATED -> POSITION_CREATED
                    JOURNAL_CREATED -> ROLLED_BACK      (position write failed, journal deleted)
                    JOURNAL_CREATED -> ROLLBACK_FAILED  (position write failed, journal delete failed too)

Both ids are generated before anything is written so each record can reference the other.
The journal entry is written first, so if the position write fails there is something to
delete, and the position never references a journal entry that doesn't exist.

The ORIGINAL error always propagates to the caller. A failed compensation is logged but never
replaces it.

This is NOT atomic: a crash between writing the journal entry and running the compensation
leaves an orphaned journal entry behind.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from tradejournal.ledger import (
    EntryType,
    JournalEntry,
    JournalField,
    Position,
    PositionId,
    Price,
    PriceBasis,
    Qty,
    Side,
    Strategy,
    Trade,
    TradeKind,
    generate_journal_id,
    generate_position_id,
    now,
)
from tradejournal.stores import JournalStore, PositionStore
from tradejournal.trades import TradeRecorder


class TxnState(Enum):
    NOT_STARTED = "not started"
    JOURNAL_CREATED = "journal created"
    POSITION_CREATED = "position created"
    ROLLED_BACK = "rolled back"
    ROLLBACK_FAILED = "rollback failed"


@dataclass(slots=True)
class CreatePositionData:
    symbol: str
    strategy: Strategy
    target_entry_price: Price
    target_quantity: Qty
    profit_target: Price
    stop_loss: Price
    position_thesis: str
    journal_fields: list[JournalField] = field(default_factory=list)

    # option plan fields
    strike_price: Price | None = None
    expiration_date: datetime.date | None = None
    premium_per_contract: Price | None = None
    profit_target_basis: PriceBasis | None = None
    stop_loss_basis: PriceBasis | None = None


@dataclass(slots=True, frozen=True)
class TransactionResult:
    position: Position
    journal: JournalEntry


@dataclass
class PositionJournalTransaction:
    """Runs one create at a time.

    `state` belongs to the instance, so concurrent creates need one instance each
    (instances are cheap: they only hold references to the two stores)."""

    positions: PositionStore
    journals: JournalStore

    # state of the most recent create, for diagnostics
    state: TxnState = TxnState.NOT_STARTED

    def build_position(
        self, data: CreatePositionData, position_id: PositionId, journal_id: str
    ) -> Position:
        strategy = Strategy(data.strategy)

        # option plan details only apply to option strategies
        options = {}
        if strategy == Strategy.SHORT_PUT:
            options = dict(
                trade_kind=TradeKind.OPTION,
                option_type="put",
                strike_price=data.strike_price,
                expiration_date=data.expiration_date,
                premium_per_contract=data.premium_per_contract,
                profit_target_basis=data.profit_target_basis,
                stop_loss_basis=data.stop_loss_basis,
            )

        return Position(
            id=position_id,
            symbol=data.symbol,
            strategy=strategy,
            target_entry_price=data.target_entry_price,
            target_quantity=data.target_quantity,
            profit_target=data.profit_target,
            stop_loss=data.stop_loss,
            position_thesis=data.position_thesis,
            journal_entry_ids=[journal_id],
            **options,
        )

    async def create_position_with_journal(
        self, data: CreatePositionData
    ) -> TransactionResult:
        self.state = TxnState.NOT_STARTED

        position_id = generate_position_id()
        journal_id = generate_journal_id()

        journal = await self.journals.create(
            JournalEntry(
                id=journal_id,
                entry_type=EntryType.POSITION_PLAN,
                fields=data.journal_fields,
                position_id=position_id,
            )
        )
        self.state = TxnState.JOURNAL_CREATED

        try:
            position = await self.positions.create(
                self.build_position(data, position_id, journal_id)
            )
        except Exception:
            await self.rollback(journal_id)
            raise

        self.state = TxnState.POSITION_CREATED
        logger.info(
            "[{}] Created plan {} with journal {}", position.symbol, position_id, journal_id
        )

        return TransactionResult(position=position, journal=journal)

    async def rollback(self, journal_id: str) -> None:
        """Delete the journal entry written by a failed create. Never raises."""
        try:
            await self.journals.delete(journal_id)
            self.state = TxnState.ROLLED_BACK
            logger.warning("Rolled back journal entry {}", journal_id)
        except Exception:
            self.state = TxnState.ROLLBACK_FAILED
            logger.exception(f"Failed to rollback journal entry {journal_id}")


@dataclass
class TradeJournalTransaction:
    """Record a trade together with the journal entry describing it.

    The trade is appended first. If writing or linking the journal entry fails, the appended
    trade is removed from the position again, any journal entry already written is deleted,
    and the original error is re-raised."""

    positions: PositionStore
    journals: JournalStore

    async def execute_trade_with_journal(
        self,
        position_id: PositionId,
        side: Side | str,
        quantity: Qty,
        price: Price,
        fields: list[JournalField],
        timestamp: datetime.datetime | None = None,
        notes: str | None = None,
    ) -> Position:
        # check the position exists before touching anything
        await self.positions.get_or_raise(position_id)

        if not fields:
            raise ValueError("At least one journal field is required")

        trades = await TradeRecorder(self.positions).add_trade(
            position_id, side, quantity, price, timestamp=timestamp, notes=notes
        )
        trade: Trade = trades[-1]

        entry_id = None
        try:
            entry = await self.journals.create(
                JournalEntry(
                    id=generate_journal_id(),
                    entry_type=EntryType.TRADE_EXECUTION,
                    fields=fields,
                    position_id=position_id,
                    trade_id=trade.id,
                    executed_at=now(),
                )
            )
            entry_id = entry.id

            position = await self.positions.get_or_raise(position_id)
            position.journal_entry_ids.append(entry.id)
            return await self.positions.update(position)
        except Exception:
            await self.rollback(position_id, trade.id, entry_id)
            raise

    async def rollback(
        self, position_id: PositionId, trade_id: str, entry_id: str | None = None
    ) -> None:
        """Remove the trade (and journal entry, if one was written) of a failed execution.

        Never raises. Each cleanup step runs even if the other fails."""
        if entry_id:
            try:
                await self.journals.delete(entry_id)
                logger.warning("Rolled back journal entry {}", entry_id)
            except Exception:
                logger.exception(f"Failed to rollback journal entry {entry_id}")

        try:
            position = await self.positions.get_or_raise(position_id)
            position.trades = [t for t in position.trades if t.id != trade_id]
            await self.positions.update(position)
            logger.warning("[{}] Rolled back trade {}", position.symbol, trade_id)
        except Exception:
            logger.exception(f"Failed to rollback trade {trade_id}")
