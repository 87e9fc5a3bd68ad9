"""Append trades to a position's log.

The recorder is the only writer of trades: it fills in defaults, validates, appends, and
persists the position. Nothing derived (status, cost basis) is written alongside the trade;
readers recompute those from the log.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from tradejournal.ledger import (
    PositionId,
    Price,
    Qty,
    Side,
    Status,
    Trade,
    generate_trade_id,
    now,
)
from tradejournal.metrics import average_cost, compute_status, open_quantity
from tradejournal.stores import PositionStore
from tradejournal.symbols import occ_symbol
from tradejournal.validators import ValidationError, validate_exit_trade, validate_trade


class OptionAction(str, Enum):
    STO = "STO"  # sell to open
    BTC = "BTC"  # buy to close


ACTION_SIDE = {OptionAction.STO: Side.SELL, OptionAction.BTC: Side.BUY}


@dataclass
class TradeRecorder:
    positions: PositionStore

    async def add_trade(
        self,
        position_id: PositionId,
        side: Side | str,
        quantity: Qty,
        price: Price,
        timestamp: datetime.datetime | None = None,
        underlying: str | None = None,
        notes: str | None = None,
    ) -> list[Trade]:
        """Append one trade to a position and return the position's updated trade log.

        `underlying` defaults to the position symbol, which is what single-instrument stock
        positions want. Sells are checked against the current open quantity so a position
        can't be oversold."""
        position = await self.positions.get_or_raise(position_id)

        trade = Trade(
            id=generate_trade_id(),
            position_id=position_id,
            side=side,
            quantity=quantity,
            price=price,
            underlying=position.symbol if underlying is None else underlying,
            timestamp=timestamp or now(),
            notes=notes,
        )

        validate_trade(trade)

        if trade.side == Side.SELL:
            validate_exit_trade(position, trade.quantity, trade.price)

        position.trades.append(trade)
        await self.positions.update(position)

        logger.info(
            "[{}] {} {} {} @ {} -> {}",
            position.symbol,
            trade.side.value.upper(),
            trade.quantity,
            trade.underlying,
            trade.price,
            position.status.value,
        )

        return position.trades

    async def add_option_trade(
        self,
        position_id: PositionId,
        action: OptionAction | str,
        contracts: Qty,
        premium: Price,
        timestamp: datetime.datetime | None = None,
        notes: str | None = None,
    ) -> list[Trade]:
        """Record an option leg priced against its own OCC symbol.

        Selling to open is the entry for short option plans, so it isn't subject to the
        exit checks applied to stock sells."""
        action = OptionAction(action)
        position = await self.positions.get_or_raise(position_id)

        if not position.is_option:
            raise ValidationError(f"Position {position_id} is not an option position")

        underlying = occ_symbol(
            position.symbol,
            position.expiration_date,
            position.option_type or "put",
            position.strike_price,
        )

        trade = Trade(
            id=generate_trade_id(),
            position_id=position_id,
            side=ACTION_SIDE[action],
            quantity=contracts,
            price=premium,
            underlying=underlying,
            timestamp=timestamp or now(),
            notes=notes,
        )

        # buying back a worthless short at 0 is a normal exit
        validate_trade(trade, exiting=action == OptionAction.BTC)

        if action == OptionAction.BTC:
            if position.status != Status.OPEN:
                raise ValidationError("Cannot buy to close a position that isn't open")

            short = -open_quantity(position.trades)
            if contracts > short:
                raise ValidationError(
                    f"Buy to close quantity ({contracts}) exceeds open short contracts ({short})."
                )

        position.trades.append(trade)
        await self.positions.update(position)

        logger.info(
            "[{}] {} {} {} @ {}",
            position.symbol,
            action.value,
            contracts,
            underlying,
            premium,
        )

        return position.trades

    async def trades_for(self, position_id: PositionId) -> list[Trade]:
        position = await self.positions.get_or_raise(position_id)
        return position.trades

    async def cost_basis(self, position_id: PositionId) -> Price:
        """First buy price, or 0 if nothing was bought yet."""
        return average_cost(await self.trades_for(position_id), 0)

    async def status(self, position_id: PositionId) -> Status:
        return compute_status(await self.trades_for(position_id))
