"""Status, cost basis, and P&L derived from a position's trade log.

Every function here is a pure function of its arguments: no I/O, no caching, no mutation.
Call them on every read instead of storing their results.

COST BASIS POLICY:
==================

Cost basis per unit is the price of the FIRST BUY TRADE in list order (not a quantity-weighted
average, not FIFO/LIFO lots). If callers need chronological semantics they must sort trades
by timestamp before calling.

    average_cost([BUY 100 @ 100, BUY 100 @ 120], 0) == 100
    total_cost_basis([BUY 100 @ 100, SELL 30 @ 110]) == 100 * 70 == 7000

P&L CALCULATION:
================

Each trade is priced against the current price of its own `underlying` (not the position symbol):

    - BUY trades:  (current - trade price) * quantity
    - SELL trades: (trade price - current) * quantity

Trades whose underlying has no entry in the price map are SKIPPED, so partial price coverage
yields a partial P&L. A position with no priced trades at all has P&L `None` (unknown), which
is different from a known P&L of 0.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from tradejournal.ledger import Position, Price, Qty, Status, Trade

# underlying symbol -> latest known price
PriceSnapshot: TypeAlias = Mapping[str, Price]


def open_quantity(trades: Sequence[Trade] | None) -> Qty:
    """Net quantity still held: sum of buys minus sum of sells."""
    if not trades:
        return 0

    return sum([t.signed_quantity for t in trades])


def compute_status(trades: Sequence[Trade] | None) -> Status:
    """Lifecycle status from the trade log alone.

    - no trades (or None) -> PLANNED
    - net quantity exactly zero -> CLOSED (even if the only trade has zero quantity)
    - anything else -> OPEN
    """
    if not trades:
        return Status.PLANNED

    if open_quantity(trades) == 0:
        return Status.CLOSED

    return Status.OPEN


def average_cost(trades: Sequence[Trade] | None, fallback: Price) -> Price:
    """Price of the first buy trade in list order, else `fallback`.

    The fallback is usually the position's planned entry price so a planned position
    still shows a projected cost."""
    for trade in trades or []:
        if trade.is_buy:
            return trade.price

    return fallback


def total_cost_basis(trades: Sequence[Trade] | None) -> Price:
    """Per-unit cost basis multiplied by the open quantity (0 when nothing was bought)."""
    if not trades:
        return 0

    if not any(t.is_buy for t in trades):
        return 0

    return average_cost(trades, 0) * open_quantity(trades)


def trade_pnl(trade: Trade, current: Price) -> Price:
    """Unrealized P&L of one trade against a current price of its underlying."""
    if trade.is_buy:
        return (current - trade.price) * trade.quantity

    # sells are modeled as short exposure, symmetric to buys
    return (trade.price - current) * trade.quantity


def position_pnl(position: Position, prices: PriceSnapshot) -> Price | None:
    """Sum of trade P&L over every trade whose underlying has a price.

    Returns None if the position has no trades or none of its trades could be priced."""
    if not position.trades:
        return None

    total = 0.0
    priced = False
    for trade in position.trades:
        current = prices.get(trade.underlying)

        # no price for this leg: leave it out of the sum entirely
        if current is None:
            continue

        priced = True
        total += trade_pnl(trade, current)

    if not priced:
        return None

    return total


def pnl_percentage(pnl: Price, cost_basis: Price) -> float | None:
    """P&L as a percentage of cost basis, or None when cost basis is exactly zero."""
    if cost_basis == 0:
        return None

    return pnl * 100 / cost_basis


@dataclass(slots=True, frozen=True)
class PositionMetrics:
    """Everything a reader needs to display a position, computed fresh per read.

    - avgCost: first buy price (or planned entry price before any buys)
    - costBasis: avgCost * openQuantity
    - openQuantity: signed net quantity
    - pnl: None when unknown (no prices or zero cost basis)
    - pnlPercentage: None when pnl is unknown or cost basis is zero
    """

    avgCost: Price
    costBasis: Price
    openQuantity: Qty
    pnl: Price | None
    pnlPercentage: float | None


def calculate_metrics(position: Position, prices: PriceSnapshot) -> PositionMetrics:
    """Compose cost basis and P&L for one position against one price snapshot."""
    trades = position.trades

    avgCost = average_cost(trades, position.target_entry_price)
    costBasis = total_cost_basis(trades)
    openQuantity = open_quantity(trades)

    pnl = position_pnl(position, prices)

    # a zero cost basis can't anchor a P&L, so report it as unknown
    if costBasis == 0:
        pnl = None

    pnlPercentage = pnl_percentage(pnl, costBasis) if pnl is not None else None

    return PositionMetrics(
        avgCost=avgCost,
        costBasis=costBasis,
        openQuantity=openQuantity,
        pnl=pnl,
        pnlPercentage=pnlPercentage,
    )
