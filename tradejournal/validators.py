"""Input validation run before anything is written.

The calculators in `tradejournal.metrics` never validate (they accept whatever they are given);
the stores and the trade recorder call these checks before persisting.
"""

from __future__ import annotations

import arrow  # type: ignore

from tradejournal.ledger import (
    JournalEntry,
    Position,
    Qty,
    Price,
    Side,
    Status,
    Strategy,
    Trade,
)
from tradejournal.metrics import open_quantity

THESIS_MIN = 10
THESIS_MAX = 2000


class ValidationError(ValueError):
    pass


def validate_trade(trade: Trade, exiting: bool | None = None) -> None:
    """Check one trade before it is appended.

    `exiting` marks trades that close exposure. It defaults to "is a sell", which is right
    for long positions; short option exits are buys and must pass `exiting=True`."""
    if exiting is None:
        exiting = trade.side == Side.SELL

    if not trade.position_id or trade.quantity is None or trade.price is None:
        raise ValidationError("Trade validation failed: Missing required fields")

    if not trade.timestamp:
        raise ValidationError("Trade validation failed: Invalid timestamp")

    if trade.side not in (Side.BUY, Side.SELL):
        raise ValidationError("Trade validation failed: Invalid trade type")

    if trade.quantity <= 0:
        raise ValidationError("Trade validation failed: Quantity must be positive")

    # a zero price is only acceptable when exiting something worthless
    if trade.price < 0 or (trade.price == 0 and not exiting):
        raise ValidationError("Trade validation failed: Price must be positive")

    if not trade.underlying or not trade.underlying.strip():
        raise ValidationError("Trade validation failed: underlying cannot be empty")


def validate_exit_trade(position: Position, quantity: Qty, price: Price) -> None:
    """Verify a sell against the position's current state (status is recomputed from trades)."""
    status = position.status
    if status == Status.PLANNED:
        raise ValidationError(
            "Cannot exit a planned position. Add an entry trade first."
        )

    if status == Status.CLOSED:
        raise ValidationError(
            "Cannot exit a closed position (net quantity is already 0)."
        )

    held = open_quantity(position.trades)
    if quantity > held:
        raise ValidationError(
            f"Exit quantity ({quantity}) exceeds open quantity ({held})."
        )

    if price < 0:
        raise ValidationError("Exit price must be >= 0.")


def validate_position(position: Position) -> None:
    if position.target_entry_price is not None and position.target_entry_price <= 0:
        raise ValidationError("target_entry_price must be positive")

    if position.target_quantity is not None and position.target_quantity <= 0:
        raise ValidationError("target_quantity must be positive")

    if position.position_thesis is not None and not position.position_thesis.strip():
        raise ValidationError("position_thesis cannot be empty")

    if not all(
        [
            position.id,
            position.symbol,
            position.strategy,
            position.target_entry_price is not None,
            position.target_quantity is not None,
            position.profit_target,
            position.stop_loss,
            position.position_thesis,
            position.created,
        ]
    ):
        raise ValidationError("Invalid position data")

    if position.strategy == Strategy.SHORT_PUT:
        for name in ("strike_price", "expiration_date", "premium_per_contract"):
            if getattr(position, name) is None:
                raise ValidationError(f"{name} is required for a Short Put plan")

        if position.strike_price <= 0:
            raise ValidationError("strike_price must be positive")

        if position.premium_per_contract <= 0:
            raise ValidationError("premium_per_contract must be positive")


def validate_thesis(content: str) -> None:
    stripped = content.strip()
    if stripped and len(stripped) < THESIS_MIN:
        raise ValidationError(
            f"Thesis response must be at least {THESIS_MIN} characters"
        )

    if len(content) > THESIS_MAX:
        raise ValidationError(f"Thesis response cannot exceed {THESIS_MAX} characters")


def validate_journal_entry(entry: JournalEntry) -> None:
    if entry.trade_id == "":
        raise ValidationError("trade_id cannot be empty string")

    if not entry.position_id and not entry.trade_id:
        raise ValidationError(
            "Journal entry must have either position_id or trade_id"
        )

    if not entry.fields:
        raise ValidationError("At least one journal field is required")

    if thesis := entry.get_field("thesis"):
        validate_thesis(thesis.response)


def validate_price_value(price: Price, name: str = "Price") -> None:
    if price < 0:
        raise ValidationError(f"{name} cannot be negative")

    if price == 0:
        raise ValidationError(f"{name} must be greater than zero")


def validate_price_record(record) -> None:
    """Check one OHLC record (anything with underlying/date/open/high/low/close attributes)."""
    # close first: open/high/low are often just copies of it
    validate_price_value(record.close, "Close price")
    validate_price_value(record.open, "Open price")
    validate_price_value(record.high, "High price")
    validate_price_value(record.low, "Low price")

    if not record.underlying or not record.underlying.strip():
        raise ValidationError("Underlying cannot be empty")

    if not record.date or not record.date.strip():
        raise ValidationError("Date cannot be empty")

    try:
        arrow.get(record.date, "YYYY-MM-DD")
    except (arrow.parser.ParserError, ValueError) as e:
        raise ValidationError("Date must be in YYYY-MM-DD format") from e

    if record.high < record.low:
        raise ValidationError("High price cannot be less than low price")

    if not record.low <= record.open <= record.high:
        raise ValidationError("Open price must be between low and high")

    if not record.low <= record.close <= record.high:
        raise ValidationError("Close price must be between low and high")
