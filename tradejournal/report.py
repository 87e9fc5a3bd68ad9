"""Console tables and exports of position metrics.

All numbers come from `tradejournal.metrics`; nothing here computes anything new.

Usage:
    reporter = PositionReporter(positions, prices)
    print(reporter.position_table())
    df = reporter.metrics_frame()
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import orjson
import pandas as pd  # type: ignore

from tradejournal.ledger import Position
from tradejournal.metrics import PositionMetrics, PriceSnapshot, calculate_metrics
from tradejournal.risk import plan_risk


def mn(val) -> str:
    """format numeric input as money"""
    return f"${val:,.2f}".replace("$-", "-$")


def pct(val) -> str:
    return f"{val:,.2f}%"


def _or_dash(val, fmt) -> str:
    return "-" if val is None else fmt(val)


def text_table(headers: list[str], rows: list[list[str]]) -> str:
    """Render rows as a boxed fixed-width text table."""
    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            col_widths[i] = max(col_widths[i], len(cell))

    separator = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"

    def line(cells: list[str]) -> str:
        return (
            "|"
            + "|".join(f" {cells[i]:<{col_widths[i]}} " for i in range(len(cells)))
            + "|"
        )

    lines = [separator, line(headers), separator]
    lines.extend(line(row) for row in rows)
    lines.append(separator)

    return "\n".join(lines)


@dataclass
class PositionReporter:
    positions: Sequence[Position]
    prices: PriceSnapshot = field(default_factory=dict)

    def metrics(self) -> list[tuple[Position, PositionMetrics]]:
        return [(p, calculate_metrics(p, self.prices)) for p in self.positions]

    def rows(self) -> list[dict[str, Any]]:
        """One flat dict per position, suitable for a DataFrame or JSON."""
        result = []
        for position, m in self.metrics():
            risk = plan_risk(position)
            result.append(
                dict(
                    id=position.id,
                    symbol=position.symbol,
                    strategy=position.strategy.value,
                    status=position.status.value,
                    trades=len(position.trades),
                    avgCost=m.avgCost,
                    costBasis=m.costBasis,
                    openQuantity=m.openQuantity,
                    pnl=m.pnl,
                    pnlPercentage=m.pnlPercentage,
                    maxProfit=risk.maxProfit,
                    maxLoss=risk.maxLoss,
                    riskRewardRatio=risk.riskRewardRatio,
                )
            )

        return result

    def position_table(self) -> str:
        """Generate a formatted table of all positions."""
        if not self.positions:
            return "No positions found."

        headers = [
            "Symbol",
            "Strategy",
            "Status",
            "Qty",
            "Avg Cost",
            "Cost Basis",
            "P&L",
            "P&L %",
            "R:R",
        ]

        rows = []
        for row in self.rows():
            rows.append(
                [
                    row["symbol"],
                    row["strategy"],
                    row["status"].upper(),
                    f"{row['openQuantity']:,}",
                    mn(row["avgCost"]),
                    mn(row["costBasis"]),
                    _or_dash(row["pnl"], mn),
                    _or_dash(row["pnlPercentage"], pct),
                    row["riskRewardRatio"],
                ]
            )

        return text_table(headers, rows)

    def metrics_frame(self) -> pd.DataFrame:
        """Metrics for every position as a DataFrame indexed by position id."""
        rows = self.rows()
        if not rows:
            return pd.DataFrame()

        return pd.DataFrame(rows).set_index("id")

    def metrics_json(self) -> bytes:
        return orjson.dumps(self.rows())


def position_table(positions: Sequence[Position], prices: PriceSnapshot) -> str:
    return PositionReporter(positions, prices).position_table()


def metrics_frame(positions: Sequence[Position], prices: PriceSnapshot) -> pd.DataFrame:
    return PositionReporter(positions, prices).metrics_frame()


def metrics_json(positions: Sequence[Position], prices: PriceSnapshot) -> bytes:
    return PositionReporter(positions, prices).metrics_json()
