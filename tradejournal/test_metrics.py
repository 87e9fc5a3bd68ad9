import datetime

import pytest

from tradejournal.ledger import Position, Side, Status, Strategy, Trade
from tradejournal.metrics import (
    PositionMetrics,
    average_cost,
    calculate_metrics,
    compute_status,
    open_quantity,
    pnl_percentage,
    position_pnl,
    total_cost_basis,
    trade_pnl,
)

EXAMPLE_DATE = datetime.datetime(2024, 1, 2, 14, 30, tzinfo=datetime.timezone.utc)

OPT = "AAPL  250117P00145000"


def T(side, quantity, price=100.0, underlying="AAPL", id="t"):
    return Trade(
        id=id,
        position_id="pos-1",
        side=side,
        quantity=quantity,
        price=price,
        underlying=underlying,
        timestamp=EXAMPLE_DATE,
    )


def P(trades=None, entry=100.0):
    return Position(
        id="pos-1",
        symbol="aapl",
        strategy=Strategy.LONG_STOCK,
        target_entry_price=entry,
        target_quantity=100,
        profit_target=130,
        stop_loss=90,
        position_thesis="Breakout over resistance with volume",
        created=EXAMPLE_DATE,
        trades=trades or [],
    )


def test_status_planned():
    assert compute_status([]) == Status.PLANNED
    assert compute_status(None) == Status.PLANNED


def test_status_open_and_closed():
    assert compute_status([T("buy", 100)]) == Status.OPEN
    assert compute_status([T("buy", 100), T("sell", 30)]) == Status.OPEN
    assert compute_status([T("buy", 100), T("sell", 100)]) == Status.CLOSED

    # sell-only logs are still open exposure
    assert compute_status([T("sell", 1)]) == Status.OPEN


def test_status_zero_quantity_trade_is_closed():
    assert compute_status([T("buy", 0)]) == Status.CLOSED


def test_status_deterministic():
    trades = [T("buy", 100), T("sell", 40), T("buy", 5)]
    assert compute_status(trades) == compute_status(trades) == Status.OPEN
    assert len(trades) == 3


def test_status_is_property_of_trades():
    p = P()
    assert p.status == Status.PLANNED

    p.trades.append(T("buy", 10))
    assert p.status == Status.OPEN

    p.trades.append(T("sell", 10))
    assert p.status == Status.CLOSED


def test_open_quantity():
    assert open_quantity(None) == 0
    assert open_quantity([]) == 0
    assert open_quantity([T("buy", 100)]) == 100
    assert open_quantity([T("buy", 100), T("sell", 30)]) == 70
    assert open_quantity([T("buy", 100), T("sell", 100)]) == 0
    assert open_quantity([T("sell", 2)]) == -2


def test_average_cost_first_buy():
    assert average_cost([T("buy", 100, 100), T("buy", 100, 120)], 0) == 100
    assert average_cost([T("sell", 1, 3), T("buy", 1, 1.5)], 0) == 1.5


def test_average_cost_fallback():
    assert average_cost([], 42.5) == 42.5
    assert average_cost(None, 42.5) == 42.5
    assert average_cost([T("sell", 1, 3)], 7) == 7


def test_total_cost_basis():
    assert total_cost_basis([]) == 0
    assert total_cost_basis(None) == 0
    assert total_cost_basis([T("sell", 1, 3)]) == 0

    assert total_cost_basis([T("buy", 100, 150.50)]) == 15050.0
    assert total_cost_basis([T("buy", 100, 100), T("sell", 30, 110)]) == 7000


def test_total_cost_basis_matches_parts():
    trades = [T("buy", 100, 12.25), T("buy", 50, 14), T("sell", 20, 15)]
    assert total_cost_basis(trades) == average_cost(trades, 0) * open_quantity(trades)


def test_trade_pnl():
    assert trade_pnl(T("buy", 100, 100), 120) == 2000
    assert trade_pnl(T("buy", 100, 100), 90) == -1000
    assert trade_pnl(T("sell", 1, 3.0), 1.0) == 2.0
    assert trade_pnl(T("sell", 10, 100), 110) == -100


def test_position_pnl_unknown():
    assert position_pnl(P(), {"AAPL": 120}) is None
    assert position_pnl(P([T("buy", 100, 100)]), {}) is None
    assert position_pnl(P([T("buy", 100, 100)]), {"MSFT": 1}) is None


def test_position_pnl_uses_trade_underlying():
    p = P([T("buy", 100, 100), T("sell", 1, 3.0, underlying=OPT)])

    # only the stock leg has a price
    assert position_pnl(p, {"AAPL": 110}) == 1000

    # only the option leg has a price
    assert position_pnl(p, {OPT: 1.0}) == 2.0

    assert position_pnl(p, {"AAPL": 110, OPT: 1.0}) == 1002.0


def test_position_pnl_known_zero():
    assert position_pnl(P([T("buy", 100, 100)]), {"AAPL": 100}) == 0


def test_pnl_percentage():
    assert pnl_percentage(2000, 10_000) == 20
    assert pnl_percentage(-500, 10_000) == -5
    assert pnl_percentage(100, 0) is None


def test_metrics_planned_position():
    m = calculate_metrics(P(entry=55.25), {"AAPL": 120})
    assert m == PositionMetrics(
        avgCost=55.25, costBasis=0, openQuantity=0, pnl=None, pnlPercentage=None
    )


def test_metrics_with_price():
    m = calculate_metrics(P([T("buy", 100, 100)]), {"AAPL": 120})
    assert m.avgCost == 100
    assert m.costBasis == 10_000
    assert m.openQuantity == 100
    assert m.pnl == 2000
    assert m.pnlPercentage == 20


def test_metrics_without_prices():
    m = calculate_metrics(P([T("buy", 100, 100), T("sell", 40, 105)]), {})
    assert m == PositionMetrics(
        avgCost=100, costBasis=6000, openQuantity=60, pnl=None, pnlPercentage=None
    )


def test_metrics_zero_cost_basis_has_no_pnl():
    # fully closed: cost basis is zero so P&L can't be anchored
    closed = P([T("buy", 100, 100), T("sell", 100, 110)])
    m = calculate_metrics(closed, {"AAPL": 120})
    assert m.costBasis == 0
    assert m.openQuantity == 0
    assert m.pnl is None
    assert m.pnlPercentage is None

    # sell-only
    m = calculate_metrics(P([T("sell", 1, 3.0, underlying=OPT)]), {OPT: 1.0})
    assert m.costBasis == 0
    assert m.pnl is None


def test_metrics_do_not_mutate():
    trades = [T("buy", 100, 100)]
    p = P(trades)
    prices = {"AAPL": 120}

    first = calculate_metrics(p, prices)
    second = calculate_metrics(p, prices)

    assert first == second
    assert p.trades == trades
    assert prices == {"AAPL": 120}


def test_metrics_frozen():
    m = calculate_metrics(P(), {})
    with pytest.raises(AttributeError):
        m.pnl = 3  # type: ignore[misc]


def test_fractional_and_negative_inputs_accepted():
    trades = [T("buy", 0.5, 10.0), T("sell", -1, 5.0)]
    assert open_quantity(trades) == 1.5
    assert compute_status(trades) == Status.OPEN
    assert total_cost_basis(trades) == 15.0


def test_side_accepts_strings():
    assert T("buy", 1).side == Side.BUY

    with pytest.raises(ValueError):
        T("hold", 1)
