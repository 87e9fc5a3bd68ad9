import datetime

import pytest

from tradejournal.ledger import Position
from tradejournal.risk import (
    Progress,
    RiskMetrics,
    option_basis_value,
    plan_risk,
    progress_to_target,
    risk_reward,
)


def stockPlan(**kwargs):
    args = dict(
        id="pos-1",
        symbol="AAPL",
        strategy="Long Stock",
        target_entry_price=100.0,
        target_quantity=100,
        profit_target=110.0,
        stop_loss=95.0,
        position_thesis="Base breakout",
    )
    args.update(kwargs)
    return Position(**args)


def test_long_stock_risk():
    assert plan_risk(stockPlan()) == RiskMetrics(
        totalInvestment=10_000,
        maxProfit=1000,
        maxLoss=500,
        riskRewardRatio="1:2",
    )

    assert plan_risk(stockPlan(profit_target=112.5)).riskRewardRatio == "1:2.50"


def test_short_put_risk():
    put = stockPlan(
        strategy="Short Put",
        trade_kind="option",
        target_entry_price=3.0,
        target_quantity=2,
        profit_target=1.0,
        stop_loss=6.0,
        strike_price=100.0,
        expiration_date=datetime.date(2025, 1, 17),
        premium_per_contract=3.0,
    )

    got = plan_risk(put)
    assert got.totalInvestment == 20_000
    assert got.maxProfit == 600
    assert got.maxLoss == 19_400
    assert got.riskRewardRatio == "1:0.03"


def test_risk_reward_degenerate():
    assert risk_reward(0, 100) == "0:0"
    assert risk_reward(100, 0) == "0:0"
    assert risk_reward(-5, 10) == "0:0"
    assert risk_reward(1, 1000) == "0:0"
    assert risk_reward(300, 100) == "1:3"


def test_option_basis_value():
    assert option_basis_value(100, 3, "stock", 95.0) == 95.0
    assert option_basis_value(100, 3, "option", 20) == pytest.approx(19.4)
    assert option_basis_value(100, 3, "option", 0.2, "percentage_decimal") == pytest.approx(19.4)


def test_progress_to_target():
    plan = stockPlan()

    assert progress_to_target(plan, 105.0) == Progress(
        percentProgress=66.67,
        distanceToStop=10.0,
        distanceToTarget=5.0,
        capturedProfit=66.67,
    )

    assert progress_to_target(plan, 95.0).percentProgress == 0
    assert progress_to_target(plan, 110.0).percentProgress == 100
    assert progress_to_target(plan, 90.0).percentProgress == pytest.approx(-33.33)

    flat = stockPlan(profit_target=95.0)
    assert progress_to_target(flat, 100.0).percentProgress == 0
