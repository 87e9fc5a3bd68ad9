"""Planned risk/reward for position plans, before (and while) anything is traded.

Long Stock:
    - investment: entry * qty
    - max profit: (target - entry) * qty
    - max loss:   (entry - stop) * qty

Short Put (qty counts contracts, each covering CONTRACT_MULTIPLIER shares):
    - investment: strike * contracts * 100 (cash securing the put)
    - max profit: premium * contracts * 100
    - max loss:   (strike - premium) * contracts * 100 (stock goes to zero)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from tradejournal.config import CONTRACT_MULTIPLIER
from tradejournal.ledger import Position, Price, PriceBasis, Strategy


@dataclass(slots=True, frozen=True)
class RiskMetrics:
    totalInvestment: Price
    maxProfit: Price
    maxLoss: Price
    riskRewardRatio: str


@dataclass(slots=True, frozen=True)
class Progress:
    percentProgress: float
    distanceToStop: Price
    distanceToTarget: Price
    capturedProfit: float


def _num(value) -> float:
    """Missing or non-finite plan inputs count as zero."""
    if value is None:
        return 0.0

    value = float(value)
    return value if math.isfinite(value) else 0.0


def risk_reward(maxProfit: Price, maxLoss: Price) -> str:
    """Format as '1:<reward per unit risk>', or '0:0' when either side isn't positive."""
    if maxLoss <= 0 or maxProfit <= 0:
        return "0:0"

    ratio = round(maxProfit / maxLoss, 2)
    if ratio <= 0:
        return "0:0"

    if ratio == int(ratio):
        return f"1:{int(ratio)}"

    return f"1:{ratio:.2f}"


def plan_risk(position: Position) -> RiskMetrics:
    if Strategy(position.strategy) == Strategy.SHORT_PUT:
        strike = _num(position.strike_price)
        contracts = _num(position.target_quantity)
        premium = _num(position.premium_per_contract)

        totalInvestment = strike * contracts * CONTRACT_MULTIPLIER
        maxProfit = premium * contracts * CONTRACT_MULTIPLIER
        maxLoss = (strike - premium) * contracts * CONTRACT_MULTIPLIER
    else:
        entry = _num(position.target_entry_price)
        qty = _num(position.target_quantity)

        totalInvestment = entry * qty
        maxProfit = (_num(position.profit_target) - entry) * qty
        maxLoss = (entry - _num(position.stop_loss)) * qty

    return RiskMetrics(
        totalInvestment=totalInvestment,
        maxProfit=maxProfit,
        maxLoss=maxLoss,
        riskRewardRatio=risk_reward(maxProfit, maxLoss),
    )


def option_basis_value(
    strike: Price,
    premium: Price,
    basis: PriceBasis | str,
    target: float,
    target_type: Literal["dollar", "percentage", "percentage_decimal"] = "percentage",
) -> Price:
    """Dollar value of a profit target or stop loss given on a stock or option price basis.

    Stock basis targets are already dollars. Option basis targets are a percentage
    of (strike - premium):

        strike 100, premium 3, option basis, 20%  -> 97 * 0.20 = 19.40
    """
    if PriceBasis(basis) == PriceBasis.STOCK:
        return target

    value = strike - premium
    if target_type == "percentage":
        return value * (target / 100)

    # both decimal percentages and (inconsistent) dollar inputs are applied as a fraction
    return value * target


def progress_to_target(position: Position, current: Price) -> Progress:
    """Where `current` sits between the plan's stop loss (0%) and profit target (100%)."""
    stop = position.stop_loss
    target = position.profit_target
    span = target - stop

    percent = (current - stop) / span * 100 if span else 0.0

    return Progress(
        percentProgress=round(percent, 2),
        distanceToStop=round(current - stop, 2),
        distanceToTarget=round(target - current, 2),
        capturedProfit=round(percent, 2),
    )
