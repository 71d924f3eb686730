"""Instrument trading against the current month's prices.

Orders are validated first, then priced on local copies, then committed to the
state in one step, so a rejected order never leaves a partial change behind.
"""

from __future__ import annotations

import logging

from models.content import GameRules, Instrument
from models.state import GameState, Holding
from models.turn import ActionResult
from simulation.finance import round_money

logger = logging.getLogger(__name__)

DUST_UNITS = 0.0001
CASH_TOLERANCE = 1e-3


def _lock_rejection(state: GameState, instrument: Instrument, rules: GameRules) -> str | None:
    if instrument.type in rules.risk_asset_types and state.trade_locks.get(instrument.id) == state.month:
        return f"{instrument.title or instrument.id} was already traded this month."
    return None


def _lock(state: GameState, instrument: Instrument, rules: GameRules) -> None:
    if instrument.type in rules.risk_asset_types:
        state.trade_locks = {**state.trade_locks, instrument.id: state.month}


def buy(state: GameState, instrument: Instrument | None, amount: float, rules: GameRules) -> ActionResult:
    """Spend up to *amount* (plus the buy fee) on *instrument*.

    The spend is capped by what cash can cover including the fee and must
    reach the instrument's minimum order.  Buying a risk asset consumes the
    credit bucket first; that part becomes the leveraged sub-position.
    """
    # ---- Phase 1: Validate -------------------------------------------------
    if instrument is None:
        return ActionResult.rejected("Unknown instrument.")
    price_state = state.price_state.get(instrument.id)
    if price_state is None or price_state.price <= 0:
        return ActionResult.rejected(f"No price for {instrument.id}.")
    if amount <= 0:
        return ActionResult.rejected(f"Order amount must be positive, got {amount}.")
    locked = _lock_rejection(state, instrument, rules)
    if locked:
        return ActionResult.rejected(locked)

    # ---- Phase 2: Price the order ------------------------------------------
    price = price_state.price
    fee_pct = instrument.trading.buy_fee_pct
    min_order = instrument.trading.min_order
    max_spendable = min(amount, state.cash / (1 + fee_pct))
    if max_spendable < min_order:
        return ActionResult.rejected(
            f"Order below the ${min_order:.0f} minimum for {instrument.title or instrument.id}."
        )
    spend = max(min_order, max_spendable)
    if spend <= 0:
        return ActionResult.rejected("Nothing to spend.")
    fee = spend * fee_pct
    if spend + fee > state.cash + CASH_TOLERANCE:
        return ActionResult.rejected(
            f"Insufficient cash: ${spend + fee:.2f} needed, ${state.cash} available."
        )

    units = spend / price
    existing = state.investments.get(instrument.id, Holding())
    new_units = existing.units + units
    leveraged_units = existing.leveraged_units
    leveraged_cost = existing.leveraged_cost
    bucket = state.credit_bucket
    if instrument.type in rules.risk_asset_types and bucket > 0:
        credit_used = min(spend, bucket)
        leveraged_units += credit_used / price
        leveraged_cost += credit_used
        bucket = max(0, round_money(bucket - credit_used))

    holding = Holding(
        units=new_units,
        cost_basis=(existing.cost_basis * existing.units + spend) / new_units,
        leveraged_units=leveraged_units,
        leveraged_cost=leveraged_cost,
    )

    # ---- Phase 3: Commit ---------------------------------------------------
    state.investments = {**state.investments, instrument.id: holding}
    state.cash = round_money(state.cash - spend - fee)
    state.credit_bucket = bucket
    _lock(state, instrument, rules)
    message = f"Bought {instrument.title or instrument.id} for ${round_money(spend)}"
    state.push_log(message, "trade", -round_money(spend + fee), rules.recent_log_size)
    logger.debug("%s (%.4f units @ %.2f, fee %.2f)", message, units, price, fee)
    return ActionResult.accepted(message)


def sell(state: GameState, instrument: Instrument | None, amount: float, rules: GameRules) -> ActionResult:
    """Sell up to *amount* worth of *instrument* at the current price.

    The leveraged sub-position shrinks in proportion to the units sold.  A
    holding left with dust is removed.
    """
    # ---- Phase 1: Validate -------------------------------------------------
    if instrument is None:
        return ActionResult.rejected("Unknown instrument.")
    holding = state.investments.get(instrument.id)
    if holding is None:
        return ActionResult.rejected(f"No {instrument.title or instrument.id} held.")
    price_state = state.price_state.get(instrument.id)
    if price_state is None or price_state.price <= 0:
        return ActionResult.rejected(f"No price for {instrument.id}.")
    if amount <= 0:
        return ActionResult.rejected(f"Order amount must be positive, got {amount}.")
    locked = _lock_rejection(state, instrument, rules)
    if locked:
        return ActionResult.rejected(locked)

    # ---- Phase 2: Price the order ------------------------------------------
    price = price_state.price
    max_value = holding.units * price
    if max_value <= 0:
        return ActionResult.rejected("Holding has no value.")
    gross = min(amount, max_value)
    units_sold = gross / price
    fee = gross * instrument.trading.sell_fee_pct
    net = gross - fee
    remaining = holding.units - units_sold

    leveraged_units = holding.leveraged_units
    leveraged_cost = holding.leveraged_cost
    if leveraged_units > 0 and holding.units > 0:
        leveraged_sold = min(leveraged_units, units_sold * leveraged_units / holding.units)
        cost_per_unit = leveraged_cost / leveraged_units
        leveraged_units = max(0.0, leveraged_units - leveraged_sold)
        leveraged_cost = max(0.0, leveraged_cost - leveraged_sold * cost_per_unit)

    investments = dict(state.investments)
    if remaining <= DUST_UNITS:
        del investments[instrument.id]
    else:
        investments[instrument.id] = Holding(
            units=remaining,
            cost_basis=holding.cost_basis,
            leveraged_units=leveraged_units,
            leveraged_cost=leveraged_cost,
        )

    # ---- Phase 3: Commit ---------------------------------------------------
    state.investments = investments
    state.cash = round_money(state.cash + net)
    _lock(state, instrument, rules)
    profit = round_money(net - holding.cost_basis * units_sold)
    message = f"Sold {instrument.title or instrument.id} for ${round_money(net)}"
    state.push_log(message, "trade", round_money(net), rules.recent_log_size)
    logger.debug("%s (%.4f units @ %.2f, profit %d)", message, units_sold, price, profit)
    return ActionResult.accepted(message)
