"""Monthly price model: correlated log-normal returns with cycles and shocks.

For each instrument::

    log_return = mu + sigma * z_correlated + sum(cycles) + sum(shocks)

clamped to the global absolute limit and to the instrument's drawdown floor,
then ``price' = max(price * exp(log_return), min_price)``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from models.content import Cycle, Instrument, MarketConfig, ShockModel
from models.state import PricePoint, PriceState
from simulation.rng import cholesky_lower, correlated_normals, correlation_matrix, normal, uniform

logger = logging.getLogger(__name__)

PRICE_HISTORY_CAP = 180
DRAWDOWN_FLOOR = 0.05


@dataclass
class MarketTick:
    """Result of one simulated month."""

    price_state: dict[str, PriceState]
    returns: dict[str, float]
    seed: int
    shock_state: dict[str, int]
    shock_impacts: dict[str, float] = field(default_factory=dict)


def seed_price_state(instruments: list[Instrument]) -> dict[str, PriceState]:
    """Initial prices, each with a single history point at month 0."""
    return {
        instrument.id: PriceState(
            price=instrument.initial_price,
            history=[PricePoint(month=0, price=instrument.initial_price)],
            last_return=0.0,
        )
        for instrument in instruments
    }


def cycle_contributions(cycles: list[Cycle], month: int) -> dict[str, float]:
    out = {}
    for cycle in cycles:
        period = cycle.period_months or 1
        angle = 2 * math.pi * (month + 1) / period + cycle.phase
        out[cycle.id] = cycle.amplitude * math.sin(angle)
    return out


def roll_shocks(
    shock_model: ShockModel,
    month: int,
    seed: int,
    shock_state: dict[str, int],
) -> tuple[dict[str, float], int, dict[str, int]]:
    """Roll each shock type that is out of cooldown.

    Returns ``(impacts, seed, next_shock_state)``; *shock_state* is not mutated.
    """
    impacts: dict[str, float] = {}
    next_state = dict(shock_state)
    for event in shock_model.events:
        last = next_state.get(event.id)
        if last is not None and month - last < event.cooldown_months:
            continue
        roll, seed = uniform(seed)
        if roll < event.prob_monthly:
            impact, seed = normal(seed, event.mean_log_impact, event.std_log_impact)
            impacts[event.id] = impact
            next_state[event.id] = month
    return impacts, seed, next_state


def simulate(
    month: int,
    price_state: dict[str, PriceState],
    instruments: list[Instrument],
    markets: MarketConfig,
    seed: int,
    shock_state: dict[str, int],
) -> MarketTick:
    """Advance every instrument one month. Inputs are left untouched."""
    if not instruments:
        return MarketTick(dict(price_state), {}, seed, dict(shock_state))

    ids = [instrument.id for instrument in instruments]
    lower = cholesky_lower(correlation_matrix(markets.correlations.matrix, ids))
    shocks_z, seed = correlated_normals(len(ids), lower, seed)
    cycles = cycle_contributions(markets.cycles, month)
    impacts, seed, next_shock_state = roll_shocks(markets.shock_model, month, seed, shock_state)

    limits = markets.limits
    next_prices: dict[str, PriceState] = {}
    returns: dict[str, float] = {}
    for index, instrument in enumerate(instruments):
        prev = price_state.get(instrument.id)
        if prev is None:
            prev = PriceState(
                price=instrument.initial_price,
                history=[PricePoint(month=0, price=instrument.initial_price)],
            )
        model = instrument.model
        log_return = (
            model.mu_monthly
            + model.sigma_monthly * shocks_z[index]
            + sum(cycles.get(ref, 0.0) for ref in model.cycle_refs)
            + sum(impacts.get(ref, 0.0) for ref in model.shock_refs)
        )
        if limits.max_monthly_return_abs is not None:
            cap = limits.max_monthly_return_abs
            log_return = min(max(log_return, -cap), cap)
        if model.max_drawdown_clamp is not None:
            floor = math.log(max(1 - model.max_drawdown_clamp, DRAWDOWN_FLOOR))
            log_return = max(log_return, floor)

        growth = math.exp(log_return)
        next_price = max(prev.price * growth, limits.min_price or 0.01)
        history = prev.history + [PricePoint(month=month + 1, price=next_price)]
        if len(history) > PRICE_HISTORY_CAP:
            history = history[-PRICE_HISTORY_CAP:]
        next_prices[instrument.id] = PriceState(
            price=next_price, history=history, last_return=growth - 1
        )
        returns[instrument.id] = growth - 1

    if impacts:
        logger.debug("Month %d shocks: %s", month + 1, impacts)
    return MarketTick(next_prices, returns, seed, next_shock_state, impacts)
