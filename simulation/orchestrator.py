"""The monthly turn: one strictly ordered state transition.

Order of a turn:

1.  market tick
2.  stop-loss on leveraged positions
3.  passive income (holdings + running deals)
4.  salary progression
5.  salary (jobless / salary cut)
6.  expenses (flat + progressive + maintenance)
7.  debt interest
8.  cash update
9.  deal maturation
10. random event
11. next month's home-action offers, deal windows
12. net worth / credit limit
13. emergency credit
14. goals
15. turn record, history, log
"""

from __future__ import annotations

import logging

from models.content import ContentBundle, EmergencyCreditRule, GameRules, Instrument
from models.effects import cash_delta_of
from models.state import GameState, HistoryPoint, Holding, PriceState
from models.turn import GoalMetrics, TurnResult
from simulation import credit
from simulation.deals import advance_deal_windows, deal_payouts, mature_deals
from simulation.events import roll_random_event
from simulation.finance import (
    credit_limit,
    evaluate_goals,
    holdings_value,
    maintenance_expense,
    passive_income,
    progressive_expense,
    round_money,
)
from simulation.home_actions import roll_home_action_offers
from simulation.market import simulate
from simulation.trading import DUST_UNITS

logger = logging.getLogger(__name__)


def stop_loss(
    investments: dict[str, Holding],
    price_state: dict[str, PriceState],
    instrument_map: dict[str, Instrument],
    rules: GameRules,
) -> tuple[dict[str, Holding], float, list[str]]:
    """Liquidate leveraged units whose price fell to ``entry * stop_loss_ratio`` or below.

    Returns ``(investments, proceeds, warnings)``.  Only the leveraged units
    are sold; the unleveraged remainder keeps its cost basis.
    """
    updated = dict(investments)
    proceeds = 0.0
    warnings = []
    for instrument_id, holding in investments.items():
        info = instrument_map.get(instrument_id)
        if info is None or info.type not in rules.risk_asset_types:
            continue
        if holding.leveraged_units <= 0 or holding.leveraged_cost <= 0:
            continue
        state = price_state.get(instrument_id)
        price = state.price if state is not None else info.initial_price
        entry_price = holding.leveraged_cost / holding.leveraged_units
        if price > entry_price * rules.stop_loss_ratio:
            continue
        proceeds += holding.leveraged_units * price
        remaining = max(0.0, holding.units - holding.leveraged_units)
        if remaining <= DUST_UNITS:
            del updated[instrument_id]
        else:
            updated[instrument_id] = Holding(units=remaining, cost_basis=holding.cost_basis)
        warning = f"Stop-loss on {info.title or instrument_id}: sold {holding.leveraged_units:.2f} units."
        logger.warning(warning)
        warnings.append(warning)
    return updated, proceeds, warnings


def progress_salary(state: GameState, fallback_base: float) -> float:
    """Step the salary progression counter; returns this month's salary base."""
    progression = state.salary_progression
    if progression is None:
        return fallback_base
    months = progression.months_until_step - 1
    base = progression.current_base
    if months <= 0:
        if progression.cap is None or base < progression.cap:
            base = round_money(base * (1 + progression.percent))
            if progression.cap is not None:
                base = min(round_money(progression.cap), base)
        months = max(1, progression.step_months)
    state.salary_progression = progression.model_copy(
        update={"months_until_step": months, "current_base": base}
    )
    return base


def realize_salary(state: GameState, base: float) -> int:
    """Salary paid this month after jobless months and salary cuts."""
    if state.jobless_months > 0:
        state.jobless_months -= 1
        return 0
    cut = state.salary_cut_amount if state.salary_cut_months > 0 else 0
    salary = max(0, round_money(base + state.salary_bonus - cut))
    if state.salary_cut_months > 0:
        state.salary_cut_months -= 1
        if state.salary_cut_months == 0:
            state.salary_cut_amount = 0
    return salary


def emergency_credit(
    state: GameState,
    available: float,
    effective_recurring: float,
    rules: GameRules,
) -> int:
    """Auto-draw ``min(available, max(min_draw, effective * draw_percent))`` when cash is negative."""
    rule: EmergencyCreditRule | None = rules.emergency_credit
    if rule is None or not rule.enabled or state.cash >= 0 or available <= 0:
        return 0
    target = max(rule.min_draw, effective_recurring * rule.draw_percent)
    amount = round_money(min(available, max(0, round_money(target))))
    amount = credit.open_draw(state, amount, rules, credit.EMERGENCY_LABEL)
    state.cash = round_money(state.cash + amount)
    if amount:
        logger.debug("Emergency credit drawn: %d", amount)
    return amount


def market_messages(
    returns: dict[str, float], instrument_map: dict[str, Instrument], bundle: ContentBundle
) -> list[str]:
    limits = bundle.markets.limits
    messages = []
    for instrument_id, ret in returns.items():
        info = instrument_map.get(instrument_id)
        if info is None:
            continue
        name = info.title or instrument_id
        if ret <= limits.significant_drop:
            messages.append(f"{name} fell {round_money(abs(ret) * 100)}%")
        elif ret >= limits.significant_rise:
            messages.append(f"{name} rose {round_money(ret * 100)}%")
    return messages


def _capped(points: list[HistoryPoint], point: HistoryPoint, cap: int) -> list[HistoryPoint]:
    return [*points, point][-cap:]


def apply_month(state: GameState, bundle: ContentBundle) -> TurnResult:
    """Advance *state* by one month in place and return the turn record."""
    profession = bundle.profession(state.profession_id)
    if profession is None:
        raise RuntimeError("No profession selected; call select_profession first.")
    rules = bundle.rules
    instrument_map = bundle.instrument_map

    tick = simulate(
        state.month,
        state.price_state,
        bundle.instruments,
        bundle.markets,
        state.rng_seed,
        state.shock_state,
    )
    state.price_state = tick.price_state
    state.shock_state = tick.shock_state
    seed = tick.seed

    state.investments, liquidation, warnings = stop_loss(
        state.investments, state.price_state, instrument_map, rules
    )

    holdings_total = holdings_value(state.investments, state.price_state)
    passive = round_money(
        passive_income(state.investments, state.price_state, instrument_map, rules)
        + deal_payouts(state.deal_participations)
    )

    salary_base = progress_salary(state, profession.salary_monthly)
    salary = realize_salary(state, salary_base)

    recurring = round_money(state.recurring_expenses)
    progressive = progressive_expense(state.cash, salary, rules)
    maintenance = maintenance_expense(holdings_total, rules)
    effective = round_money(recurring + progressive + maintenance)

    interest = credit.accrue_interest(state, rules)

    state.cash = round_money(state.cash + salary + passive - effective + liquidation)
    state.deal_participations = mature_deals(state.deal_participations)

    event = roll_random_event(state, bundle.random_events, rules, seed)
    seed = event.seed
    state.available_actions, seed = roll_home_action_offers(bundle.home_actions, seed)
    state.deal_windows, seed = advance_deal_windows(state.deal_windows, bundle.deals, seed)
    state.rng_seed = seed

    effective_patched = round_money(state.recurring_expenses + progressive + maintenance)
    limit_salary = profession.salary_monthly + state.salary_bonus
    net_worth = state.cash + holdings_total - state.debt
    limit = credit_limit(profession, net_worth, limit_salary, rules)
    available = limit - state.debt

    drawn = emergency_credit(state, available, effective_patched, rules)
    if drawn:
        net_worth = state.cash + holdings_total - state.debt
        limit = credit_limit(profession, net_worth, limit_salary, rules)
        available = limit - state.debt
    state.credit_limit = limit
    state.available_credit = available

    cash_flow = salary + passive - effective_patched
    metrics = GoalMetrics(
        cash=state.cash,
        net_worth=net_worth,
        passive_income=passive,
        recurring_expenses=effective_patched,
        monthly_cash_flow=cash_flow,
        debt_delta=interest,
        debt=state.debt,
        available_credit=available,
    )
    goals = evaluate_goals(rules, state.trackers, metrics)
    state.trackers = goals.trackers
    if state.win_condition is None and goals.win is not None:
        state.win_condition = goals.win
        logger.info("Win condition reached at month %d: %s", state.month + 1, goals.win.id)
    if state.lose_condition is None and goals.lose is not None:
        state.lose_condition = goals.lose
        logger.info("Lose condition reached at month %d: %s", state.month + 1, goals.lose.id)

    state.month += 1
    cap = rules.history_cap
    state.history = state.history.model_copy(
        update={
            "net_worth": _capped(state.history.net_worth, HistoryPoint(month=state.month, value=net_worth), cap),
            "cash_flow": _capped(state.history.cash_flow, HistoryPoint(month=state.month, value=cash_flow), cap),
            "passive_income": _capped(
                state.history.passive_income, HistoryPoint(month=state.month, value=passive), cap
            ),
        }
    )

    log_size = rules.recent_log_size
    if event.outcome is not None:
        amount = 0 if event.outcome.prevented else round_money(cash_delta_of(event.event.effect))
        state.push_log(event.outcome.message, "event", amount, log_size)
    for warning in warnings:
        state.push_log(warning, "stoploss", limit=log_size)
    for message in market_messages(tick.returns, instrument_map, bundle):
        state.push_log(message, "market", limit=log_size)

    state.current_event = event.outcome
    state.trade_locks = {}
    result = TurnResult(
        month=state.month,
        salary=salary,
        passive_income=passive,
        recurring_expenses=recurring,
        effective_recurring=effective_patched,
        debt_interest=interest,
        auto_liquidation=round_money(liquidation),
        emergency_draw=drawn,
        returns=tick.returns,
        stop_loss_warnings=warnings,
        event=event.outcome,
        metrics=metrics,
    )
    state.last_turn = result
    logger.debug(
        "Month %d: cash %d, debt %d, net worth %.0f, cash flow %d",
        state.month,
        state.cash,
        state.debt,
        net_worth,
        cash_flow,
    )
    return result


def advance_month(state: GameState, bundle: ContentBundle) -> tuple[GameState, TurnResult]:
    """Pure form of :func:`apply_month`: *state* is left untouched."""
    if state.profession_id is None:
        raise RuntimeError("No profession selected; call select_profession first.")
    next_state = state.model_copy(deep=True)
    result = apply_month(next_state, bundle)
    return next_state, result
