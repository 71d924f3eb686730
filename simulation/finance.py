"""Pure finance calculators: valuation, passive income, expenses, credit limit, goals."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from models.content import GameRules, GoalRule, Instrument, Profession
from models.state import GoalTrackers, Holding, PriceState
from models.turn import GoalMetrics

UNKNOWN_TYPE_MULTIPLIER = 0.001


def round_money(value: float | None) -> int:
    """Round half-up to whole currency units."""
    if value is None:
        return 0
    return int(math.floor(value + 0.5))


def living_cost(profession_id: str | None, rules: GameRules) -> float:
    if rules.living_cost is None:
        return 0.0
    override = rules.living_cost.profession_overrides.get(profession_id or "")
    return override or rules.living_cost.default_monthly or 0.0


def credit_limit(
    profession: Profession | None,
    net_worth: float,
    salary: float,
    rules: GameRules,
) -> float:
    """Credit limit bounded below by the profession base and above by ``base * cap``.

    Without a credit-limit rule the base is returned unchanged.  A zero base
    leaves the formula value uncapped.
    """
    if profession is None:
        return 0.0
    base = profession.credit_limit_base or 0.0
    rule = rules.loans.credit_limit
    if rule is None:
        return base
    formula = max(base, rule.net_worth_multiplier * net_worth + rule.salary_multiplier * salary)
    cap = base * (rule.cap_multiplier or 6.0)
    return min(formula, cap or formula)


def holdings_value(investments: dict[str, Holding], price_state: dict[str, PriceState]) -> float:
    total = 0.0
    for instrument_id, holding in investments.items():
        price = price_state[instrument_id].price if instrument_id in price_state else 0.0
        total += holding.units * price
    return total


def passive_multiplier(instrument_type: str | None, rules: GameRules) -> float:
    if not instrument_type:
        instrument_type = "stocks"
    return rules.passive_multipliers.get(instrument_type, UNKNOWN_TYPE_MULTIPLIER)


def passive_income(
    investments: dict[str, Holding],
    price_state: dict[str, PriceState],
    instrument_map: dict[str, Instrument],
    rules: GameRules,
) -> float:
    """Yield on holdings: each position's value times its asset-class multiplier."""
    total = 0.0
    for instrument_id, holding in investments.items():
        info = instrument_map.get(instrument_id)
        price = price_state[instrument_id].price if instrument_id in price_state else 0.0
        total += holding.units * price * passive_multiplier(info.type if info else None, rules)
    return total


def progressive_expense(cash: float, income: float, rules: GameRules) -> float:
    """Lifestyle creep: a share of cash above a threshold plus a share of income, capped."""
    rule = rules.progressive_expenses
    if rule is None:
        return 0.0
    cash_part = cash * rule.cash_rate if cash > rule.cash_threshold else 0.0
    value = max(0.0, cash_part + income * rule.income_rate)
    if rule.cap_monthly is not None:
        value = min(rule.cap_monthly, value)
    return value


def maintenance_expense(holdings_total: float, rules: GameRules) -> float:
    rule = rules.asset_maintenance
    if rule is None:
        return 0.0
    return max(rule.min_monthly, holdings_total * rule.rate_monthly)


def portfolio_summary(
    investments: dict[str, Holding],
    price_state: dict[str, PriceState],
    instruments: list[Instrument],
) -> list[dict]:
    """One row per catalog instrument with value, units, price and allocation share."""
    rows = []
    for instrument in instruments:
        holding = investments.get(instrument.id)
        state = price_state.get(instrument.id)
        price = state.price if state is not None else instrument.initial_price
        units = holding.units if holding is not None else 0.0
        rows.append(
            {
                "id": instrument.id,
                "title": instrument.title,
                "type": instrument.type,
                "units": units,
                "price": price,
                "value": units * price,
            }
        )
    total = sum(row["value"] for row in rows) or 1.0
    for row in rows:
        row["allocation"] = row["value"] / total
    return rows


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


def win_rule_met(rule: GoalRule, metrics: GoalMetrics) -> bool:
    if rule.type == "passive_income_cover_costs":
        return metrics.passive_income >= metrics.recurring_expenses
    if rule.type == "net_worth_reach":
        return metrics.net_worth >= rule.target
    return False


def lose_rule_met(rule: GoalRule, metrics: GoalMetrics) -> bool:
    if rule.type == "no_liquidity_no_credit":
        return metrics.cash <= 0 and metrics.available_credit <= 0
    if rule.type in ("negative_cashflow_debt_growing", "insolvency"):
        return metrics.monthly_cash_flow < 0 and metrics.debt_delta > 0
    if rule.type == "debt_ratio":
        return metrics.debt >= metrics.net_worth * (rule.min_debt_to_net_worth or 1.0)
    return False


@dataclass
class GoalEvaluation:
    win: GoalRule | None
    lose: GoalRule | None
    trackers: GoalTrackers = field(default_factory=GoalTrackers)


def evaluate_goals(rules: GameRules, trackers: GoalTrackers, metrics: GoalMetrics) -> GoalEvaluation:
    """Update every rule's streak and report the first win/lose rule that reaches its streak.

    Streaks advance on success and reset to zero on failure.  All rules are
    updated even after one fires.
    """
    win_streaks = dict(trackers.win)
    lose_streaks = dict(trackers.lose)

    achieved = None
    for rule in rules.win:
        if win_rule_met(rule, metrics):
            win_streaks[rule.id] = win_streaks.get(rule.id, 0) + 1
            if achieved is None and win_streaks[rule.id] >= (rule.required_streak_months or 1):
                achieved = rule
        else:
            win_streaks[rule.id] = 0

    failed = None
    for rule in rules.lose:
        if lose_rule_met(rule, metrics):
            lose_streaks[rule.id] = lose_streaks.get(rule.id, 0) + 1
            if failed is None and lose_streaks[rule.id] >= (rule.consecutive_months or 1):
                failed = rule
        else:
            lose_streaks[rule.id] = 0

    return GoalEvaluation(
        win=achieved,
        lose=failed,
        trackers=GoalTrackers(win=win_streaks, lose=lose_streaks),
    )
