"""Home actions: the monthly offer roll and applying a chosen action."""

from __future__ import annotations

import logging

from models.content import GameRules, HomeAction, HomeActionCatalog
from models.state import GameState
from models.turn import ActionResult
from simulation import credit
from simulation.events import apply_effects, describe_effects
from simulation.finance import round_money
from simulation.rng import pick_index, uniform

logger = logging.getLogger(__name__)

DEBT_PAYMENT_SHARE = 0.3
DEBT_PAYMENT_MIN_CASH = 100
DEFAULT_CREDIT_AMOUNT = 1000


def weighted_pool(catalog: HomeActionCatalog) -> list[str]:
    """Action ids repeated by their kind's weight (default 1); all ids if every weight is 0."""
    pool = []
    for action in catalog.actions:
        weight = max(0, round_money(catalog.type_weights.get(action.kind, 1)))
        pool.extend([action.id] * weight)
    return pool or [action.id for action in catalog.actions]


def roll_home_action_offers(catalog: HomeActionCatalog, seed: int) -> tuple[list[str], int]:
    """Pick up to ``count`` distinct actions for the coming month.

    The whole offer is skipped when the show roll exceeds ``show_chance``.
    Offers are returned in catalog order.
    """
    pool = weighted_pool(catalog)
    limit = min(catalog.count, len(set(pool)))
    if limit <= 0:
        return [], seed
    show_chance = min(1.0, max(0.0, catalog.show_chance))
    if show_chance <= 0:
        return [], seed
    value, seed = uniform(seed)
    if value > show_chance:
        return [], seed
    picked: set[str] = set()
    while len(picked) < limit:
        index, seed = pick_index(seed, len(pool))
        picked.add(pool[index])
    return [action.id for action in catalog.actions if action.id in picked], seed


def _pay_down_debt(state: GameState, rules: GameRules) -> ActionResult:
    if state.debt <= 0 or state.cash <= DEBT_PAYMENT_MIN_CASH:
        return ActionResult.rejected("Nothing to pay off.")
    budget = min(round_money(state.cash * DEBT_PAYMENT_SHARE), state.cash)
    paid = credit.repay(state, min(budget, state.debt), rules)
    if paid <= 0:
        return ActionResult.rejected("Nothing to pay off.")
    state.cash = round_money(state.cash - paid)
    return ActionResult.accepted(f"Paid off ${paid} of debt")


def apply_home_action(
    state: GameState,
    action: HomeAction | None,
    rules: GameRules,
    seed: int,
) -> tuple[ActionResult, int]:
    """Apply *action* to *state*; returns the result and the advanced seed.

    Only chance actions consume a roll.  Rejections leave *state* untouched.
    """
    if action is None:
        return ActionResult.rejected("Unknown action."), seed

    if action.kind == "debt_payment":
        result = _pay_down_debt(state, rules)
    else:
        cost = round_money(action.cost)
        if cost and state.cash < cost:
            return ActionResult.rejected(f"Need ${cost}"), seed

        draw = 0
        if action.effect == "take_credit":
            draw = min(round_money(action.value or DEFAULT_CREDIT_AMOUNT), credit.available_for_draw(state))
            if draw <= 0:
                return ActionResult.rejected("No credit available."), seed
        if action.effect == "protection" and not action.protection_key:
            return ActionResult.rejected("Protection action has no key."), seed

        state.cash = round_money(state.cash - cost)
        message = "Upgrade applied."
        if action.effect == "salary_up":
            state.salary_bonus = round_money(state.salary_bonus + action.value)
            message = f"Salary up by ${round_money(action.value)}"
        elif action.effect in ("expense_down", "cost_down"):
            state.recurring_expenses = max(0, round_money(state.recurring_expenses - action.value))
            message = f"Monthly expenses -${round_money(action.value)}"
        elif action.effect == "protection":
            state.protections = {**state.protections, action.protection_key: True}
            message = "Protection activated."
        elif action.effect == "take_credit":
            credit.open_draw(state, draw, rules, action.title or credit.DEFAULT_LABEL)
            state.cash = round_money(state.cash + draw)
            state.credit_bucket = round_money(state.credit_bucket + draw)
            state.available_credit = max(0.0, state.credit_limit - state.debt)
            message = f"Received ${draw} of credit"

        if action.kind == "chance":
            value, seed = uniform(seed)
            success = value < action.chance_success
            outcome = action.success if success else action.fail
            apply_effects(state, outcome, rules)
            summary = describe_effects(outcome)
            message = "The gamble paid off" if success else "The gamble failed"
            if summary:
                message = f"{message} ({summary})"
        result = ActionResult.accepted(message)

    if result.ok:
        state.push_log(result.message, "action", limit=rules.recent_log_size)
        logger.debug("Home action %s: %s", action.id, result.message)
    return result, seed
