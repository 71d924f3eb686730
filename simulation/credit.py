"""Credit ledger: individual draws whose balances always add up to ``GameState.debt``.

All draws share the pool APR.  Interest and blanket repayments are spread
pro rata, so after every operation :func:`reconcile` rescales the ledger to
the aggregate debt: sub-threshold draws are pruned and folded into the rest,
and a positive debt with no draw left gets a synthetic entry.
"""

from __future__ import annotations

import logging

from models.content import GameRules
from models.state import CreditDraw, GameState
from simulation.finance import round_money

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Credit line"
STARTING_DEBT_LABEL = "Starting debt"
EMERGENCY_LABEL = "Emergency credit"


def total_balance(draws: list[CreditDraw]) -> int:
    return sum(draw.balance for draw in draws)


def available_for_draw(state: GameState) -> int:
    """Headroom under the credit limit, never negative."""
    return max(0, round_money(state.credit_limit - state.debt))


def _rescale(draws: list[CreditDraw], target: int) -> list[CreditDraw]:
    total = total_balance(draws)
    if total == target:
        return draws
    if total <= 0:
        return [draws[0].model_copy(update={"balance": target})]
    balances = [round_money(draw.balance / total * target) for draw in draws]
    largest = max(range(len(draws)), key=lambda i: draws[i].balance)
    balances[largest] += target - sum(balances)
    return [draw.model_copy(update={"balance": b}) for draw, b in zip(draws, balances)]


def reconcile(state: GameState, rules: GameRules) -> None:
    """Make ``sum(draw balances) == debt`` exactly."""
    debt = max(0, state.debt)
    if debt == 0:
        state.credit_draws = []
        return
    min_balance = rules.credit_draw_min_balance
    kept = [draw for draw in state.credit_draws if draw.balance > min_balance]
    if not kept and state.credit_draws:
        kept = [max(state.credit_draws, key=lambda draw: draw.balance)]
    if not kept:
        logger.debug("No credit draw carries debt %d; opening a synthetic draw", debt)
        kept = [
            CreditDraw(
                id=state.next_id("draw"),
                balance=debt,
                created_month=state.month,
                label=DEFAULT_LABEL,
            )
        ]
    state.credit_draws = _rescale(kept, debt)


def accrue_interest(state: GameState, rules: GameRules) -> int:
    """Add ``round(debt * apr)`` to debt, spread over draws by their share.

    Returns the interest charged.
    """
    base = max(0, state.debt)
    interest = round_money(base * rules.loans.apr)
    state.debt = max(0, round_money(base + interest))
    reconcile(state, rules)
    return interest


def open_draw(state: GameState, amount: float, rules: GameRules, label: str = DEFAULT_LABEL) -> int:
    """Append a draw of *amount* and raise debt by the same amount (no limit check)."""
    amount = round_money(amount)
    if amount <= 0:
        return 0
    reconcile(state, rules)
    state.credit_draws = state.credit_draws + [
        CreditDraw(id=state.next_id("draw"), balance=amount, created_month=state.month, label=label)
    ]
    state.debt = round_money(state.debt + amount)
    reconcile(state, rules)
    return amount


def draw_within_limit(
    state: GameState, amount: float, rules: GameRules, label: str = DEFAULT_LABEL
) -> int:
    """Draw up to *amount*, bounded by ``max(0, credit_limit - debt)``."""
    return open_draw(state, min(round_money(amount), available_for_draw(state)), rules, label)


def repay(state: GameState, payment: float, rules: GameRules, draw_id: str | None = None) -> int:
    """Pay down one draw (*draw_id*) or the ledger in order; returns the amount applied.

    A targeted payment is limited by that draw's balance.  Unknown draw ids
    apply nothing.
    """
    payment = min(round_money(payment), max(0, state.debt))
    if payment <= 0:
        return 0
    reconcile(state, rules)
    remaining = payment
    updated = []
    for draw in state.credit_draws:
        if remaining > 0 and (draw_id is None or draw.id == draw_id):
            paid = min(draw.balance, remaining)
            remaining -= paid
            draw = draw.model_copy(update={"balance": draw.balance - paid})
        updated.append(draw)
    paid_total = payment - remaining
    if paid_total <= 0:
        return 0
    state.credit_draws = [draw for draw in updated if draw.balance > 0]
    state.debt = max(0, round_money(state.debt - paid_total))
    reconcile(state, rules)
    return paid_total


def service_debt(
    state: GameState, amount: float, rules: GameRules, draw_id: str | None = None
) -> tuple[int, int]:
    """Repay up to *amount* from cash and charge the repayment fee; returns ``(paid, fee)``.

    The fee is capped so it never takes cash below zero.
    """
    if state.debt <= 0 or state.cash <= 0:
        return 0, 0
    payment = min(round_money(amount), state.cash, state.debt)
    paid = repay(state, payment, rules, draw_id)
    if paid <= 0:
        return 0, 0
    fee = min(state.cash - paid, round_money(paid * rules.loans.repayment_fee_pct))
    state.cash = round_money(state.cash - paid - fee)
    state.available_credit = max(0.0, state.credit_limit - state.debt)
    return paid, fee


def apply_debt_delta(state: GameState, delta: float, rules: GameRules) -> None:
    """Event-driven debt change: positive opens a draw, negative repays in order."""
    delta = round_money(delta)
    if delta > 0:
        open_draw(state, delta, rules)
    elif delta < 0:
        repay(state, -delta, rules)
