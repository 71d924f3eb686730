"""Random life events and the effect interpreter shared with home actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from models.content import GameRules, RandomEvent
from models.effects import (
    CashDelta,
    DebtDelta,
    Effect,
    JoblessMonths,
    RecurringDelta,
    SalaryBonusDelta,
    SalaryCut,
)
from models.state import GameState
from models.turn import EventOutcome
from simulation import credit
from simulation.finance import round_money
from simulation.rng import pick_index, uniform

logger = logging.getLogger(__name__)


def apply_effects(state: GameState, effects: list[Effect], rules: GameRules) -> None:
    """Apply each effect variant to *state* in order.

    Recurring expenses and debt never go below zero; a debt change goes
    through the credit ledger so draws keep matching debt.
    """
    for effect in effects:
        if isinstance(effect, CashDelta):
            state.cash = round_money(state.cash + effect.amount)
        elif isinstance(effect, SalaryBonusDelta):
            state.salary_bonus = round_money(state.salary_bonus + effect.amount)
        elif isinstance(effect, RecurringDelta):
            state.recurring_expenses = max(0, round_money(state.recurring_expenses + effect.amount))
        elif isinstance(effect, DebtDelta):
            credit.apply_debt_delta(state, effect.amount, rules)
        elif isinstance(effect, JoblessMonths):
            state.jobless_months = max(0, effect.months)
        elif isinstance(effect, SalaryCut):
            state.salary_cut_months = max(0, effect.months)
            state.salary_cut_amount = max(0, round_money(effect.amount))
        else:
            raise TypeError(f"Unsupported effect: {effect!r}")


def describe_effects(effects: list[Effect]) -> str | None:
    """Short human-readable summary, e.g. ``-$300, salary -$200 for 2 mo``."""
    parts = []
    for effect in effects:
        if isinstance(effect, CashDelta) and effect.amount:
            parts.append(f"{'+' if effect.amount > 0 else '-'}${abs(round_money(effect.amount))}")
        elif isinstance(effect, SalaryBonusDelta) and effect.amount:
            sign = "+" if effect.amount > 0 else "-"
            parts.append(f"salary {sign}${abs(round_money(effect.amount))}")
        elif isinstance(effect, RecurringDelta) and effect.amount:
            sign = "+" if effect.amount > 0 else "-"
            parts.append(f"monthly expenses {sign}${abs(round_money(effect.amount))}")
        elif isinstance(effect, DebtDelta) and effect.amount:
            sign = "+" if effect.amount > 0 else "-"
            parts.append(f"debt {sign}${abs(round_money(effect.amount))}")
        elif isinstance(effect, JoblessMonths) and effect.months > 0:
            parts.append(f"jobless for {effect.months} mo")
        elif isinstance(effect, SalaryCut) and effect.months > 0:
            parts.append(f"salary -${abs(round_money(effect.amount))} for {effect.months} mo")
    return ", ".join(parts) if parts else None


@dataclass
class EventRoll:
    event: RandomEvent | None
    outcome: EventOutcome | None
    seed: int

    @property
    def applied(self) -> bool:
        return self.outcome is not None and not self.outcome.prevented


def roll_random_event(
    state: GameState,
    events: list[RandomEvent],
    rules: GameRules,
    seed: int,
) -> EventRoll:
    """Double-gated event roll applied to *state* in place.

    1. ``uniform > difficulty event chance`` -> nothing happens.
    2. Pick one event uniformly from the pool.
    3. ``uniform > event.chance`` -> nothing happens.
    4. A held protection matching ``protection_key`` is consumed instead of
       applying the effects.
    """
    if not events:
        return EventRoll(None, None, seed)

    value, seed = uniform(seed)
    if value > rules.event_chance(state.difficulty):
        return EventRoll(None, None, seed)
    index, seed = pick_index(seed, len(events))
    event = events[index]
    value, seed = uniform(seed)
    if value > event.chance:
        return EventRoll(None, None, seed)

    if event.protection_key and state.protections.get(event.protection_key):
        state.protections = {**state.protections, event.protection_key: False}
        logger.debug("Event %s prevented by %s", event.id, event.protection_key)
        outcome = EventOutcome(
            event_id=event.id,
            title=event.title,
            type=event.type,
            message=f"{event.title}: protection absorbed it",
            prevented=True,
        )
        return EventRoll(event, outcome, seed)

    apply_effects(state, event.effect, rules)
    base = f"{event.title}: {event.description}" if event.description else event.title
    if event.type != "positive":
        base = f"Warning! {base}"
    summary = describe_effects(event.effect)
    message = f"{base} ({summary})" if summary else base
    logger.debug("Event %s applied: %s", event.id, message)
    outcome = EventOutcome(event_id=event.id, title=event.title, type=event.type, message=message)
    return EventRoll(event, outcome, seed)
