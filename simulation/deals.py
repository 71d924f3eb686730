"""Deal windows: time-boxed opportunities with a limited number of slots."""

from __future__ import annotations

import math

from models.content import DealTemplate, DealWindowRule
from models.state import DealParticipation, DealWindow, GameState
from models.turn import ActionResult
from simulation.finance import round_money
from simulation.rng import uniform


def pick_duration(rule: DealWindowRule, roll: float = 0.5) -> int:
    """Map a uniform *roll* onto ``[min_turns, max_turns]`` inclusive."""
    min_turns = max(1, rule.min_turns)
    max_turns = max(min_turns, rule.max_turns if rule.max_turns is not None else min_turns)
    span = max_turns - min_turns + 1
    bucket = min(span - 1, max(0, math.floor(roll * span)))
    return min_turns + bucket


def _fresh_window(rule: DealWindowRule, duration: int) -> DealWindow:
    return DealWindow(expires_in=duration, slots_left=rule.slots, max_slots=rule.slots)


def init_deal_windows(deals: list[DealTemplate], seed: int) -> tuple[dict[str, DealWindow], int]:
    """Roll an opening duration for every deal, in catalog order."""
    windows = {}
    for deal in deals:
        roll, seed = uniform(seed)
        windows[deal.id] = _fresh_window(deal.window, pick_duration(deal.window, roll))
    return windows, seed


def advance_deal_windows(
    current: dict[str, DealWindow],
    deals: list[DealTemplate],
    seed: int,
) -> tuple[dict[str, DealWindow], int]:
    """Count every window down one month; expired windows reopen with a new duration.

    Only an expiring window consumes a roll.  Deals missing from *current*
    start with the midpoint duration.
    """
    windows = {}
    for deal in deals:
        existing = current.get(deal.id)
        if existing is None:
            window = _fresh_window(deal.window, pick_duration(deal.window))
        else:
            window = existing.model_copy(update={"expires_in": existing.expires_in - 1})
        if window.expires_in <= 0:
            roll, seed = uniform(seed)
            window = _fresh_window(deal.window, pick_duration(deal.window, roll))
        windows[deal.id] = window
    return windows, seed


def is_open(window: DealWindow | None) -> bool:
    return window is not None and window.expires_in > 0 and window.slots_left > 0


def participate(state: GameState, deal: DealTemplate) -> ActionResult:
    """Enter *deal*: take a slot, pay the entry cost and open a participation."""
    window = state.deal_windows.get(deal.id)
    entry_cost = round_money(deal.entry_cost)
    if window is None or window.expires_in <= 0:
        return ActionResult.rejected("The deal window has closed.")
    if window.slots_left <= 0:
        return ActionResult.rejected("No slots left in this deal.")
    if entry_cost <= 0:
        return ActionResult.rejected("Invalid entry cost.")
    if state.cash < entry_cost:
        return ActionResult.rejected(f"Need ${entry_cost} to enter.")

    state.cash = round_money(state.cash - entry_cost)
    state.deal_participations = state.deal_participations + [
        DealParticipation(
            participation_id=state.next_id(deal.id),
            deal_id=deal.id,
            title=deal.title,
            invested=entry_cost,
            monthly_payout=round_money(deal.monthly_payout),
            duration_months=max(1, deal.duration_months),
            risk_meter=deal.risk_meter,
            started_month=state.month,
        )
    ]
    state.deal_windows = {
        **state.deal_windows,
        deal.id: window.model_copy(update={"slots_left": max(0, window.slots_left - 1)}),
    }
    return ActionResult.accepted(f"Joined {deal.title or deal.id} for ${entry_cost}.")


def mature_deals(participations: list[DealParticipation]) -> list[DealParticipation]:
    """Advance every running participation one month; completed ones are left as they are."""
    updated = []
    for deal in participations:
        if deal.completed:
            updated.append(deal)
            continue
        elapsed = min(deal.duration_months, deal.elapsed_months + 1)
        updated.append(
            deal.model_copy(
                update={
                    "elapsed_months": elapsed,
                    "profit_earned": round_money(deal.profit_earned + deal.monthly_payout),
                    "completed": elapsed >= deal.duration_months,
                }
            )
        )
    return updated


def deal_payouts(participations: list[DealParticipation]) -> int:
    return sum(deal.monthly_payout for deal in participations if not deal.completed)
