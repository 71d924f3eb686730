"""Scripted player decisions used by the balance harness.

Every month, before the turn is advanced, a policy:

1. picks and applies at most one of the offered home actions,
2. pays debt off from cash above its buffer (debt-averse policies only),
3. draws credit (aggressive play only),
4. sells holdings (bonds, then stocks, then crypto) to restore its buffer,
5. buys instruments with the cash above its buffer,
6. enters the best eligible deal.

New credit, whether drawn directly or taken as a home action, is only taken
while the last month's cash flow was positive.

All mutations go through the engine's action handlers, so a policy can only
do what a player could.
"""

from __future__ import annotations

import logging
import math

from models.config import PolicyConfig
from models.content import ContentBundle, DealTemplate, HomeAction, Instrument
from models.state import GameState
from models.turn import ActionResult
from simulation import credit, deals, home_actions, trading
from simulation.finance import round_money
from simulation.rng import uniform

logger = logging.getLogger(__name__)

LIQUIDATION_ORDER = ("bonds", "stocks", "crypto")


def cash_buffer(state: GameState, policy: PolicyConfig) -> float:
    return policy.cash_buffer_multiplier * state.recurring_expenses


def last_cash_flow(state: GameState, bundle: ContentBundle) -> float:
    """Last month's cash flow; before the first month, salary minus recurring expenses."""
    if state.last_turn is not None:
        return state.last_turn.metrics.monthly_cash_flow
    profession = bundle.profession(state.profession_id)
    salary = profession.salary_monthly if profession is not None else 0.0
    return salary + state.salary_bonus - state.recurring_expenses


def can_borrow(state: GameState, bundle: ContentBundle) -> bool:
    return last_cash_flow(state, bundle) > 0


def score_action(action: HomeAction) -> float:
    """Expected cash value for chance actions, payback months for upgrades, 0 otherwise."""
    if action.kind == "chance":
        p = action.chance_success
        win = sum(e.amount for e in action.success if e.kind == "cash_delta")
        fail = sum(e.amount for e in action.fail if e.kind == "cash_delta")
        return -action.cost + p * win + (1 - p) * fail
    if action.kind in ("salary_up", "expense_down", "cost_down"):
        cost = action.cost or 1
        return cost / action.value if action.value > 0 else math.inf
    return 0.0


def _best_payback(actions: list[HomeAction]) -> tuple[HomeAction | None, float]:
    if not actions:
        return None, math.inf
    best = min(actions, key=score_action)
    return best, score_action(best)


def pick_action(
    policy: PolicyConfig,
    state: GameState,
    offers: list[HomeAction],
    seed: int,
    borrow: bool = True,
) -> tuple[HomeAction | None, int]:
    """Choose one affordable offer, or ``None``.

    Only the chance branch consumes a roll, and only when chance actions are
    allowed and offered.  Credit offers are skipped unless *borrow* is set.
    """
    affordable = [action for action in offers if action.cost <= state.cash]
    if not affordable:
        return None, seed
    by_kind: dict[str, list[HomeAction]] = {}
    for action in affordable:
        by_kind.setdefault(action.kind, []).append(action)
    buffer = cash_buffer(state, policy)

    if policy.allow_debt_payment and "debt_payment" in by_kind and state.debt > 0 and state.cash > buffer:
        return by_kind["debt_payment"][0], seed

    if policy.allow_protection:
        for action in by_kind.get("protection", []):
            if not state.protections.get(action.protection_key or "") and action.cost <= state.cash - buffer:
                return action, seed

    best_salary, salary_payback = _best_payback(by_kind.get("salary_up", []))
    if best_salary is not None and salary_payback <= policy.salary_roi_months:
        return best_salary, seed
    best_expense, expense_payback = _best_payback(
        by_kind.get("expense_down", []) + by_kind.get("cost_down", [])
    )
    if best_expense is not None and expense_payback <= policy.expense_roi_months:
        return best_expense, seed

    if policy.allow_chance and "chance" in by_kind:
        roll, seed = uniform(seed)
        pick = max(by_kind["chance"], key=score_action)
        if roll < policy.chance_pick_rate:
            return pick, seed
        return None, seed

    if borrow and policy.allow_take_credit and "take_credit" in by_kind:
        return max(by_kind["take_credit"], key=lambda action: action.value), seed
    return None, seed


def ensure_liquidity(state: GameState, bundle: ContentBundle, target: float = 0.0) -> list[ActionResult]:
    """Sell holdings in ``LIQUIDATION_ORDER`` until cash reaches *target*.

    Each sale is grossed up by the instrument's sell fee.  Risk assets sold
    here are locked for the rest of the month.
    """
    results = []
    for instrument_type in LIQUIDATION_ORDER:
        for instrument in bundle.instruments:
            if state.cash >= target:
                return results
            if instrument.type != instrument_type:
                continue
            holding = state.investments.get(instrument.id)
            price = state.price_state.get(instrument.id)
            if holding is None or price is None:
                continue
            value = holding.units * price.price
            if value <= 0:
                continue
            needed = (target - state.cash) / max(1e-9, 1 - instrument.trading.sell_fee_pct)
            results.append(trading.sell(state, instrument, min(value, needed), bundle.rules))
    return results


def settle_debt(state: GameState, policy: PolicyConfig, bundle: ContentBundle) -> list[ActionResult]:
    """Pay debt down from the cash above the buffer, selling holdings to cover it and its fee."""
    if not policy.repay_debt or state.debt <= 0:
        return []
    fee_pct = bundle.rules.loans.repayment_fee_pct
    buffer = cash_buffer(state, policy)
    results = ensure_liquidity(state, bundle, buffer + state.debt * (1 + fee_pct))
    payment = min(state.debt, math.floor(max(0.0, state.cash - buffer) / (1 + fee_pct)))
    paid, fee = credit.service_debt(state, payment, bundle.rules)
    if paid > 0:
        results.append(ActionResult.accepted(f"Repaid ${paid} with a ${fee} fee."))
    return results


def apply_credit_policy(state: GameState, policy: PolicyConfig, bundle: ContentBundle) -> ActionResult | None:
    """Draw ``credit_draw_share`` of the available credit into cash and the credit bucket."""
    if not policy.allow_credit_draw or not can_borrow(state, bundle):
        return None
    amount = round_money(credit.available_for_draw(state) * policy.credit_draw_share)
    if amount <= 0:
        return None
    drawn = credit.draw_within_limit(state, amount, bundle.rules)
    if drawn <= 0:
        return None
    state.cash = round_money(state.cash + drawn)
    state.credit_bucket = round_money(state.credit_bucket + drawn)
    state.available_credit = max(0.0, state.credit_limit - state.debt)
    return ActionResult.accepted(f"Drew ${drawn} of credit.")


def _first_of_type(bundle: ContentBundle, instrument_type: str) -> Instrument | None:
    return next((i for i in bundle.instruments if i.type == instrument_type), None)


def apply_invest_policy(state: GameState, policy: PolicyConfig, bundle: ContentBundle) -> list[ActionResult]:
    """Buy the first instrument of each allocated type with its share of the investable cash."""
    investable = max(0.0, state.cash - cash_buffer(state, policy))
    if investable <= 0:
        return []
    results = []
    for instrument_type, share in policy.allocations.items():
        instrument = _first_of_type(bundle, instrument_type)
        if instrument is None or share <= 0:
            continue
        results.append(trading.buy(state, instrument, investable * share, bundle.rules))
    return results


def deal_roi(deal: DealTemplate) -> float:
    return deal.monthly_payout * deal.duration_months / deal.entry_cost


def choose_deal(policy: PolicyConfig, state: GameState, templates: list[DealTemplate]) -> DealTemplate | None:
    """Best-ROI open deal within the policy's risk and buffer limits."""
    buffer = cash_buffer(state, policy)
    eligible = [
        deal
        for deal in templates
        if deals.is_open(state.deal_windows.get(deal.id))
        and deal.entry_cost > 0
        and state.cash - deal.entry_cost >= buffer
        and deal.risk_meter <= policy.max_deal_risk
        and deal_roi(deal) >= policy.min_deal_roi
    ]
    if not eligible:
        return None
    return max(eligible, key=deal_roi)


def play_policy_turn(state: GameState, bundle: ContentBundle, policy: PolicyConfig) -> list[ActionResult]:
    """Run one month of policy decisions against *state* in place."""
    results: list[ActionResult] = []
    offers = [a for a in (bundle.home_action(i) for i in state.available_actions) if a is not None]
    borrow = can_borrow(state, bundle)
    action, state.rng_seed = pick_action(policy, state, offers, state.rng_seed, borrow=borrow)
    if action is not None:
        result, state.rng_seed = home_actions.apply_home_action(state, action, bundle.rules, state.rng_seed)
        results.append(result)

    results.extend(settle_debt(state, policy, bundle))
    drawn = apply_credit_policy(state, policy, bundle)
    if drawn is not None:
        results.append(drawn)
    results.extend(ensure_liquidity(state, bundle, cash_buffer(state, policy)))
    results.extend(apply_invest_policy(state, policy, bundle))

    deal = choose_deal(policy, state, bundle.deals)
    if deal is not None:
        results.append(deals.participate(state, deal))

    rejected = sum(1 for r in results if not r.ok)
    if rejected:
        logger.debug("Policy %s: %d of %d actions rejected", policy.name, rejected, len(results))
    return results
