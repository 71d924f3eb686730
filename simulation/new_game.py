"""Building the opening ``GameState`` for a chosen profession."""

from __future__ import annotations

import logging

from models.content import ContentBundle, Profession
from models.state import CreditDraw, GameState, HistoryPoint, Holding, MetricHistory, SalaryProgressionState
from simulation.credit import STARTING_DEBT_LABEL
from simulation.deals import init_deal_windows
from simulation.finance import credit_limit, holdings_value, living_cost, round_money
from simulation.home_actions import roll_home_action_offers
from simulation.market import seed_price_state
from simulation.rng import ensure_seed

logger = logging.getLogger(__name__)


def new_game_state(
    bundle: ContentBundle,
    profession: Profession,
    seed: int | None = None,
    difficulty: str | None = None,
    goal_id: str | None = None,
) -> GameState:
    """Fresh state at month 0.

    The seed is consumed by the opening home-action offer and then by the
    deal-window durations, in that order.
    """
    rules = bundle.rules
    cursor = ensure_seed(seed)
    offers, cursor = roll_home_action_offers(bundle.home_actions, cursor)
    deal_windows, cursor = init_deal_windows(bundle.deals, cursor)

    price_state = seed_price_state(bundle.instruments)
    investments = {}
    for instrument_id, units in profession.starting_portfolio.items():
        if instrument_id not in price_state or units <= 0:
            continue
        investments[instrument_id] = Holding(units=units, cost_basis=price_state[instrument_id].price)

    cash = round_money(profession.starting_money)
    debt = round_money(profession.starting_debt)
    net_worth = cash + holdings_value(investments, price_state) - debt
    limit = credit_limit(profession, net_worth, profession.salary_monthly, rules)

    progression = None
    if profession.salary_progression is not None:
        rule = profession.salary_progression
        progression = SalaryProgressionState(
            percent=rule.percent,
            step_months=max(1, rule.step_months),
            cap=rule.cap,
            months_until_step=max(1, rule.step_months),
            current_base=round_money(profession.salary_monthly),
        )

    state = GameState(
        profession_id=profession.id,
        difficulty=difficulty or rules.default_difficulty,
        selected_goal_id=goal_id or (rules.win[0].id if rules.win else None),
        cash=cash,
        debt=debt,
        recurring_expenses=max(
            0, round_money(profession.monthly_expenses + living_cost(profession.id, rules))
        ),
        investments=investments,
        price_state=price_state,
        deal_windows=deal_windows,
        credit_limit=limit,
        available_credit=limit - debt,
        salary_progression=progression,
        available_actions=offers,
        history=MetricHistory(net_worth=[HistoryPoint(month=0, value=net_worth)]),
        rng_seed=cursor,
    )
    if debt > 0:
        state.credit_draws = [
            CreditDraw(
                id=state.next_id("draw"),
                balance=debt,
                created_month=0,
                label=STARTING_DEBT_LABEL,
            )
        ]
    logger.debug(
        "New game: %s, cash %d, debt %d, recurring %d",
        profession.id,
        state.cash,
        state.debt,
        state.recurring_expenses,
    )
    return state
