"""In-process game API: one ``Game`` per playthrough.

Every player action runs against a copy of the current state and is
committed only when accepted, so a rejected action never leaves a partial
change behind.  ``advance_month`` commits the copy produced by the monthly
orchestrator.
"""

from __future__ import annotations

import logging
from typing import Callable

from models.content import ContentBundle
from models.state import GameState
from models.turn import ActionResult, TurnResult
from simulation import credit, deals, home_actions, trading
from simulation.finance import portfolio_summary, round_money
from simulation.market import seed_price_state
from simulation.new_game import new_game_state
from simulation.orchestrator import advance_month
from simulation.rng import ensure_seed, pick_index

logger = logging.getLogger(__name__)

DEFAULT_DRAW_AMOUNT = 1200
DEFAULT_SERVICE_AMOUNT = 600


class Game:
    """Stateful facade over the simulation engine for one player.

    Instantiate with a content bundle, then call :meth:`select_profession`
    (or :meth:`select_random_profession`) before advancing months.
    """

    def __init__(self, bundle: ContentBundle, seed: int | None = None) -> None:
        self._bundle = bundle
        self._state = GameState(rng_seed=ensure_seed(seed))
        self.bootstrap(bundle)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def bundle(self) -> ContentBundle:
        return self._bundle

    def bootstrap(self, bundle: ContentBundle) -> None:
        """Attach *bundle*; fills prices, offers, goal and difficulty when not set yet."""
        self._bundle = bundle
        state = self._state
        if not state.price_state:
            state.price_state = seed_price_state(bundle.instruments)
        if not state.available_actions:
            state.available_actions = [a.id for a in bundle.home_actions.actions[: bundle.home_actions.count]]
        if state.selected_goal_id is None and bundle.rules.win:
            state.selected_goal_id = bundle.rules.win[0].id
        if not state.difficulty:
            state.difficulty = bundle.rules.default_difficulty

    def select_profession(
        self,
        profession_id: str,
        difficulty: str | None = None,
        goal_id: str | None = None,
    ) -> ActionResult:
        profession = self._bundle.profession(profession_id)
        if profession is None:
            return ActionResult.rejected(f"Unknown profession {profession_id!r}.")
        self._state = new_game_state(
            self._bundle,
            profession,
            seed=self._state.rng_seed,
            difficulty=difficulty or self._state.difficulty,
            goal_id=goal_id or self._state.selected_goal_id,
        )
        logger.info("Profession selected: %s (%s)", profession.id, self._state.difficulty)
        return ActionResult.accepted(f"Playing as {profession.title or profession.id}.")

    def select_random_profession(
        self, difficulty: str | None = None, goal_id: str | None = None
    ) -> ActionResult:
        professions = self._bundle.professions
        if not professions:
            return ActionResult.rejected("No professions configured.")
        index, seed = pick_index(self._state.rng_seed, len(professions))
        self._state.rng_seed = seed
        return self.select_profession(professions[index].id, difficulty, goal_id)

    def reset_game(self) -> ActionResult:
        """Restart with the current profession (or the first one), keeping goal and difficulty."""
        profession_id = self._state.profession_id
        if profession_id is None and self._bundle.professions:
            profession_id = self._bundle.professions[0].id
        if profession_id is None:
            return ActionResult.rejected("No professions configured.")
        return self.select_profession(profession_id)

    # ------------------------------------------------------------------
    # Monthly turn
    # ------------------------------------------------------------------

    def advance_month(self) -> TurnResult:
        """Run one monthly turn and commit it.

        Raises ``RuntimeError`` before a profession has been selected.
        """
        self._state, result = advance_month(self._state, self._bundle)
        return result

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def _transact(self, action: Callable[[GameState], ActionResult]) -> ActionResult:
        if self._state.profession_id is None:
            return ActionResult.rejected("Select a profession first.")
        draft = self._state.model_copy(deep=True)
        result = action(draft)
        if result.ok:
            self._state = draft
        return result

    def buy_instrument(self, instrument_id: str, amount: float) -> ActionResult:
        instrument = self._bundle.instrument_map.get(instrument_id)
        return self._transact(lambda s: trading.buy(s, instrument, amount, self._bundle.rules))

    def sell_instrument(self, instrument_id: str, amount: float) -> ActionResult:
        instrument = self._bundle.instrument_map.get(instrument_id)
        return self._transact(lambda s: trading.sell(s, instrument, amount, self._bundle.rules))

    def apply_home_action(self, action_id: str) -> ActionResult:
        action = self._bundle.home_action(action_id)

        def run(draft: GameState) -> ActionResult:
            result, draft.rng_seed = home_actions.apply_home_action(
                draft, action, self._bundle.rules, draft.rng_seed
            )
            return result

        return self._transact(run)

    def participate_in_deal(self, deal_id: str) -> ActionResult:
        deal = self._bundle.deal(deal_id)
        if deal is None:
            return ActionResult.rejected(f"Unknown deal {deal_id!r}.")
        return self._transact(lambda s: deals.participate(s, deal))

    def draw_credit(self, amount: float = DEFAULT_DRAW_AMOUNT) -> ActionResult:
        rules = self._bundle.rules

        def run(draft: GameState) -> ActionResult:
            drawn = credit.draw_within_limit(draft, amount, rules)
            if drawn <= 0:
                return ActionResult.rejected("No credit available.")
            draft.cash = round_money(draft.cash + drawn)
            draft.credit_bucket = round_money(draft.credit_bucket + drawn)
            draft.available_credit = max(0.0, draft.credit_limit - draft.debt)
            draft.push_log(f"Drew ${drawn} of credit", "credit", drawn, rules.recent_log_size)
            return ActionResult.accepted(f"Drew ${drawn} of credit.")

        return self._transact(run)

    def service_debt(
        self, amount: float = DEFAULT_SERVICE_AMOUNT, draw_id: str | None = None
    ) -> ActionResult:
        """Repay up to *amount* (all draws in order, or only *draw_id*) plus the repayment fee."""
        rules = self._bundle.rules

        def run(draft: GameState) -> ActionResult:
            paid, fee = credit.service_debt(draft, amount, rules, draw_id)
            if paid <= 0:
                return ActionResult.rejected("Nothing to repay.")
            draft.push_log(f"Repaid ${paid} (fee ${fee})", "credit", -(paid + fee), rules.recent_log_size)
            return ActionResult.accepted(f"Repaid ${paid} with a ${fee} fee.")

        return self._transact(run)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def portfolio(self) -> list[dict]:
        return portfolio_summary(self._state.investments, self._state.price_state, self._bundle.instruments)
