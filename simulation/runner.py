"""Headless playthrough runner: one seeded game driven by a policy.

Lifecycle:
    1. Load config and the content bundle.
    2. Select the profession (or a seeded random one).
    3. For each month:
        - Let the policy act on the current state.
        - Advance the month.
        - Log the turn.
    4. Finalise and write summary.
"""

from __future__ import annotations

import logging
from typing import Any

from balance.policies import play_policy_turn
from models.config import PlaythroughConfig
from models.log import TurnLog
from simulation.content_loader import load_content_bundle
from simulation.finance import holdings_value
from simulation.game import Game
from simulation.sim_logging import PlaythroughLogger, run_name_from_config_path

logger = logging.getLogger(__name__)


class PlaythroughRunner:
    """Drives one game month by month and records every turn."""

    def __init__(
        self,
        config: PlaythroughConfig,
        config_yaml_path: str,
        output_dir: str = "results",
    ) -> None:
        self._config = config
        self._config_yaml_path = config_yaml_path
        self._run_name = run_name_from_config_path(config_yaml_path)
        self._play_logger = PlaythroughLogger(output_dir, config, self._run_name)
        self._game: Game | None = None

    def run(self) -> Game:
        """Execute the playthrough; returns the finished game."""
        self._play_logger.init_run(self._config_yaml_path)
        bundle = load_content_bundle(self._config.content_dir)
        game = Game(bundle, seed=self._config.seed)
        self._game = game

        if self._config.profession_id:
            selected = game.select_profession(
                self._config.profession_id, self._config.difficulty, self._config.goal_id
            )
        else:
            selected = game.select_random_profession(self._config.difficulty, self._config.goal_id)
        if not selected.ok:
            self._play_logger.record_error(selected.message)
            raise ValueError(selected.message)

        logger.info(
            "Starting playthrough '%s': %s, policy '%s', %d month(s).",
            self._run_name,
            game.state.profession_id,
            self._config.policy.name,
            self._config.months,
        )

        for _ in range(self._config.months):
            cash_before = game.state.cash
            actions = play_policy_turn(game.state, bundle, self._config.policy)
            turn = game.advance_month()
            state = game.state
            self._play_logger.write_turn(
                TurnLog(
                    month=turn.month,
                    actions=actions,
                    turn=turn,
                    cash_before=cash_before,
                    cash_after=state.cash,
                    debt_after=state.debt,
                    net_worth_after=turn.metrics.net_worth,
                )
            )
            if self._config.stop_on_outcome and state.game_over:
                logger.info("Playthrough ended at month %d.", state.month)
                break

        self._play_logger.finalize(game.state, self._build_summary())
        logger.info("Playthrough '%s' complete. Output: %s", self._run_name, self._play_logger.run_dir)
        return game

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _build_summary(self) -> dict[str, Any]:
        """Build a lightweight summary dict for the run."""
        game = self._game
        state = game.state
        turns = self._play_logger.playthrough_log.turn_logs
        return {
            "run_name": self._run_name,
            "profession_id": state.profession_id,
            "policy": self._config.policy.name,
            "months_played": state.month,
            "final_cash": state.cash,
            "final_debt": state.debt,
            "holdings_value": holdings_value(state.investments, state.price_state),
            "net_worth": turns[-1].net_worth_after if turns else None,
            "win": state.win_condition.id if state.win_condition else None,
            "lose": state.lose_condition.id if state.lose_condition else None,
            "accepted_actions": sum(1 for t in turns for a in t.actions if a.ok),
            "rejected_actions": sum(1 for t in turns for a in t.actions if not a.ok),
            "portfolio": game.portfolio(),
        }
