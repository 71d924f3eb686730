"""Playthrough logging models.

- ``TurnLog``: the action results taken before one month and its turn record.
- ``PlaythroughLog``: run-level log with embedded config for reproducibility.
"""

from __future__ import annotations

from pydantic import BaseModel

from models.config import PlaythroughConfig
from models.turn import ActionResult, TurnResult


class TurnLog(BaseModel):
    """Per-month audit: what the policy did and what the month produced.

    ``cash_before``/``cash_after`` bracket the whole month so per-turn deltas
    can be read without replaying the game.
    """

    month: int
    actions: list[ActionResult] = []
    turn: TurnResult
    cash_before: int
    cash_after: int
    debt_after: int
    net_worth_after: float


class PlaythroughLog(BaseModel):
    """Run-level log.

    ``run_name`` is derived from the configuration file path by the CLI.
    """

    run_name: str
    config: PlaythroughConfig
    profession_id: str | None = None
    turn_logs: list[TurnLog] = []
    outcome: str | None = None
    errors: list[str] = []
