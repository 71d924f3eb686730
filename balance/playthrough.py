"""One seeded game played to the end by a policy."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable

from balance.policies import play_policy_turn
from models.config import PolicyConfig
from models.content import ContentBundle, Profession
from models.turn import ActionResult, TurnResult
from simulation.finance import holdings_value
from simulation.new_game import new_game_state
from simulation.orchestrator import apply_month
from simulation.rng import seed_from_string

SUSTAINED_STREAK = 5
STABLE_STREAK = 6

TurnHook = Callable[[int, list[ActionResult], TurnResult], None]


@dataclass
class PlaythroughOutcome:
    """Milestones of one game; months are 1-based and ``None`` when never reached."""

    policy: str
    profession_id: str
    seed: int
    months_played: int
    positive_month: int | None
    stable_month: int | None
    bankrupt_month: int | None
    win_month: int | None
    sustained: bool
    net_worth: float
    cash: int
    events_total: int = 0
    events_positive: int = 0
    events_negative: int = 0

    @property
    def win(self) -> bool:
        return self.win_month is not None

    @property
    def lose(self) -> bool:
        return self.bankrupt_month is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def run_seed(base_seed: int, policy_name: str, index: int, profession_id: str) -> int:
    return seed_from_string(f"{base_seed}-{policy_name}-{index}-{profession_id}")


def run_playthrough(
    bundle: ContentBundle,
    profession: Profession,
    policy: PolicyConfig,
    months: int,
    seed: int,
    stop_on_win: bool = False,
    on_turn: TurnHook | None = None,
) -> PlaythroughOutcome:
    """Play up to *months* turns; always stops at the first lose condition.

    *on_turn* receives ``(month, actions, turn)`` after every month.
    """
    state = new_game_state(bundle, profession, seed=seed)
    positive_month = stable_month = bankrupt_month = win_month = None
    positive_streak = 0
    sustained = False
    events_total = events_positive = events_negative = 0
    played = 0

    for month in range(1, months + 1):
        actions = play_policy_turn(state, bundle, policy)
        turn = apply_month(state, bundle)
        played = month
        if on_turn is not None:
            on_turn(month, actions, turn)

        if turn.event is not None and not turn.event.prevented:
            events_total += 1
            if turn.event.type == "positive":
                events_positive += 1
            elif turn.event.type == "negative":
                events_negative += 1

        if turn.metrics.monthly_cash_flow > 0:
            positive_streak += 1
            if positive_month is None:
                positive_month = month
            if positive_streak >= SUSTAINED_STREAK:
                sustained = True
            if positive_streak >= STABLE_STREAK and stable_month is None:
                stable_month = month
        else:
            positive_streak = 0

        if bankrupt_month is None and state.lose_condition is not None:
            bankrupt_month = month
        if win_month is None and state.win_condition is not None:
            win_month = month
        if bankrupt_month is not None or (stop_on_win and win_month is not None):
            break

    return PlaythroughOutcome(
        policy=policy.name,
        profession_id=profession.id,
        seed=seed,
        months_played=played,
        positive_month=positive_month,
        stable_month=stable_month,
        bankrupt_month=bankrupt_month,
        win_month=win_month,
        sustained=sustained,
        net_worth=state.cash + holdings_value(state.investments, state.price_state) - state.debt,
        cash=state.cash,
        events_total=events_total,
        events_positive=events_positive,
        events_negative=events_negative,
    )
