"""Aggregate statistics over playthrough outcomes and the acceptance check."""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable

import numpy as np

from balance.playthrough import PlaythroughOutcome
from models.config import AcceptanceThresholds

BANKRUPTCY_HORIZON = 50

REQUIRED_POLICIES = ("conservative", "balanced", "aggressive")


def to_stats(values: Iterable[float]) -> dict[str, float]:
    """count / mean / min / max and lower-index p10, p50, p90; all zeros when empty."""
    data = np.asarray(list(values), dtype=float)
    if data.size == 0:
        return {"count": 0, "mean": 0.0, "min": 0.0, "max": 0.0, "p10": 0.0, "p50": 0.0, "p90": 0.0}
    p10, p50, p90 = np.percentile(data, [10, 50, 90], method="lower")
    return {
        "count": int(data.size),
        "mean": float(data.mean()),
        "min": float(data.min()),
        "max": float(data.max()),
        "p10": float(p10),
        "p50": float(p50),
        "p90": float(p90),
    }


def median_half_up(values: Iterable[float]) -> float:
    """Median; for an even count the mean of the two middle values, rounded half-up."""
    ordered = sorted(values)
    if not ordered:
        return 0
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return math.floor((ordered[mid - 1] + ordered[mid]) / 2 + 0.5)
    return ordered[mid]


def rate(outcomes: list[PlaythroughOutcome], predicate: Callable[[PlaythroughOutcome], bool]) -> float:
    if not outcomes:
        return 0.0
    return sum(1 for o in outcomes if predicate(o)) / len(outcomes)


def check_criteria(
    results: dict[str, list[PlaythroughOutcome]],
    thresholds: AcceptanceThresholds,
    short_turns: int,
) -> tuple[bool, dict[str, float]]:
    """Evaluate the balance gate.

    Returns ``(acceptable, metrics)``.  Raises ``KeyError`` when one of the
    conservative / balanced / aggressive result sets is missing.
    """
    missing = [name for name in REQUIRED_POLICIES if name not in results]
    if missing:
        raise KeyError(f"Balance check needs results for policies {missing}.")
    conservative = results["conservative"]
    balanced = results["balanced"]
    aggressive = results["aggressive"]

    speedrun_win = rate(
        conservative + balanced + aggressive,
        lambda o: o.win_month is not None and o.win_month <= short_turns,
    )
    unfair_lose = rate(balanced, lambda o: o.bankrupt_month is not None and o.bankrupt_month <= short_turns)
    balanced_bankruptcy = rate(balanced, lambda o: o.lose)
    aggressive_bankruptcy = rate(aggressive, lambda o: o.lose)
    conservative_bankruptcy = rate(conservative, lambda o: o.lose)
    balanced_sustain = rate(balanced, lambda o: o.sustained)
    median_balanced = median_half_up(o.net_worth for o in balanced)
    median_aggressive = median_half_up(o.net_worth for o in aggressive)
    median_conservative = median_half_up(o.net_worth for o in conservative)
    strategy_gap = min(
        abs(median_aggressive - median_balanced),
        abs(median_balanced - median_conservative),
    )

    t = thresholds
    acceptable = (
        speedrun_win < t.max_speedrun_win_rate
        and unfair_lose < t.max_unfair_lose_rate
        and balanced_bankruptcy < t.max_balanced_bankruptcy
        and t.min_balanced_sustain <= balanced_sustain <= t.max_balanced_sustain
        and t.min_aggressive_bankruptcy <= aggressive_bankruptcy <= t.max_aggressive_bankruptcy
        and conservative_bankruptcy < t.max_conservative_bankruptcy
        and median_aggressive > median_balanced > median_conservative
        and strategy_gap > max(t.min_strategy_gap, abs(median_balanced) * t.strategy_gap_ratio)
    )
    metrics = {
        "speedrunWin": speedrun_win,
        "unfairLose": unfair_lose,
        "balancedBankruptcy": balanced_bankruptcy,
        "aggressiveBankruptcy": aggressive_bankruptcy,
        "conservativeBankruptcy": conservative_bankruptcy,
        "balancedSustain": balanced_sustain,
        "medianBalanced": median_balanced,
        "medianAggressive": median_aggressive,
        "medianConservative": median_conservative,
        "strategyGap": strategy_gap,
    }
    return acceptable, metrics


def _months(outcomes: list[PlaythroughOutcome], attr: str) -> list[int]:
    return [getattr(o, attr) for o in outcomes if getattr(o, attr) is not None]


def policy_summary(
    policy_name: str,
    outcomes: list[PlaythroughOutcome],
    months: int,
) -> dict[str, Any]:
    """Per-policy block of the balance report."""
    runs = len(outcomes)
    within = sum(
        1 for o in outcomes if o.bankrupt_month is not None and o.bankrupt_month <= BANKRUPTCY_HORIZON
    )
    return {
        "policy": policy_name,
        "runs": runs,
        "months": months,
        "timeToPositive": to_stats(_months(outcomes, "positive_month")),
        "timeToStablePlus": to_stats(_months(outcomes, "stable_month")),
        "timeToBankrupt": to_stats(_months(outcomes, "bankrupt_month")),
        "timeToWin": to_stats(_months(outcomes, "win_month")),
        "finalNetWorth": to_stats(o.net_worth for o in outcomes),
        "finalCash": to_stats(o.cash for o in outcomes),
        "bankruptcyWithin50": {"rate": within / runs if runs else 0.0},
        "events": {
            "total": to_stats(o.events_total for o in outcomes),
            "positive": to_stats(o.events_positive for o in outcomes),
            "negative": to_stats(o.events_negative for o in outcomes),
        },
    }
