"""Many independent playthroughs per policy, optionally across processes.

Runs share nothing: run ``i`` plays profession ``i % len(professions)`` with
a seed derived from ``(base seed, policy, i, profession)``, so results are
identical whatever the worker count.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor

from balance.playthrough import PlaythroughOutcome, run_playthrough, run_seed
from models.config import PolicyConfig
from models.content import ContentBundle

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 250


def _chunk(indices: list[int], size: int) -> list[list[int]]:
    return [indices[start:start + size] for start in range(0, len(indices), size)]


def _run_batch(
    bundle: ContentBundle,
    policy: PolicyConfig,
    indices: list[int],
    months: int,
    seed: int,
    stop_on_win: bool,
) -> list[PlaythroughOutcome]:
    professions = bundle.professions
    outcomes = []
    for index in indices:
        profession = professions[index % len(professions)]
        outcomes.append(
            run_playthrough(
                bundle,
                profession,
                policy,
                months,
                run_seed(seed, policy.name, index, profession.id),
                stop_on_win=stop_on_win,
            )
        )
    return outcomes


def _run_batch_process(args: tuple) -> list[PlaythroughOutcome]:
    return _run_batch(*args)


def run_policy(
    bundle: ContentBundle,
    policy: PolicyConfig,
    runs: int,
    months: int,
    seed: int,
    stop_on_win: bool = False,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[PlaythroughOutcome]:
    """Play *runs* games under *policy*; outcomes are returned in run order.

    Raises ``ValueError`` when the bundle has no professions.
    """
    if not bundle.professions:
        raise ValueError("Content bundle has no professions to play.")

    start = time.perf_counter()
    indices = list(range(runs))
    if workers <= 1:
        outcomes = _run_batch(bundle, policy, indices, months, seed, stop_on_win)
    else:
        batches = _chunk(indices, max(1, chunk_size))
        outcomes = []
        with ProcessPoolExecutor(max_workers=workers) as pool:
            for batch in pool.map(
                _run_batch_process,
                [(bundle, policy, batch, months, seed, stop_on_win) for batch in batches],
            ):
                outcomes.extend(batch)

    elapsed = time.perf_counter() - start
    logger.info(
        "Policy '%s': %d runs x %d months in %.1fs (%d lost, %d won)",
        policy.name,
        runs,
        months,
        elapsed,
        sum(1 for o in outcomes if o.lose),
        sum(1 for o in outcomes if o.win),
    )
    return outcomes


def run_policies(
    bundle: ContentBundle,
    policies: list[PolicyConfig],
    runs: int,
    months: int,
    seed: int,
    stop_on_win: bool = False,
    workers: int = 1,
) -> dict[str, list[PlaythroughOutcome]]:
    return {
        policy.name: run_policy(bundle, policy, runs, months, seed, stop_on_win, workers)
        for policy in policies
    }
