#!/usr/bin/env python3
"""CI gate for content balance.

Usage::

    python run_balance_check.py
    RUNS=2000 SEED=7 python run_balance_check.py --workers 4

Plays ``RUNS`` games of up to ``TURNS`` months for every policy in the
balance config and checks the acceptance thresholds.  On failure the metrics
are printed as JSON and the process exits with status 1.

Environment variables (also read from ``.env``): ``RUNS``, ``TURNS``,
``SHORT_TURNS``, ``SEED``.  Command-line flags take precedence.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from balance.harness import run_policies
from balance.stats import check_criteria
from models.config import BalanceConfig
from simulation.content_loader import load_content_bundle

DEFAULT_CONFIG = "config/balance.yaml"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the balance acceptance check over all policies.",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        type=str,
        help=f"Path to the balance YAML configuration (default: {DEFAULT_CONFIG}).",
    )
    parser.add_argument("--content-dir", default=None, type=str, help="Override the content directory.")
    parser.add_argument("--runs", default=None, type=int, help="Games per policy (env RUNS).")
    parser.add_argument("--turns", default=None, type=int, help="Months per game (env TURNS).")
    parser.add_argument("--short-turns", default=None, type=int, help="Short horizon (env SHORT_TURNS).")
    parser.add_argument("--seed", default=None, type=int, help="Base seed (env SEED).")
    parser.add_argument("--workers", default=1, type=int, help="Worker processes (default: 1).")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args()


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _main() -> int:
    load_dotenv()
    args = _parse_args()
    _setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = BalanceConfig.from_yaml(args.config) if os.path.exists(args.config) else BalanceConfig()
    check = config.check
    runs = args.runs or _env_int("RUNS", check.runs)
    turns = args.turns or _env_int("TURNS", check.turns)
    short_turns = args.short_turns or _env_int("SHORT_TURNS", check.short_turns)
    seed = args.seed if args.seed is not None else _env_int("SEED", check.seed)

    bundle = load_content_bundle(args.content_dir or config.content_dir)
    logger.info(
        "Balance check: %d runs x %d turns per policy, short horizon %d, seed %d.",
        runs,
        turns,
        short_turns,
        seed,
    )
    results = run_policies(
        bundle, config.policies, runs, turns, seed, stop_on_win=True, workers=args.workers
    )
    acceptable, metrics = check_criteria(results, config.thresholds, short_turns)
    if not acceptable:
        print(json.dumps(metrics, indent=2))
        logger.error("Balance check failed.")
        return 1
    logger.info("Balance check passed.")
    return 0


if __name__ == "__main__":
    sys.exit(_main())
