#!/usr/bin/env python3
"""Statistical balance report per policy.

Usage::

    python run_balance_report.py
    SIM_RUNS=1000 python run_balance_report.py --output-dir reports/

Writes ``balance-sim-report.json`` (validated against
``contracts/schemas/balance_report.schema.json``), ``balance-sim-report.md``
and ``balance-sim-runs.csv``.

Environment variables (also read from ``.env``): ``SIM_RUNS``,
``SIM_MONTHS``, ``SIM_SEED``.  Command-line flags take precedence.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from balance.harness import run_policies
from balance.report import build_report, write_report
from models.config import BalanceConfig
from simulation.content_loader import load_content_bundle

DEFAULT_CONFIG = "config/balance.yaml"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write a per-policy balance simulation report.",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        type=str,
        help=f"Path to the balance YAML configuration (default: {DEFAULT_CONFIG}).",
    )
    parser.add_argument("--content-dir", default=None, type=str, help="Override the content directory.")
    parser.add_argument("--output-dir", default=None, type=str, help="Report directory (default from config).")
    parser.add_argument("--runs", default=None, type=int, help="Games per policy (env SIM_RUNS).")
    parser.add_argument("--months", default=None, type=int, help="Months per game (env SIM_MONTHS).")
    parser.add_argument("--seed", default=None, type=int, help="Base seed (env SIM_SEED).")
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


def _main() -> None:
    load_dotenv()
    args = _parse_args()
    _setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = BalanceConfig.from_yaml(args.config) if os.path.exists(args.config) else BalanceConfig()
    report_config = config.report
    runs = args.runs or _env_int("SIM_RUNS", report_config.runs)
    months = args.months or _env_int("SIM_MONTHS", report_config.months)
    seed = args.seed if args.seed is not None else _env_int("SIM_SEED", report_config.seed)

    bundle = load_content_bundle(args.content_dir or config.content_dir)
    logger.info("Balance report: %d runs x %d months per policy, seed %d.", runs, months, seed)
    results = run_policies(bundle, config.policies, runs, months, seed, workers=args.workers)
    report = build_report(results, seed, runs, months)
    write_report(report, results, args.output_dir or report_config.output_dir)


if __name__ == "__main__":
    _main()
