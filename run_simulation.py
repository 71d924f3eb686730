#!/usr/bin/env python3
"""CLI entrypoint for a headless playthrough.

Usage::

    python run_simulation.py --config config/example_playthrough.yaml
    python run_simulation.py --config config/example_playthrough.yaml --output-dir results/

The playthrough loads a YAML configuration file and the JSON content bundle,
then plays one seeded game under the configured policy.  The run name is
derived automatically from the config file name (e.g.
``example_playthrough.yaml`` -> ``example_playthrough``).
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from models.config import PlaythroughConfig
from simulation.runner import PlaythroughRunner


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Play one seeded game under a scripted policy.",
    )
    parser.add_argument(
        "--config",
        required=True,
        type=str,
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        type=str,
        help="Directory where playthrough results will be written (default: results/).",
    )
    parser.add_argument(
        "--seed",
        default=None,
        type=int,
        help="Override the seed from the config file.",
    )
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
    logger.info("Loading config from '%s'...", args.config)

    config = PlaythroughConfig.from_yaml(args.config)
    if args.seed is not None:
        config = config.model_copy(update={"seed": args.seed})
    logger.info("Config loaded: policy='%s', seed=%d", config.policy.name, config.seed)

    runner = PlaythroughRunner(
        config,
        config_yaml_path=args.config,
        output_dir=args.output_dir,
    )
    runner.run()


if __name__ == "__main__":
    _main()
