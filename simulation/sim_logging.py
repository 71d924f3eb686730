"""Playthrough output logging: persists the turn stream, final state and summary.

The output directory structure is::

    {output_dir}/{run_name}/
    ├── config.yaml
    ├── turns.jsonl
    ├── final_state.json
    ├── playthrough_log.json
    └── summary.json
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from models.config import PlaythroughConfig
from models.log import PlaythroughLog, TurnLog
from models.state import GameState
from simulation.persistence import save_snapshot

logger = logging.getLogger(__name__)


def run_name_from_config_path(config_path: str | Path) -> str:
    """Derive a run name from the configuration file path (stem without extension)."""
    return Path(config_path).stem


class PlaythroughLogger:
    """Manages on-disk output for one playthrough.

    Call ``init_run`` once at the start, ``write_turn`` after each month,
    and ``finalize`` at the very end.
    """

    def __init__(
        self,
        output_dir: str,
        config: PlaythroughConfig,
        run_name: str,
    ) -> None:
        self._run_dir = _unique_run_dir(Path(output_dir), run_name)
        self._turns_path = self._run_dir / "turns.jsonl"
        self._log = PlaythroughLog(run_name=self._run_dir.name, config=config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_run(self, config_yaml_path: str | None = None) -> None:
        """Create the run directory and optionally copy the config."""
        self._run_dir.mkdir(parents=True, exist_ok=True)
        self._turns_path.write_text("", encoding="utf-8")
        if config_yaml_path is not None:
            dest = self._run_dir / "config.yaml"
            shutil.copy2(config_yaml_path, dest)
            logger.info("Copied config to %s", dest)

    def write_turn(self, turn_log: TurnLog) -> None:
        """Append one month to ``turns.jsonl`` and the in-memory log."""
        with self._turns_path.open("a", encoding="utf-8") as fh:
            fh.write(turn_log.model_dump_json() + "\n")
        self._log.turn_logs.append(turn_log)
        logger.debug("Wrote turn %d to %s", turn_log.month, self._turns_path)

    def record_error(self, message: str) -> None:
        self._log.errors.append(message)
        logger.error("Playthrough error: %s", message)

    def finalize(self, state: GameState, summary: dict[str, Any] | None = None) -> None:
        """Write the final state snapshot, the run-level log and optional summary."""
        self._log.profession_id = state.profession_id
        if state.win_condition is not None:
            self._log.outcome = f"win:{state.win_condition.id}"
        elif state.lose_condition is not None:
            self._log.outcome = f"lose:{state.lose_condition.id}"
        save_snapshot(state, self._run_dir / "final_state.json")
        _write_json(self._run_dir / "playthrough_log.json", self._log.model_dump())
        if summary is not None:
            _write_json(self._run_dir / "summary.json", summary)
        logger.info("Playthrough log finalized at %s", self._run_dir)

    @property
    def playthrough_log(self) -> PlaythroughLog:
        return self._log

    @property
    def run_dir(self) -> Path:
        return self._run_dir


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _unique_run_dir(output_dir: Path, run_name: str) -> Path:
    """Return a run directory that does not already exist.

    If ``output_dir/run_name`` is free, use it directly.  Otherwise append an
    incrementing suffix: ``run_name_001``, ``run_name_002``, etc.
    """
    candidate = output_dir / run_name
    if not candidate.exists():
        return candidate

    idx = 1
    while True:
        candidate = output_dir / f"{run_name}_{idx:03d}"
        if not candidate.exists():
            return candidate
        idx += 1


def _write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
