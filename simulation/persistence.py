"""Game snapshots: ``GameState`` to JSON and back.

Persistence sits outside the engine; the game never waits on it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from models.state import GameState

logger = logging.getLogger(__name__)


def dump_snapshot(state: GameState) -> str:
    return state.model_dump_json(indent=2)


def parse_snapshot(text: str) -> GameState:
    return GameState.model_validate_json(text)


def save_snapshot(state: GameState, path: str | Path) -> Path:
    """Write *state* to *path*, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_snapshot(state), encoding="utf-8")
    logger.debug("Saved snapshot for month %d to %s", state.month, path)
    return path


def load_snapshot(path: str | Path) -> GameState:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot '{path}' not found.")
    return parse_snapshot(path.read_text(encoding="utf-8"))
