"""Loading the JSON content bundle.

The content directory holds one JSON object per file::

    {content_dir}/
    ├── game_rules.json       GameRules
    ├── home_actions.json     HomeActionCatalog
    ├── instruments.json      {"instruments": [...]}
    ├── markets.json          MarketConfig
    ├── professions.json      {"professions": [...]}
    ├── random_events.json    {"events": [...]}
    └── deals.json            {"deals": [...]}            (optional)

Keys are camelCase as authored; every record is validated once here and
defaults are filled in, so the engine reads plain attributes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from models.content import (
    ContentBundle,
    DealTemplate,
    GameRules,
    HomeActionCatalog,
    Instrument,
    MarketConfig,
    Profession,
    RandomEvent,
)

logger = logging.getLogger(__name__)

REQUIRED_FILES = (
    "game_rules.json",
    "home_actions.json",
    "instruments.json",
    "markets.json",
    "professions.json",
    "random_events.json",
)
OPTIONAL_FILES = ("deals.json",)


def load_content_bundle(content_dir: str | Path) -> ContentBundle:
    """Read and validate every content file under *content_dir*.

    Raises ``FileNotFoundError`` when the directory or a required file is
    missing, ``ValueError`` when a file is not a JSON object, and
    ``pydantic.ValidationError`` for malformed records.
    """
    directory = Path(content_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Content directory '{content_dir}' does not exist.")

    raw = {name: _read_object(directory / name) for name in REQUIRED_FILES}
    deals_path = directory / OPTIONAL_FILES[0]
    raw_deals = _read_object(deals_path) if deals_path.exists() else {}

    bundle = ContentBundle(
        rules=GameRules.model_validate(raw["game_rules.json"]),
        home_actions=HomeActionCatalog.model_validate(raw["home_actions.json"]),
        instruments=[Instrument.model_validate(i) for i in _list(raw["instruments.json"], "instruments")],
        markets=MarketConfig.model_validate(raw["markets.json"]),
        professions=[Profession.model_validate(p) for p in _list(raw["professions.json"], "professions")],
        random_events=[RandomEvent.model_validate(e) for e in _list(raw["random_events.json"], "events")],
        deals=[DealTemplate.model_validate(d) for d in _list(raw_deals, "deals")],
    )
    logger.info(
        "Loaded content from '%s': %d professions, %d instruments, %d events, %d actions, %d deals.",
        directory,
        len(bundle.professions),
        len(bundle.instruments),
        len(bundle.random_events),
        len(bundle.home_actions.actions),
        len(bundle.deals),
    )
    return bundle


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _read_object(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Content file '{path}' not found.")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in '{path}', got {type(data).__name__}.")
    return data


def _list(data: dict[str, Any], key: str) -> list[Any]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise ValueError(f"Expected '{key}' to be a list, got {type(items).__name__}.")
    return items
