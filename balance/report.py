"""Balance report: JSON (schema-validated), Markdown and a per-run CSV.

The output directory structure is::

    {output_dir}/
    ├── balance-sim-report.json
    ├── balance-sim-report.md
    └── balance-sim-runs.csv
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from balance.playthrough import PlaythroughOutcome
from balance.stats import policy_summary

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "contracts" / "schemas" / "balance_report.schema.json"

REPORT_JSON = "balance-sim-report.json"
REPORT_MD = "balance-sim-report.md"
RUNS_CSV = "balance-sim-runs.csv"


def build_report(
    results: dict[str, list[PlaythroughOutcome]],
    seed: int,
    runs: int,
    months: int,
    timestamp: str | None = None,
) -> dict[str, Any]:
    return {
        "meta": {
            "seed": seed,
            "runs": runs,
            "months": months,
            "timestamp": timestamp or datetime.now(timezone.utc).isoformat(),
        },
        "summary": [policy_summary(name, outcomes, months) for name, outcomes in results.items()],
    }


_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def _p50_or_na(distribution: dict[str, float]) -> str:
    return f"{distribution['p50']:g}" if distribution["count"] else "n/a"


_env.filters["p50_or_na"] = _p50_or_na


def build_markdown(report: dict[str, Any]) -> str:
    return _env.get_template("balance_report.md.jinja").render(
        meta=report["meta"], summary=report["summary"]
    )


def runs_frame(results: dict[str, list[PlaythroughOutcome]]) -> pd.DataFrame:
    """One row per playthrough across all policies."""
    rows = [outcome.to_dict() for outcomes in results.values() for outcome in outcomes]
    return pd.DataFrame(rows)


def load_schema(path: Path = SCHEMA_PATH) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found at {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def validate_report(report: dict[str, Any], schema: dict[str, Any] | None = None) -> None:
    """Raise ``ValidationError`` listing every schema violation in *report*."""
    validator = Draft202012Validator(schema or load_schema())
    errors = sorted(validator.iter_errors(report), key=lambda e: [str(p) for p in e.path])
    if errors:
        for error in errors:
            path = ".".join(str(p) for p in error.path)
            logger.error("Report schema violation at %s: %s", path or "(root)", error.message)
        raise ValidationError(f"Balance report failed schema validation ({len(errors)} errors).")


def write_report(
    report: dict[str, Any],
    results: dict[str, list[PlaythroughOutcome]],
    output_dir: str | Path,
) -> list[Path]:
    """Validate *report*, then write the JSON, Markdown and CSV files."""
    validate_report(report)
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    json_path = directory / REPORT_JSON
    json_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    md_path = directory / REPORT_MD
    md_path.write_text(build_markdown(report), encoding="utf-8")
    csv_path = directory / RUNS_CSV
    runs_frame(results).to_csv(csv_path, index=False)

    written = [json_path, md_path, csv_path]
    for path in written:
        logger.info("Report written: %s", path)
    return written
