"""Tests for the balance report writers."""

from __future__ import annotations

import json

import pandas as pd
import pytest
from jsonschema.exceptions import ValidationError

from balance.playthrough import PlaythroughOutcome
from balance.report import (
    REPORT_JSON,
    REPORT_MD,
    RUNS_CSV,
    build_markdown,
    build_report,
    runs_frame,
    validate_report,
    write_report,
)

TIMESTAMP = "2026-01-01T00:00:00+00:00"


def _outcome(policy, net_worth, bankrupt_month=None):
    return PlaythroughOutcome(
        policy=policy,
        profession_id="retiree",
        seed=7,
        months_played=bankrupt_month or 60,
        positive_month=3,
        stable_month=None,
        bankrupt_month=bankrupt_month,
        win_month=None,
        sustained=True,
        net_worth=net_worth,
        cash=500,
        events_total=4,
        events_positive=1,
        events_negative=3,
    )


@pytest.fixture()
def results():
    return {
        "conservative": [_outcome("conservative", 8000), _outcome("conservative", 9000)],
        "aggressive": [_outcome("aggressive", 20000), _outcome("aggressive", -1500, bankrupt_month=12)],
    }


@pytest.fixture()
def report(results):
    return build_report(results, seed=12345, runs=2, months=60, timestamp=TIMESTAMP)


class TestBuildReport:

    def test_meta_and_order(self, report):
        assert report["meta"] == {"seed": 12345, "runs": 2, "months": 60, "timestamp": TIMESTAMP}
        assert [block["policy"] for block in report["summary"]] == ["conservative", "aggressive"]

    def test_default_timestamp(self, results):
        assert build_report(results, 1, 2, 60)["meta"]["timestamp"]

    def test_valid_against_schema(self, report):
        validate_report(report)

    def test_invalid_report_raises(self, report, caplog):
        report["meta"]["runs"] = 0
        report["summary"][0]["unexpected"] = True
        with pytest.raises(ValidationError, match="2 errors"):
            validate_report(report)
        assert "Report schema violation" in caplog.text


class TestMarkdown:

    def test_sections(self, report):
        text = build_markdown(report)
        assert text.startswith("# Balance Simulation Report\n")
        assert "Seed: 12345" in text
        assert "## conservative" in text
        assert "## aggressive" in text
        assert "- Bankruptcy within 50 months: 50.00%" in text
        assert "- Time to stable plus (p50): n/a" in text
        assert "- Time to positive cashflow (p50): 3" in text
        assert "- Events per run avg: 4.00 (pos 1.00, neg 3.00)" in text

    def test_zero_median_renders_as_number(self, results):
        for outcome in results["conservative"]:
            outcome.positive_month = 0
        text = build_markdown(build_report(results, seed=1, runs=2, months=60, timestamp=TIMESTAMP))
        assert "- Time to positive cashflow (p50): 0\n" in text


class TestWriteReport:

    def test_writes_three_files(self, report, results, tmp_path):
        written = write_report(report, results, tmp_path / "out")
        assert [p.name for p in written] == [REPORT_JSON, REPORT_MD, RUNS_CSV]
        assert json.loads((tmp_path / "out" / REPORT_JSON).read_text(encoding="utf-8")) == report
        frame = pd.read_csv(tmp_path / "out" / RUNS_CSV)
        assert len(frame) == 4
        assert list(frame["policy"]) == ["conservative", "conservative", "aggressive", "aggressive"]

    def test_invalid_report_writes_nothing(self, report, results, tmp_path):
        del report["meta"]
        with pytest.raises(ValidationError):
            write_report(report, results, tmp_path / "out")
        assert not (tmp_path / "out").exists()

    def test_runs_frame_columns(self, results):
        frame = runs_frame(results)
        assert {"policy", "profession_id", "seed", "bankrupt_month", "net_worth"} <= set(frame.columns)
