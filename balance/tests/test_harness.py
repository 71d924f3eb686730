"""Tests for single playthroughs and the multi-run harness."""

from __future__ import annotations

from pathlib import Path

import pytest

from balance.harness import _chunk, run_policies, run_policy
from balance.playthrough import run_playthrough, run_seed
from balance.stats import check_criteria
from models.config import BalanceConfig
from models.content import ContentBundle
from simulation.content_loader import load_content_bundle

CONTENT_DIR = Path(__file__).resolve().parents[2] / "config" / "content"
CONFIG = BalanceConfig()
SHIPPED_CONFIG = BalanceConfig.from_yaml(Path(__file__).resolve().parents[2] / "config" / "balance.yaml")
REDUCED_RUNS = 160


@pytest.fixture(scope="module")
def bundle():
    return load_content_bundle(CONTENT_DIR)


class TestRunPlaythrough:

    def test_deterministic(self, bundle):
        nurse = bundle.profession("nurse")
        policy = CONFIG.policy("balanced")
        assert run_playthrough(bundle, nurse, policy, 24, 77) == run_playthrough(bundle, nurse, policy, 24, 77)

    def test_milestones_are_within_months_played(self, bundle):
        outcome = run_playthrough(bundle, bundle.profession("artist"), CONFIG.policy("aggressive"), 36, 5)
        assert 1 <= outcome.months_played <= 36
        for month in (outcome.positive_month, outcome.stable_month, outcome.bankrupt_month, outcome.win_month):
            assert month is None or 1 <= month <= outcome.months_played
        if outcome.lose:
            assert outcome.bankrupt_month == outcome.months_played
        assert outcome.events_positive + outcome.events_negative <= outcome.events_total

    def test_turn_hook(self, bundle):
        seen = []
        outcome = run_playthrough(
            bundle,
            bundle.profession("retiree"),
            CONFIG.policy("conservative"),
            6,
            1,
            on_turn=lambda month, actions, turn: seen.append((month, turn.month)),
        )
        assert seen == [(m, m) for m in range(1, outcome.months_played + 1)]

    def test_to_dict(self, bundle):
        outcome = run_playthrough(bundle, bundle.profession("nurse"), CONFIG.policy("balanced"), 2, 4)
        row = outcome.to_dict()
        assert row["policy"] == "balanced"
        assert row["profession_id"] == "nurse"
        assert row["months_played"] == outcome.months_played

    def test_run_seed(self):
        assert run_seed(1337, "balanced", 0, "nurse") == run_seed(1337, "balanced", 0, "nurse")
        assert run_seed(1337, "balanced", 0, "nurse") != run_seed(1337, "aggressive", 0, "nurse")


class TestRunPolicy:

    def test_professions_rotate_by_index(self, bundle):
        outcomes = run_policy(bundle, CONFIG.policy("balanced"), 6, 3, 42)
        professions = [p.id for p in bundle.professions]
        assert [o.profession_id for o in outcomes] == [professions[i % len(professions)] for i in range(6)]
        assert [o.seed for o in outcomes] == [
            run_seed(42, "balanced", i, o.profession_id) for i, o in enumerate(outcomes)
        ]

    def test_worker_count_does_not_change_results(self, bundle):
        policy = CONFIG.policy("aggressive")
        serial = run_policy(bundle, policy, 5, 6, 9)
        parallel = run_policy(bundle, policy, 5, 6, 9, workers=2, chunk_size=2)
        assert serial == parallel

    def test_no_professions(self):
        with pytest.raises(ValueError, match="no professions"):
            run_policy(ContentBundle(), CONFIG.policy("balanced"), 1, 1, 1)

    def test_run_policies_keys(self, bundle):
        results = run_policies(bundle, CONFIG.policies, 2, 2, 3)
        assert list(results) == ["conservative", "balanced", "aggressive"]
        assert all(len(outcomes) == 2 for outcomes in results.values())

    def test_chunk(self):
        assert _chunk(list(range(5)), 2) == [[0, 1], [2, 3], [4]]


class TestShippedContentBalance:
    """The balance check over the shipped content, on fewer runs and with slightly wider bands."""

    @pytest.fixture(scope="class")
    def metrics(self, bundle):
        check = SHIPPED_CONFIG.check
        results = run_policies(
            bundle, SHIPPED_CONFIG.policies, REDUCED_RUNS, check.turns, check.seed, stop_on_win=True
        )
        return check_criteria(results, SHIPPED_CONFIG.thresholds, check.short_turns)[1]

    def test_no_quick_wins_or_losses(self, metrics):
        assert metrics["speedrunWin"] <= 0.01
        assert metrics["unfairLose"] <= 0.02

    def test_bankruptcy_by_policy(self, metrics):
        assert metrics["conservativeBankruptcy"] < 0.05
        assert metrics["balancedBankruptcy"] < 0.1
        assert 0.07 <= metrics["aggressiveBankruptcy"] <= 0.3

    def test_balanced_play_sustains_about_half_the_time(self, metrics):
        assert 0.35 <= metrics["balancedSustain"] <= 0.85

    def test_riskier_play_ends_richer(self, metrics):
        assert metrics["medianAggressive"] > metrics["medianBalanced"] > metrics["medianConservative"]
        assert metrics["strategyGap"] > max(1000, 0.05 * abs(metrics["medianBalanced"]))
