"""Tests for the content, effect and configuration models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from models.config import BalanceConfig, PolicyConfig
from models.content import ContentBundle, GameRules, HomeAction, Instrument, Profession, RandomEvent
from models.effects import (
    CashDelta,
    DebtDelta,
    JoblessMonths,
    SalaryCut,
    cash_delta_of,
    effects_from_bag,
)
from models.state import GameState
from models.turn import ActionResult


class TestCamelCaseContent:

    def test_profession_reads_authored_keys(self):
        profession = Profession.model_validate(
            {
                "id": "nurse",
                "startingMoney": 3000,
                "salaryMonthly": 3400,
                "monthlyExpenseBreakdown": {"rent": 1000, "food": 400},
                "salaryProgression": {"percent": 0.03, "stepMonths": 12},
            }
        )
        assert profession.starting_money == 3000
        assert profession.monthly_expenses == 1400
        assert profession.salary_progression.step_months == 12
        assert profession.salary_progression.cap is None

    def test_snake_case_names_also_accepted(self):
        instrument = Instrument(id="x", initial_price=5, type="bonds")
        assert instrument.initial_price == 5
        assert instrument.trading.min_order == 0.0

    def test_missing_id_is_rejected(self):
        with pytest.raises(ValidationError):
            Instrument.model_validate({"title": "Nameless"})

    def test_rules_defaults(self):
        rules = GameRules()
        assert rules.loans.repayment_fee_pct == 0.08
        assert rules.stop_loss_ratio == 0.5
        assert rules.risk_asset_types == ["stocks", "crypto"]
        assert rules.event_chance(None) == 0.38
        assert rules.event_chance("hard") == 0.45


class TestEffects:

    def test_bag_is_coerced_in_fixed_order(self):
        event = RandomEvent.model_validate(
            {
                "id": "layoff",
                "effect": {"joblessMonths": 2, "cashDelta": -300, "debtDelta": 100, "note": "ignored"},
            }
        )
        assert event.effect == [CashDelta(amount=-300), DebtDelta(amount=100), JoblessMonths(months=2)]

    def test_salary_cut_defaults_amount(self):
        assert effects_from_bag({"salaryCutMonths": 2}) == [{"kind": "salary_cut", "months": 2, "amount": 0.0}]

    def test_non_numeric_values_are_skipped(self):
        assert effects_from_bag({"cashDelta": "lots", "joblessMonths": True}) == []
        assert effects_from_bag(None) == []

    def test_month_counts_round_half_up(self):
        effects = effects_from_bag({"joblessMonths": 2.5, "salaryCutMonths": 0.5})
        assert effects[0] == {"kind": "jobless_months", "months": 3}
        assert effects[1]["months"] == 1

    def test_variant_list_passes_through(self):
        event = RandomEvent.model_validate(
            {"id": "cut", "effect": [{"kind": "salary_cut", "months": 3, "amount": 250}]}
        )
        assert event.effect == [SalaryCut(months=3, amount=250)]

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            RandomEvent.model_validate({"id": "bad", "effect": [{"kind": "teleport"}]})

    def test_cash_delta_of(self):
        assert cash_delta_of([CashDelta(amount=-50), JoblessMonths(months=1), CashDelta(amount=20)]) == -30


class TestHomeActionKind:

    @pytest.mark.parametrize(
        "raw,kind",
        [
            ({"id": "bet", "type": "chance", "effect": "salary_up"}, "chance"),
            ({"id": "debt_payment"}, "debt_payment"),
            ({"id": "pay", "effect": "debt_payment"}, "debt_payment"),
            ({"id": "course", "effect": "salary_up"}, "salary_up"),
            ({"id": "plain"}, "other"),
        ],
    )
    def test_kind(self, raw, kind):
        assert HomeAction.model_validate(raw).kind == kind


class TestBundleAndState:

    def test_bundle_lookups(self):
        bundle = ContentBundle(
            instruments=[Instrument(id="a"), Instrument(id="b")],
            professions=[Profession(id="p")],
        )
        assert list(bundle.instrument_map) == ["a", "b"]
        assert bundle.profession("p").id == "p"
        assert bundle.profession("missing") is None
        assert bundle.home_action("missing") is None
        assert bundle.deal("missing") is None

    def test_recent_log_is_newest_first_and_bounded(self):
        state = GameState()
        for i in range(7):
            state.push_log(f"entry {i}", "event")
        assert [entry.text for entry in state.recent_log] == [f"entry {i}" for i in (6, 5, 4, 3, 2)]
        assert len({entry.id for entry in state.recent_log}) == 5

    def test_game_over(self):
        state = GameState()
        assert not state.game_over
        state.lose_condition = GameRules.model_validate({"lose": [{"id": "broke", "type": "insolvency"}]}).lose[0]
        assert state.game_over

    def test_action_result_helpers(self):
        assert ActionResult.accepted().ok
        rejected = ActionResult.rejected("nope")
        assert not rejected.ok
        assert rejected.message == "nope"


class TestConfig:

    def test_balance_config_from_yaml(self, tmp_path):
        path = tmp_path / "balance.yaml"
        path.write_text(
            "content_dir: content\n"
            "check:\n  runs: 20\n  seed: 7\n"
            "thresholds:\n  max_balanced_bankruptcy: 0.2\n",
            encoding="utf-8",
        )
        config = BalanceConfig.from_yaml(path)
        assert config.content_dir == "content"
        assert (config.check.runs, config.check.turns, config.check.seed) == (20, 50, 7)
        assert config.thresholds.max_balanced_bankruptcy == 0.2
        assert config.thresholds.min_strategy_gap == 1000
        assert [p.name for p in config.policies] == ["conservative", "balanced", "aggressive"]

    def test_policy_lookup(self):
        config = BalanceConfig()
        assert config.policy("aggressive").allow_credit_draw
        with pytest.raises(KeyError, match="Unknown policy"):
            config.policy("reckless")

    def test_policy_bounds(self):
        with pytest.raises(ValidationError):
            PolicyConfig(name="bad", chance_pick_rate=1.5)

    def test_invalid_run_count(self, tmp_path):
        path = tmp_path / "balance.yaml"
        path.write_text("check:\n  runs: 0\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            BalanceConfig.from_yaml(path)

    def test_shipped_balance_config(self):
        config = BalanceConfig.from_yaml(Path(__file__).resolve().parents[2] / "config" / "balance.yaml")
        assert config.check.short_turns == 15
        assert config.report.seed == 12345
        assert config.policies == BalanceConfig().policies
