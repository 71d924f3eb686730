"""Tests for valuation, expenses, credit limit and goal evaluation."""

from __future__ import annotations

import pytest

from conftest import make_rules
from models.content import GoalRule
from models.state import GoalTrackers, Holding, PriceState
from models.turn import GoalMetrics
from simulation.finance import (
    UNKNOWN_TYPE_MULTIPLIER,
    credit_limit,
    evaluate_goals,
    holdings_value,
    living_cost,
    lose_rule_met,
    maintenance_expense,
    passive_income,
    portfolio_summary,
    progressive_expense,
    round_money,
    win_rule_met,
)


def _metrics(**overrides) -> GoalMetrics:
    values = {
        "cash": 1000,
        "net_worth": 5000,
        "passive_income": 0,
        "recurring_expenses": 2000,
        "monthly_cash_flow": 100,
        "debt_delta": 0,
        "debt": 1000,
        "available_credit": 3000,
    }
    values.update(overrides)
    return GoalMetrics(**values)


class TestRounding:

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.49, 1), (2.5, 3), (-0.5, 0), (-1.6, -2), (None, 0)],
    )
    def test_round_half_up(self, value, expected):
        assert round_money(value) == expected


class TestValuation:

    def test_holdings_value_ignores_unpriced(self):
        investments = {"a": Holding(units=2), "ghost": Holding(units=5)}
        prices = {"a": PriceState(price=50)}
        assert holdings_value(investments, prices) == 100

    def test_passive_income_by_asset_class(self, bundle, state):
        state.investments = {"bond": Holding(units=10), "coin": Holding(units=1), "mystery": Holding(units=1)}
        state.price_state["mystery"] = PriceState(price=1000)
        income = passive_income(state.investments, state.price_state, bundle.instrument_map, bundle.rules)
        expected = 1000 * 0.0015 + 100 * 0.012 + 1000 * 0.006
        assert income == pytest.approx(expected)

    def test_unknown_type_multiplier(self, bundle):
        rules = make_rules(passiveMultipliers={"bonds": 0.01})
        state_prices = {"stock": PriceState(price=100)}
        income = passive_income({"stock": Holding(units=10)}, state_prices, bundle.instrument_map, rules)
        assert income == pytest.approx(1000 * UNKNOWN_TYPE_MULTIPLIER)

    def test_portfolio_summary_allocations(self, bundle, state):
        rows = portfolio_summary(state.investments, state.price_state, bundle.instruments)
        assert [row["id"] for row in rows] == ["bond", "stock", "coin"]
        assert rows[0]["value"] == 1000
        assert rows[0]["allocation"] == 1.0
        assert rows[1]["allocation"] == 0.0


class TestExpenses:

    def test_living_cost_override(self, rules):
        assert living_cost("artist", rules) == 300
        assert living_cost("clerk", rules) == 500
        assert living_cost(None, rules) == 500

    def test_living_cost_without_rule(self):
        assert living_cost("clerk", make_rules(livingCost=None)) == 0.0

    def test_progressive_expense_threshold_and_cap(self):
        rules = make_rules(
            progressiveExpenses={"cashThreshold": 10000, "cashRate": 0.01, "incomeRate": 0.1, "capMonthly": 400}
        )
        assert progressive_expense(5000, 1000, rules) == pytest.approx(100)
        assert progressive_expense(20000, 1000, rules) == pytest.approx(300)
        assert progressive_expense(50000, 1000, rules) == 400

    def test_maintenance_expense_minimum(self):
        rules = make_rules(assetMaintenance={"rateMonthly": 0.001, "minMonthly": 20})
        assert maintenance_expense(1000, rules) == 20
        assert maintenance_expense(100000, rules) == pytest.approx(100)
        assert maintenance_expense(100000, make_rules()) == 0.0


class TestCreditLimit:

    def test_capped_at_base_multiple(self, bundle, rules):
        clerk = bundle.profession("clerk")
        assert credit_limit(clerk, 5000, 3000, rules) == 4000

    def test_floor_at_base(self, bundle, rules):
        artist = bundle.profession("artist")
        assert credit_limit(artist, -10000, 0, rules) == 500

    def test_formula_between_bounds(self, bundle, rules):
        artist = bundle.profession("artist")
        assert credit_limit(artist, 1000, 900, rules) == pytest.approx(350 + 1350)

    def test_without_rule_returns_base(self, bundle):
        rules = make_rules(loans={"apr": 0.01})
        assert credit_limit(bundle.profession("clerk"), 1e6, 1e6, rules) == 1000

    def test_without_profession(self, rules):
        assert credit_limit(None, 1000, 1000, rules) == 0.0


class TestGoals:

    def test_win_rules(self):
        cover = GoalRule(id="c", type="passive_income_cover_costs")
        reach = GoalRule(id="r", type="net_worth_reach", target=10000)
        assert win_rule_met(cover, _metrics(passive_income=2000))
        assert not win_rule_met(cover, _metrics(passive_income=1999))
        assert win_rule_met(reach, _metrics(net_worth=10000))
        assert not win_rule_met(GoalRule(id="x", type="unknown"), _metrics())

    def test_lose_rules(self):
        broke = GoalRule(id="b", type="no_liquidity_no_credit")
        insolvent = GoalRule(id="i", type="insolvency")
        ratio = GoalRule(id="d", type="debt_ratio", min_debt_to_net_worth=2.0)
        assert lose_rule_met(broke, _metrics(cash=0, available_credit=0))
        assert not lose_rule_met(broke, _metrics(cash=0, available_credit=1))
        assert lose_rule_met(insolvent, _metrics(monthly_cash_flow=-1, debt_delta=10))
        assert not lose_rule_met(insolvent, _metrics(monthly_cash_flow=-1, debt_delta=0))
        assert lose_rule_met(ratio, _metrics(debt=10000, net_worth=5000))
        assert not lose_rule_met(ratio, _metrics(debt=9999, net_worth=5000))

    def test_streak_must_be_reached(self, rules):
        first = evaluate_goals(rules, GoalTrackers(), _metrics(passive_income=5000))
        assert first.win is None
        assert first.trackers.win["freedom"] == 1
        second = evaluate_goals(rules, first.trackers, _metrics(passive_income=5000))
        assert second.win.id == "freedom"

    def test_streak_resets_on_failure(self, rules):
        trackers = GoalTrackers(win={"freedom": 1})
        evaluation = evaluate_goals(rules, trackers, _metrics(passive_income=0))
        assert evaluation.trackers.win["freedom"] == 0
        assert trackers.win == {"freedom": 1}

    def test_lose_fires_immediately(self, rules):
        evaluation = evaluate_goals(rules, GoalTrackers(), _metrics(cash=0, available_credit=0))
        assert evaluation.lose.id == "broke"
        assert evaluation.trackers.lose["broke"] == 1
