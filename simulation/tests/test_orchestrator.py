"""Tests for the monthly turn."""

from __future__ import annotations

import pytest

from conftest import make_bundle
from models.state import Holding, PriceState, SalaryProgressionState
from simulation.credit import total_balance
from simulation.new_game import new_game_state
from simulation.orchestrator import (
    advance_month,
    apply_month,
    emergency_credit,
    market_messages,
    progress_salary,
    realize_salary,
    stop_loss,
)


class TestStopLoss:

    def _run(self, bundle, leveraged_state, price):
        prices = {**leveraged_state.price_state, "stock": PriceState(price=price)}
        return stop_loss(leveraged_state.investments, prices, bundle.instrument_map, bundle.rules)

    def test_triggers_at_half_of_entry(self, bundle, leveraged_state):
        investments, proceeds, warnings = self._run(bundle, leveraged_state, 49)
        assert proceeds == pytest.approx(490)
        assert investments["stock"] == Holding(units=10, cost_basis=100)
        assert len(warnings) == 1
        assert leveraged_state.investments["stock"].leveraged_units == 10

    def test_holds_above_threshold(self, bundle, leveraged_state):
        investments, proceeds, warnings = self._run(bundle, leveraged_state, 51)
        assert proceeds == 0
        assert warnings == []
        assert investments["stock"].leveraged_units == 10

    def test_fully_leveraged_position_is_removed(self, bundle, leveraged_state):
        leveraged_state.investments["stock"] = Holding(
            units=10, cost_basis=100, leveraged_units=10, leveraged_cost=1000
        )
        investments, proceeds, _ = self._run(bundle, leveraged_state, 40)
        assert "stock" not in investments
        assert proceeds == pytest.approx(400)

    def test_bonds_are_never_liquidated(self, bundle, state):
        state.investments["bond"] = Holding(units=10, cost_basis=100, leveraged_units=10, leveraged_cost=1000)
        prices = {**state.price_state, "bond": PriceState(price=1)}
        _, proceeds, _ = stop_loss(state.investments, prices, bundle.instrument_map, bundle.rules)
        assert proceeds == 0


class TestSalary:

    def test_progression_steps_and_caps(self, state):
        bases = [progress_salary(state, 3000) for _ in range(6)]
        assert bases == [3000, 3300, 3300, 3500, 3500, 3500]

    def test_without_progression_uses_fallback(self, state):
        state.salary_progression = None
        assert progress_salary(state, 2500) == 2500

    def test_uncapped_progression(self, state):
        state.salary_progression = SalaryProgressionState(
            percent=0.5, step_months=1, months_until_step=1, current_base=1000
        )
        assert progress_salary(state, 1000) == 1500
        assert progress_salary(state, 1000) == 2250

    def test_jobless_month_pays_nothing(self, state):
        state.jobless_months = 1
        assert realize_salary(state, 3000) == 0
        assert state.jobless_months == 0
        assert realize_salary(state, 3000) == 3000

    def test_salary_cut_and_bonus(self, state):
        state.salary_bonus = 100
        state.salary_cut_months = 1
        state.salary_cut_amount = 400
        assert realize_salary(state, 3000) == 2700
        assert (state.salary_cut_months, state.salary_cut_amount) == (0, 0)
        assert realize_salary(state, 3000) == 3100


class TestEmergencyCredit:

    def test_draws_share_of_expenses(self, state, rules):
        state.cash = -200
        assert emergency_credit(state, 500, 300, rules) == 150
        assert state.cash == -50
        assert state.debt == 1150
        assert total_balance(state.credit_draws) == 1150

    def test_minimum_draw(self, state, rules):
        state.cash = -10
        assert emergency_credit(state, 500, 50, rules) == 100
        assert state.cash == 90

    def test_bounded_by_available(self, state, rules):
        state.cash = -900
        assert emergency_credit(state, 60, 3000, rules) == 60

    def test_not_needed_or_not_possible(self, state, rules):
        assert emergency_credit(state, 500, 300, rules) == 0
        state.cash = -200
        assert emergency_credit(state, 0, 300, rules) == 0

    def test_disabled(self, state):
        rules = make_bundle(emergencyCredit={"enabled": False}).rules
        state.cash = -200
        assert emergency_credit(state, 500, 300, rules) == 0
        assert state.cash == -200


class TestApplyMonth:

    def test_same_seed_same_history(self, bundle, leveraged_state):
        first = leveraged_state.model_copy(deep=True)
        second = leveraged_state.model_copy(deep=True)
        for _ in range(24):
            apply_month(first, bundle)
            apply_month(second, bundle)
        assert first == second

    def test_advance_month_is_pure(self, bundle, state):
        before = state.model_copy(deep=True)
        next_state, result = advance_month(state, bundle)
        assert state == before
        assert next_state.month == 1
        assert result.month == 1

    def test_turn_record(self, bundle, state):
        result = apply_month(state, bundle)
        assert state.last_turn == result
        assert result.debt_interest == 10
        assert result.recurring_expenses == 2000
        assert set(result.returns) == {"bond", "stock", "coin"}
        assert [p.month for p in state.history.net_worth] == [0, 1]
        assert state.trade_locks == {}

    def test_ledger_and_floors_hold_over_a_long_run(self, bundle, leveraged_state):
        state = leveraged_state
        for _ in range(60):
            apply_month(state, bundle)
            assert total_balance(state.credit_draws) == state.debt
            assert state.debt >= 0
            assert state.recurring_expenses >= 0
            assert all(h.units >= 0 for h in state.investments.values())
            assert len(state.recent_log) <= bundle.rules.recent_log_size
            assert len(state.available_actions) <= bundle.home_actions.count
        assert len(state.history.net_worth) <= bundle.rules.history_cap

    def test_struggling_profession_loses_and_stays_lost(self, bundle):
        state = new_game_state(bundle, bundle.profession("artist"), seed=7)
        for _ in range(40):
            apply_month(state, bundle)
            if state.lose_condition is not None:
                break
        assert state.lose_condition.id == "broke"
        lost_at = state.month
        apply_month(state, bundle)
        assert state.lose_condition.id == "broke"
        assert state.month == lost_at + 1

    def test_win_condition_is_sticky(self, bundle, state, rules):
        state.win_condition = rules.win[1]
        state.investments = {"bond": Holding(units=100_000, cost_basis=100)}
        apply_month(state, bundle)
        apply_month(state, bundle)
        assert state.win_condition.id == "rich"
        assert state.trackers.win["freedom"] == 2

    def test_requires_profession(self, bundle, state):
        state.profession_id = None
        with pytest.raises(RuntimeError):
            advance_month(state, bundle)


class TestMarketMessages:

    def test_significant_moves_only(self, bundle):
        messages = market_messages({"stock": -0.2, "coin": 0.25, "bond": 0.01, "ghost": -0.9}, bundle.instrument_map, bundle)
        assert messages == ["Stock fell 20%", "Coin rose 25%"]
