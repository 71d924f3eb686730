"""Shared fixtures: a small in-memory content bundle with round numbers."""

from __future__ import annotations

import pytest

from models.content import ContentBundle, GameRules
from models.state import GameState, Holding
from simulation.new_game import new_game_state


def make_rules(**overrides) -> GameRules:
    raw = {
        "livingCost": {"defaultMonthly": 500, "professionOverrides": {"artist": 300}},
        "loans": {
            "apr": 0.01,
            "creditLimit": {"netWorthMultiplier": 0.35, "salaryMultiplier": 1.5, "capMultiplier": 4},
            "repaymentFeePct": 0.08,
        },
        "emergencyCredit": {"enabled": True, "minDraw": 100, "drawPercent": 0.5},
        "win": [
            {"id": "freedom", "type": "passive_income_cover_costs", "requiredStreakMonths": 2},
            {"id": "rich", "type": "net_worth_reach", "target": 1_000_000},
        ],
        "lose": [
            {"id": "broke", "type": "no_liquidity_no_credit", "consecutiveMonths": 1},
        ],
    }
    raw.update(overrides)
    return GameRules.model_validate(raw)


def make_bundle(**rule_overrides) -> ContentBundle:
    return ContentBundle.model_validate(
        {
            "rules": make_rules(**rule_overrides),
            "instruments": [
                {
                    "id": "bond",
                    "title": "Bond",
                    "type": "bonds",
                    "initialPrice": 100,
                    "model": {"muMonthly": 0.002, "sigmaMonthly": 0.01},
                    "trading": {"buyFeePct": 0.01, "sellFeePct": 0.005, "minOrder": 10},
                },
                {
                    "id": "stock",
                    "title": "Stock",
                    "type": "stocks",
                    "initialPrice": 100,
                    "model": {"muMonthly": 0.005, "sigmaMonthly": 0.05, "maxDrawdownClamp": 0.3},
                    "trading": {"buyFeePct": 0.0, "sellFeePct": 0.0, "minOrder": 10},
                },
                {
                    "id": "coin",
                    "title": "Coin",
                    "type": "crypto",
                    "initialPrice": 100,
                    "model": {"muMonthly": 0.01, "sigmaMonthly": 0.15},
                    "trading": {"buyFeePct": 0.0, "sellFeePct": 0.0, "minOrder": 10},
                },
            ],
            "markets": {
                "correlations": {"matrix": {"stock": {"coin": 0.5}}},
                "global": {"maxMonthlyReturnAbs": 0.5},
            },
            "professions": [
                {
                    "id": "clerk",
                    "title": "Clerk",
                    "startingMoney": 5000,
                    "startingDebt": 1000,
                    "salaryMonthly": 3000,
                    "startingPortfolio": {"bond": 10},
                    "monthlyExpenseBreakdown": {"rent": 1000, "food": 500},
                    "salaryProgression": {"percent": 0.1, "stepMonths": 2, "cap": 3500},
                    "creditLimitBase": 1000,
                },
                {
                    "id": "artist",
                    "title": "Artist",
                    "startingMoney": 800,
                    "salaryMonthly": 900,
                    "monthlyExpenseBreakdown": {"rent": 900},
                    "creditLimitBase": 500,
                },
            ],
            "home_actions": {
                "count": 3,
                "showChance": 1.0,
                "actions": [
                    {"id": "course", "effect": "salary_up", "cost": 500, "value": 100},
                    {"id": "cheaper_rent", "effect": "expense_down", "cost": 200, "value": 50},
                    {"id": "health", "effect": "protection", "protectionKey": "healthPlan", "cost": 100},
                    {"id": "loan", "title": "Loan", "effect": "take_credit", "value": 800},
                    {"id": "debt_payment", "effect": "debt_payment"},
                    {
                        "id": "sure_bet",
                        "type": "chance",
                        "cost": 100,
                        "chanceSuccess": 1.0,
                        "success": {"cashDelta": 500},
                        "fail": {"cashDelta": -50},
                    },
                    {
                        "id": "lost_bet",
                        "type": "chance",
                        "cost": 100,
                        "chanceSuccess": 0.0,
                        "success": {"cashDelta": 500},
                        "fail": {"cashDelta": -50, "joblessMonths": 1},
                    },
                ],
            },
            "random_events": [
                {
                    "id": "clinic",
                    "title": "Clinic",
                    "type": "negative",
                    "chance": 1.0,
                    "protectionKey": "healthPlan",
                    "effect": {"cashDelta": -300},
                },
            ],
            "deals": [
                {
                    "id": "laundromat",
                    "title": "Laundromat",
                    "entryCost": 1000,
                    "monthlyPayout": 100,
                    "durationMonths": 3,
                    "riskMeter": 2,
                    "window": {"minTurns": 2, "maxTurns": 2, "slots": 1},
                },
            ],
        }
    )


@pytest.fixture()
def bundle() -> ContentBundle:
    return make_bundle()


@pytest.fixture()
def rules(bundle: ContentBundle) -> GameRules:
    return bundle.rules


@pytest.fixture()
def state(bundle: ContentBundle) -> GameState:
    """Fresh clerk game: cash 5000, debt 1000, 10 bond units at 100."""
    return new_game_state(bundle, bundle.profession("clerk"), seed=42)


@pytest.fixture()
def leveraged_state(state: GameState) -> GameState:
    """Clerk holding 20 stock units, 10 of them bought on credit at 100."""
    state.investments = {
        **state.investments,
        "stock": Holding(units=20, cost_basis=100, leveraged_units=10, leveraged_cost=1000),
    }
    return state
