"""Static game content: professions, instruments, markets, rules, events, actions, deals.

Content is authored as camelCase JSON.  Every model here accepts those keys
through a camelCase alias generator and applies its defaults at load time, so
the engine never has to guard optional fields at the read site.
"""

from __future__ import annotations

from functools import cached_property

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.effects import Effect, coerce_effects


class ContentModel(BaseModel):
    """Base for content records: camelCase input, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Professions
# ---------------------------------------------------------------------------


class SalaryProgressionRule(ContentModel):
    percent: float = 0.0
    step_months: int = 1
    cap: float | None = None


class Profession(ContentModel):
    id: str
    title: str = ""
    starting_money: float = 0.0
    starting_debt: float = 0.0
    salary_monthly: float = 0.0
    starting_portfolio: dict[str, float] = Field(
        default_factory=dict,
        description="Instrument id -> units held at game start.",
    )
    monthly_expense_breakdown: dict[str, float] = Field(default_factory=dict)
    salary_progression: SalaryProgressionRule | None = None
    credit_limit_base: float = 0.0

    @property
    def monthly_expenses(self) -> float:
        return sum(self.monthly_expense_breakdown.values())


# ---------------------------------------------------------------------------
# Instruments and markets
# ---------------------------------------------------------------------------


class InstrumentModel(ContentModel):
    mu_monthly: float = 0.0
    sigma_monthly: float = 0.0
    max_drawdown_clamp: float | None = None
    cycle_refs: list[str] = Field(default_factory=list)
    shock_refs: list[str] = Field(default_factory=list)


class TradingRules(ContentModel):
    buy_fee_pct: float = 0.0
    sell_fee_pct: float = 0.0
    min_order: float = 0.0


class Instrument(ContentModel):
    id: str
    title: str = ""
    type: str = Field(default="stocks", description="'bonds', 'stocks' or 'crypto'.")
    initial_price: float = 1.0
    model: InstrumentModel = Field(default_factory=InstrumentModel)
    trading: TradingRules = Field(default_factory=TradingRules)


class Correlations(ContentModel):
    matrix: dict[str, dict[str, float]] = Field(default_factory=dict)


class Cycle(ContentModel):
    id: str
    period_months: float = 1.0
    amplitude: float = 0.0
    phase: float = 0.0


class ShockEvent(ContentModel):
    id: str
    prob_monthly: float = 0.0
    cooldown_months: int = 0
    mean_log_impact: float = 0.0
    std_log_impact: float = 0.0


class ShockModel(ContentModel):
    events: list[ShockEvent] = Field(default_factory=list)


class MarketLimits(ContentModel):
    max_monthly_return_abs: float | None = None
    min_price: float = 0.01
    significant_drop: float = -0.15
    significant_rise: float = 0.15


class MarketConfig(ContentModel):
    correlations: Correlations = Field(default_factory=Correlations)
    cycles: list[Cycle] = Field(default_factory=list)
    shock_model: ShockModel = Field(default_factory=ShockModel)
    limits: MarketLimits = Field(default_factory=MarketLimits, alias="global")


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class LivingCostRule(ContentModel):
    default_monthly: float = 0.0
    profession_overrides: dict[str, float] = Field(default_factory=dict)


class CreditLimitRule(ContentModel):
    net_worth_multiplier: float = 0.35
    salary_multiplier: float = 1.5
    cap_multiplier: float = 6.0


class LoanRules(ContentModel):
    apr: float = Field(default=0.0, description="Monthly interest rate applied to total debt.")
    term_months: int | None = None
    credit_limit: CreditLimitRule | None = None
    repayment_fee_pct: float = 0.08


class ProgressiveExpenseRule(ContentModel):
    cash_threshold: float = 0.0
    cash_rate: float = 0.0
    income_rate: float = 0.0
    cap_monthly: float | None = None


class AssetMaintenanceRule(ContentModel):
    rate_monthly: float = 0.0
    min_monthly: float = 0.0


class EmergencyCreditRule(ContentModel):
    enabled: bool = False
    min_draw: float = 0.0
    draw_percent: float = 0.0


class DifficultyPreset(ContentModel):
    event_chance: float


class GoalRule(ContentModel):
    """A win or lose rule.

    Win types: ``passive_income_cover_costs``, ``net_worth_reach``.
    Lose types: ``no_liquidity_no_credit``, ``negative_cashflow_debt_growing``
    (alias ``insolvency``), ``debt_ratio``.
    """

    id: str
    type: str
    title: str = ""
    target: float = 0.0
    required_streak_months: int = 1
    consecutive_months: int = 1
    min_debt_to_net_worth: float = 1.0


def _default_difficulty_presets() -> dict[str, DifficultyPreset]:
    return {
        "easy": DifficultyPreset(event_chance=0.65),
        "normal": DifficultyPreset(event_chance=0.38),
        "hard": DifficultyPreset(event_chance=0.45),
    }


class GameRules(ContentModel):
    living_cost: LivingCostRule | None = None
    loans: LoanRules = Field(default_factory=LoanRules)
    credit_draw_min_balance: float = 5.0
    progressive_expenses: ProgressiveExpenseRule | None = None
    asset_maintenance: AssetMaintenanceRule | None = None
    emergency_credit: EmergencyCreditRule | None = None
    passive_multipliers: dict[str, float] = Field(
        default_factory=lambda: {"bonds": 0.0015, "stocks": 0.006, "crypto": 0.012}
    )
    default_difficulty: str = "normal"
    difficulty_presets: dict[str, DifficultyPreset] = Field(
        default_factory=_default_difficulty_presets
    )
    stop_loss_ratio: float = Field(
        default=0.5,
        description="Leveraged units are liquidated once price <= entry price * ratio.",
    )
    risk_asset_types: list[str] = Field(
        default_factory=lambda: ["stocks", "crypto"],
        description="Asset classes that take leverage and are limited to one trade per month.",
    )
    history_cap: int = 120
    recent_log_size: int = 5
    win: list[GoalRule] = Field(default_factory=list)
    lose: list[GoalRule] = Field(default_factory=list)

    def event_chance(self, difficulty: str | None) -> float:
        preset = self.difficulty_presets.get(difficulty or self.default_difficulty)
        if preset is None:
            preset = self.difficulty_presets.get(self.default_difficulty)
        return preset.event_chance if preset is not None else 0.3


# ---------------------------------------------------------------------------
# Home actions, random events, deals
# ---------------------------------------------------------------------------


class HomeAction(ContentModel):
    id: str
    title: str = ""
    type: str = Field(default="upgrade", description="'chance' actions roll chance_success.")
    effect: str | None = Field(
        default=None,
        description="salary_up, expense_down, cost_down, protection, take_credit or debt_payment.",
    )
    cost: float = 0.0
    value: float = 0.0
    protection_key: str | None = None
    chance_success: float = 0.5
    success: list[Effect] = Field(default_factory=list)
    fail: list[Effect] = Field(default_factory=list)

    @field_validator("success", "fail", mode="before")
    @classmethod
    def coerce_outcomes(cls, value):
        return coerce_effects(value)

    @property
    def kind(self) -> str:
        """Classification used for offer weighting and policy decisions."""
        if self.type == "chance":
            return "chance"
        if self.id == "debt_payment" or self.effect == "debt_payment":
            return "debt_payment"
        return self.effect or "other"


class HomeActionCatalog(ContentModel):
    actions: list[HomeAction] = Field(default_factory=list)
    count: int = 4
    show_chance: float = 0.55
    type_weights: dict[str, float] = Field(default_factory=dict)


class RandomEvent(ContentModel):
    id: str
    title: str = ""
    description: str = ""
    type: str = "negative"
    chance: float = 0.5
    protection_key: str | None = None
    effect: list[Effect] = Field(default_factory=list)

    @field_validator("effect", mode="before")
    @classmethod
    def coerce_effect(cls, value):
        return coerce_effects(value)


class DealWindowRule(ContentModel):
    min_turns: int = 2
    max_turns: int | None = None
    slots: int = 1


class DealTemplate(ContentModel):
    id: str
    title: str = ""
    description: str = ""
    entry_cost: float = 0.0
    monthly_payout: float = 0.0
    duration_months: int = 1
    risk_meter: int = 1
    risk_note: str = ""
    window: DealWindowRule = Field(default_factory=DealWindowRule)


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


class ContentBundle(BaseModel):
    """Everything the engine reads but never writes."""

    rules: GameRules = Field(default_factory=GameRules)
    home_actions: HomeActionCatalog = Field(default_factory=HomeActionCatalog)
    instruments: list[Instrument] = Field(default_factory=list)
    markets: MarketConfig = Field(default_factory=MarketConfig)
    professions: list[Profession] = Field(default_factory=list)
    random_events: list[RandomEvent] = Field(default_factory=list)
    deals: list[DealTemplate] = Field(default_factory=list)

    @cached_property
    def instrument_map(self) -> dict[str, Instrument]:
        return {instrument.id: instrument for instrument in self.instruments}

    def profession(self, profession_id: str | None) -> Profession | None:
        return next((p for p in self.professions if p.id == profession_id), None)

    def home_action(self, action_id: str) -> HomeAction | None:
        return next((a for a in self.home_actions.actions if a.id == action_id), None)

    def deal(self, deal_id: str) -> DealTemplate | None:
        return next((d for d in self.deals if d.id == deal_id), None)
