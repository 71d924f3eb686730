"""Mutable game state: the single root that player actions and the monthly tick update."""

from __future__ import annotations

from pydantic import BaseModel, Field

from models.content import GoalRule
from models.turn import EventOutcome, LogEntry, TurnResult


class Holding(BaseModel):
    """Units owned of one instrument.

    ``cost_basis`` is the weighted average price paid per unit.  The
    leveraged fields track the sub-position bought with drawn credit, which is
    the part a stop-loss may liquidate.
    """

    units: float = 0.0
    cost_basis: float = 0.0
    leveraged_units: float = 0.0
    leveraged_cost: float = 0.0


class PricePoint(BaseModel):
    month: int
    price: float


class PriceState(BaseModel):
    price: float
    history: list[PricePoint] = []
    last_return: float = 0.0


class DealWindow(BaseModel):
    expires_in: int
    slots_left: int
    max_slots: int


class DealParticipation(BaseModel):
    participation_id: str
    deal_id: str
    title: str = ""
    invested: int
    monthly_payout: int
    duration_months: int
    elapsed_months: int = 0
    profit_earned: int = 0
    completed: bool = False
    risk_meter: int = 1
    started_month: int = 0


class CreditDraw(BaseModel):
    id: str
    balance: int
    created_month: int
    label: str = "Credit line"


class SalaryProgressionState(BaseModel):
    percent: float = 0.0
    step_months: int = 1
    cap: float | None = None
    months_until_step: int
    current_base: int


class GoalTrackers(BaseModel):
    """Consecutive-month streak counters keyed by rule id."""

    win: dict[str, int] = {}
    lose: dict[str, int] = {}


class HistoryPoint(BaseModel):
    month: int
    value: float


class MetricHistory(BaseModel):
    net_worth: list[HistoryPoint] = []
    cash_flow: list[HistoryPoint] = []
    passive_income: list[HistoryPoint] = []


class GameState(BaseModel):
    """Aggregate root for one playthrough.

    ``cash`` and ``debt`` are whole currency units.  ``win_condition`` and
    ``lose_condition`` are sticky: the first rule that fires is kept until the
    game is reset.
    """

    profession_id: str | None = None
    difficulty: str = "normal"
    selected_goal_id: str | None = None
    month: int = 0
    cash: int = 0
    debt: int = 0
    salary_bonus: int = 0
    recurring_expenses: int = 0
    protections: dict[str, bool] = Field(
        default_factory=lambda: {"healthPlan": False, "legalShield": False, "techShield": False}
    )
    investments: dict[str, Holding] = {}
    price_state: dict[str, PriceState] = {}
    shock_state: dict[str, int] = Field(
        default_factory=dict,
        description="Shock id -> month it last triggered.",
    )
    deal_windows: dict[str, DealWindow] = {}
    deal_participations: list[DealParticipation] = []
    credit_draws: list[CreditDraw] = []
    credit_bucket: int = Field(
        default=0,
        description="Drawn credit not yet invested; consumed first by risk-asset buys.",
    )
    credit_limit: float = 0.0
    available_credit: float = 0.0
    jobless_months: int = 0
    salary_cut_months: int = 0
    salary_cut_amount: int = 0
    salary_progression: SalaryProgressionState | None = None
    trackers: GoalTrackers = Field(default_factory=GoalTrackers)
    win_condition: GoalRule | None = None
    lose_condition: GoalRule | None = None
    available_actions: list[str] = []
    trade_locks: dict[str, int] = Field(
        default_factory=dict,
        description="Instrument id -> month it was last traded.",
    )
    history: MetricHistory = Field(default_factory=MetricHistory)
    last_turn: TurnResult | None = None
    current_event: EventOutcome | None = None
    recent_log: list[LogEntry] = []
    rng_seed: int = 1
    entry_seq: int = Field(
        default=0,
        description="Counter for deterministic ids of draws, participations and log entries.",
    )

    def next_id(self, prefix: str) -> str:
        self.entry_seq += 1
        return f"{prefix}-{self.month}-{self.entry_seq}"

    def push_log(self, text: str, kind: str, amount: float | None = None, limit: int = 5) -> None:
        """Prepend an entry to ``recent_log``, keeping the newest *limit* entries."""
        entry = LogEntry(id=self.next_id(kind), month=self.month, text=text, kind=kind, amount=amount)
        self.recent_log = [entry, *self.recent_log][:limit]

    @property
    def game_over(self) -> bool:
        return self.win_condition is not None or self.lose_condition is not None
