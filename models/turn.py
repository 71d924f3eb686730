"""Turn artifacts and action results handed back to the presentation layer."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class LogEntry(BaseModel):
    """One line of the rolling human-readable log (newest first)."""

    id: str
    month: int
    text: str
    kind: Literal["event", "stoploss", "market", "action", "trade", "credit", "deal"] = "event"
    amount: float | None = None


class EventOutcome(BaseModel):
    """Random event that fired this month (``prevented`` when a protection absorbed it)."""

    event_id: str
    title: str
    type: str
    message: str
    prevented: bool = False


class GoalMetrics(BaseModel):
    """End-of-month figures the win/lose rules are evaluated against."""

    cash: float
    net_worth: float
    passive_income: float
    recurring_expenses: float
    monthly_cash_flow: float
    debt_delta: float
    debt: float
    available_credit: float


class TurnResult(BaseModel):
    """What happened during the last ``advance_month`` call."""

    month: int
    salary: int
    passive_income: int
    recurring_expenses: int
    effective_recurring: int
    debt_interest: int
    auto_liquidation: int = 0
    emergency_draw: int = 0
    returns: dict[str, float] = {}
    stop_loss_warnings: list[str] = []
    event: EventOutcome | None = None
    metrics: GoalMetrics


class ActionResult(BaseModel):
    """Outcome of a between-turn player action.

    Rejected actions never mutate state; ``message`` explains why.
    """

    status: Literal["accepted", "rejected"]
    message: str = ""

    @classmethod
    def accepted(cls, message: str = "") -> ActionResult:
        return cls(status="accepted", message=message)

    @classmethod
    def rejected(cls, message: str) -> ActionResult:
        return cls(status="rejected", message=message)

    @property
    def ok(self) -> bool:
        return self.status == "accepted"
