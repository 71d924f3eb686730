"""Effect variants applied by random events and home-action outcomes.

Content files author effects as a flat object (``{"cashDelta": -300,
"joblessMonths": 2}``).  At load time the object is converted into a list of
tagged variants so the engine dispatches on a closed set of kinds instead of
probing optional keys.
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class CashDelta(BaseModel):
    kind: Literal["cash_delta"] = "cash_delta"
    amount: float


class SalaryBonusDelta(BaseModel):
    kind: Literal["salary_bonus_delta"] = "salary_bonus_delta"
    amount: float


class RecurringDelta(BaseModel):
    """Change to the flat monthly recurring expenses (floored at zero)."""

    kind: Literal["recurring_delta"] = "recurring_delta"
    amount: float


class DebtDelta(BaseModel):
    """Change to debt; positive values open a credit draw, negative values repay."""

    kind: Literal["debt_delta"] = "debt_delta"
    amount: float


class JoblessMonths(BaseModel):
    """Zero the salary for the next ``months`` turns."""

    kind: Literal["jobless_months"] = "jobless_months"
    months: int


class SalaryCut(BaseModel):
    """Reduce the salary by ``amount`` for the next ``months`` turns."""

    kind: Literal["salary_cut"] = "salary_cut"
    months: int
    amount: float = 0.0


Effect = Annotated[
    Union[CashDelta, SalaryBonusDelta, RecurringDelta, DebtDelta, JoblessMonths, SalaryCut],
    Field(discriminator="kind"),
]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def effects_from_bag(bag: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Convert an authored effect object into variant payloads.

    Keys that are missing or not numeric are ignored.  The output order is
    fixed (cash, salary bonus, recurring, debt, jobless, salary cut) so the
    same content always applies the same way.
    """
    if not bag:
        return []
    out: list[dict[str, Any]] = []
    if _is_number(bag.get("cashDelta")):
        out.append({"kind": "cash_delta", "amount": bag["cashDelta"]})
    if _is_number(bag.get("salaryBonusDelta")):
        out.append({"kind": "salary_bonus_delta", "amount": bag["salaryBonusDelta"]})
    if _is_number(bag.get("recurringDelta")):
        out.append({"kind": "recurring_delta", "amount": bag["recurringDelta"]})
    if _is_number(bag.get("debtDelta")):
        out.append({"kind": "debt_delta", "amount": bag["debtDelta"]})
    if _is_number(bag.get("joblessMonths")):
        out.append({"kind": "jobless_months", "months": _round_half_up(bag["joblessMonths"])})
    if _is_number(bag.get("salaryCutMonths")):
        amount = bag.get("salaryCutAmount")
        out.append(
            {
                "kind": "salary_cut",
                "months": _round_half_up(bag["salaryCutMonths"]),
                "amount": amount if _is_number(amount) else 0.0,
            }
        )
    return out


def coerce_effects(value: Any) -> Any:
    """``mode="before"`` validator body: accept either a bag or a variant list."""
    if value is None:
        return []
    if isinstance(value, dict):
        return effects_from_bag(value)
    return value


def cash_delta_of(effects: list[Any]) -> float:
    """Sum of the cash deltas in *effects* (used for log amounts and policy scoring)."""
    return sum(e.amount for e in effects if isinstance(e, CashDelta))
