"""Harness and playthrough configuration models, loaded from YAML.

These live in ``models/`` because they are shared data contracts used by the
headless playthrough CLI, the balance harness and the report tooling.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONTENT_DIR = "config/content"

_ConfigT = TypeVar("_ConfigT", bound="YamlConfig")


class YamlConfig(BaseModel):
    """Base for configuration documents that are read from a YAML file."""

    @classmethod
    def from_yaml(cls: type[_ConfigT], path: str | Path) -> _ConfigT:
        """Load and validate a configuration from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)


class PolicyConfig(BaseModel):
    """A scripted player used by the balance harness.

    All money thresholds are expressed relative to the player's current
    recurring expenses (``cash_buffer_multiplier``) or as payback months.
    """

    name: str = Field(description="Policy name, e.g. 'conservative', 'balanced', 'aggressive'.")
    cash_buffer_multiplier: float = Field(
        default=2.0,
        ge=0.0,
        description="Cash kept aside, in months of recurring expenses.",
    )
    salary_roi_months: float = Field(
        default=8.0,
        description="Take a salary_up action when cost / value is at most this many months.",
    )
    expense_roi_months: float = Field(
        default=10.0,
        description="Take an expense_down action when cost / value is at most this many months.",
    )
    allow_chance: bool = False
    chance_pick_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    allow_take_credit: bool = False
    allow_credit_draw: bool = False
    credit_draw_share: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Share of the available credit drawn every month.",
    )
    allow_debt_payment: bool = True
    allow_protection: bool = True
    repay_debt: bool = Field(
        default=False,
        description="Clear debt every month from cash above the buffer, selling holdings to fund it.",
    )
    allocations: dict[str, float] = Field(
        default_factory=dict,
        description="Asset type -> share of investable cash bought every month.",
    )
    max_deal_risk: int = 3
    min_deal_roi: float = Field(
        default=0.7,
        description="Minimum total payout / entry cost for a deal to be entered.",
    )


def _default_policies() -> list[PolicyConfig]:
    return [
        PolicyConfig(
            name="conservative",
            cash_buffer_multiplier=3,
            salary_roi_months=0,
            expense_roi_months=0,
            allow_chance=False,
            chance_pick_rate=0,
            allow_take_credit=False,
            allow_credit_draw=False,
            credit_draw_share=0,
            allow_debt_payment=True,
            allow_protection=True,
            repay_debt=True,
            allocations={"bonds": 1.0},
            max_deal_risk=2,
            min_deal_roi=0.8,
        ),
        PolicyConfig(
            name="balanced",
            cash_buffer_multiplier=2,
            salary_roi_months=6,
            expense_roi_months=4,
            allow_chance=True,
            chance_pick_rate=0.25,
            allow_take_credit=False,
            allow_credit_draw=False,
            credit_draw_share=0,
            allow_debt_payment=True,
            allow_protection=True,
            repay_debt=True,
            allocations={"bonds": 0.4, "stocks": 0.4, "crypto": 0.2},
            max_deal_risk=3,
            min_deal_roi=0.7,
        ),
        PolicyConfig(
            name="aggressive",
            cash_buffer_multiplier=1.5,
            salary_roi_months=12,
            expense_roi_months=12,
            allow_chance=True,
            chance_pick_rate=0.75,
            allow_take_credit=True,
            allow_credit_draw=True,
            credit_draw_share=0.5,
            allow_debt_payment=False,
            allow_protection=False,
            repay_debt=False,
            allocations={"stocks": 0.7, "crypto": 0.3},
            max_deal_risk=5,
            min_deal_roi=0.6,
        ),
    ]


class AcceptanceThresholds(BaseModel):
    """Limits the balance check gates content changes on."""

    max_speedrun_win_rate: float = Field(
        default=0.01,
        description="Share of all games won within the short horizon must stay below this.",
    )
    max_unfair_lose_rate: float = Field(
        default=0.01,
        description="Share of balanced games lost within the short horizon must stay below this.",
    )
    max_balanced_bankruptcy: float = 0.1
    min_balanced_sustain: float = 0.4
    max_balanced_sustain: float = 0.8
    min_aggressive_bankruptcy: float = 0.1
    max_aggressive_bankruptcy: float = 0.25
    max_conservative_bankruptcy: float = 0.05
    min_strategy_gap: float = Field(
        default=1000.0,
        description="Absolute floor for the smallest gap between policy medians.",
    )
    strategy_gap_ratio: float = Field(
        default=0.05,
        description="Relative floor for the gap, as a share of the balanced median.",
    )


class CheckConfig(BaseModel):
    runs: int = Field(default=10_000, ge=1, description="Games per policy.")
    turns: int = Field(default=50, ge=1, description="Maximum months per game.")
    short_turns: int = Field(default=15, ge=1, description="Horizon for speedrun / unfair-lose rates.")
    seed: int = 1337


class ReportConfig(BaseModel):
    runs: int = Field(default=10_000, ge=1, description="Games per policy.")
    months: int = Field(default=60, ge=1, description="Maximum months per game.")
    seed: int = 12345
    output_dir: str = "reports"


class BalanceConfig(YamlConfig):
    """Top-level configuration for the balance check and report CLIs."""

    content_dir: str = Field(
        default=DEFAULT_CONTENT_DIR,
        description="Directory holding the JSON content bundle.",
    )
    policies: list[PolicyConfig] = Field(default_factory=_default_policies)
    thresholds: AcceptanceThresholds = Field(default_factory=AcceptanceThresholds)
    check: CheckConfig = Field(default_factory=CheckConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    def policy(self, name: str) -> PolicyConfig:
        for policy in self.policies:
            if policy.name == name:
                return policy
        raise KeyError(f"Unknown policy {name!r}; configured: {[p.name for p in self.policies]}")


class PlaythroughConfig(YamlConfig):
    """One headless playthrough, loaded from YAML.

    The run name is derived from the config file path at load time rather
    than being specified inside the YAML itself.
    """

    content_dir: str = Field(default=DEFAULT_CONTENT_DIR)
    profession_id: str | None = Field(
        default=None,
        description="Profession to play; a seeded random pick when omitted.",
    )
    policy: PolicyConfig = Field(
        default_factory=lambda: _default_policies()[1],
        description="Scripted decisions taken before every month.",
    )
    months: int = Field(default=60, ge=1)
    seed: int = 1
    difficulty: str | None = None
    goal_id: str | None = None
    stop_on_outcome: bool = Field(
        default=True,
        description="Stop as soon as a win or lose condition fires.",
    )
