"""Data models for the personal-finance simulation.

The engine (``simulation``), the balance harness (``balance``) and the CLIs
all import from models.
"""

from models.config import (
    AcceptanceThresholds,
    BalanceConfig,
    CheckConfig,
    PlaythroughConfig,
    PolicyConfig,
    ReportConfig,
)
from models.content import (
    ContentBundle,
    DealTemplate,
    GameRules,
    GoalRule,
    HomeAction,
    HomeActionCatalog,
    Instrument,
    MarketConfig,
    Profession,
    RandomEvent,
)
from models.effects import (
    CashDelta,
    DebtDelta,
    Effect,
    JoblessMonths,
    RecurringDelta,
    SalaryBonusDelta,
    SalaryCut,
)
from models.log import PlaythroughLog, TurnLog
from models.state import (
    CreditDraw,
    DealParticipation,
    DealWindow,
    GameState,
    Holding,
    PriceState,
)
from models.turn import ActionResult, EventOutcome, GoalMetrics, LogEntry, TurnResult

__all__ = [
    # config
    "AcceptanceThresholds",
    "BalanceConfig",
    "CheckConfig",
    "PlaythroughConfig",
    "PolicyConfig",
    "ReportConfig",
    # content
    "ContentBundle",
    "DealTemplate",
    "GameRules",
    "GoalRule",
    "HomeAction",
    "HomeActionCatalog",
    "Instrument",
    "MarketConfig",
    "Profession",
    "RandomEvent",
    # effects
    "CashDelta",
    "DebtDelta",
    "Effect",
    "JoblessMonths",
    "RecurringDelta",
    "SalaryBonusDelta",
    "SalaryCut",
    # log
    "PlaythroughLog",
    "TurnLog",
    # state
    "CreditDraw",
    "DealParticipation",
    "DealWindow",
    "GameState",
    "Holding",
    "PriceState",
    # turn
    "ActionResult",
    "EventOutcome",
    "GoalMetrics",
    "LogEntry",
    "TurnResult",
]
