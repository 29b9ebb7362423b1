# models.py
import math
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

import pandas as pd


def round_cents(value: float) -> float:
    """Round half-up to two decimals (matches how results are displayed)."""
    return math.floor(value * 100 + 0.5) / 100


# =============================================================================
# Balances
# =============================================================================

@dataclass(frozen=True)
class BalanceByType:
    tax_deferred: float = 0.0
    tax_free: float = 0.0
    taxable: float = 0.0

    def total(self) -> float:
        return self.tax_deferred + self.tax_free + self.taxable

    def clamped(self) -> "BalanceByType":
        return BalanceByType(
            tax_deferred=max(0.0, self.tax_deferred),
            tax_free=max(0.0, self.tax_free),
            taxable=max(0.0, self.taxable),
        )

    def rounded(self) -> "BalanceByType":
        return BalanceByType(
            tax_deferred=max(0.0, round_cents(self.tax_deferred)),
            tax_free=max(0.0, round_cents(self.tax_free)),
            taxable=max(0.0, round_cents(self.taxable)),
        )


# =============================================================================
# Income streams
# =============================================================================

class IncomeStreamType(str, Enum):
    SOCIAL_SECURITY = "social_security"
    PENSION = "pension"
    RENTAL = "rental"
    ANNUITY = "annuity"
    PART_TIME = "part_time"
    OTHER = "other"


# Not dependent on market conditions
GUARANTEED_INCOME_TYPES = (
    IncomeStreamType.SOCIAL_SECURITY,
    IncomeStreamType.PENSION,
    IncomeStreamType.ANNUITY,
)


def is_guaranteed_income_type(stream_type) -> bool:
    return IncomeStreamType(stream_type) in GUARANTEED_INCOME_TYPES


@dataclass(frozen=True)
class IncomeStream:
    id: str
    name: str
    type: IncomeStreamType
    annual_amount: float          # today's dollars
    start_age: int
    end_age: Optional[int] = None  # None = lifetime
    inflation_adjusted: bool = True
    is_guaranteed: bool = False
    is_spouse: bool = False

    def is_active(self, age: int) -> bool:
        return age >= self.start_age and (self.end_age is None or age <= self.end_age)


# =============================================================================
# Spending phases / RMD
# =============================================================================

@dataclass(frozen=True)
class SpendingPhase:
    id: str
    name: str
    start_age: int
    essential_multiplier: float = 1.0
    discretionary_multiplier: float = 1.0
    # Absolute amounts (today's dollars) take precedence over the multipliers
    absolute_essential: Optional[float] = None
    absolute_discretionary: Optional[float] = None


@dataclass(frozen=True)
class SpendingPhaseConfig:
    enabled: bool
    phases: Tuple[SpendingPhase, ...] = ()


@dataclass(frozen=True)
class RMDConfig:
    enabled: bool = True
    start_age: int = 73


class ReductionStage(str, Enum):
    NONE = "none"
    DISCRETIONARY_REDUCED = "discretionary_reduced"
    ESSENTIALS_ONLY = "essentials_only"
    ESSENTIALS_REDUCED = "essentials_reduced"
    FLOOR_REACHED = "floor_reached"


# =============================================================================
# Projection input
# =============================================================================

@dataclass(frozen=True)
class ProjectionInput:
    # Ages
    current_age: int
    retirement_age: int
    max_age: int

    # Accounts & contributions
    balances_by_type: BalanceByType
    annual_contribution: float
    contribution_allocation: BalanceByType  # percentages, sum to 100

    # Rates
    expected_return: float
    inflation_rate: float
    contribution_growth_rate: float

    # Expenses (today's dollars)
    annual_essential_expenses: float
    annual_discretionary_expenses: float
    annual_healthcare_costs: float
    healthcare_inflation_rate: float

    income_streams: Tuple[IncomeStream, ...] = ()
    annual_debt_payments: float = 0.0

    spending_phase_config: Optional[SpendingPhaseConfig] = None
    rmd_config: Optional[RMDConfig] = None
    reserve_floor: Optional[float] = None

    start_year: int = field(default_factory=lambda: date.today().year)

    @property
    def annual_expenses(self) -> float:
        return self.annual_essential_expenses + self.annual_discretionary_expenses


# =============================================================================
# Projection output
# =============================================================================

@dataclass
class ProjectionRecord:
    age: int
    year: int
    balance: float
    inflows: float
    outflows: float
    balance_by_type: BalanceByType
    withdrawals_by_type: Optional[BalanceByType] = None

    # Drawdown expense breakdown
    essential_expenses: Optional[float] = None
    discretionary_expenses: Optional[float] = None
    healthcare_expenses: Optional[float] = None
    actual_essential_spending: Optional[float] = None
    actual_discretionary_spending: Optional[float] = None
    active_phase_name: Optional[str] = None
    guaranteed_income: Optional[float] = None

    # Reserve floor tracking
    reserve_constrained: bool = False
    reduction_stage: Optional[ReductionStage] = None
    spending_shortfall: float = 0.0
    reserve_balance: Optional[float] = None

    # RMD tracking
    rmd_required: float = 0.0
    rmd_taken: float = 0.0
    excess_over_rmd: float = 0.0


@dataclass
class ProjectionSummary:
    starting_balance: float
    ending_balance: float
    total_contributions: float
    total_withdrawals: float
    years_until_depletion: Optional[int]
    projected_retirement_balance: float
    start_age: int = 0
    reserve_floor: Optional[float] = None
    years_reserve_constrained: int = 0
    first_reserve_constraint_age: Optional[int] = None
    total_spending_shortfall: float = 0.0
    total_rmd_taken: float = 0.0

    @property
    def depletion_age(self) -> Optional[int]:
        if self.years_until_depletion is None:
            return None
        return self.start_age + self.years_until_depletion


@dataclass
class ProjectionResult:
    records: List[ProjectionRecord]
    summary: ProjectionSummary

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per simulated age. Bucket balances and withdrawals are flattened
        into `balance_<bucket>` / `withdrawal_<bucket>` columns.
        """
        rows = []
        for record in self.records:
            row = asdict(record)
            for bucket, amount in row.pop("balance_by_type").items():
                row[f"balance_{bucket}"] = amount
            withdrawals = row.pop("withdrawals_by_type") or {}
            for bucket in ("tax_deferred", "tax_free", "taxable"):
                row[f"withdrawal_{bucket}"] = withdrawals.get(bucket, 0.0)
            if record.reduction_stage is not None:
                row["reduction_stage"] = record.reduction_stage.value
            rows.append(row)
        return pd.DataFrame(rows)


@dataclass(frozen=True)
class WithdrawalResult:
    withdrawals: BalanceByType
    shortfall: float


@dataclass(frozen=True)
class RMDWithdrawalResult:
    withdrawals: BalanceByType
    shortfall: float
    rmd_required: float
    rmd_taken: float
    excess_over_rmd: float
