# engine/income_floor.py

"""
Income floor analysis: does guaranteed income (Social Security, pensions,
annuities) cover essential expenses on its own?
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from models import IncomeStream, ProjectionInput, round_cents
from engine.income_calculator import calculate_guaranteed_income
from engine.spending_phases import calculate_phase_adjusted_expenses

FULL_COVERAGE = 1.0
PARTIAL_COVERAGE = 0.5

STATUS_FULLY_COVERED = "fully-covered"
STATUS_PARTIAL = "partial"
STATUS_INSUFFICIENT = "insufficient"


@dataclass(frozen=True)
class YearlyCoverage:
    age: int
    year: int
    guaranteed_income: float
    essential_expenses: float
    coverage_ratio: float
    is_fully_covered: bool


@dataclass
class IncomeFloorAnalysis:
    guaranteed_income_at_retirement: float
    essential_expenses_at_retirement: float
    coverage_ratio_at_retirement: float
    is_floor_established: bool
    floor_established_age: Optional[int]
    status: str
    insight_statement: str
    coverage_by_age: List[YearlyCoverage] = field(default_factory=list)


def _coverage_ratio(guaranteed: float, essential: float) -> float:
    if essential > 0:
        return guaranteed / essential
    return math.inf if guaranteed > 0 else 1.0


def _round_ratio(ratio: float) -> float:
    if math.isinf(ratio):
        return ratio
    return math.floor(ratio * 1000 + 0.5) / 1000


def _determine_status(ratio_at_retirement: float, floor_age: Optional[int]) -> str:
    if floor_age is not None:
        return STATUS_FULLY_COVERED
    if ratio_at_retirement >= PARTIAL_COVERAGE:
        return STATUS_PARTIAL
    return STATUS_INSUFFICIENT


def _insight_statement(status: str, floor_age: Optional[int], ratio: float, retirement_age: int) -> str:
    if status == STATUS_FULLY_COVERED:
        if floor_age == retirement_age:
            return "Your essential lifestyle is fully covered by guaranteed income from retirement."
        return (f"Your essential lifestyle is fully covered by guaranteed income "
                f"starting at age {floor_age}.")

    percent_covered = int(math.floor(ratio * 100 + 0.5))
    if status == STATUS_PARTIAL:
        return f"Guaranteed income covers {percent_covered}% of essential expenses at retirement."
    return ("Essential expenses exceed guaranteed income throughout retirement. "
            f"Guaranteed income covers {percent_covered}% of essential expenses.")


def calculate_income_floor(inputs: ProjectionInput) -> IncomeFloorAnalysis:
    """
    Year-by-year coverage of phase-adjusted, inflated essential expenses by
    guaranteed income, from retirement_age through max_age.

    Healthcare is not part of the floor; it is tracked on its own inflation path.
    """
    ages = np.arange(inputs.retirement_age, inputs.max_age + 1)
    multipliers = (1 + inputs.inflation_rate) ** (ages - inputs.retirement_age)

    coverage: List[YearlyCoverage] = []
    floor_age: Optional[int] = None
    guaranteed_at_retirement = 0.0
    essential_at_retirement = 0.0

    for age, multiplier in zip(ages.tolist(), multipliers.tolist()):
        phase = calculate_phase_adjusted_expenses(
            age,
            inputs.annual_essential_expenses,
            inputs.annual_discretionary_expenses,
            inputs.spending_phase_config,
        )
        essential = phase.essential * multiplier
        guaranteed = calculate_guaranteed_income(inputs.income_streams, age, multiplier)
        ratio = _coverage_ratio(guaranteed, essential)
        is_covered = ratio >= FULL_COVERAGE

        if is_covered and floor_age is None:
            floor_age = age
        if age == inputs.retirement_age:
            guaranteed_at_retirement = guaranteed
            essential_at_retirement = essential

        coverage.append(YearlyCoverage(
            age=age,
            year=inputs.start_year + (age - inputs.current_age),
            guaranteed_income=round_cents(guaranteed),
            essential_expenses=round_cents(essential),
            coverage_ratio=_round_ratio(ratio),
            is_fully_covered=is_covered,
        ))

    ratio_at_retirement = _coverage_ratio(guaranteed_at_retirement, essential_at_retirement)
    status = _determine_status(ratio_at_retirement, floor_age)

    return IncomeFloorAnalysis(
        guaranteed_income_at_retirement=round_cents(guaranteed_at_retirement),
        essential_expenses_at_retirement=round_cents(essential_at_retirement),
        coverage_ratio_at_retirement=_round_ratio(ratio_at_retirement),
        is_floor_established=floor_age is not None,
        floor_established_age=floor_age,
        status=status,
        insight_statement=_insight_statement(status, floor_age, ratio_at_retirement,
                                             inputs.retirement_age),
        coverage_by_age=coverage,
    )


def has_guaranteed_income(streams: Iterable[IncomeStream]) -> bool:
    return any(s.is_guaranteed for s in streams)


def get_guaranteed_income_summary(streams: Iterable[IncomeStream]) -> Dict:
    """Count, total annual amount (today's dollars) and distinct types of guaranteed streams."""
    guaranteed = [s for s in streams if s.is_guaranteed]
    types: List[str] = []
    for s in guaranteed:
        type_name = s.type.value if hasattr(s.type, "value") else str(s.type)
        if type_name not in types:
            types.append(type_name)
    return {
        "count": len(guaranteed),
        "total_annual": sum(s.annual_amount for s in guaranteed),
        "types": types,
    }
