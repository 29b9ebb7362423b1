# engine/sensitivity.py

"""
Finite-difference sensitivity analysis.

Each lever re-runs the projection with exactly one input perturbed and measures
the change in retirement balance and depletion timing. Levers are explicit
LeverTest values (perturbation + formatting) rather than field-name lookups.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from models import ProjectionInput, ProjectionResult
from engine.simulator import run_projection
from utils.currency import format_compact_currency, format_percent

logger = logging.getLogger(__name__)

TOP_LEVER_COUNT = 3


class Lever(str, Enum):
    EXPECTED_RETURN = "expected_return"
    INFLATION_RATE = "inflation_rate"
    RETIREMENT_AGE = "retirement_age"
    ANNUAL_CONTRIBUTION = "annual_contribution"
    ANNUAL_EXPENSES = "annual_expenses"
    ANNUAL_HEALTHCARE_COSTS = "annual_healthcare_costs"


class DepletionChange(str, Enum):
    NO_CHANGE = "no_change"        # both sustainable
    NOW_DEPLETES = "now_depletes"  # sustainable -> depletes
    IMPROVED = "improved"          # depletes -> sustainable
    CHANGED = "changed"            # both deplete


@dataclass(frozen=True)
class DepletionImpact:
    status: DepletionChange
    # NOW_DEPLETES: new years-until-depletion; CHANGED: delta in years
    years: Optional[int] = None


# =========================================================================
# Lever registry
# =========================================================================

def _rate_formatter(value: float) -> str:
    return format_percent(value, decimals=1)


def _age_formatter(value: float) -> str:
    return f"Age {int(value)}"


def _years_formatter(delta: float) -> str:
    years = int(delta)
    return f"{years} year{'s' if years != 1 else ''}"


@dataclass(frozen=True)
class LeverTest:
    lever: Lever
    display_name: str
    direction: str  # 'increase' | 'decrease'
    current_value: Callable[[ProjectionInput], float]
    delta: Callable[[ProjectionInput], float]
    perturb: Callable[[ProjectionInput, float], ProjectionInput]
    format_value: Callable[[float], str]
    format_delta: Callable[[float], str]
    applies: Callable[[ProjectionInput], bool] = lambda inputs: True
    review_suggestion: str = "Review periodically as circumstances change"


def _scale_expenses(inputs: ProjectionInput, factor: float) -> ProjectionInput:
    return replace(
        inputs,
        annual_essential_expenses=inputs.annual_essential_expenses * factor,
        annual_discretionary_expenses=inputs.annual_discretionary_expenses * factor,
    )


LEVER_TESTS: Tuple[LeverTest, ...] = (
    LeverTest(
        lever=Lever.EXPECTED_RETURN,
        display_name="Expected Return",
        direction="increase",
        current_value=lambda i: i.expected_return,
        delta=lambda i: 0.01,  # 1 percentage point
        perturb=lambda i, d: replace(i, expected_return=i.expected_return + d),
        format_value=_rate_formatter,
        format_delta=_rate_formatter,
        review_suggestion="Review annually based on portfolio allocation and market conditions",
    ),
    LeverTest(
        lever=Lever.INFLATION_RATE,
        display_name="Inflation Rate",
        direction="decrease",
        current_value=lambda i: i.inflation_rate,
        delta=lambda i: 0.005,  # 0.5 percentage point
        perturb=lambda i, d: replace(i, inflation_rate=i.inflation_rate - d),
        format_value=_rate_formatter,
        format_delta=_rate_formatter,
        review_suggestion="Consider updating if inflation trends significantly change",
    ),
    LeverTest(
        lever=Lever.RETIREMENT_AGE,
        display_name="Retirement Age",
        direction="increase",
        current_value=lambda i: i.retirement_age,
        delta=lambda i: 1,
        perturb=lambda i, d: replace(i, retirement_age=i.retirement_age + int(d)),
        format_value=_age_formatter,
        format_delta=_years_formatter,
        review_suggestion="Revisit as career plans evolve",
    ),
    LeverTest(
        lever=Lever.ANNUAL_CONTRIBUTION,
        display_name="Annual Savings",
        direction="increase",
        current_value=lambda i: i.annual_contribution,
        delta=lambda i: i.annual_contribution * 0.1,
        perturb=lambda i, d: replace(i, annual_contribution=i.annual_contribution + d),
        format_value=format_compact_currency,
        format_delta=format_compact_currency,
        applies=lambda i: i.annual_contribution != 0,
        review_suggestion="Update when income or expenses change meaningfully",
    ),
    LeverTest(
        lever=Lever.ANNUAL_EXPENSES,
        display_name="Annual Expenses",
        direction="decrease",
        current_value=lambda i: i.annual_expenses,
        delta=lambda i: i.annual_expenses * 0.1,
        perturb=lambda i, d: _scale_expenses(i, 0.9),
        format_value=format_compact_currency,
        format_delta=format_compact_currency,
        applies=lambda i: i.annual_expenses != 0,
        review_suggestion="Refresh after major life changes or annual budget review",
    ),
    LeverTest(
        lever=Lever.ANNUAL_HEALTHCARE_COSTS,
        display_name="Healthcare Costs",
        direction="decrease",
        current_value=lambda i: i.annual_healthcare_costs,
        delta=lambda i: 1000,
        perturb=lambda i, d: replace(i, annual_healthcare_costs=max(0.0, i.annual_healthcare_costs - d)),
        format_value=format_compact_currency,
        format_delta=format_compact_currency,
        applies=lambda i: i.annual_healthcare_costs > 0,
        review_suggestion="Review as healthcare needs or coverage changes",
    ),
)

LEVERS_BY_NAME = {test.lever: test for test in LEVER_TESTS}


# =========================================================================
# Results
# =========================================================================

@dataclass(frozen=True)
class LeverImpact:
    lever: Lever
    display_name: str
    current_value: float
    test_delta: float
    test_direction: str
    impact_on_balance: float
    impact_on_depletion: DepletionImpact
    percent_impact: float

    @property
    def formatted_delta(self) -> str:
        return LEVERS_BY_NAME[self.lever].format_delta(self.test_delta)


@dataclass(frozen=True)
class SensitivityResult:
    top_levers: List[LeverImpact]
    baseline_balance: float
    baseline_depletion: Optional[int]


@dataclass(frozen=True)
class LowFrictionWin:
    id: str
    title: str
    description: str
    effort_level: str  # 'minimal' | 'low' | 'moderate'
    potential_impact: float
    impact_description: str
    uncertainty_caveat: str
    lever: Lever
    delta: float


@dataclass(frozen=True)
class SensitiveAssumption:
    assumption: Lever
    display_name: str
    current_value: float
    formatted_value: str
    sensitivity_score: int
    explanation: str
    review_suggestion: str


def calculate_depletion_delta(base_depletion: Optional[int],
                              modified_depletion: Optional[int]) -> DepletionImpact:
    if base_depletion is None and modified_depletion is None:
        return DepletionImpact(DepletionChange.NO_CHANGE)
    if base_depletion is None:
        return DepletionImpact(DepletionChange.NOW_DEPLETES, modified_depletion)
    if modified_depletion is None:
        return DepletionImpact(DepletionChange.IMPROVED)
    return DepletionImpact(DepletionChange.CHANGED, modified_depletion - base_depletion)


def _retirement_balance(result: ProjectionResult) -> float:
    return result.summary.projected_retirement_balance


# =========================================================================
# Analysis
# =========================================================================

def analyze_sensitivity(base_input: ProjectionInput, parallel: bool = False) -> SensitivityResult:
    """
    Ranks the levers by their absolute effect on retirement balance.

    Args:
        base_input: Scenario to perturb.
        parallel: Run the perturbed projections in worker processes. Results are
            identical to the sequential run.

    Returns:
        SensitivityResult with the top three levers.
    """
    base_result = run_projection(base_input)
    base_balance = _retirement_balance(base_result)
    base_depletion = base_result.summary.years_until_depletion

    tests = [test for test in LEVER_TESTS if test.applies(base_input)]
    deltas = [test.delta(base_input) for test in tests]
    modified_inputs = [test.perturb(base_input, delta) for test, delta in zip(tests, deltas)]

    if parallel and modified_inputs:
        with ProcessPoolExecutor() as executor:
            modified_results = list(executor.map(run_projection, modified_inputs))
    else:
        modified_results = [run_projection(m) for m in modified_inputs]

    impacts: List[LeverImpact] = []
    for test, delta, result in zip(tests, deltas, modified_results):
        impact_on_balance = _retirement_balance(result) - base_balance
        impacts.append(LeverImpact(
            lever=test.lever,
            display_name=test.display_name,
            current_value=test.current_value(base_input),
            test_delta=delta,
            test_direction=test.direction,
            impact_on_balance=impact_on_balance,
            impact_on_depletion=calculate_depletion_delta(
                base_depletion, result.summary.years_until_depletion
            ),
            percent_impact=abs(impact_on_balance / base_balance) * 100 if base_balance > 0 else 0.0,
        ))

    # Stable sort keeps registry order for ties
    impacts.sort(key=lambda impact: abs(impact.impact_on_balance), reverse=True)
    logger.debug(f"Sensitivity: evaluated {len(impacts)} levers")

    return SensitivityResult(
        top_levers=impacts[:TOP_LEVER_COUNT],
        baseline_balance=base_balance,
        baseline_depletion=base_depletion,
    )


def identify_low_friction_wins(base_input: ProjectionInput) -> List[LowFrictionWin]:
    """Small, realistic changes with a material effect on retirement balance (top 3)."""
    wins: List[LowFrictionWin] = []
    base_balance = _retirement_balance(run_projection(base_input))

    # Win 1: retire one year later (if under 70)
    if base_input.retirement_age < 70:
        later = replace(base_input, retirement_age=base_input.retirement_age + 1)
        impact = _retirement_balance(run_projection(later)) - base_balance
        if impact > 10_000:
            wins.append(LowFrictionWin(
                id="retire-one-year-later",
                title="One additional working year",
                description=(f"Working until age {base_input.retirement_age + 1} "
                             f"instead of {base_input.retirement_age}"),
                effort_level="moderate",
                potential_impact=impact,
                impact_description=f"adds approximately {format_compact_currency(impact)} to retirement funds",
                uncertainty_caveat="Assumes continued employment and contribution levels",
                lever=Lever.RETIREMENT_AGE,
                delta=1,
            ))

    # Win 2: 5% expense reduction
    expense_reduction = base_input.annual_expenses * 0.05
    if expense_reduction > 0:
        reduced = _scale_expenses(base_input, 0.95)
        impact = _retirement_balance(run_projection(reduced)) - base_balance
        if impact > 5_000:
            wins.append(LowFrictionWin(
                id="reduce-expenses-5pct",
                title="Modest expense reduction",
                description=(f"Reducing annual expenses by "
                             f"{format_compact_currency(expense_reduction)}/year (5%)"),
                effort_level="low",
                potential_impact=impact,
                impact_description=f"frees up approximately {format_compact_currency(impact)} for retirement",
                uncertainty_caveat="Based on current expense levels; actual savings may vary",
                lever=Lever.ANNUAL_EXPENSES,
                delta=expense_reduction,
            ))

    # Win 3: 10% savings increase (if currently contributing)
    if base_input.annual_contribution > 0:
        increase = base_input.annual_contribution * 0.10
        boosted = replace(base_input, annual_contribution=base_input.annual_contribution + increase)
        impact = _retirement_balance(run_projection(boosted)) - base_balance
        if impact > 5_000:
            wins.append(LowFrictionWin(
                id="increase-savings-10pct",
                title="Incremental savings boost",
                description=(f"Saving an additional {format_compact_currency(increase)}/year "
                             f"(10% increase)"),
                effort_level="low",
                potential_impact=impact,
                impact_description=f"grows to approximately {format_compact_currency(impact)} by retirement",
                uncertainty_caveat="Assumes consistent contribution over time; market returns may vary",
                lever=Lever.ANNUAL_CONTRIBUTION,
                delta=increase,
            ))

    wins.sort(key=lambda win: win.potential_impact, reverse=True)
    return wins[:3]


def identify_sensitive_assumptions(sensitivity_result: SensitivityResult) -> List[SensitiveAssumption]:
    """The two most sensitive levers, scored 0-100 relative to the largest impact."""
    max_impact = max(
        [abs(lever.impact_on_balance) for lever in sensitivity_result.top_levers] + [1.0]
    )

    assumptions: List[SensitiveAssumption] = []
    for impact in sensitivity_result.top_levers[:2]:
        test = LEVERS_BY_NAME[impact.lever]
        direction = "higher" if impact.impact_on_balance > 0 else "lower"
        explanation = (
            f"A {test.format_delta(impact.test_delta)} {impact.test_direction} in "
            f"{impact.display_name.lower()} results in approximately "
            f"{format_compact_currency(abs(impact.impact_on_balance))} {direction} retirement balance."
        )
        assumptions.append(SensitiveAssumption(
            assumption=impact.lever,
            display_name=impact.display_name,
            current_value=impact.current_value,
            formatted_value=test.format_value(impact.current_value),
            sensitivity_score=round(abs(impact.impact_on_balance) / max_impact * 100),
            explanation=explanation,
            review_suggestion=test.review_suggestion,
        ))

    return assumptions
