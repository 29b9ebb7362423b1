# engine/simulator.py

"""
Deterministic year-by-year projection of a household's balances.

The loop is an explicit fold: an immutable SimulationState is threaded through
one step per age, each step returning the next state and that year's record.

Uses an end-of-year model:
- Accumulation: (balance + contribution - debt payments) x (1 + return)
- Drawdown:     (balance - withdrawal) x (1 + return)
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from models import (
    BalanceByType,
    ProjectionInput,
    ProjectionRecord,
    ProjectionResult,
    ProjectionSummary,
    ReductionStage,
    round_cents,
)
from engine.income_calculator import calculate_guaranteed_income, calculate_total_income
from engine.reserve_policy import apply_reserve_constraint
from engine.rmd_tables import calculate_rmd
from engine.spending_phases import calculate_phase_adjusted_expenses
from engine.withdrawal_engine import subtract_withdrawals, withdraw_with_rmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationState:
    # Balances at the start of the year (= prior year-end balances)
    balances: BalanceByType
    total_contributions: float = 0.0
    total_withdrawals: float = 0.0
    years_until_depletion: Optional[int] = None
    projected_retirement_balance: float = 0.0
    years_reserve_constrained: int = 0
    first_reserve_constraint_age: Optional[int] = None
    total_spending_shortfall: float = 0.0
    total_rmd_taken: float = 0.0


# =========================================================================
# Helpers
# =========================================================================

def _apply_returns(balances: BalanceByType, return_rate: float) -> BalanceByType:
    growth = 1 + return_rate
    return BalanceByType(
        tax_deferred=balances.tax_deferred * growth,
        tax_free=balances.tax_free * growth,
        taxable=balances.taxable * growth,
    ).clamped()


def _add_contributions(balances: BalanceByType,
                       contribution: float,
                       allocation: BalanceByType) -> BalanceByType:
    return BalanceByType(
        tax_deferred=balances.tax_deferred + contribution * allocation.tax_deferred / 100,
        tax_free=balances.tax_free + contribution * allocation.tax_free / 100,
        taxable=balances.taxable + contribution * allocation.taxable / 100,
    )


def _required_distribution(inputs: ProjectionInput, age: int, prior_tax_deferred: float) -> float:
    config = inputs.rmd_config
    if config is None or not config.enabled:
        return 0.0
    return calculate_rmd(prior_tax_deferred, age, config.start_age)


# =========================================================================
# Year steps
# =========================================================================

def _accumulation_step(inputs: ProjectionInput,
                       state: SimulationState,
                       age: int) -> Tuple[SimulationState, ProjectionRecord]:
    years_from_start = age - inputs.current_age

    growth_multiplier = (1 + inputs.contribution_growth_rate) ** years_from_start
    grown_contribution = inputs.annual_contribution * growth_multiplier
    # Debt payments come out of what would have been saved
    effective_contribution = max(0.0, grown_contribution - inputs.annual_debt_payments)

    balances = _add_contributions(state.balances, effective_contribution,
                                  inputs.contribution_allocation)
    balances = _apply_returns(balances, inputs.expected_return)

    new_state = replace(
        state,
        balances=balances,
        total_contributions=state.total_contributions + effective_contribution,
    )
    record = ProjectionRecord(
        age=age,
        year=inputs.start_year + years_from_start,
        balance=max(0.0, round_cents(balances.total())),
        inflows=round_cents(effective_contribution),
        outflows=0.0,
        balance_by_type=balances.rounded(),
    )
    return new_state, record


def _drawdown_step(inputs: ProjectionInput,
                   state: SimulationState,
                   age: int) -> Tuple[SimulationState, ProjectionRecord]:
    years_from_start = age - inputs.current_age
    years_from_retirement = age - inputs.retirement_age

    # --- Expenses (phase-adjusted, then inflated) ---
    inflation_multiplier = (1 + inputs.inflation_rate) ** years_from_retirement
    healthcare_multiplier = (1 + inputs.healthcare_inflation_rate) ** years_from_retirement

    phase_result = calculate_phase_adjusted_expenses(
        age,
        inputs.annual_essential_expenses,
        inputs.annual_discretionary_expenses,
        inputs.spending_phase_config,
    )
    essential = phase_result.essential * inflation_multiplier
    discretionary = phase_result.discretionary * inflation_multiplier
    healthcare = inputs.annual_healthcare_costs * healthcare_multiplier

    # --- Income: pays essentials (incl. healthcare) first ---
    income = calculate_total_income(inputs.income_streams, age, inflation_multiplier)
    guaranteed = calculate_guaranteed_income(inputs.income_streams, age, inflation_multiplier)

    essential_total = essential + healthcare
    essential_need = max(0.0, essential_total - income)
    income_surplus = max(0.0, income - essential_total)
    discretionary_need = max(0.0, discretionary - income_surplus)

    opening_total = state.balances.total()
    retirement_balance = state.projected_retirement_balance
    if age == inputs.retirement_age:
        retirement_balance = opening_total

    # --- Spending policy ---
    stage: Optional[ReductionStage] = None
    if inputs.reserve_floor is not None:
        constraint = apply_reserve_constraint(
            opening_total, essential_need, discretionary_need, inputs.reserve_floor
        )
        essential_paid = constraint.essential_paid
        discretionary_paid = constraint.discretionary_paid
        policy_shortfall = constraint.shortfall
        stage = constraint.stage
    else:
        essential_paid = essential_need
        discretionary_paid = discretionary_need
        policy_shortfall = 0.0
    reserve_constrained = stage is not None and stage is not ReductionStage.NONE
    target = essential_paid + discretionary_paid

    # --- RMD & withdrawal ---
    rmd_required = _required_distribution(inputs, age, state.balances.tax_deferred)
    if rmd_required > target:
        logger.debug(f"[Age {age}] RMD ${rmd_required:,.2f} exceeds spending need ${target:,.2f}")

    withdrawal = withdraw_with_rmd(max(target, rmd_required), state.balances, rmd_required)
    balances = subtract_withdrawals(state.balances, withdrawal.withdrawals)
    balances = _apply_returns(balances, inputs.expected_return)
    withdrawn = withdrawal.withdrawals.total()

    # Unfunded need from exhausted accounts cuts discretionary before essentials
    unfunded = withdrawal.shortfall
    discretionary_cut = min(discretionary_paid, unfunded)
    discretionary_paid -= discretionary_cut
    essential_paid -= unfunded - discretionary_cut
    spending_shortfall = policy_shortfall + unfunded

    actual_essential = essential_total - (essential_need - essential_paid)
    actual_discretionary = discretionary - (discretionary_need - discretionary_paid)

    # --- State transition ---
    years_until_depletion = state.years_until_depletion
    if years_until_depletion is None and balances.total() <= 0:
        years_until_depletion = years_from_start
        logger.debug(f"Portfolio depleted at age {age}")

    first_constraint_age = state.first_reserve_constraint_age
    if reserve_constrained and first_constraint_age is None:
        first_constraint_age = age
        logger.debug(f"Reserve floor first constrains spending at age {age} ({stage.value})")

    new_state = replace(
        state,
        balances=balances,
        total_withdrawals=state.total_withdrawals + withdrawn,
        years_until_depletion=years_until_depletion,
        projected_retirement_balance=retirement_balance,
        years_reserve_constrained=state.years_reserve_constrained + int(reserve_constrained),
        first_reserve_constraint_age=first_constraint_age,
        total_spending_shortfall=state.total_spending_shortfall + spending_shortfall,
        total_rmd_taken=state.total_rmd_taken + withdrawal.rmd_taken,
    )

    closing_total = balances.total()
    reserve_balance = None
    if inputs.reserve_floor is not None:
        reserve_balance = max(0.0, round_cents(closing_total - inputs.reserve_floor))

    record = ProjectionRecord(
        age=age,
        year=inputs.start_year + years_from_start,
        balance=max(0.0, round_cents(closing_total)),
        inflows=round_cents(income),
        outflows=round_cents(actual_essential + actual_discretionary),
        balance_by_type=balances.rounded(),
        withdrawals_by_type=withdrawal.withdrawals.rounded(),
        essential_expenses=round_cents(essential),
        discretionary_expenses=round_cents(discretionary),
        healthcare_expenses=round_cents(healthcare),
        actual_essential_spending=round_cents(actual_essential),
        actual_discretionary_spending=round_cents(actual_discretionary),
        active_phase_name=phase_result.active_phase.name if phase_result.active_phase else None,
        guaranteed_income=round_cents(guaranteed),
        reserve_constrained=reserve_constrained,
        reduction_stage=stage,
        spending_shortfall=round_cents(spending_shortfall),
        reserve_balance=reserve_balance,
        rmd_required=round_cents(rmd_required),
        rmd_taken=round_cents(withdrawal.rmd_taken),
        excess_over_rmd=round_cents(withdrawal.excess_over_rmd),
    )
    return new_state, record


# =========================================================================
# Runner
# =========================================================================

def _initial_state(inputs: ProjectionInput) -> SimulationState:
    starting_total = inputs.balances_by_type.total()
    # Already retired: accumulation is skipped and the starting balance is the
    # retirement balance
    retirement_balance = starting_total if inputs.current_age >= inputs.retirement_age else 0.0
    return SimulationState(
        balances=inputs.balances_by_type,
        projected_retirement_balance=retirement_balance,
    )


def _summarize(inputs: ProjectionInput, state: SimulationState) -> ProjectionSummary:
    return ProjectionSummary(
        starting_balance=round_cents(inputs.balances_by_type.total()),
        ending_balance=max(0.0, round_cents(state.balances.total())),
        total_contributions=round_cents(state.total_contributions),
        total_withdrawals=round_cents(state.total_withdrawals),
        years_until_depletion=state.years_until_depletion,
        projected_retirement_balance=round_cents(state.projected_retirement_balance),
        start_age=inputs.current_age,
        reserve_floor=inputs.reserve_floor,
        years_reserve_constrained=state.years_reserve_constrained,
        first_reserve_constraint_age=state.first_reserve_constraint_age,
        total_spending_shortfall=round_cents(state.total_spending_shortfall),
        total_rmd_taken=round_cents(state.total_rmd_taken),
    )


def run_projection(inputs: ProjectionInput) -> ProjectionResult:
    """
    Runs the complete projection from current_age through max_age (inclusive).

    Pure and deterministic: the same input always produces the same result, and
    nothing is cached between calls.
    """
    logger.debug(
        f"Running projection: ages {inputs.current_age}-{inputs.max_age}, "
        f"retiring at {inputs.retirement_age}"
    )

    state = _initial_state(inputs)
    records: List[ProjectionRecord] = []

    for age in range(inputs.current_age, inputs.max_age + 1):
        if age < inputs.retirement_age:
            state, record = _accumulation_step(inputs, state, age)
        else:
            state, record = _drawdown_step(inputs, state, age)
        records.append(record)

    summary = _summarize(inputs, state)
    logger.debug(
        f"Projection complete: ending balance ${summary.ending_balance:,.2f}, "
        f"depletion age {summary.depletion_age}"
    )
    return ProjectionResult(records=records, summary=summary)
