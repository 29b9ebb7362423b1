"""Tests for the year-by-year projection loop."""

import pytest

from engine.simulator import run_projection
from engine.spending_phases import DEFAULT_SPENDING_PHASES
from models import BalanceByType, ProjectionResult, ReductionStage, RMDConfig


class TestProjectionShape:

    def test_reference_scenario(self, base_input):
        result = run_projection(base_input)
        records = {r.age: r for r in result.records}

        assert isinstance(result, ProjectionResult)
        assert len(result.records) == 61
        assert result.records[0].age == 30
        assert result.records[-1].age == 90
        for age in range(31, 65):
            assert records[age].balance > records[age - 1].balance
        assert records[66].inflows == 0
        assert records[67].inflows > 0

    @pytest.mark.parametrize("current_age, max_age", [(30, 90), (64, 65), (65, 65), (80, 100)])
    def test_one_record_per_age(self, make_input, current_age, max_age):
        result = run_projection(make_input(current_age=current_age, max_age=max_age))

        assert len(result.records) == max_age - current_age + 1
        assert [r.age for r in result.records] == list(range(current_age, max_age + 1))

    def test_calendar_years(self, base_input):
        result = run_projection(base_input)

        assert result.records[0].year == 2025
        assert result.records[-1].year == 2025 + 60

    def test_deterministic(self, base_input):
        assert run_projection(base_input) == run_projection(base_input)

    def test_to_dataframe(self, base_input):
        df = run_projection(base_input).to_dataframe()

        assert len(df) == 61
        assert {"age", "balance", "balance_tax_deferred", "withdrawal_taxable"} <= set(df.columns)
        assert df["withdrawal_taxable"].iloc[0] == 0


class TestAccumulation:

    def test_contribute_then_grow(self, make_input):
        inputs = make_input(current_age=60, retirement_age=62, max_age=62,
                            balances_by_type=BalanceByType(tax_deferred=100000),
                            contribution_allocation=BalanceByType(tax_deferred=100),
                            annual_contribution=10000, expected_return=0.10)
        records = run_projection(inputs).records

        assert records[0].balance == pytest.approx(121000)
        assert records[0].inflows == 10000
        assert records[0].outflows == 0
        assert records[1].balance == pytest.approx(144100)

    def test_allocation_split(self, make_input):
        inputs = make_input(current_age=60, retirement_age=61, max_age=61,
                            balances_by_type=BalanceByType(), annual_contribution=10000,
                            expected_return=0.0)
        first = run_projection(inputs).records[0]

        assert first.balance_by_type == BalanceByType(tax_deferred=6000, tax_free=3000, taxable=1000)

    def test_debt_payments_reduce_contribution(self, make_input):
        inputs = make_input(current_age=60, retirement_age=61, max_age=61,
                            balances_by_type=BalanceByType(tax_deferred=100000),
                            annual_contribution=10000, annual_debt_payments=4000,
                            expected_return=0.10)
        result = run_projection(inputs)

        assert result.records[0].inflows == 6000
        assert result.records[0].balance == pytest.approx(116600)
        assert result.summary.total_contributions == 6000

    def test_debt_larger_than_contribution_floors_at_zero(self, make_input):
        inputs = make_input(current_age=60, retirement_age=61, max_age=61,
                            annual_contribution=5000, annual_debt_payments=8000)

        assert run_projection(inputs).summary.total_contributions == 0

    def test_contribution_growth(self, make_input):
        inputs = make_input(current_age=60, retirement_age=62, max_age=62,
                            annual_contribution=10000, contribution_growth_rate=0.05)
        records = run_projection(inputs).records

        assert records[0].inflows == 10000
        assert records[1].inflows == pytest.approx(10500)

    def test_accumulation_outflows_are_zero(self, base_input):
        for record in run_projection(base_input).records:
            if record.age < base_input.retirement_age:
                assert record.outflows == 0
                assert record.withdrawals_by_type is None

    def test_higher_growth_never_lowers_outcomes(self, make_input):
        low = run_projection(make_input(contribution_growth_rate=0.0)).summary
        high = run_projection(make_input(contribution_growth_rate=0.03)).summary

        assert high.total_contributions >= low.total_contributions
        assert high.projected_retirement_balance >= low.projected_retirement_balance


class TestDrawdown:

    def test_withdrawals_fund_expenses(self, make_retiree_input):
        result = run_projection(make_retiree_input())
        first, second = result.records

        assert first.withdrawals_by_type.taxable == 40000
        assert first.balance == 60000
        assert first.outflows == 40000
        assert second.balance == 20000
        assert result.summary.ending_balance == 20000
        assert result.summary.total_withdrawals == 80000
        assert result.summary.years_until_depletion is None
        assert result.summary.depletion_age is None

    def test_depletion_and_shortfall(self, make_retiree_input):
        result = run_projection(make_retiree_input(balances_by_type=BalanceByType(taxable=50000)))
        second = result.records[1]

        assert second.balance == 0
        assert second.spending_shortfall == 30000
        # Unfunded need cuts discretionary before essentials
        assert second.actual_discretionary_spending == 0
        assert second.actual_essential_spending == 10000
        assert second.outflows == 10000
        assert result.summary.years_until_depletion == 1
        assert result.summary.depletion_age == 66
        assert result.summary.total_spending_shortfall == 30000

    def test_depleted_balance_stays_at_zero(self, make_retiree_input):
        result = run_projection(make_retiree_input(balances_by_type=BalanceByType(taxable=10000),
                                                   max_age=70))

        assert result.summary.years_until_depletion == 0
        assert all(r.balance == 0 for r in result.records)

    def test_income_offsets_essentials_first(self, make_retiree_input, make_stream):
        inputs = make_retiree_input(income_streams=(make_stream(start_age=65),), max_age=65)
        record = run_projection(inputs).records[0]

        assert record.inflows == 24000
        assert record.guaranteed_income == 24000
        assert record.withdrawals_by_type.total() == 16000

    def test_income_surplus_offsets_discretionary(self, make_retiree_input, make_stream):
        inputs = make_retiree_input(income_streams=(make_stream(start_age=65, annual_amount=35000),),
                                    max_age=65)
        record = run_projection(inputs).records[0]

        assert record.withdrawals_by_type.total() == 5000

    def test_inflation_paths(self, make_retiree_input):
        inputs = make_retiree_input(inflation_rate=0.03, annual_healthcare_costs=10000,
                                    healthcare_inflation_rate=0.05,
                                    balances_by_type=BalanceByType(taxable=1000000))
        first, second = run_projection(inputs).records

        assert first.essential_expenses == 30000
        assert second.essential_expenses == pytest.approx(30900)
        assert second.discretionary_expenses == pytest.approx(10300)
        assert second.healthcare_expenses == pytest.approx(10500)

    def test_active_phase_recorded(self, make_retiree_input):
        inputs = make_retiree_input(spending_phase_config=DEFAULT_SPENDING_PHASES,
                                    balances_by_type=BalanceByType(taxable=1000000))
        first = run_projection(inputs).records[0]

        assert first.active_phase_name == "Go-Go Years"
        assert first.discretionary_expenses == pytest.approx(11000)

    def test_balances_never_negative(self, make_input):
        scenarios = [
            make_input(),
            make_input(balances_by_type=BalanceByType(), annual_contribution=0),
            make_input(expected_return=-0.2),
            make_input(annual_essential_expenses=500000),
        ]
        for inputs in scenarios:
            for record in run_projection(inputs).records:
                assert record.balance >= 0
                buckets = record.balance_by_type
                assert min(buckets.tax_deferred, buckets.tax_free, buckets.taxable) >= 0

    def test_retirement_balance_for_current_retiree(self, make_retiree_input):
        result = run_projection(make_retiree_input())

        assert result.summary.projected_retirement_balance == 100000
        assert result.summary.starting_balance == 100000


class TestRequiredDistributions:

    def _inputs(self, make_retiree_input, **overrides):
        params = dict(current_age=73, max_age=74,
                      balances_by_type=BalanceByType(tax_deferred=265000),
                      annual_essential_expenses=0, annual_discretionary_expenses=0,
                      rmd_config=RMDConfig())
        params.update(overrides)
        return make_retiree_input(**params)

    def test_rmd_forced_without_spending_need(self, make_retiree_input):
        result = run_projection(self._inputs(make_retiree_input))
        first, second = result.records

        assert first.rmd_required == pytest.approx(10000)
        assert first.rmd_taken == pytest.approx(10000)
        assert first.excess_over_rmd == 0
        assert first.balance == pytest.approx(255000)
        assert second.rmd_required == pytest.approx(10000)
        assert result.summary.total_rmd_taken == pytest.approx(20000)

    def test_rmd_not_enforced_without_config(self, make_retiree_input):
        result = run_projection(self._inputs(make_retiree_input, rmd_config=None))

        assert result.summary.total_withdrawals == 0
        assert result.records[0].rmd_required == 0

    def test_disabled_config(self, make_retiree_input):
        result = run_projection(self._inputs(make_retiree_input, rmd_config=RMDConfig(enabled=False)))

        assert result.summary.total_rmd_taken == 0

    def test_spending_above_rmd(self, make_retiree_input):
        inputs = self._inputs(make_retiree_input, annual_essential_expenses=25000,
                              balances_by_type=BalanceByType(tax_deferred=265000, taxable=100000))
        first = run_projection(inputs).records[0]

        assert first.rmd_taken == pytest.approx(10000)
        assert first.withdrawals_by_type.tax_deferred == pytest.approx(10000)
        assert first.withdrawals_by_type.taxable == pytest.approx(15000)
        assert first.excess_over_rmd == pytest.approx(15000)


class TestReserveFloor:

    def test_floor_at_starting_assets_constrains_every_year(self, make_retiree_input):
        inputs = make_retiree_input(max_age=90, expected_return=0.05,
                                    balances_by_type=BalanceByType(taxable=500000),
                                    annual_essential_expenses=40000,
                                    annual_discretionary_expenses=20000,
                                    reserve_floor=500000)
        result = run_projection(inputs)

        assert all(r.reserve_constrained for r in result.records)
        assert result.summary.first_reserve_constraint_age == 65
        assert result.summary.years_reserve_constrained == len(result.records)
        assert result.records[0].reduction_stage is ReductionStage.FLOOR_REACHED
        assert result.records[0].outflows == 0
        assert result.records[0].spending_shortfall == 60000
        assert result.records[1].reduction_stage is ReductionStage.ESSENTIALS_REDUCED

    def test_generous_floor_is_unconstrained(self, make_retiree_input):
        inputs = make_retiree_input(balances_by_type=BalanceByType(taxable=1000000),
                                    reserve_floor=100000)
        result = run_projection(inputs)

        assert not any(r.reserve_constrained for r in result.records)
        assert result.records[0].reduction_stage is ReductionStage.NONE
        assert result.records[0].reserve_balance == pytest.approx(860000)
        assert result.summary.first_reserve_constraint_age is None

    def test_discretionary_trimmed_to_floor(self, make_retiree_input):
        inputs = make_retiree_input(max_age=65, balances_by_type=BalanceByType(taxable=135000),
                                    reserve_floor=100000)
        record = run_projection(inputs).records[0]

        assert record.reduction_stage is ReductionStage.DISCRETIONARY_REDUCED
        assert record.actual_discretionary_spending == 5000
        assert record.spending_shortfall == 5000
        assert record.balance == 100000

    def test_no_floor_means_no_stage(self, make_retiree_input):
        record = run_projection(make_retiree_input()).records[0]

        assert record.reduction_stage is None
        assert record.reserve_balance is None
