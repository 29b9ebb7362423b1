"""Tests for tax-ordered and RMD-aware withdrawals."""

import pytest

from engine.withdrawal_engine import (
    WithdrawalEngine,
    subtract_withdrawals,
    withdraw_from_accounts,
    withdraw_with_rmd,
)
from models import BalanceByType


@pytest.fixture
def balances():
    return BalanceByType(tax_deferred=50000, tax_free=50000, taxable=20000)


class TestWithdrawFromAccounts:

    def test_taxable_exhausted_before_tax_deferred(self, balances):
        result = withdraw_from_accounts(30000, balances)

        assert result.withdrawals.taxable == 20000
        assert result.withdrawals.tax_deferred == 10000
        assert result.withdrawals.tax_free == 0
        assert result.shortfall == 0

    def test_tax_free_is_last(self, balances):
        result = withdraw_from_accounts(80000, balances)

        assert result.withdrawals.taxable == 20000
        assert result.withdrawals.tax_deferred == 50000
        assert result.withdrawals.tax_free == 10000

    def test_shortfall_when_insufficient(self, balances):
        result = withdraw_from_accounts(150000, balances)

        assert result.withdrawals.total() == 120000
        assert result.shortfall == pytest.approx(30000)

    def test_zero_request(self, balances):
        result = withdraw_from_accounts(0, balances)

        assert result.withdrawals.total() == 0
        assert result.shortfall == 0

    def test_empty_accounts(self):
        result = withdraw_from_accounts(5000, BalanceByType())

        assert result.shortfall == 5000

    def test_custom_order(self, balances):
        engine = WithdrawalEngine(order=("tax_free", "taxable", "tax_deferred"))
        result = engine.withdraw(60000, balances)

        assert result.withdrawals.tax_free == 50000
        assert result.withdrawals.taxable == 10000
        assert result.withdrawals.tax_deferred == 0


class TestWithdrawWithRMD:

    def test_rmd_comes_from_tax_deferred_first(self):
        balances = BalanceByType(tax_deferred=100000, taxable=50000)
        result = withdraw_with_rmd(10000, balances, rmd_required=4000)

        assert result.withdrawals.tax_deferred == 4000
        assert result.withdrawals.taxable == 6000
        assert result.rmd_taken == 4000
        assert result.excess_over_rmd == 6000
        assert result.shortfall == 0

    def test_need_equal_to_rmd(self):
        balances = BalanceByType(tax_deferred=100000, taxable=50000)
        result = withdraw_with_rmd(5000, balances, rmd_required=5000)

        assert result.withdrawals.tax_deferred == 5000
        assert result.withdrawals.taxable == 0
        assert result.excess_over_rmd == 0

    def test_rmd_capped_at_tax_deferred_balance(self):
        balances = BalanceByType(tax_deferred=1000, taxable=50000)
        result = withdraw_with_rmd(4000, balances, rmd_required=4000)

        assert result.rmd_taken == 1000
        assert result.rmd_required == 4000
        assert result.withdrawals.taxable == 3000

    def test_no_rmd_matches_plain_withdrawal(self, balances):
        plain = withdraw_from_accounts(30000, balances)
        with_rmd = withdraw_with_rmd(30000, balances, rmd_required=0)

        assert with_rmd.withdrawals == plain.withdrawals
        assert with_rmd.rmd_taken == 0


def test_subtract_withdrawals_clamps_at_zero():
    balances = BalanceByType(tax_deferred=100, tax_free=50, taxable=10)
    withdrawals = BalanceByType(tax_deferred=40, tax_free=60, taxable=10)

    assert subtract_withdrawals(balances, withdrawals) == BalanceByType(60, 0, 0)
