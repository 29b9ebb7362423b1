# withdrawal_engine.py

from dataclasses import replace
from typing import Dict, Tuple

from models import BalanceByType, RMDWithdrawalResult, WithdrawalResult

# Handles logic for prioritizing account withdrawals
#
# taxable first (capital gains treatment), then tax-deferred (ordinary income),
# tax-free last to preserve tax-free growth longest.
TAX_EFFICIENT_ORDER: Tuple[str, ...] = ("taxable", "tax_deferred", "tax_free")


class WithdrawalEngine:
    """
    Allocates a required withdrawal across the three tax buckets.
    """
    def __init__(self, order: Tuple[str, ...] = TAX_EFFICIENT_ORDER):
        self.order = order

    def _withdraw_from_hierarchy(self,
                                 amount_needed: float,
                                 available: Dict[str, float],
                                 taken: Dict[str, float]) -> float:
        """
        The Core Engine: pulls amount_needed following self.order, each bucket
        capped at what is left in it. Mutates `taken`; returns the unmet remainder.
        """
        remaining = amount_needed

        for bucket in self.order:
            if remaining <= 0:
                break
            left_in_bucket = available[bucket] - taken[bucket]
            if left_in_bucket <= 0:
                continue

            amt = min(remaining, left_in_bucket)
            taken[bucket] += amt
            remaining -= amt

        return max(0.0, remaining)

    def withdraw(self, amount_needed: float, balances: BalanceByType) -> WithdrawalResult:
        available = _as_dict(balances)
        taken = dict.fromkeys(available, 0.0)

        shortfall = self._withdraw_from_hierarchy(amount_needed, available, taken)

        return WithdrawalResult(withdrawals=BalanceByType(**taken), shortfall=shortfall)

    def withdraw_with_rmd(self,
                          amount_needed: float,
                          balances: BalanceByType,
                          rmd_required: float) -> RMDWithdrawalResult:
        """
        Forces the RMD out of tax-deferred first (ahead of taxable), then covers
        any remaining need in the standard order.
        """
        available = _as_dict(balances)
        taken = dict.fromkeys(available, 0.0)

        rmd_taken = 0.0
        if rmd_required > 0 and available["tax_deferred"] > 0:
            rmd_taken = min(rmd_required, available["tax_deferred"])
            taken["tax_deferred"] = rmd_taken

        shortfall = self._withdraw_from_hierarchy(
            max(0.0, amount_needed - rmd_taken), available, taken
        )
        total_taken = sum(taken.values())

        return RMDWithdrawalResult(
            withdrawals=BalanceByType(**taken),
            shortfall=shortfall,
            rmd_required=rmd_required,
            rmd_taken=rmd_taken,
            excess_over_rmd=max(0.0, total_taken - rmd_taken),
        )


def _as_dict(balances: BalanceByType) -> Dict[str, float]:
    return {
        "tax_deferred": balances.tax_deferred,
        "tax_free": balances.tax_free,
        "taxable": balances.taxable,
    }


def subtract_withdrawals(balances: BalanceByType, withdrawals: BalanceByType) -> BalanceByType:
    return replace(
        balances,
        tax_deferred=balances.tax_deferred - withdrawals.tax_deferred,
        tax_free=balances.tax_free - withdrawals.tax_free,
        taxable=balances.taxable - withdrawals.taxable,
    ).clamped()


_DEFAULT_ENGINE = WithdrawalEngine()


def withdraw_from_accounts(amount_needed: float, balances: BalanceByType) -> WithdrawalResult:
    """Tax-aware withdrawal: taxable -> tax-deferred -> tax-free."""
    return _DEFAULT_ENGINE.withdraw(amount_needed, balances)


def withdraw_with_rmd(amount_needed: float,
                      balances: BalanceByType,
                      rmd_required: float) -> RMDWithdrawalResult:
    """RMD-aware variant of withdraw_from_accounts."""
    return _DEFAULT_ENGINE.withdraw_with_rmd(amount_needed, balances, rmd_required)
