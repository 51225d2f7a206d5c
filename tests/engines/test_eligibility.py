"""
Tests for the eligibility and accrual tracker.

Covers:
- Liquidity window opening per cycle
- Accrual formulas per withdrawal kind
- Prior principal withdrawals reducing the accrual base
- Dashboard availability snapshot
- Days to maturity and renewal window
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from invest_engines.eligibility import EligibilityTracker
from invest_kernel.domain.policy import WithdrawalPolicy
from invest_kernel.domain.values import LiquidityCycle, WithdrawalKind
from tests.conftest import make_investment, make_withdrawal


class TestIsWithdrawable:
    """Return kinds wait for the first liquidity window."""

    def setup_method(self):
        self.tracker = EligibilityTracker()

    def test_annual_window_opens_after_365_days(self, annual_investment):
        assert self.tracker.available_date(annual_investment) == date(2026, 1, 15)
        assert not self.tracker.is_withdrawable(
            annual_investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, date(2026, 1, 14)
        )
        assert self.tracker.is_withdrawable(
            annual_investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, date(2026, 1, 15)
        )

    def test_monthly_window_opens_after_30_days(self, monthly_investment):
        assert not self.tracker.is_withdrawable(
            monthly_investment, WithdrawalKind.MONTHLY_RETURN, date(2025, 2, 13)
        )
        assert self.tracker.is_withdrawable(
            monthly_investment, WithdrawalKind.MONTHLY_RETURN, date(2025, 2, 14)
        )

    @pytest.mark.parametrize("kind", [WithdrawalKind.PARTIAL, WithdrawalKind.TOTAL])
    def test_principal_kinds_always_eligible(self, annual_investment, kind):
        assert self.tracker.is_withdrawable(annual_investment, kind, date(2025, 1, 15))

    def test_before_start_not_eligible(self, monthly_investment):
        assert not self.tracker.is_withdrawable(
            monthly_investment, WithdrawalKind.MONTHLY_RETURN, date(2024, 12, 1)
        )

    def test_days_elapsed_never_negative(self, annual_investment):
        assert self.tracker.days_elapsed(annual_investment, date(2024, 1, 1)) == 0


class TestAccruedAmount:
    """Accrual formulas per withdrawal kind."""

    def setup_method(self):
        self.tracker = EligibilityTracker()

    def test_dividends_one_full_cycle(self, annual_investment):
        accrued = self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, date(2026, 1, 15)
        )
        assert accrued == Decimal("30000")

    def test_dividends_zero_before_first_cycle(self, annual_investment):
        accrued = self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, date(2025, 12, 31)
        )
        assert accrued == Decimal("0")

    def test_dividends_count_whole_monthly_cycles(self, monthly_investment):
        accrued = self.tracker.accrued_amount(
            monthly_investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, date(2025, 4, 20)
        )
        assert accrued == Decimal("50000") * Decimal("0.019") * 3

    @pytest.mark.parametrize("period,cycle", [
        (3, LiquidityCycle.MONTHLY),
        (6, LiquidityCycle.SEMIANNUAL),
        (12, LiquidityCycle.ANNUAL),
        (24, LiquidityCycle.BIENNIAL),
        (36, LiquidityCycle.TRIENNIAL),
    ])
    def test_first_cycle_accrues_on_window_day(self, period, cycle):
        """Across the 2024 leap day, accrual follows the same day counts as the window."""
        investment = make_investment(period=period, cycle=cycle, start=date(2024, 1, 31))
        window_day = self.tracker.available_date(investment)
        kind = WithdrawalKind.DIVIDENDS_BY_PERIOD
        one_cycle = Decimal("100000") * Decimal("0.025") * cycle.months

        assert window_day == investment.start_date + timedelta(days=cycle.period_days)
        assert self.tracker.is_withdrawable(investment, kind, window_day)
        assert self.tracker.accrued_amount(investment, kind, window_day) == one_cycle

        day_before = window_day - timedelta(days=1)
        assert not self.tracker.is_withdrawable(investment, kind, day_before)
        assert self.tracker.accrued_amount(investment, kind, day_before) == Decimal("0")

    def test_completed_cycles_use_window_day_counts(self):
        investment = make_investment(
            period=6, cycle=LiquidityCycle.SEMIANNUAL, start=date(2025, 1, 1)
        )
        assert self.tracker.completed_cycles(investment, date(2025, 6, 29)) == 0
        assert self.tracker.completed_cycles(investment, date(2025, 6, 30)) == 1
        assert self.tracker.completed_cycles(investment, date(2025, 12, 27)) == 2

    def test_monthly_return_is_simple(self, annual_investment):
        accrued = self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.MONTHLY_RETURN, date(2026, 2, 1)
        )
        assert accrued == Decimal("2500")

    def test_return_kinds_zero_before_start(self, annual_investment):
        assert self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.MONTHLY_RETURN, date(2024, 6, 1)
        ) == Decimal("0")

    @pytest.mark.parametrize("kind", [WithdrawalKind.PARTIAL, WithdrawalKind.TOTAL])
    def test_principal_kinds_accrue_available_principal(self, annual_investment, kind):
        prior = [make_withdrawal("25000")]
        assert self.tracker.accrued_amount(
            annual_investment, kind, date(2025, 3, 1), prior
        ) == Decimal("75000")

    def test_prior_partial_reduces_accrual_base(self, annual_investment):
        prior = [make_withdrawal("40000")]
        accrued = self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.MONTHLY_RETURN, date(2026, 2, 1), prior
        )
        assert accrued == Decimal("60000") * Decimal("0.025")

    def test_prior_return_withdrawals_do_not_reduce_base(self, annual_investment):
        prior = [make_withdrawal("2500", WithdrawalKind.MONTHLY_RETURN)]
        accrued = self.tracker.accrued_amount(
            annual_investment, WithdrawalKind.MONTHLY_RETURN, date(2026, 2, 1), prior
        )
        assert accrued == Decimal("2500")


class TestAvailability:
    def test_snapshot_covers_every_kind(self, annual_investment):
        tracker = EligibilityTracker()
        snapshot = tracker.availability(
            annual_investment, date(2025, 6, 1), [make_withdrawal("10000")]
        )

        assert snapshot.available_principal == Decimal("90000")
        assert {entry.kind for entry in snapshot.kinds} == set(WithdrawalKind)
        dividends = snapshot.for_kind(WithdrawalKind.DIVIDENDS_BY_PERIOD)
        assert not dividends.eligible
        assert dividends.available_date == date(2026, 1, 15)
        partial = snapshot.for_kind(WithdrawalKind.PARTIAL)
        assert partial.eligible
        assert partial.accrued_amount == Decimal("90000")
        assert partial.available_date == annual_investment.start_date


class TestMaturityAndRenewal:
    """Renewal window runs from 35 days before to 5 days after maturity."""

    def setup_method(self):
        self.tracker = EligibilityTracker()

    def test_days_until_maturity(self, annual_investment):
        assert self.tracker.days_until_maturity(annual_investment, date(2026, 1, 5)) == 10
        assert self.tracker.days_until_maturity(annual_investment, date(2026, 1, 20)) == -5

    @pytest.mark.parametrize("offset,expected", [
        (-36, False),
        (-35, True),
        (0, True),
        (5, True),
        (6, False),
    ])
    def test_renewal_window_bounds(self, annual_investment, offset, expected):
        today = annual_investment.maturity_date + timedelta(days=offset)
        assert self.tracker.is_in_renewal_window(annual_investment, today) is expected

    def test_renewal_window_is_configurable(self):
        investment = make_investment(
            period=3, cycle=LiquidityCycle.MONTHLY, rate="0.018", start=date(2025, 1, 1)
        )
        tracker = EligibilityTracker(
            WithdrawalPolicy(renewal_window_days_before=10, renewal_window_days_after=0)
        )
        assert not tracker.is_in_renewal_window(investment, date(2025, 3, 21))
        assert tracker.is_in_renewal_window(investment, date(2025, 3, 22))
        assert not tracker.is_in_renewal_window(investment, date(2025, 4, 2))
