"""
Tests for the rate table engine.

Covers:
- Matrix lookups for every legal combination
- Rejection of illegal combinations and unknown labels
- Fixed-rate mode
- Construction-time validation of custom matrices
- Redemption windows
"""

from decimal import Decimal

import pytest

from invest_engines.rate_table import RateTable, redemption_window
from invest_kernel.domain.policy import DEFAULT_RATE_MATRIX, RatePolicy
from invest_kernel.domain.values import COMMITMENT_PERIODS, LEGAL_CYCLES, LiquidityCycle
from invest_kernel.exceptions import (
    ConfigurationError,
    InvalidCombinationError,
    UnknownLiquidityCycleError,
)


class TestResolveMonthlyRate:
    """Tests for matrix-mode resolution."""

    def setup_method(self):
        self.table = RateTable()

    @pytest.mark.parametrize("period,cycle,expected", [
        (3, LiquidityCycle.MONTHLY, "0.018"),
        (6, LiquidityCycle.SEMIANNUAL, "0.020"),
        (12, LiquidityCycle.ANNUAL, "0.025"),
        (24, LiquidityCycle.BIENNIAL, "0.030"),
        (36, LiquidityCycle.ANNUAL, "0.029"),
        (36, LiquidityCycle.TRIENNIAL, "0.035"),
    ])
    def test_published_rates(self, period, cycle, expected):
        assert self.table.resolve_monthly_rate(period, cycle) == Decimal(expected)

    def test_every_legal_combination_resolves(self):
        for period, cycles in LEGAL_CYCLES.items():
            for cycle in cycles:
                assert self.table.resolve_monthly_rate(period, cycle) > 0

    def test_portuguese_label_accepted(self):
        assert self.table.resolve_monthly_rate(12, "Anual") == Decimal("0.025")

    def test_illegal_cycle_rejected(self):
        with pytest.raises(InvalidCombinationError) as exc_info:
            self.table.resolve_monthly_rate(6, LiquidityCycle.ANNUAL)
        assert exc_info.value.period_months == 6
        assert exc_info.value.cycle == "annual"

    def test_unoffered_period_rejected(self):
        with pytest.raises(InvalidCombinationError):
            self.table.resolve_monthly_rate(18, LiquidityCycle.MONTHLY)

    def test_unknown_label_rejected(self):
        with pytest.raises(UnknownLiquidityCycleError):
            self.table.resolve_monthly_rate(12, "Weekly")

    def test_rejection_logged(self, caplog):
        caplog.set_level("WARNING", logger="invest_kernel")
        with pytest.raises(InvalidCombinationError):
            self.table.resolve_monthly_rate(3, LiquidityCycle.SEMIANNUAL)
        assert "rate_combination_rejected" in caplog.messages


class TestLegality:
    def setup_method(self):
        self.table = RateTable()

    def test_legal_cycles_shortest_first(self):
        assert self.table.legal_cycles(12) == (
            LiquidityCycle.MONTHLY,
            LiquidityCycle.SEMIANNUAL,
            LiquidityCycle.ANNUAL,
        )

    def test_legal_cycles_unknown_period_empty(self):
        assert self.table.legal_cycles(9) == ()

    def test_is_legal(self):
        assert self.table.is_legal(24, "bienal")
        assert not self.table.is_legal(12, LiquidityCycle.BIENNIAL)


class TestFixedMode:
    """Fixed mode replaces the value, never the legality check."""

    def test_fixed_rate_returned(self):
        table = RateTable(is_fixed=True, fixed_rate=Decimal("0.02"))
        assert table.is_fixed
        assert table.resolve_monthly_rate(36, LiquidityCycle.TRIENNIAL) == Decimal("0.02")
        assert table.resolve_monthly_rate(3, LiquidityCycle.MONTHLY) == Decimal("0.02")

    def test_fixed_mode_still_rejects_illegal(self):
        table = RateTable(is_fixed=True, fixed_rate=Decimal("0.02"))
        with pytest.raises(InvalidCombinationError):
            table.resolve_monthly_rate(3, LiquidityCycle.ANNUAL)

    @pytest.mark.parametrize("fixed_rate", [None, Decimal("0"), Decimal("-0.01")])
    def test_fixed_mode_requires_positive_rate(self, fixed_rate):
        with pytest.raises(ConfigurationError):
            RateTable(is_fixed=True, fixed_rate=fixed_rate)

    def test_from_policy(self):
        table = RateTable.from_policy(RatePolicy(is_fixed=True, fixed_rate=Decimal("0.021")))
        assert table.resolve_monthly_rate(12, LiquidityCycle.MONTHLY) == Decimal("0.021")


class TestMatrixValidation:
    """Custom matrices are checked at construction."""

    def test_missing_combination_rejected(self):
        matrix = dict(DEFAULT_RATE_MATRIX)
        del matrix[(24, LiquidityCycle.BIENNIAL)]
        with pytest.raises(ConfigurationError, match="24 months / biennial"):
            RateTable(matrix)

    def test_non_positive_rate_rejected(self):
        matrix = dict(DEFAULT_RATE_MATRIX)
        matrix[(3, LiquidityCycle.MONTHLY)] = Decimal("0")
        with pytest.raises(ConfigurationError):
            RateTable(matrix)

    def test_rate_decreasing_with_cycle_rejected(self):
        matrix = dict(DEFAULT_RATE_MATRIX)
        matrix[(12, LiquidityCycle.ANNUAL)] = Decimal("0.020")
        with pytest.raises(ConfigurationError, match="decreases"):
            RateTable(matrix)

    def test_rate_decreasing_with_period_rejected(self):
        matrix = dict(DEFAULT_RATE_MATRIX)
        matrix[(36, LiquidityCycle.MONTHLY)] = Decimal("0.0225")
        with pytest.raises(ConfigurationError, match="monthly decreases at 36"):
            RateTable(matrix)

    def test_default_matrix_is_monotone(self):
        RateTable(DEFAULT_RATE_MATRIX)


class TestRedemptionWindow:
    @pytest.mark.parametrize("period,days", [(3, 90), (6, 180), (12, 360), (24, 720), (36, 1080)])
    def test_offered_periods(self, period, days):
        window = redemption_window(period)
        assert window.days == days
        assert window.months == period

    def test_unoffered_period_snaps_up(self):
        assert redemption_window(9).days == 360
        assert redemption_window(1).days == 90

    def test_beyond_longest_uses_longest(self):
        assert redemption_window(48).days == 1080

    def test_all_periods_have_windows(self):
        for period in COMMITMENT_PERIODS:
            assert redemption_window(period).label == f"{period} months"
