"""
invest_engines.benchmark -- Opportunity-cost comparison against a benchmark rate.

Responsibility:
    Compare what a withdrawn amount would have earned if left invested at
    the product's monthly rate against what it would earn at a benchmark
    (CDI) rate over the months remaining to maturity.  Derive benchmark
    monthly/yearly rates from a daily CDI series or a SELIC rate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel.  Fetching the CDI series is the
    caller's job.

Invariants enforced:
    - True monthly compounding, no cycle segmentation:
      value = amount x ((1 + rate)^months - 1).  This deliberately differs
      from invest_engines.projection, which models payout cycles.
    - months_remaining = ceil(days to maturity / 30), floored at 0.
    - Zero horizon yields an all-zero comparison.

Failure modes:
    - ValueError on negative amounts or rates.
    - An empty or all-invalid CDI series falls back to policy rates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation

from invest_engines.tracer import traced_engine
from invest_kernel.domain.policy import BenchmarkPolicy
from invest_kernel.domain.values import HUNDRED, ZERO
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.benchmark")

ONE = Decimal("1")
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class BenchmarkComparison:
    """Projected return vs. benchmark return over the remaining horizon."""

    months_remaining: int
    projected_return: Decimal
    benchmark_return: Decimal
    difference: Decimal

    @property
    def has_horizon(self) -> bool:
        return self.months_remaining > 0


@dataclass(frozen=True)
class BenchmarkRates:
    """Benchmark rate expressed per business day, month and year."""

    daily: Decimal
    monthly: Decimal
    yearly: Decimal
    source: str

    @classmethod
    def fallback(cls, policy: BenchmarkPolicy | None = None) -> BenchmarkRates:
        policy = policy or BenchmarkPolicy()
        return cls(
            daily=policy.fallback_daily,
            monthly=policy.fallback_monthly,
            yearly=policy.fallback_yearly,
            source="fallback",
        )

    @classmethod
    def from_daily_series(
        cls,
        daily_percents: Iterable[Decimal | str],
        policy: BenchmarkPolicy | None = None,
    ) -> BenchmarkRates:
        """
        Derive rates from a series of daily CDI percentages.

        Values may be Decimals or strings with a comma decimal separator
        ("0,040168").  Non-numeric and non-positive values are ignored.
        """
        policy = policy or BenchmarkPolicy()
        values = []
        for raw in daily_percents:
            try:
                value = Decimal(str(raw).replace(",", "."))
            except InvalidOperation:
                continue
            if value.is_finite() and value > ZERO:
                values.append(value)

        if not values:
            logger.warning("benchmark_series_empty", extra={"source": "fallback"})
            return cls.fallback(policy)

        daily = sum(values, ZERO) / len(values) / HUNDRED
        return cls(
            daily=daily,
            monthly=(ONE + daily) ** policy.business_days_per_month - ONE,
            yearly=(ONE + daily) ** policy.business_days_per_year - ONE,
            source="daily_series",
        )

    @classmethod
    def from_selic(
        cls,
        selic_yearly: Decimal,
        policy: BenchmarkPolicy | None = None,
    ) -> BenchmarkRates:
        """Approximate CDI from the yearly SELIC rate (fraction)."""
        policy = policy or BenchmarkPolicy()
        yearly = selic_yearly * policy.selic_to_cdi_factor
        base = ONE + yearly
        return cls(
            daily=base ** (ONE / Decimal(policy.business_days_per_year)) - ONE,
            monthly=base ** (ONE / Decimal(12)) - ONE,
            yearly=yearly,
            source="selic",
        )


def months_remaining(maturity_date: date, today: date) -> int:
    """Whole 30-day months left until maturity, rounded up, never negative."""
    days = (maturity_date - today).days
    if days <= 0:
        return 0
    return -(-days // DAYS_PER_MONTH)


class BenchmarkComparator:
    """
    Pure function opportunity-cost comparator.

    Contract:
        No I/O, fully deterministic.
    Non-goals:
        - Does not fetch benchmark rates; see BenchmarkRates for derivation.
    """

    @staticmethod
    def compound_return(amount: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
        if months <= 0:
            return ZERO
        return amount * ((ONE + monthly_rate) ** months - ONE)

    @traced_engine(
        "benchmark", "1.0",
        fingerprint_fields=(
            "withdrawn_amount", "monthly_rate", "benchmark_monthly_rate", "months_remaining",
        ),
    )
    def compare_to_benchmark(
        self,
        withdrawn_amount: Decimal,
        monthly_rate: Decimal,
        benchmark_monthly_rate: Decimal,
        months_remaining: int,
    ) -> BenchmarkComparison:
        """
        What ``withdrawn_amount`` would earn at each rate until maturity.

        Returns an all-zero comparison when ``months_remaining <= 0``.

        Raises:
            ValueError: negative amount or rate.
        """
        if withdrawn_amount < ZERO:
            raise ValueError("Withdrawn amount cannot be negative")
        if monthly_rate < ZERO or benchmark_monthly_rate < ZERO:
            raise ValueError("Rates cannot be negative")

        if months_remaining <= 0:
            logger.info("benchmark_no_horizon")
            return BenchmarkComparison(
                months_remaining=0,
                projected_return=ZERO,
                benchmark_return=ZERO,
                difference=ZERO,
            )

        projected = self.compound_return(withdrawn_amount, monthly_rate, months_remaining)
        benchmark = self.compound_return(
            withdrawn_amount, benchmark_monthly_rate, months_remaining
        )

        logger.info("benchmark_compared", extra={
            "months_remaining": months_remaining,
            "projected_return": str(projected),
            "benchmark_return": str(benchmark),
        })
        return BenchmarkComparison(
            months_remaining=months_remaining,
            projected_return=projected,
            benchmark_return=benchmark,
            difference=projected - benchmark,
        )
