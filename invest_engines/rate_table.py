"""
invest_engines.rate_table -- Monthly rate resolution by commitment period and liquidity cycle.

Responsibility:
    Resolve the monthly rate an investment earns from its commitment period
    and liquidity cycle, either from the full period/cycle matrix or from a
    single fixed rate (per user tier).  Report the liquidity cycles legal
    for a period and the redemption window of a period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel.

Invariants enforced:
    - Legal cycles: each longer commitment period unlocks exactly one more
      cycle (3 -> M, 6 -> M,S, 12 -> M,S,A, 24 -> M,S,A,B, 36 -> all).
    - Liquidity premium: in matrix mode, rates are non-decreasing in period
      for a fixed cycle and in cycle length for a fixed period.  Checked at
      construction.
    - Every legal combination has a positive rate.

Failure modes:
    - InvalidCombinationError when the cycle is not legal for the period,
      or the period is not offered.
    - ConfigurationError at construction when the matrix misses a legal
      combination, breaks monotonicity, or fixed mode has no positive rate.

Usage:
    from invest_engines.rate_table import RateTable
    from invest_kernel.domain.values import LiquidityCycle

    table = RateTable()
    rate = table.resolve_monthly_rate(period=12, cycle=LiquidityCycle.ANNUAL)
    # Decimal("0.025")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from invest_engines.tracer import traced_engine
from invest_kernel.domain.policy import DEFAULT_RATE_MATRIX, RatePolicy
from invest_kernel.domain.values import (
    COMMITMENT_PERIODS,
    LEGAL_CYCLES,
    ZERO,
    LiquidityCycle,
)
from invest_kernel.exceptions import ConfigurationError, InvalidCombinationError
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.rate_table")


@dataclass(frozen=True)
class RedemptionWindow:
    """Lock-in window of a commitment period in fixed 30-day months."""

    days: int
    label: str

    @property
    def months(self) -> int:
        return self.days // 30


_REDEMPTION_WINDOWS: dict[int, RedemptionWindow] = {
    3: RedemptionWindow(90, "3 months"),
    6: RedemptionWindow(180, "6 months"),
    12: RedemptionWindow(360, "12 months"),
    24: RedemptionWindow(720, "24 months"),
    36: RedemptionWindow(1080, "36 months"),
}


def redemption_window(period: int) -> RedemptionWindow:
    """
    Redemption window for a commitment period.

    Periods that are not offered snap up to the next offered period;
    anything beyond 36 months uses the 36-month window.
    """
    if period in _REDEMPTION_WINDOWS:
        return _REDEMPTION_WINDOWS[period]
    for offered in COMMITMENT_PERIODS:
        if period < offered:
            return _REDEMPTION_WINDOWS[offered]
    return _REDEMPTION_WINDOWS[COMMITMENT_PERIODS[-1]]


class RateTable:
    """
    Resolve monthly rates for (commitment period, liquidity cycle).

    Contract:
        Pure lookups over a validated, immutable copy of the matrix.
    Guarantees:
        - ``resolve_monthly_rate`` either returns a positive Decimal or
          raises InvalidCombinationError; it never silently falls back to
          another cycle.
        - In fixed mode the legality check still applies; only the rate
          value is replaced by the fixed rate.
    Non-goals:
        - Does not cache per-investment rates; the rate is resolved once at
          investment creation and stored on the Investment.
    """

    def __init__(
        self,
        matrix: Mapping[tuple[int, LiquidityCycle], Decimal] | None = None,
        *,
        is_fixed: bool = False,
        fixed_rate: Decimal | None = None,
    ):
        self._matrix: dict[tuple[int, LiquidityCycle], Decimal] = dict(
            matrix if matrix is not None else DEFAULT_RATE_MATRIX
        )
        self._is_fixed = is_fixed
        self._fixed_rate = fixed_rate
        self._validate()

    @classmethod
    def from_policy(cls, policy: RatePolicy) -> RateTable:
        return cls(policy.matrix, is_fixed=policy.is_fixed, fixed_rate=policy.fixed_rate)

    @property
    def is_fixed(self) -> bool:
        return self._is_fixed

    def _validate(self) -> None:
        if self._is_fixed:
            if self._fixed_rate is None or self._fixed_rate <= ZERO:
                raise ConfigurationError("fixed rate mode requires a positive fixed_rate")
            return

        for period, cycles in LEGAL_CYCLES.items():
            previous: Decimal | None = None
            for cycle in cycles:
                rate = self._matrix.get((period, cycle))
                if rate is None or rate <= ZERO:
                    raise ConfigurationError(
                        f"missing or non-positive rate for {period} months / {cycle.value}"
                    )
                if previous is not None and rate < previous:
                    raise ConfigurationError(
                        f"rate for {period} months decreases at {cycle.value}"
                    )
                previous = rate

        for cycle in LiquidityCycle:
            previous = None
            for period in COMMITMENT_PERIODS:
                rate = self._matrix.get((period, cycle))
                if rate is None:
                    continue
                if previous is not None and rate < previous:
                    raise ConfigurationError(
                        f"rate for {cycle.value} decreases at {period} months"
                    )
                previous = rate

    def legal_cycles(self, period: int) -> tuple[LiquidityCycle, ...]:
        """Liquidity cycles offered for ``period``, shortest first (empty if not offered)."""
        return LEGAL_CYCLES.get(period, ())

    def is_legal(self, period: int, cycle: LiquidityCycle | str) -> bool:
        return LiquidityCycle.parse(cycle) in self.legal_cycles(period)

    @traced_engine("rate_table", "1.0", fingerprint_fields=("period", "cycle"))
    def resolve_monthly_rate(self, period: int, cycle: LiquidityCycle | str) -> Decimal:
        """
        Resolve the monthly rate for a commitment period and liquidity cycle.

        Preconditions:
            cycle is a LiquidityCycle or one of its accepted labels.

        Postconditions:
            Returns a positive Decimal fraction (0.025 = 2.5% a month).

        Raises:
            InvalidCombinationError: cycle not legal for period.
            UnknownLiquidityCycleError: cycle label not recognised.
        """
        resolved_cycle = LiquidityCycle.parse(cycle)
        if resolved_cycle not in self.legal_cycles(period):
            logger.warning("rate_combination_rejected", extra={
                "period": period,
                "cycle": resolved_cycle.value,
            })
            raise InvalidCombinationError(period, resolved_cycle)

        if self._is_fixed:
            rate = self._fixed_rate
        else:
            rate = self._matrix[(period, resolved_cycle)]

        logger.debug("rate_resolved", extra={
            "period": period,
            "cycle": resolved_cycle.value,
            "rate": str(rate),
            "fixed": self._is_fixed,
        })
        return rate
