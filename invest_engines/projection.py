"""
invest_engines.projection -- Cycle-aware return projection.

Responsibility:
    Project what an investment pays under the product's payout terms:
    the simple monthly return shown to investors, and the total return /
    final value when returns compound within each liquidity cycle but are
    paid out (not reinvested) at every cycle boundary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel.

Invariants enforced:
    - simple_monthly_return = principal x monthly_rate (always simple).
    - total_return = principal x ((1+r)^L - 1) x floor(P / L)
                     + principal x ((1+r)^(P mod L) - 1)
      where L is the cycle length in months and P the period.
    - Each cycle's growth is computed from the original principal.
    - Full Decimal precision; nothing is rounded here.
    - Determinism: identical inputs produce identical outputs.

Failure modes:
    - ValueError on negative principal, rate or period.
    - Unknown / non-positive cycle length falls back to plain compound
      interest over the whole period (not an error).

Usage:
    from invest_engines.projection import ReturnProjector

    projection = ReturnProjector().project(
        principal=Decimal("100000"),
        monthly_rate=Decimal("0.025"),
        period_months=12,
        cycle=LiquidityCycle.ANNUAL,
    )
    projection.final_value  # ~134488.89
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal

from invest_engines.tracer import traced_engine
from invest_kernel.domain.values import ZERO, LiquidityCycle
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.projection")

ONE = Decimal("1")


@dataclass(frozen=True)
class Projection:
    """
    Result of a return projection.

    All fields are full-precision Decimals; round at presentation.
    """

    principal: Decimal
    monthly_rate: Decimal
    period_months: int
    cycle_length: int
    simple_monthly_return: Decimal
    total_return: Decimal
    final_value: Decimal

    @property
    def full_cycles(self) -> int:
        if self.cycle_length <= 0:
            return 0
        return self.period_months // self.cycle_length

    @property
    def remainder_months(self) -> int:
        if self.cycle_length <= 0:
            return self.period_months
        return self.period_months % self.cycle_length

    @property
    def per_cycle_return(self) -> Decimal:
        """Return earned over one full liquidity cycle."""
        if self.cycle_length <= 0:
            return ZERO
        return self.principal * ((ONE + self.monthly_rate) ** self.cycle_length - ONE)


class ReturnProjector:
    """
    Pure function projector for investment returns.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - ``project`` models periodic payout-and-reset: growth compounds
          within a cycle and restarts from the original principal at each
          boundary.
        - ``compound`` is plain compound interest over the whole horizon.
    Non-goals:
        - Does not resolve rates; pass the rate stored on the investment.
        - Does not model opportunity cost (see invest_engines.benchmark).
    """

    @staticmethod
    def compound(principal: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
        """Final value of ``principal`` compounded monthly for ``months``."""
        if months <= 0:
            return principal
        return principal * (ONE + monthly_rate) ** months

    @traced_engine(
        "projection", "1.0",
        fingerprint_fields=("principal", "monthly_rate", "period_months", "cycle"),
    )
    def project(
        self,
        principal: Decimal,
        monthly_rate: Decimal,
        period_months: int,
        cycle: LiquidityCycle | str | None,
        cycle_length_override: int | None = None,
    ) -> Projection:
        """
        Project simple monthly return, total return and final value.

        Preconditions:
            principal >= 0, monthly_rate >= 0, period_months >= 0.

        Postconditions:
            final_value == principal + total_return.
            When period_months is a multiple of the cycle length the
            remainder term is zero.

        Args:
            principal: Amount invested.
            monthly_rate: Monthly fractional rate.
            period_months: Commitment period in months.
            cycle: Liquidity cycle; ``None`` selects plain compounding.
            cycle_length_override: Explicit cycle length in months; a
                non-positive value selects plain compounding.

        Returns:
            Projection with full-precision amounts.
        """
        t0 = time.monotonic()
        if principal < ZERO:
            raise ValueError("Principal cannot be negative")
        if monthly_rate < ZERO:
            raise ValueError("Monthly rate cannot be negative")
        if period_months < 0:
            raise ValueError("Period cannot be negative")

        if cycle_length_override is not None:
            cycle_length = cycle_length_override
        elif cycle is None:
            cycle_length = 0
        else:
            cycle_length = LiquidityCycle.parse(cycle).months

        logger.info("projection_started", extra={
            "principal": str(principal),
            "monthly_rate": str(monthly_rate),
            "period_months": period_months,
            "cycle_length": cycle_length,
        })

        simple_monthly_return = principal * monthly_rate

        if principal == ZERO or period_months == 0 or monthly_rate == ZERO:
            total_return = ZERO
        elif cycle_length <= 0:
            # Unknown cycle: plain compound interest over the whole period
            logger.warning("projection_cycle_fallback", extra={
                "cycle_length": cycle_length,
            })
            total_return = self.compound(principal, monthly_rate, period_months) - principal
        else:
            full_cycles = period_months // cycle_length
            remainder = period_months % cycle_length
            cycle_factor = (ONE + monthly_rate) ** cycle_length
            total_return = principal * (cycle_factor - ONE) * full_cycles
            if remainder > 0:
                total_return += principal * ((ONE + monthly_rate) ** remainder - ONE)

        final_value = principal + total_return

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("projection_calculated", extra={
            "total_return": str(total_return),
            "final_value": str(final_value),
            "duration_ms": duration_ms,
        })

        return Projection(
            principal=principal,
            monthly_rate=monthly_rate,
            period_months=period_months,
            cycle_length=cycle_length,
            simple_monthly_return=simple_monthly_return,
            total_return=total_return,
            final_value=final_value,
        )
