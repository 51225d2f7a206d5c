"""
Policy -- Frozen parameter sets consumed by the engines.

Responsibility:
    Holds the tunable business parameters (rate matrix, penalties,
    commission percentages, bonus tiers, benchmark fallbacks) as frozen
    dataclasses.  Defaults reproduce the product's published terms, so an
    engine constructed with no arguments behaves like production.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.
    ``invest_config`` parses YAML into these types; engines only ever see
    the dataclasses, never the YAML.

Invariants enforced:
    - Percentages and rates are Decimal.
    - Volume tiers are kept sorted by ascending threshold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from invest_kernel.domain.values import LiquidityCycle


def _d(value: str) -> Decimal:
    return Decimal(value)


_M = LiquidityCycle.MONTHLY
_S = LiquidityCycle.SEMIANNUAL
_A = LiquidityCycle.ANNUAL
_B = LiquidityCycle.BIENNIAL
_T = LiquidityCycle.TRIENNIAL

# Monthly rate as a fraction, keyed by (commitment months, cycle).
DEFAULT_RATE_MATRIX: dict[tuple[int, LiquidityCycle], Decimal] = {
    (3, _M): _d("0.018"),
    (6, _M): _d("0.019"),
    (6, _S): _d("0.020"),
    (12, _M): _d("0.021"),
    (12, _S): _d("0.022"),
    (12, _A): _d("0.025"),
    (24, _M): _d("0.023"),
    (24, _S): _d("0.025"),
    (24, _A): _d("0.027"),
    (24, _B): _d("0.030"),
    (36, _M): _d("0.024"),
    (36, _S): _d("0.026"),
    (36, _A): _d("0.029"),
    (36, _B): _d("0.032"),
    (36, _T): _d("0.035"),
}


@dataclass(frozen=True)
class RatePolicy:
    """Selects between a fixed per-tier rate and the full period/cycle matrix."""

    is_fixed: bool = False
    fixed_rate: Decimal | None = None
    matrix: dict[tuple[int, LiquidityCycle], Decimal] = field(
        default_factory=lambda: dict(DEFAULT_RATE_MATRIX)
    )


@dataclass(frozen=True)
class WithdrawalPolicy:
    """Penalties and limits applied by the withdrawal resolver."""

    partial_penalty_percent: Decimal = _d("10")
    total_penalty_percent: Decimal = _d("20")
    partial_minimum: Decimal = _d("1000")
    renewal_window_days_before: int = 35
    renewal_window_days_after: int = 5


class BonusBasis(str, Enum):
    """What the performance bonus thresholds are compared against."""

    CAPTURED_VOLUME = "captured_volume"  # Aggregated per recipient
    PER_PAYMENT = "per_payment"  # The single payment amount


@dataclass(frozen=True)
class VolumeTier:
    """Bonus percentage unlocked once volume reaches ``threshold``."""

    threshold: Decimal
    bonus_percent: Decimal

    def __post_init__(self) -> None:
        if self.threshold < Decimal("0"):
            raise ValueError("Tier threshold cannot be negative")
        if self.bonus_percent < Decimal("0"):
            raise ValueError("Tier bonus cannot be negative")


DEFAULT_VOLUME_TIERS: tuple[VolumeTier, ...] = (
    VolumeTier(threshold=_d("500000"), bonus_percent=_d("1")),
    VolumeTier(threshold=_d("1000000"), bonus_percent=_d("3")),
)


@dataclass(frozen=True)
class CommissionPolicy:
    """Role percentages and payout calendar for the commission allocator."""

    investor_percent: Decimal = _d("2")
    office_percent: Decimal = _d("1")
    advisor_percent: Decimal = _d("3")
    bonus_basis: BonusBasis = BonusBasis.CAPTURED_VOLUME
    volume_tiers: tuple[VolumeTier, ...] = DEFAULT_VOLUME_TIERS
    cutoff_day: int = 20
    payout_business_day: int = 5
    investor_delay_days: int = 60
    prorata_day_base: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "volume_tiers",
            tuple(sorted(self.volume_tiers, key=lambda t: t.threshold)),
        )
        if not 1 <= self.cutoff_day <= 28:
            raise ValueError("cutoff_day must fall on a day every month has")
        if self.prorata_day_base <= 0:
            raise ValueError("prorata_day_base must be positive")


@dataclass(frozen=True)
class BenchmarkPolicy:
    """Fallback benchmark (CDI) rates and the SELIC-to-CDI factor."""

    fallback_daily: Decimal = _d("0.0003")
    fallback_monthly: Decimal = _d("0.008")
    fallback_yearly: Decimal = _d("0.10")
    selic_to_cdi_factor: Decimal = _d("0.9915")
    business_days_per_month: int = 21
    business_days_per_year: int = 252
