"""
Pure domain layer.

This module contains immutable records and parameter sets with NO
dependencies on:
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable and deterministic.
"""

from invest_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invest_kernel.domain.policy import (
    DEFAULT_RATE_MATRIX,
    DEFAULT_VOLUME_TIERS,
    BenchmarkPolicy,
    BonusBasis,
    CommissionPolicy,
    RatePolicy,
    VolumeTier,
    WithdrawalPolicy,
)
from invest_kernel.domain.values import (
    COMMITMENT_PERIODS,
    LEGAL_CYCLES,
    Investment,
    InvestmentStatus,
    LiquidityCycle,
    WithdrawalKind,
    WithdrawalRecord,
    add_months,
    available_principal,
    round_money,
)

__all__ = [
    # Records
    "Investment",
    "InvestmentStatus",
    "LiquidityCycle",
    "WithdrawalKind",
    "WithdrawalRecord",
    "COMMITMENT_PERIODS",
    "LEGAL_CYCLES",
    "add_months",
    "available_principal",
    "round_money",
    # Policies
    "RatePolicy",
    "WithdrawalPolicy",
    "CommissionPolicy",
    "BenchmarkPolicy",
    "BonusBasis",
    "VolumeTier",
    "DEFAULT_RATE_MATRIX",
    "DEFAULT_VOLUME_TIERS",
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
]
