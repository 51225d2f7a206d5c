"""
Module: invest_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    calculation engine sub-modules.  This is the canonical import surface
    for higher layers (invest_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel (and sibling engine modules).
    MUST NOT import invest_config or invest_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters; callers (services) own
      the clock.
    - Decimal-only arithmetic at full precision; rounding happens only at
      presentation.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - Typed invest_kernel.exceptions errors for business rejections.
    - ValueError propagated from individual engines on malformed input.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``invest_engines.tracer``), emitting INVEST_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from invest_engines.rate_table import RateTable
    from invest_engines.projection import ReturnProjector
    from invest_engines.eligibility import EligibilityTracker
    from invest_engines.withdrawal import WithdrawalResolver
    from invest_engines.commission import CommissionAllocator
    from invest_engines.benchmark import BenchmarkComparator
"""

from invest_kernel.logging_config import get_logger

logger = get_logger("engines")

from invest_engines.benchmark import (
    BenchmarkComparator,
    BenchmarkComparison,
    BenchmarkRates,
    months_remaining,
)
from invest_engines.commission import (
    CommissionAllocator,
    CommissionHierarchy,
    CommissionPayment,
    CommissionScheduleEntry,
    PayoutEntry,
    RoleRate,
)
from invest_engines.commission_calendar import (
    CommissionRole,
    PayoutCalendar,
    is_business_day,
)
from invest_engines.eligibility import (
    Availability,
    EligibilityTracker,
    KindAvailability,
)
from invest_engines.projection import Projection, ReturnProjector
from invest_engines.rate_table import RateTable, RedemptionWindow, redemption_window
from invest_engines.tracer import compute_input_fingerprint, traced_engine
from invest_engines.withdrawal import (
    WithdrawalResolution,
    WithdrawalResolver,
    portfolio_available_principal,
)

__all__ = [
    # Rate table
    "RateTable",
    "RedemptionWindow",
    "redemption_window",
    # Projection
    "Projection",
    "ReturnProjector",
    # Eligibility
    "Availability",
    "EligibilityTracker",
    "KindAvailability",
    # Withdrawal
    "WithdrawalResolution",
    "WithdrawalResolver",
    "portfolio_available_principal",
    # Commission
    "CommissionAllocator",
    "CommissionHierarchy",
    "CommissionPayment",
    "CommissionRole",
    "CommissionScheduleEntry",
    "PayoutCalendar",
    "PayoutEntry",
    "RoleRate",
    "is_business_day",
    # Benchmark
    "BenchmarkComparator",
    "BenchmarkComparison",
    "BenchmarkRates",
    "months_remaining",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
