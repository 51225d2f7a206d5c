"""
Typed Exception Hierarchy for the Invest Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every validation failure the engines report is recoverable: the collaborator
that called the engine renders a message and lets the investor try again.
To render that message the caller needs structured data (requested vs.
available amounts, the date a withdrawal window opens), not a string to
parse.

Every exception therefore:
  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries the context as attributes

Example:
    try:
        resolution = resolver.resolve(investment, WithdrawalKind.PARTIAL, ...)
    except BelowMinimumError as e:
        api_response(code=e.code, minimum=e.minimum, requested=e.requested)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvestEngineError (base)
    |
    +-- RateError
    |   +-- InvalidCombinationError
    |   +-- UnknownLiquidityCycleError
    |
    +-- WithdrawalError
    |   +-- InsufficientAvailableBalanceError
    |   +-- BelowMinimumError
    |   +-- NotYetEligibleError
    |   +-- InactiveInvestmentError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                            | When Raised
----------------|---------------------------------|-----------------------------------
Rate            | INVALID_COMBINATION             | Cycle not legal for the period
                | UNKNOWN_LIQUIDITY_CYCLE         | Unrecognised liquidity label
----------------|---------------------------------|-----------------------------------
Withdrawal      | INSUFFICIENT_AVAILABLE_BALANCE  | Request exceeds available principal
                | BELOW_MINIMUM                   | Partial request under the floor
                | NOT_YET_ELIGIBLE                | Liquidity window not open yet
                | INACTIVE_INVESTMENT             | Investment is pending or closed
----------------|---------------------------------|-----------------------------------
Configuration   | CONFIGURATION_ERROR             | Rate table / policy set is invalid
----------------|---------------------------------|-----------------------------------

Degenerate commission inputs (zero amount, zero period) are NOT errors: the
allocator returns an empty schedule.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any


class InvestEngineError(Exception):
    """
    Base exception for all invest engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVEST_ENGINE_ERROR"


# Rate-table exceptions


class RateError(InvestEngineError):
    """Base exception for rate resolution errors."""

    code: str = "RATE_ERROR"


class InvalidCombinationError(RateError):
    """Liquidity cycle is not legal for the commitment period."""

    code: str = "INVALID_COMBINATION"

    def __init__(self, period_months: int, cycle: Any):
        self.period_months = period_months
        self.cycle = str(getattr(cycle, "value", cycle))
        super().__init__(
            f"Liquidity cycle {self.cycle} is not available "
            f"for a {period_months}-month commitment"
        )


class UnknownLiquidityCycleError(RateError):
    """Liquidity label does not map to any known cycle."""

    code: str = "UNKNOWN_LIQUIDITY_CYCLE"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Unknown liquidity cycle: {label!r}")


# Withdrawal exceptions


class WithdrawalError(InvestEngineError):
    """Base exception for withdrawal validation errors."""

    code: str = "WITHDRAWAL_ERROR"


class InsufficientAvailableBalanceError(WithdrawalError):
    """Requested amount exceeds the principal still available."""

    code: str = "INSUFFICIENT_AVAILABLE_BALANCE"

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = str(requested)
        self.available = str(available)
        super().__init__(
            f"Requested {requested} exceeds available principal {available}"
        )


class BelowMinimumError(WithdrawalError):
    """Partial withdrawal request is below the minimum amount."""

    code: str = "BELOW_MINIMUM"

    def __init__(self, requested: Decimal, minimum: Decimal):
        self.requested = str(requested)
        self.minimum = str(minimum)
        super().__init__(
            f"Requested {requested} is below the minimum withdrawal of {minimum}"
        )


class NotYetEligibleError(WithdrawalError):
    """Withdrawal kind requested before its liquidity window opens."""

    code: str = "NOT_YET_ELIGIBLE"

    def __init__(self, kind: Any, eligible_on: date):
        self.kind = str(getattr(kind, "value", kind))
        self.eligible_on = eligible_on
        super().__init__(
            f"Withdrawal of kind {self.kind} is available from {eligible_on.isoformat()}"
        )


class InactiveInvestmentError(WithdrawalError):
    """Investment is not active and cannot be withdrawn from."""

    code: str = "INACTIVE_INVESTMENT"

    def __init__(self, investment_id: str, status: Any):
        self.investment_id = investment_id
        self.status = str(getattr(status, "value", status))
        super().__init__(
            f"Investment {investment_id} is {self.status}, not active"
        )


# Configuration exceptions


class ConfigurationError(InvestEngineError):
    """Configuration set or rate table is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid configuration: {detail}")
