"""
Values -- Immutable domain records for investments and withdrawals.

Responsibility:
    Provides the value types every engine consumes: the liquidity cycle and
    withdrawal-kind enumerations, the Investment snapshot, and the
    WithdrawalRecord.  Also hosts the calendar helpers shared by engines
    (month arithmetic, day counts) and the presentation-boundary rounding
    helper.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine.  No outward dependencies.

Invariants enforced:
    - Monetary amounts and rates are Decimal, never float.
    - An Investment's liquidity cycle is always legal for its commitment
      period (see LEGAL_CYCLES).
    - An ACTIVE Investment always has a positive monthly rate.

Failure modes:
    - ValueError on construction with invalid amounts, periods or rates.
    - TypeError when a float is passed where a Decimal is required.
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from invest_kernel.exceptions import UnknownLiquidityCycleError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class LiquidityCycle(str, Enum):
    """Cadence at which accrued return becomes claimable."""

    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"
    BIENNIAL = "biennial"
    TRIENNIAL = "triennial"

    @property
    def months(self) -> int:
        """Length of one cycle in months."""
        return _CYCLE_MONTHS[self]

    @property
    def period_days(self) -> int:
        """Fixed day-count of one liquidity window (not calendar-accurate)."""
        return _CYCLE_DAYS[self]

    @classmethod
    def parse(cls, label: str | LiquidityCycle) -> LiquidityCycle:
        """
        Map an upstream liquidity label to a cycle.

        Accepts the enum itself, its value, or the English / Portuguese
        display labels ("Mensal", "Semestral", "Anual", "Bienal", "Trienal"),
        case-insensitively.

        Raises:
            UnknownLiquidityCycleError: label matches no cycle.
        """
        if isinstance(label, cls):
            return label
        key = str(label).strip().lower()
        try:
            return _CYCLE_ALIASES[key]
        except KeyError:
            raise UnknownLiquidityCycleError(str(label)) from None


_CYCLE_MONTHS: dict[LiquidityCycle, int] = {
    LiquidityCycle.MONTHLY: 1,
    LiquidityCycle.SEMIANNUAL: 6,
    LiquidityCycle.ANNUAL: 12,
    LiquidityCycle.BIENNIAL: 24,
    LiquidityCycle.TRIENNIAL: 36,
}

_CYCLE_DAYS: dict[LiquidityCycle, int] = {
    LiquidityCycle.MONTHLY: 30,
    LiquidityCycle.SEMIANNUAL: 180,
    LiquidityCycle.ANNUAL: 365,
    LiquidityCycle.BIENNIAL: 730,
    LiquidityCycle.TRIENNIAL: 1095,
}

_CYCLE_ALIASES: dict[str, LiquidityCycle] = {
    "monthly": LiquidityCycle.MONTHLY,
    "mensal": LiquidityCycle.MONTHLY,
    "semiannual": LiquidityCycle.SEMIANNUAL,
    "semestral": LiquidityCycle.SEMIANNUAL,
    "annual": LiquidityCycle.ANNUAL,
    "anual": LiquidityCycle.ANNUAL,
    "biennial": LiquidityCycle.BIENNIAL,
    "bienal": LiquidityCycle.BIENNIAL,
    "triennial": LiquidityCycle.TRIENNIAL,
    "trienal": LiquidityCycle.TRIENNIAL,
}

# Each longer commitment unlocks exactly one more cycle.
COMMITMENT_PERIODS: tuple[int, ...] = (3, 6, 12, 24, 36)

LEGAL_CYCLES: dict[int, tuple[LiquidityCycle, ...]] = {
    3: (LiquidityCycle.MONTHLY,),
    6: (LiquidityCycle.MONTHLY, LiquidityCycle.SEMIANNUAL),
    12: (LiquidityCycle.MONTHLY, LiquidityCycle.SEMIANNUAL, LiquidityCycle.ANNUAL),
    24: (
        LiquidityCycle.MONTHLY,
        LiquidityCycle.SEMIANNUAL,
        LiquidityCycle.ANNUAL,
        LiquidityCycle.BIENNIAL,
    ),
    36: tuple(LiquidityCycle),
}


class InvestmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CLOSED = "closed"


class WithdrawalKind(str, Enum):
    """Kind of withdrawal an investor may request."""

    DIVIDENDS_BY_PERIOD = "dividends_by_period"
    MONTHLY_RETURN = "monthly_return"
    PARTIAL = "partial"
    TOTAL = "total"

    @property
    def reduces_principal(self) -> bool:
        """True for kinds that remove principal (and are penalised)."""
        return self in (WithdrawalKind.PARTIAL, WithdrawalKind.TOTAL)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole calendar months, clamping to month end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def days_between(start: date, end: date) -> int:
    """Calendar-day difference ``end - start`` (may be negative)."""
    return (end - start).days


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """
    Round an amount for presentation.

    Engines compute at full precision; this is only called at the
    boundary where a collaborator displays or stores an amount.
    """
    quantum = Decimal(1).scaleb(-places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def _require_decimal(name: str, value: Any) -> None:
    if isinstance(value, float):
        raise TypeError(f"{name} must be Decimal, not float")
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be Decimal, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Investment:
    """
    Immutable snapshot of an investment.

    Contract:
        The monthly rate is resolved once at creation and stored, so
        historical investments are insulated from later rate-table changes.
    Guarantees:
        - principal > 0.
        - commitment_period_months is one of COMMITMENT_PERIODS.
        - liquidity_cycle is legal for commitment_period_months.
        - monthly_rate > 0 whenever status is ACTIVE.
    Non-goals:
        - Does not track withdrawals; pass WithdrawalRecords alongside.
    """

    investment_id: str
    principal: Decimal
    commitment_period_months: int
    liquidity_cycle: LiquidityCycle
    monthly_rate: Decimal
    start_date: date
    status: InvestmentStatus = InvestmentStatus.ACTIVE

    def __post_init__(self) -> None:
        _require_decimal("principal", self.principal)
        _require_decimal("monthly_rate", self.monthly_rate)
        if self.principal <= ZERO:
            raise ValueError("Investment principal must be positive")
        if self.monthly_rate < ZERO:
            raise ValueError("Monthly rate cannot be negative")
        if self.commitment_period_months not in LEGAL_CYCLES:
            raise ValueError(
                f"Unsupported commitment period: {self.commitment_period_months}"
            )
        cycle = LiquidityCycle.parse(self.liquidity_cycle)
        object.__setattr__(self, "liquidity_cycle", cycle)
        object.__setattr__(self, "status", InvestmentStatus(self.status))
        if cycle not in LEGAL_CYCLES[self.commitment_period_months]:
            raise ValueError(
                f"Liquidity cycle {cycle.value} is not legal for "
                f"{self.commitment_period_months} months"
            )
        if self.status == InvestmentStatus.ACTIVE and self.monthly_rate <= ZERO:
            raise ValueError("Active investment must have a positive monthly rate")

    @property
    def maturity_date(self) -> date:
        """Start date plus the commitment period in calendar months."""
        return add_months(self.start_date, self.commitment_period_months)

    @property
    def is_active(self) -> bool:
        return self.status == InvestmentStatus.ACTIVE


@dataclass(frozen=True)
class WithdrawalRecord:
    """
    An approved withdrawal, immutable once created.

    Only PARTIAL and TOTAL records reduce the available principal of their
    investment.
    """

    investment_id: str
    amount: Decimal
    kind: WithdrawalKind
    gross_amount: Decimal
    penalty_amount: Decimal = ZERO
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        _require_decimal("amount", self.amount)
        _require_decimal("gross_amount", self.gross_amount)
        _require_decimal("penalty_amount", self.penalty_amount)
        object.__setattr__(self, "kind", WithdrawalKind(self.kind))
        if self.gross_amount < ZERO:
            raise ValueError("Withdrawal gross amount cannot be negative")
        if self.penalty_amount < ZERO:
            raise ValueError("Withdrawal penalty cannot be negative")

    @property
    def net_amount(self) -> Decimal:
        return self.gross_amount - self.penalty_amount


def principal_withdrawn(
    investment: Investment,
    withdrawals: Sequence[WithdrawalRecord],
) -> Decimal:
    """Sum of PARTIAL/TOTAL gross amounts recorded against ``investment``."""
    total = ZERO
    for record in withdrawals:
        if record.investment_id != investment.investment_id:
            continue
        if record.kind.reduces_principal:
            total += record.gross_amount
    return total


def available_principal(
    investment: Investment,
    withdrawals: Sequence[WithdrawalRecord],
) -> Decimal:
    """Original principal minus principal already withdrawn, floored at zero."""
    return max(ZERO, investment.principal - principal_withdrawn(investment, withdrawals))


def window_open_date(start: date, cycle: LiquidityCycle) -> date:
    """First date on which a liquidity window of ``cycle`` is open."""
    return start + timedelta(days=cycle.period_days)


