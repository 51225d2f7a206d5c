"""
invest_engines.withdrawal -- Withdrawal resolution with early-exit penalties.

Responsibility:
    Turn a withdrawal request into gross, penalty and net amounts, the
    principal that remains invested, and the investor's new forward-looking
    monthly return.  Also sums the principal available across an
    investor's active investments.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel and sibling engines.
    Consumes EligibilityTracker for accrual kinds.

Invariants enforced:
    - Conservation: for PARTIAL, remaining_principal + gross_amount ==
      available_principal (before penalty deduction).
    - net_amount == gross_amount - penalty_amount.
    - Penalties: 0% for return kinds, 10% PARTIAL, 20% TOTAL (policy).
    - Purity: the resolver never persists the resulting record.

Failure modes:
    - BelowMinimumError if a PARTIAL request is under the minimum (1000).
    - InsufficientAvailableBalanceError if a PARTIAL request exceeds the
      available principal, or a TOTAL withdrawal finds nothing left.
    - NotYetEligibleError if a return kind is requested before its
      liquidity window opens.
    - InactiveInvestmentError if the investment is not ACTIVE.

Usage:
    from invest_engines.withdrawal import WithdrawalResolver

    resolution = WithdrawalResolver().resolve(
        investment,
        WithdrawalKind.TOTAL,
        requested_amount=None,
        prior_withdrawals=records,
        as_of=date(2025, 3, 1),
    )
    resolution.net_amount
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from invest_engines.eligibility import EligibilityTracker
from invest_engines.tracer import traced_engine
from invest_kernel.domain.policy import WithdrawalPolicy
from invest_kernel.domain.values import (
    HUNDRED,
    ZERO,
    Investment,
    WithdrawalKind,
    WithdrawalRecord,
    available_principal,
)
from invest_kernel.exceptions import (
    BelowMinimumError,
    InactiveInvestmentError,
    InsufficientAvailableBalanceError,
    NotYetEligibleError,
)
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.withdrawal")


@dataclass(frozen=True)
class WithdrawalResolution:
    """
    Result of resolving a withdrawal request.

    Contract:
        Frozen dataclass; persistence of the matching WithdrawalRecord is
        the caller's responsibility (see ``to_record``).
    Guarantees:
        - ``net_amount == gross_amount - penalty_amount``.
        - ``new_monthly_return == remaining_principal x monthly_rate``.
    """

    investment_id: str
    kind: WithdrawalKind
    available_principal: Decimal
    gross_amount: Decimal
    penalty_amount: Decimal
    net_amount: Decimal
    remaining_principal: Decimal
    new_monthly_return: Decimal

    @property
    def penalty_percent(self) -> Decimal:
        if self.gross_amount == ZERO:
            return ZERO
        return self.penalty_amount / self.gross_amount * HUNDRED

    def to_record(self, created_at: datetime | None = None) -> WithdrawalRecord:
        """Build the immutable record a caller persists once approved."""
        return WithdrawalRecord(
            investment_id=self.investment_id,
            amount=self.net_amount,
            kind=self.kind,
            gross_amount=self.gross_amount,
            penalty_amount=self.penalty_amount,
            created_at=created_at,
        )


class WithdrawalResolver:
    """
    Pure function resolver for withdrawal requests.

    Contract:
        No I/O, fully deterministic.  Works on a snapshot of prior
        withdrawals; callers serialise concurrent requests against the
        same investment.
    Guarantees:
        - Gross amount: accrued amount for return kinds, the requested
          amount for PARTIAL, the available principal for TOTAL.
        - Remaining principal: unchanged for return kinds,
          ``available - gross`` for PARTIAL, zero for TOTAL.
    Non-goals:
        - Does not round; amounts are full precision.
        - Does not mutate the investment or its status.
    """

    def __init__(
        self,
        policy: WithdrawalPolicy | None = None,
        tracker: EligibilityTracker | None = None,
    ):
        self._policy = policy or WithdrawalPolicy()
        self._tracker = tracker or EligibilityTracker(self._policy)

    def penalty_percent(self, kind: WithdrawalKind) -> Decimal:
        if kind == WithdrawalKind.PARTIAL:
            return self._policy.partial_penalty_percent
        if kind == WithdrawalKind.TOTAL:
            return self._policy.total_penalty_percent
        return ZERO

    @traced_engine(
        "withdrawal", "1.0",
        fingerprint_fields=("kind", "requested_amount", "as_of"),
    )
    def resolve(
        self,
        investment: Investment,
        kind: WithdrawalKind,
        requested_amount: Decimal | None,
        prior_withdrawals: Sequence[WithdrawalRecord] = (),
        *,
        as_of: date,
    ) -> WithdrawalResolution:
        """
        Resolve a withdrawal request against an investment.

        Preconditions:
            investment is ACTIVE.
            requested_amount is given for PARTIAL (ignored otherwise).

        Postconditions:
            For PARTIAL, remaining_principal + gross_amount == available.

        Args:
            investment: Investment snapshot.
            kind: Requested withdrawal kind.
            requested_amount: Amount asked for (PARTIAL only).
            prior_withdrawals: Withdrawals already applied.
            as_of: Date the request is evaluated on.

        Raises:
            InactiveInvestmentError, BelowMinimumError,
            InsufficientAvailableBalanceError, NotYetEligibleError.
        """
        t0 = time.monotonic()
        logger.info("withdrawal_resolution_started", extra={
            "investment_id": investment.investment_id,
            "kind": kind.value,
            "requested_amount": str(requested_amount) if requested_amount is not None else None,
            "as_of": as_of.isoformat(),
        })

        if not investment.is_active:
            logger.warning("withdrawal_investment_inactive", extra={
                "investment_id": investment.investment_id,
                "status": investment.status.value,
            })
            raise InactiveInvestmentError(investment.investment_id, investment.status)

        available = available_principal(investment, prior_withdrawals)

        if kind == WithdrawalKind.PARTIAL:
            gross = self._validate_partial(requested_amount, available)
            remaining = available - gross
        elif kind == WithdrawalKind.TOTAL:
            if available <= ZERO:
                logger.warning("withdrawal_nothing_available", extra={
                    "investment_id": investment.investment_id,
                })
                raise InsufficientAvailableBalanceError(available, available)
            gross = available
            remaining = ZERO
        else:
            if not self._tracker.is_withdrawable(investment, kind, as_of):
                eligible_on = self._tracker.available_date(investment)
                logger.warning("withdrawal_not_yet_eligible", extra={
                    "investment_id": investment.investment_id,
                    "kind": kind.value,
                    "eligible_on": eligible_on.isoformat(),
                })
                raise NotYetEligibleError(kind, eligible_on)
            gross = self._tracker.accrued_amount(
                investment, kind, as_of, prior_withdrawals
            )
            remaining = available

        penalty = gross * self.penalty_percent(kind) / HUNDRED
        net = gross - penalty
        new_monthly_return = remaining * investment.monthly_rate

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("withdrawal_resolved", extra={
            "investment_id": investment.investment_id,
            "kind": kind.value,
            "gross_amount": str(gross),
            "penalty_amount": str(penalty),
            "net_amount": str(net),
            "remaining_principal": str(remaining),
            "duration_ms": duration_ms,
        })

        return WithdrawalResolution(
            investment_id=investment.investment_id,
            kind=kind,
            available_principal=available,
            gross_amount=gross,
            penalty_amount=penalty,
            net_amount=net,
            remaining_principal=remaining,
            new_monthly_return=new_monthly_return,
        )

    def _validate_partial(self, requested: Decimal | None, available: Decimal) -> Decimal:
        minimum = self._policy.partial_minimum
        if requested is None or requested < minimum:
            amount = requested if requested is not None else ZERO
            logger.warning("withdrawal_below_minimum", extra={
                "requested": str(amount),
                "minimum": str(minimum),
            })
            raise BelowMinimumError(amount, minimum)
        if requested > available:
            logger.warning("withdrawal_insufficient_balance", extra={
                "requested": str(requested),
                "available": str(available),
            })
            raise InsufficientAvailableBalanceError(requested, available)
        return requested


def portfolio_available_principal(
    investments: Sequence[Investment],
    withdrawals: Sequence[WithdrawalRecord],
) -> Decimal:
    """Principal still available across an investor's active investments."""
    total = ZERO
    for investment in investments:
        if investment.is_active:
            total += available_principal(investment, withdrawals)
    return total
