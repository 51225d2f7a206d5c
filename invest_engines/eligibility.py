"""
invest_engines.eligibility -- Withdrawal eligibility, accrual and maturity tracking.

Responsibility:
    Decide whether a withdrawal kind may be taken from an investment on a
    given date, how much has accrued for it, and when its liquidity window
    opens.  Also reports days to maturity and whether the investment is in
    its renewal window.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel.

Invariants enforced:
    - Day counts are calendar-day differences against fixed window lengths
      (Monthly 30, Semiannual 180, Annual 365, Biennial 730, Triennial 1095).
    - Purity: ``today`` is always a parameter; no clock access.
    - Available principal = principal - prior PARTIAL/TOTAL gross amounts.

Failure modes:
    - None for well-formed inputs.  Dates before the start date simply
      yield "not eligible" and zero accrual.

Usage:
    from invest_engines.eligibility import EligibilityTracker

    tracker = EligibilityTracker()
    tracker.is_withdrawable(investment, WithdrawalKind.MONTHLY_RETURN, today)
    tracker.accrued_amount(investment, WithdrawalKind.DIVIDENDS_BY_PERIOD, today, prior)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from invest_engines.tracer import traced_engine
from invest_kernel.domain.policy import WithdrawalPolicy
from invest_kernel.domain.values import (
    ZERO,
    Investment,
    WithdrawalKind,
    WithdrawalRecord,
    available_principal,
    days_between,
    window_open_date,
)
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.eligibility")


@dataclass(frozen=True)
class KindAvailability:
    """Eligibility snapshot of one withdrawal kind."""

    kind: WithdrawalKind
    eligible: bool
    accrued_amount: Decimal
    available_date: date


@dataclass(frozen=True)
class Availability:
    """Per-kind availability of an investment as of a date."""

    investment_id: str
    as_of_date: date
    available_principal: Decimal
    kinds: tuple[KindAvailability, ...]

    def for_kind(self, kind: WithdrawalKind) -> KindAvailability:
        for entry in self.kinds:
            if entry.kind == kind:
                return entry
        raise KeyError(kind)


class EligibilityTracker:
    """
    Pure function tracker for withdrawal windows and accruals.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - DIVIDENDS_BY_PERIOD and MONTHLY_RETURN open once
          ``days_elapsed >= cycle.period_days``.
        - PARTIAL and TOTAL are always eligible from the start date on.
        - DIVIDENDS_BY_PERIOD accrues whole cycles only; 0 below one cycle.
        - A cycle completes on the day its window opens, so a dividend
          withdrawal is eligible exactly when at least one cycle has accrued.
    Non-goals:
        - Does not subtract dividends already paid out; the caller pairs
          each claim with the cycle it settles.
        - Does not apply penalties (see invest_engines.withdrawal).
    """

    def __init__(self, policy: WithdrawalPolicy | None = None):
        self._policy = policy or WithdrawalPolicy()

    @staticmethod
    def available_date(investment: Investment) -> date:
        """Date the investment's first liquidity window opens."""
        return window_open_date(investment.start_date, investment.liquidity_cycle)

    @staticmethod
    def days_elapsed(investment: Investment, today: date) -> int:
        return max(0, days_between(investment.start_date, today))

    @classmethod
    def completed_cycles(cls, investment: Investment, today: date) -> int:
        """Whole liquidity windows elapsed by ``today`` (fixed day counts)."""
        return cls.days_elapsed(investment, today) // investment.liquidity_cycle.period_days

    def is_withdrawable(
        self,
        investment: Investment,
        kind: WithdrawalKind,
        today: date,
    ) -> bool:
        """
        True when ``kind`` may be withdrawn from ``investment`` on ``today``.

        Partial and total withdrawals have no waiting period (they are
        penalised instead); return withdrawals wait for the first window.
        """
        if kind.reduces_principal:
            return True
        if today < investment.start_date:
            return False
        return self.days_elapsed(investment, today) >= investment.liquidity_cycle.period_days

    @traced_engine("eligibility", "1.0", fingerprint_fields=("kind", "today"))
    def accrued_amount(
        self,
        investment: Investment,
        kind: WithdrawalKind,
        today: date,
        prior_withdrawals: Sequence[WithdrawalRecord] = (),
    ) -> Decimal:
        """
        Amount accrued for ``kind`` as of ``today``.

        Formulas (available = principal - prior principal withdrawals):
            DIVIDENDS_BY_PERIOD: available x rate x L x floor(days / window_days)
            MONTHLY_RETURN:      available x rate
            PARTIAL / TOTAL:     available

        Returns zero for return kinds before the start date, and for
        DIVIDENDS_BY_PERIOD before one full cycle.
        """
        available = available_principal(investment, prior_withdrawals)
        rate = investment.monthly_rate

        if kind.reduces_principal:
            return available
        if today < investment.start_date:
            return ZERO

        if kind == WithdrawalKind.MONTHLY_RETURN:
            return available * rate

        completed_cycles = self.completed_cycles(investment, today)
        accrued = available * rate * investment.liquidity_cycle.months * completed_cycles

        logger.debug("dividends_accrued", extra={
            "investment_id": investment.investment_id,
            "days_elapsed": self.days_elapsed(investment, today),
            "completed_cycles": completed_cycles,
            "accrued": str(accrued),
        })
        return accrued

    def availability(
        self,
        investment: Investment,
        today: date,
        prior_withdrawals: Sequence[WithdrawalRecord] = (),
    ) -> Availability:
        """Eligibility and accrual of every withdrawal kind, for dashboards."""
        window = self.available_date(investment)
        kinds = tuple(
            KindAvailability(
                kind=kind,
                eligible=self.is_withdrawable(investment, kind, today),
                accrued_amount=self.accrued_amount(
                    investment, kind, today, prior_withdrawals
                ),
                available_date=investment.start_date if kind.reduces_principal else window,
            )
            for kind in WithdrawalKind
        )
        return Availability(
            investment_id=investment.investment_id,
            as_of_date=today,
            available_principal=available_principal(investment, prior_withdrawals),
            kinds=kinds,
        )

    # ------------------------------------------------------------------
    # Maturity and renewal
    # ------------------------------------------------------------------

    @staticmethod
    def days_until_maturity(investment: Investment, today: date) -> int:
        """Calendar days from ``today`` to maturity (negative once matured)."""
        return days_between(today, investment.maturity_date)

    def is_in_renewal_window(self, investment: Investment, today: date) -> bool:
        """True from a few weeks before maturity until a few days after it."""
        days = self.days_until_maturity(investment, today)
        return (
            -self._policy.renewal_window_days_after
            <= days
            <= self._policy.renewal_window_days_before
        )
