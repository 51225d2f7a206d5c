"""
invest_engines.commission -- Month-by-month commission allocation across roles.

Responsibility:
    Expand a payment event into a month-by-month commission schedule and,
    for each month, split the commission across the investor, office and
    advisor of the payment's hierarchy, adding volume-based performance
    bonuses.  Also builds the payout schedule the commission desk pays
    against, aligned to the monthly cutoff with pro-rated first payouts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel and sibling engines.

Invariants enforced:
    - One entry per calendar month from the payment month, no gaps,
      ``commitment_period`` entries.
    - share(role, month) = amount x (base_percent + bonus_percent) / 100.
    - Roles absent from the hierarchy contribute 0.
    - Only the highest volume tier met applies (tiers do not stack).
    - Full precision: nothing is rounded between months.

Failure modes:
    - None for degenerate inputs: amount <= 0 or commitment_period <= 0
      returns an empty schedule.

Usage:
    from invest_engines.commission import (
        CommissionAllocator, CommissionHierarchy, CommissionPayment,
    )

    schedule = CommissionAllocator().allocate(
        payment=CommissionPayment(
            amount=Decimal("1000000"),
            date=date(2025, 1, 10),
            commitment_period=3,
            liquidity_cycle=LiquidityCycle.MONTHLY,
        ),
        hierarchy=CommissionHierarchy("inv-1", "off-1", "adv-1"),
    )
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from invest_engines.commission_calendar import CommissionRole, PayoutCalendar
from invest_engines.tracer import traced_engine
from invest_kernel.domain.policy import BonusBasis, CommissionPolicy, VolumeTier
from invest_kernel.domain.values import HUNDRED, ZERO, LiquidityCycle, add_months
from invest_kernel.logging_config import get_logger

logger = get_logger("engines.commission")


@dataclass(frozen=True)
class CommissionPayment:
    """A payment event commissions are computed from."""

    amount: Decimal
    date: date
    commitment_period: int
    liquidity_cycle: LiquidityCycle | None = None


@dataclass(frozen=True)
class CommissionHierarchy:
    """Recipients of a payment's commission; any role may be absent."""

    investor_id: str | None = None
    office_id: str | None = None
    advisor_id: str | None = None

    def recipient(self, role: CommissionRole) -> str | None:
        if role == CommissionRole.INVESTOR:
            return self.investor_id
        if role == CommissionRole.OFFICE:
            return self.office_id
        return self.advisor_id

    @property
    def present_roles(self) -> tuple[CommissionRole, ...]:
        return tuple(role for role in CommissionRole if self.recipient(role) is not None)


@dataclass(frozen=True)
class RoleRate:
    """Effective monthly commission percentage of one recipient."""

    role: CommissionRole
    recipient_id: str
    base_percent: Decimal
    bonus_percent: Decimal

    @property
    def total_percent(self) -> Decimal:
        return self.base_percent + self.bonus_percent


@dataclass(frozen=True)
class CommissionScheduleEntry:
    """
    Commission owed for one calendar month.

    Guarantees:
        - Every share is >= 0.
        - ``total`` equals the month's commission pool when every role is
          present, and is smaller when a role is absent.
    """

    period_year: int
    period_month_number: int
    investor_share: Decimal
    office_share: Decimal
    advisor_share: Decimal

    @property
    def total(self) -> Decimal:
        return self.investor_share + self.office_share + self.advisor_share

    def share(self, role: CommissionRole) -> Decimal:
        if role == CommissionRole.INVESTOR:
            return self.investor_share
        if role == CommissionRole.OFFICE:
            return self.office_share
        return self.advisor_share


@dataclass(frozen=True)
class PayoutEntry:
    """One payout of the commission desk's calendar."""

    due_date: date
    investor_share: Decimal
    office_share: Decimal
    advisor_share: Decimal
    is_prorated: bool = False

    @property
    def period_year(self) -> int:
        return self.due_date.year

    @property
    def period_month_number(self) -> int:
        return self.due_date.month

    @property
    def total(self) -> Decimal:
        return self.investor_share + self.office_share + self.advisor_share


class CommissionAllocator:
    """
    Pure function allocator for commissions.

    Contract:
        No I/O, fully deterministic.  Degenerate inputs yield an empty
        schedule rather than an error.
    Guarantees:
        - Bonus percentages apply uniformly to every month once the
          threshold is met at allocation time.
        - With ``BonusBasis.CAPTURED_VOLUME`` each recipient's volume is
          read from ``captured_volume`` (missing recipients have none);
          with ``BonusBasis.PER_PAYMENT`` the payment amount is tested.
    Non-goals:
        - Does not aggregate captured volume; callers supply it.
        - Does not round or persist the schedule.
    """

    def __init__(
        self,
        policy: CommissionPolicy | None = None,
        payout_calendar: PayoutCalendar | None = None,
    ):
        self._policy = policy or CommissionPolicy()
        self._calendar = payout_calendar or PayoutCalendar(self._policy)

    def base_percent(self, role: CommissionRole) -> Decimal:
        if role == CommissionRole.INVESTOR:
            return self._policy.investor_percent
        if role == CommissionRole.OFFICE:
            return self._policy.office_percent
        return self._policy.advisor_percent

    @staticmethod
    def bonus_percent(volume: Decimal, tiers: Sequence[VolumeTier]) -> Decimal:
        """Bonus of the highest tier whose threshold ``volume`` reaches."""
        bonus = ZERO
        best_threshold: Decimal | None = None
        for tier in tiers:
            if volume >= tier.threshold and (
                best_threshold is None or tier.threshold >= best_threshold
            ):
                best_threshold = tier.threshold
                bonus = tier.bonus_percent
        return bonus

    def role_rates(
        self,
        payment: CommissionPayment,
        hierarchy: CommissionHierarchy,
        volume_tiers: Sequence[VolumeTier] | None = None,
        captured_volume: Mapping[str, Decimal] | None = None,
    ) -> tuple[RoleRate, ...]:
        """Effective percentage of every role present in ``hierarchy``."""
        tiers = self._policy.volume_tiers if volume_tiers is None else tuple(volume_tiers)
        volumes = captured_volume or {}
        rates = []
        for role in hierarchy.present_roles:
            recipient_id = hierarchy.recipient(role)
            if self._policy.bonus_basis == BonusBasis.PER_PAYMENT:
                volume = payment.amount
            else:
                volume = volumes.get(recipient_id, ZERO)
            rates.append(RoleRate(
                role=role,
                recipient_id=recipient_id,
                base_percent=self.base_percent(role),
                bonus_percent=self.bonus_percent(volume, tiers),
            ))
        return tuple(rates)

    @traced_engine(
        "commission", "1.0",
        fingerprint_fields=("payment", "hierarchy", "volume_tiers", "captured_volume"),
    )
    def allocate(
        self,
        payment: CommissionPayment,
        hierarchy: CommissionHierarchy,
        volume_tiers: Sequence[VolumeTier] | None = None,
        captured_volume: Mapping[str, Decimal] | None = None,
    ) -> tuple[CommissionScheduleEntry, ...]:
        """
        Allocate a payment's commission month by month.

        Preconditions:
            None; degenerate amount/period are handled.

        Postconditions:
            len(result) == payment.commitment_period (or 0 if degenerate).
            Months advance from the payment month with no gaps.

        Args:
            payment: Payment event.
            hierarchy: Recipients by role.
            volume_tiers: Bonus tiers; defaults to the policy tiers.
            captured_volume: Captured volume per recipient id.

        Returns:
            Tuple of CommissionScheduleEntry, one per month.
        """
        t0 = time.monotonic()
        if payment.amount <= ZERO or payment.commitment_period <= 0:
            logger.info("commission_allocation_skipped", extra={
                "amount": str(payment.amount),
                "commitment_period": payment.commitment_period,
            })
            return ()

        logger.info("commission_allocation_started", extra={
            "amount": str(payment.amount),
            "payment_date": payment.date.isoformat(),
            "commitment_period": payment.commitment_period,
            "roles": [role.value for role in hierarchy.present_roles],
        })

        shares = {role: ZERO for role in CommissionRole}
        for rate in self.role_rates(payment, hierarchy, volume_tiers, captured_volume):
            shares[rate.role] = payment.amount * rate.total_percent / HUNDRED
            if rate.bonus_percent > ZERO:
                logger.info("commission_bonus_applied", extra={
                    "role": rate.role.value,
                    "recipient_id": rate.recipient_id,
                    "bonus_percent": str(rate.bonus_percent),
                })

        first_month = payment.date.replace(day=1)
        schedule = []
        for offset in range(payment.commitment_period):
            month = add_months(first_month, offset)
            schedule.append(CommissionScheduleEntry(
                period_year=month.year,
                period_month_number=month.month,
                investor_share=shares[CommissionRole.INVESTOR],
                office_share=shares[CommissionRole.OFFICE],
                advisor_share=shares[CommissionRole.ADVISOR],
            ))

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("commission_allocated", extra={
            "months": len(schedule),
            "monthly_total": str(schedule[0].total),
            "duration_ms": duration_ms,
        })
        return tuple(schedule)

    @traced_engine("commission_payout", "1.0", fingerprint_fields=("payment", "hierarchy"))
    def payout_schedule(
        self,
        payment: CommissionPayment,
        hierarchy: CommissionHierarchy,
        volume_tiers: Sequence[VolumeTier] | None = None,
        captured_volume: Mapping[str, Decimal] | None = None,
    ) -> tuple[PayoutEntry, ...]:
        """
        Cutoff-aligned payout calendar for a payment.

        Payout ``i`` settles the month closing at the ``i``-th cutoff from
        the payment's first cutoff and falls on the policy business day of
        the following month.

        Office and advisor are pro-rated on the first payout only (days
        from the payment to the first cutoff).  The investor earns nothing
        until the delayed start (D+60), is pro-rated on the first cutoff
        that start reaches, and is paid in full afterwards.
        """
        if payment.amount <= ZERO or payment.commitment_period <= 0:
            return ()

        first_cutoff = self._calendar.cutoff_for(payment.date)
        due_dates = self._calendar.payment_due_dates(first_cutoff, payment.commitment_period)
        investor_start = self._calendar.investor_commission_start(payment.date)
        day_base = Decimal(self._policy.prorata_day_base)
        rates = self.role_rates(payment, hierarchy, volume_tiers, captured_volume)

        entries = []
        previous_cutoff: date | None = None
        for index, due_date in enumerate(due_dates):
            cutoff = add_months(first_cutoff, index)
            shares = {role: ZERO for role in CommissionRole}
            prorated = False
            for rate in rates:
                full = payment.amount * rate.total_percent / HUNDRED
                if rate.role == CommissionRole.INVESTOR:
                    if investor_start > cutoff:
                        continue
                    partial = previous_cutoff is None or investor_start > previous_cutoff
                else:
                    partial = index == 0
                if partial:
                    days = self._calendar.first_period_days(rate.role, payment.date, cutoff)
                    shares[rate.role] = full / day_base * days
                    prorated = True
                else:
                    shares[rate.role] = full
            entries.append(PayoutEntry(
                due_date=due_date,
                investor_share=shares[CommissionRole.INVESTOR],
                office_share=shares[CommissionRole.OFFICE],
                advisor_share=shares[CommissionRole.ADVISOR],
                is_prorated=prorated,
            ))
            previous_cutoff = cutoff

        logger.info("commission_payout_schedule_built", extra={
            "first_cutoff": first_cutoff.isoformat(),
            "first_due_date": due_dates[0].isoformat(),
            "investor_start": investor_start.isoformat(),
            "payouts": len(entries),
        })
        return tuple(entries)
