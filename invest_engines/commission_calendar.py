"""
invest_engines.commission_calendar -- Commission cutoffs and payout dates.

Responsibility:
    Date arithmetic for the commission desk: the monthly cutoff a payment
    first enters, the business day commissions are paid on, the investor's
    delayed commission start, and the number of days the first, partial
    commission month covers for each role.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invest_kernel.  Consumed by invest_engines.commission.

Invariants enforced:
    - A payment made before the cutoff day enters that month's cutoff;
      on or after it, the next month's.
    - Business days are Monday to Friday (no holiday calendar).
    - Office and advisor first-period days run from the day after the
      payment through the cutoff, inclusive.  Investor days run from
      payment + delay (D+60) through the cutoff, inclusive, capped at the
      pro-rata day base, and are zero while D+60 is after the cutoff.

Failure modes:
    - ValueError if a month has fewer business days than requested.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from enum import Enum

from invest_kernel.domain.policy import CommissionPolicy
from invest_kernel.domain.values import add_months


class CommissionRole(str, Enum):
    """Recipient role in the commission hierarchy."""

    INVESTOR = "investor"
    OFFICE = "office"
    ADVISOR = "advisor"


def is_business_day(day: date) -> bool:
    return day.weekday() < 5


class PayoutCalendar:
    """
    Pure date calculator for commission cutoffs and payout days.

    Contract:
        No I/O, no clock access; every date is a parameter.
    Non-goals:
        - Does not know about bank holidays.
    """

    def __init__(self, policy: CommissionPolicy | None = None):
        self._policy = policy or CommissionPolicy()

    def cutoff_for(self, payment_date: date) -> date:
        """First cutoff date a payment made on ``payment_date`` is counted in."""
        cutoff_day = self._policy.cutoff_day
        month_start = payment_date.replace(day=1)
        if payment_date.day >= cutoff_day:
            month_start = add_months(month_start, 1)
        return month_start.replace(day=cutoff_day)

    def nth_business_day(self, year: int, month: int, n: int | None = None) -> date:
        """The ``n``-th Monday-to-Friday of a month (policy default: 5th)."""
        target = n if n is not None else self._policy.payout_business_day
        count = 0
        for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
            day = date(year, month, day_number)
            if is_business_day(day):
                count += 1
                if count == target:
                    return day
        raise ValueError(f"{year}-{month:02d} has fewer than {target} business days")

    def fifth_business_day(self, year: int, month: int) -> date:
        return self.nth_business_day(year, month, 5)

    def payment_due_dates(self, cutoff: date, months: int) -> tuple[date, ...]:
        """Payout day of each of the ``months`` months following ``cutoff``."""
        dates = []
        first_month = cutoff.replace(day=1)
        for offset in range(1, months + 1):
            month = add_months(first_month, offset)
            dates.append(self.nth_business_day(month.year, month.month))
        return tuple(dates)

    def investor_commission_start(self, payment_date: date) -> date:
        """Date the investor's own commission starts accruing (D+60)."""
        return payment_date + timedelta(days=self._policy.investor_delay_days)

    def investor_enters_cutoff(self, payment_date: date, cutoff: date) -> bool:
        return self.investor_commission_start(payment_date) <= cutoff

    def first_period_days(
        self,
        role: CommissionRole,
        payment_date: date,
        cutoff: date,
    ) -> int:
        """Days of commission the first, partial month pays to ``role``."""
        if role == CommissionRole.INVESTOR:
            start = self.investor_commission_start(payment_date)
            if start > cutoff:
                return 0
            return min(self._policy.prorata_day_base, (cutoff - start).days + 1)
        # From the day after the payment through the cutoff, inclusive
        return max(0, (cutoff - payment_date).days)
