"""
invest_services.investment_desk -- Collaborator facade over the engines.

Responsibility:
    The single object application code talks to.  Holds the clock and the
    active configuration, builds each engine from its policy, opens
    investments (resolving and freezing their monthly rate), and answers
    "as of today" questions: projections, withdrawal availability and
    quotes, commission schedules, benchmark comparisons and renewals.

Architecture position:
    Services -- orchestration over engines + kernel + config.
    The only layer that reads the clock; engines receive dates as
    parameters.

Invariants enforced:
    - The monthly rate is resolved exactly once, in ``open_investment``,
      and stored on the returned Investment.
    - Every investment-scoped call runs inside
      ``LogContext.bind(investment_id=...)`` so engine logs carry the id.

Failure modes:
    - Engine errors (InvalidCombinationError, WithdrawalError subclasses)
      propagate unchanged.
    - ConfigurationError at construction if the configured rate table is
      invalid.

Usage:
    from invest_kernel.domain.clock import SystemClock
    from invest_services import InvestmentDesk

    desk = InvestmentDesk(SystemClock())
    investment = desk.open_investment("inv-1", Decimal("100000"), 12, "annual")
    desk.project(investment).final_value
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal

from invest_config import get_active_config
from invest_config.schema import EngineConfiguration
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
)
from invest_engines.eligibility import Availability, EligibilityTracker
from invest_engines.projection import Projection, ReturnProjector
from invest_engines.rate_table import RateTable, RedemptionWindow, redemption_window
from invest_engines.withdrawal import (
    WithdrawalResolution,
    WithdrawalResolver,
    portfolio_available_principal,
)
from invest_kernel.domain.clock import Clock
from invest_kernel.domain.values import (
    Investment,
    InvestmentStatus,
    LiquidityCycle,
    WithdrawalKind,
    WithdrawalRecord,
)
from invest_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.investment_desk")


class InvestmentDesk:
    """
    Facade composing the rate, projection, withdrawal, commission and
    benchmark engines under one clock and configuration.

    Contract:
        Receives the Clock (and optionally an EngineConfiguration) via
        constructor injection; falls back to ``get_active_config()``.
    Guarantees:
        - Returned objects are the engines' frozen results, unrounded.
    Non-goals:
        - Does not persist investments or withdrawal records; callers keep
          them and pass them back in.
    """

    def __init__(self, clock: Clock, config: EngineConfiguration | None = None):
        self._clock = clock
        self._config = config or get_active_config()
        self._rates = RateTable.from_policy(self._config.rates)
        self._projector = ReturnProjector()
        self._tracker = EligibilityTracker(self._config.withdrawal)
        self._resolver = WithdrawalResolver(self._config.withdrawal, self._tracker)
        self._allocator = CommissionAllocator(self._config.commission)
        self._comparator = BenchmarkComparator()

    @property
    def config(self) -> EngineConfiguration:
        return self._config

    @property
    def rate_table(self) -> RateTable:
        return self._rates

    def today(self) -> date:
        return self._clock.today()

    # ------------------------------------------------------------------
    # Investments
    # ------------------------------------------------------------------

    def open_investment(
        self,
        investment_id: str,
        principal: Decimal,
        commitment_period_months: int,
        liquidity_cycle: LiquidityCycle | str,
        start_date: date | None = None,
        status: InvestmentStatus = InvestmentStatus.ACTIVE,
    ) -> Investment:
        """
        Create an investment with its monthly rate resolved and frozen.

        Raises:
            InvalidCombinationError: cycle not offered for the period.
            UnknownLiquidityCycleError: unrecognised cycle label.
        """
        cycle = LiquidityCycle.parse(liquidity_cycle)
        with LogContext.bind(investment_id=investment_id):
            rate = self._rates.resolve_monthly_rate(commitment_period_months, cycle)
            investment = Investment(
                investment_id=investment_id,
                principal=principal,
                commitment_period_months=commitment_period_months,
                liquidity_cycle=cycle,
                monthly_rate=rate,
                start_date=start_date or self.today(),
                status=status,
            )
            logger.info("investment_opened", extra={
                "principal": str(principal),
                "commitment_period_months": commitment_period_months,
                "liquidity_cycle": cycle.value,
                "monthly_rate": str(rate),
                "start_date": investment.start_date.isoformat(),
                "maturity_date": investment.maturity_date.isoformat(),
                "config_checksum": self._config.checksum,
            })
        return investment

    def simulate(
        self,
        principal: Decimal,
        commitment_period_months: int,
        liquidity_cycle: LiquidityCycle | str,
    ) -> Projection:
        """Projection for a prospective investment, before it is opened."""
        cycle = LiquidityCycle.parse(liquidity_cycle)
        rate = self._rates.resolve_monthly_rate(commitment_period_months, cycle)
        return self._projector.project(principal, rate, commitment_period_months, cycle)

    def project(self, investment: Investment) -> Projection:
        with LogContext.bind(investment_id=investment.investment_id):
            return self._projector.project(
                investment.principal,
                investment.monthly_rate,
                investment.commitment_period_months,
                investment.liquidity_cycle,
            )

    def redemption_window(self, investment: Investment) -> RedemptionWindow:
        return redemption_window(investment.commitment_period_months)

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def availability(
        self,
        investment: Investment,
        withdrawals: Sequence[WithdrawalRecord] = (),
    ) -> Availability:
        """Per-kind eligibility and accrual as of today."""
        with LogContext.bind(investment_id=investment.investment_id):
            return self._tracker.availability(investment, self.today(), withdrawals)

    def quote_withdrawal(
        self,
        investment: Investment,
        kind: WithdrawalKind,
        requested_amount: Decimal | None = None,
        withdrawals: Sequence[WithdrawalRecord] = (),
    ) -> WithdrawalResolution:
        """Resolve a withdrawal request as of today; nothing is recorded."""
        with LogContext.bind(investment_id=investment.investment_id):
            return self._resolver.resolve(
                investment,
                kind,
                requested_amount,
                withdrawals,
                as_of=self.today(),
            )

    def portfolio_available(
        self,
        investments: Sequence[Investment],
        withdrawals: Sequence[WithdrawalRecord] = (),
    ) -> Decimal:
        return portfolio_available_principal(investments, withdrawals)

    def renewal_due(self, investments: Iterable[Investment]) -> list[Investment]:
        """Active investments currently inside their renewal window."""
        today = self.today()
        return [
            investment for investment in investments
            if investment.is_active and self._tracker.is_in_renewal_window(investment, today)
        ]

    # ------------------------------------------------------------------
    # Commissions
    # ------------------------------------------------------------------

    def commission_schedule(
        self,
        payment: CommissionPayment,
        hierarchy: CommissionHierarchy,
        captured_volume: Mapping[str, Decimal] | None = None,
    ) -> tuple[CommissionScheduleEntry, ...]:
        return self._allocator.allocate(payment, hierarchy, captured_volume=captured_volume)

    def payout_schedule(
        self,
        payment: CommissionPayment,
        hierarchy: CommissionHierarchy,
        captured_volume: Mapping[str, Decimal] | None = None,
    ) -> tuple[PayoutEntry, ...]:
        return self._allocator.payout_schedule(
            payment, hierarchy, captured_volume=captured_volume
        )

    # ------------------------------------------------------------------
    # Benchmark
    # ------------------------------------------------------------------

    def benchmark_rates(
        self,
        daily_series: Iterable[Decimal | str] | None = None,
        selic_yearly: Decimal | None = None,
    ) -> BenchmarkRates:
        """CDI rates from a daily series, else from SELIC, else the fallback."""
        policy = self._config.benchmark
        if daily_series is not None:
            return BenchmarkRates.from_daily_series(daily_series, policy)
        if selic_yearly is not None:
            return BenchmarkRates.from_selic(selic_yearly, policy)
        return BenchmarkRates.fallback(policy)

    def compare_to_benchmark(
        self,
        investment: Investment,
        withdrawn_amount: Decimal,
        benchmark_monthly_rate: Decimal | None = None,
    ) -> BenchmarkComparison:
        """Opportunity cost of ``withdrawn_amount`` from today until maturity."""
        if benchmark_monthly_rate is None:
            benchmark_monthly_rate = self.benchmark_rates().monthly
        months = months_remaining(investment.maturity_date, self.today())
        with LogContext.bind(investment_id=investment.investment_id):
            return self._comparator.compare_to_benchmark(
                withdrawn_amount,
                investment.monthly_rate,
                benchmark_monthly_rate,
                months,
            )
