"""
Pytest fixtures for the invest engine test suite.

Provides:
- Investment and withdrawal-record factories
- A DeterministicClock pinned to a known date
- Default engine configuration loaded from the shipped YAML set
- Logging and configuration-cache isolation between tests
"""

from datetime import date
from decimal import Decimal

import pytest

from invest_config import clear_config_cache, get_active_config
from invest_kernel.domain.clock import DeterministicClock
from invest_kernel.domain.values import (
    Investment,
    InvestmentStatus,
    LiquidityCycle,
    WithdrawalKind,
    WithdrawalRecord,
)
from invest_kernel.logging_config import LogContext, reset_logging

START_DATE = date(2025, 1, 15)


@pytest.fixture(autouse=True)
def _isolate_global_state():
    """Reset logging, log context and cached configuration between tests."""
    reset_logging()
    LogContext.clear()
    clear_config_cache()
    yield
    LogContext.clear()
    reset_logging()
    clear_config_cache()


@pytest.fixture
def start_date() -> date:
    return START_DATE


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock.on(START_DATE)


@pytest.fixture
def default_config():
    return get_active_config()


def make_investment(
    principal: str = "100000",
    period: int = 12,
    cycle: LiquidityCycle = LiquidityCycle.ANNUAL,
    rate: str = "0.025",
    start: date = START_DATE,
    status: InvestmentStatus = InvestmentStatus.ACTIVE,
    investment_id: str = "inv-001",
) -> Investment:
    return Investment(
        investment_id=investment_id,
        principal=Decimal(principal),
        commitment_period_months=period,
        liquidity_cycle=cycle,
        monthly_rate=Decimal(rate),
        start_date=start,
        status=status,
    )


def make_withdrawal(
    gross: str,
    kind: WithdrawalKind = WithdrawalKind.PARTIAL,
    investment_id: str = "inv-001",
    penalty: str = "0",
) -> WithdrawalRecord:
    gross_amount = Decimal(gross)
    penalty_amount = Decimal(penalty)
    return WithdrawalRecord(
        investment_id=investment_id,
        amount=gross_amount - penalty_amount,
        kind=kind,
        gross_amount=gross_amount,
        penalty_amount=penalty_amount,
    )


@pytest.fixture
def annual_investment() -> Investment:
    """100,000 for 12 months, annual liquidity at 2.5% a month."""
    return make_investment()


@pytest.fixture
def monthly_investment() -> Investment:
    """50,000 for 6 months, monthly liquidity at 1.9% a month."""
    return make_investment(
        principal="50000",
        period=6,
        cycle=LiquidityCycle.MONTHLY,
        rate="0.019",
        investment_id="inv-002",
    )
