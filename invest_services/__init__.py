"""
invest_services -- Package init and public API.

Responsibility:
    Orchestration that composes the pure engines (invest_engines/) with the
    clock and the active configuration.  This is the **only** layer that
    reads wall-clock time or loads configuration.

Architecture position:
    Services -- orchestration over engines + kernel + config.

    Dependency direction:
        invest_services/ -> invest_engines/  (allowed)
        invest_services/ -> invest_config/   (allowed)
        invest_services/ -> invest_kernel/   (allowed)
        invest_engines/  -> invest_services/ (FORBIDDEN)
        invest_kernel/   -> invest_services/ (FORBIDDEN)
"""

from invest_kernel.logging_config import get_logger

logger = get_logger("services")

from invest_services.investment_desk import InvestmentDesk

__all__ = [
    "InvestmentDesk",
]
