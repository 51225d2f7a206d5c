"""
Configuration Loader (``invest_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the typed
``invest_config.schema.EngineConfiguration`` and the kernel policy
dataclasses it carries.  Runtime callers go through
``invest_config.get_active_config()``; this module is the tooling behind it.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on ``invest_kernel``
only; it never imports engines or services.

Invariants enforced
-------------------
* Every parse error surfaces as ``ConfigurationError`` with a descriptive
  detail; no silent defaults for malformed values.  Omitted sections and
  keys fall back to the policy defaults.
* Monthly rates are written as percentages in YAML and stored as
  fractions (``2.5`` -> ``Decimal("0.025")``).
* Numbers are converted through ``str`` so YAML floats never leak binary
  rounding into ``Decimal``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigurationError`` (wrapping ``yaml.YAMLError``).
* Bad values or unknown cycles  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from invest_config.schema import EngineConfiguration
from invest_kernel.domain.policy import (
    BenchmarkPolicy,
    BonusBasis,
    CommissionPolicy,
    RatePolicy,
    VolumeTier,
    WithdrawalPolicy,
)
from invest_kernel.domain.values import HUNDRED, LiquidityCycle
from invest_kernel.exceptions import ConfigurationError, UnknownLiquidityCycleError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Preconditions:
        - ``path`` must point to an existing, readable YAML file.
    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a YAML scalar into a finite ``Decimal``."""
    if isinstance(value, bool) or value is None:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise ConfigurationError(f"{field_name} must be finite, got {value!r}")
    return result


def parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}") from exc


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{key}' must be a mapping")
    return section


def parse_rate_policy(data: dict[str, Any]) -> RatePolicy:
    """
    Parse a ``RatePolicy`` from the ``rates`` section.

    ``matrix`` maps commitment period -> {cycle label: percent}.  Cycle
    labels accept every alias ``LiquidityCycle.parse`` understands.  An
    omitted matrix keeps the default product matrix.
    """
    is_fixed = bool(data.get("is_fixed", False))
    fixed_raw = data.get("fixed_rate")
    fixed_rate = (
        parse_decimal(fixed_raw, "rates.fixed_rate") / HUNDRED
        if fixed_raw is not None else None
    )

    matrix_data = data.get("matrix")
    if matrix_data is None:
        return RatePolicy(is_fixed=is_fixed, fixed_rate=fixed_rate)
    if not isinstance(matrix_data, dict):
        raise ConfigurationError("rates.matrix must be a mapping")

    matrix: dict[tuple[int, LiquidityCycle], Decimal] = {}
    for period_key, cycles in matrix_data.items():
        period = parse_int(period_key, "rates.matrix period")
        if not isinstance(cycles, dict):
            raise ConfigurationError(f"rates.matrix.{period} must be a mapping")
        for label, percent in cycles.items():
            try:
                cycle = LiquidityCycle.parse(str(label))
            except UnknownLiquidityCycleError as exc:
                raise ConfigurationError(
                    f"rates.matrix.{period}: unknown liquidity cycle {label!r}"
                ) from exc
            rate = parse_decimal(percent, f"rates.matrix.{period}.{label}")
            if rate <= 0:
                raise ConfigurationError(f"rates.matrix.{period}.{label} must be positive")
            matrix[(period, cycle)] = rate / HUNDRED

    return RatePolicy(is_fixed=is_fixed, fixed_rate=fixed_rate, matrix=matrix)


def parse_withdrawal_policy(data: dict[str, Any]) -> WithdrawalPolicy:
    """Parse a ``WithdrawalPolicy`` from the ``withdrawal`` section."""
    defaults = WithdrawalPolicy()
    window = _section(data, "renewal_window")
    return WithdrawalPolicy(
        partial_penalty_percent=parse_decimal(
            data.get("partial_penalty_percent", defaults.partial_penalty_percent),
            "withdrawal.partial_penalty_percent",
        ),
        total_penalty_percent=parse_decimal(
            data.get("total_penalty_percent", defaults.total_penalty_percent),
            "withdrawal.total_penalty_percent",
        ),
        partial_minimum=parse_decimal(
            data.get("partial_minimum", defaults.partial_minimum),
            "withdrawal.partial_minimum",
        ),
        renewal_window_days_before=parse_int(
            window.get("days_before", defaults.renewal_window_days_before),
            "withdrawal.renewal_window.days_before",
        ),
        renewal_window_days_after=parse_int(
            window.get("days_after", defaults.renewal_window_days_after),
            "withdrawal.renewal_window.days_after",
        ),
    )


def parse_volume_tier(data: dict[str, Any]) -> VolumeTier:
    try:
        return VolumeTier(
            threshold=parse_decimal(data["threshold"], "volume_tiers.threshold"),
            bonus_percent=parse_decimal(data["bonus_percent"], "volume_tiers.bonus_percent"),
        )
    except KeyError as exc:
        raise ConfigurationError(f"volume tier missing {exc.args[0]!r}") from exc
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def parse_commission_policy(data: dict[str, Any]) -> CommissionPolicy:
    """Parse a ``CommissionPolicy`` from the ``commission`` section."""
    defaults = CommissionPolicy()

    basis_raw = data.get("bonus_basis", defaults.bonus_basis.value)
    try:
        basis = BonusBasis(basis_raw)
    except ValueError as exc:
        raise ConfigurationError(f"commission.bonus_basis: unknown basis {basis_raw!r}") from exc

    tiers_raw = data.get("volume_tiers")
    if tiers_raw is None:
        tiers = defaults.volume_tiers
    elif isinstance(tiers_raw, list):
        tiers = tuple(parse_volume_tier(item) for item in tiers_raw)
    else:
        raise ConfigurationError("commission.volume_tiers must be a list")

    try:
        return CommissionPolicy(
            investor_percent=parse_decimal(
                data.get("investor_percent", defaults.investor_percent),
                "commission.investor_percent",
            ),
            office_percent=parse_decimal(
                data.get("office_percent", defaults.office_percent),
                "commission.office_percent",
            ),
            advisor_percent=parse_decimal(
                data.get("advisor_percent", defaults.advisor_percent),
                "commission.advisor_percent",
            ),
            bonus_basis=basis,
            volume_tiers=tiers,
            cutoff_day=parse_int(
                data.get("cutoff_day", defaults.cutoff_day), "commission.cutoff_day"
            ),
            payout_business_day=parse_int(
                data.get("payout_business_day", defaults.payout_business_day),
                "commission.payout_business_day",
            ),
            investor_delay_days=parse_int(
                data.get("investor_delay_days", defaults.investor_delay_days),
                "commission.investor_delay_days",
            ),
            prorata_day_base=parse_int(
                data.get("prorata_day_base", defaults.prorata_day_base),
                "commission.prorata_day_base",
            ),
        )
    except ValueError as exc:
        raise ConfigurationError(f"commission: {exc}") from exc


def parse_benchmark_policy(data: dict[str, Any]) -> BenchmarkPolicy:
    """Parse a ``BenchmarkPolicy`` from the ``benchmark`` section."""
    defaults = BenchmarkPolicy()
    return BenchmarkPolicy(
        fallback_daily=parse_decimal(
            data.get("fallback_daily", defaults.fallback_daily), "benchmark.fallback_daily"
        ),
        fallback_monthly=parse_decimal(
            data.get("fallback_monthly", defaults.fallback_monthly),
            "benchmark.fallback_monthly",
        ),
        fallback_yearly=parse_decimal(
            data.get("fallback_yearly", defaults.fallback_yearly), "benchmark.fallback_yearly"
        ),
        selic_to_cdi_factor=parse_decimal(
            data.get("selic_to_cdi_factor", defaults.selic_to_cdi_factor),
            "benchmark.selic_to_cdi_factor",
        ),
        business_days_per_month=parse_int(
            data.get("business_days_per_month", defaults.business_days_per_month),
            "benchmark.business_days_per_month",
        ),
        business_days_per_year=parse_int(
            data.get("business_days_per_year", defaults.business_days_per_year),
            "benchmark.business_days_per_year",
        ),
    )


def parse_configuration(data: dict[str, Any], default_name: str = "default") -> EngineConfiguration:
    """
    Parse a whole configuration set.

    Postconditions:
        - ``checksum`` is computed over the raw YAML content, so two files
          with the same content share a checksum.
    """
    return EngineConfiguration(
        name=str(data.get("name", default_name)),
        version=parse_int(data.get("version", 1), "version"),
        rates=parse_rate_policy(_section(data, "rates")),
        withdrawal=parse_withdrawal_policy(_section(data, "withdrawal")),
        commission=parse_commission_policy(_section(data, "commission")),
        benchmark=parse_benchmark_policy(_section(data, "benchmark")),
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> EngineConfiguration:
    """Load and parse the configuration set stored at ``path``."""
    return parse_configuration(load_yaml_file(path), default_name=path.stem)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Preconditions:
        - ``data`` must be JSON-serializable (via ``json.dumps`` with
          ``default=str``).
    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Identical ``data`` always produces identical checksums
          (deterministic).
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
