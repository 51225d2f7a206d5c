"""
EngineConfiguration schema.

The typed, frozen form of a YAML configuration set.  The loader parses
YAML into these types; services hand the contained kernel policies to the
engines.

Key distinction:
  YAML configuration set = source artifact (human-authored, versioned)
  EngineConfiguration    = runtime artifact (validated, frozen)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from invest_kernel.domain.policy import (
    BenchmarkPolicy,
    CommissionPolicy,
    RatePolicy,
    WithdrawalPolicy,
)


@dataclass(frozen=True)
class EngineConfiguration:
    """Policies for every engine, identified by name, version and checksum."""

    name: str
    version: int
    rates: RatePolicy = field(default_factory=RatePolicy)
    withdrawal: WithdrawalPolicy = field(default_factory=WithdrawalPolicy)
    commission: CommissionPolicy = field(default_factory=CommissionPolicy)
    benchmark: BenchmarkPolicy = field(default_factory=BenchmarkPolicy)
    checksum: str = ""
