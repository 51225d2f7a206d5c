"""
invest_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Engines never read configuration files or
    environment variables; services fetch an ``EngineConfiguration`` here
    and hand its policies to the engines.

Architecture position:
    Configuration -- YAML-driven policy sets.
    This package sits above ``invest_kernel`` and below
    ``invest_services``.  The kernel and engines MUST NEVER import from
    ``invest_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic loading: the same YAML always produces the same
      ``EngineConfiguration`` checksum.
    - One load per resolved file: results are cached per path until
      ``clear_config_cache()``.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the requested name.
    - ``ConfigurationError`` -- malformed YAML or invalid values.

Audit relevance:
    Every ``get_active_config()`` call emits an ``INVEST_CONFIG_TRACE``
    log entry containing the set name, version and checksum, tying every
    quote and schedule back to the terms that produced it.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from invest_config.loader import compute_checksum, load_configuration
from invest_config.schema import EngineConfiguration

_logger = logging.getLogger("invest_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
CONFIG_DIR_ENV = "INVEST_CONFIG_DIR"

_cache: dict[Path, EngineConfiguration] = {}
_cache_lock = threading.Lock()


def resolve_config_path(config_dir: Path | None = None, name: str = "default") -> Path:
    """Path of the YAML set ``name`` (argument, then env var, then package default)."""
    if config_dir is None:
        env_dir = os.environ.get(CONFIG_DIR_ENV)
        config_dir = Path(env_dir) if env_dir else _DEFAULT_CONFIG_DIR
    return Path(config_dir) / f"{name}.yaml"


def get_active_config(
    config_dir: Path | None = None,
    name: str = "default",
) -> EngineConfiguration:
    """The public configuration entrypoint.

    Guarantees:
        - The returned ``EngineConfiguration`` has been fully parsed and
          validated.
        - An ``INVEST_CONFIG_TRACE`` log entry is emitted on every call.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to ``$INVEST_CONFIG_DIR`` or invest_config/sets/.
        name: Configuration set name (file stem).

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ConfigurationError: If the configuration set is invalid.
    """
    path = resolve_config_path(config_dir, name).resolve()

    with _cache_lock:
        config = _cache.get(path)
        if config is None:
            if not path.is_file():
                raise FileNotFoundError(f"Configuration set not found: {path}")
            config = load_configuration(path)
            _cache[path] = config

    _logger.info(
        "INVEST_CONFIG_TRACE",
        extra={
            "trace_type": "INVEST_CONFIG_TRACE",
            "config_name": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "path": str(path),
        },
    )
    return config


def clear_config_cache() -> None:
    """Forget loaded configuration sets (tests and hot reloads)."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "CONFIG_DIR_ENV",
    "EngineConfiguration",
    "clear_config_cache",
    "compute_checksum",
    "get_active_config",
    "load_configuration",
    "resolve_config_path",
]
