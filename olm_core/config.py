# olm_core/config.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import logging
import os

from .constants import MAX_ONE_TIME_KEYS
from .logger import ROOT_LOGGER, get_logger

_PROVIDERS = ("memory", "sqlite")


@dataclass
class OlmConfig:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    max_one_time_keys: int = MAX_ONE_TIME_KEYS
    storage_provider: str = "memory"
    db_path: str = "db/olm_accounts.db"


def _setting(config: Optional[Dict[str, Any]], key: str, env: str, default: Any = None) -> Any:
    # An explicit entry wins even when it is falsy
    if config and key in config:
        return config[key]
    return os.getenv(env, default)


def load_max_one_time_keys(config: Optional[Dict[str, Any]] = None) -> int:
    raw = _setting(config, "max_one_time_keys", "OLM_MAX_ONE_TIME_KEYS", MAX_ONE_TIME_KEYS)
    try:
        max_keys = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"OLM_MAX_ONE_TIME_KEYS must be an integer, got {raw!r}") from None
    if max_keys < 1:
        raise ValueError("OLM_MAX_ONE_TIME_KEYS must be >= 1")
    return max_keys


def load_log_settings(config: Optional[Dict[str, Any]] = None) -> Tuple[str, Optional[str]]:
    """(level, file) for the package root logger."""
    level = str(_setting(config, "log_level", "OLM_LOG_LEVEL", "INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {level}")
    return level, _setting(config, "log_file", "OLM_LOG_FILE") or None


def load_storage_settings(config: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
    """(provider, db_path) for the pickle store."""
    provider = str(_setting(config, "storage_provider", "OLM_STORAGE_PROVIDER", "memory")).lower()
    if provider not in _PROVIDERS:
        raise ValueError(f"Unknown storage provider: {provider}")
    return provider, _setting(config, "db_path", "OLM_DB_PATH", "db/olm_accounts.db")


def load_config(config: Optional[Dict[str, Any]] = None) -> OlmConfig:
    """
    Resolve runtime settings. Explicit entries in ``config`` win over the
    OLM_* environment variables, which win over the defaults. Every setting
    is validated; components that need a single setting use the matching
    load_* helper so unrelated bad values do not affect them.
    """
    level, log_file = load_log_settings(config)
    provider, db_path = load_storage_settings(config)
    return OlmConfig(
        log_level=level,
        log_file=log_file,
        max_one_time_keys=load_max_one_time_keys(config),
        storage_provider=provider,
        db_path=db_path,
    )


def configure_logging(cfg: Optional[OlmConfig] = None) -> logging.Logger:
    """Apply level and file handler to the package root logger."""
    if cfg is None:
        level, log_file = load_log_settings()
    else:
        level, log_file = cfg.log_level, cfg.log_file
    return get_logger(ROOT_LOGGER, level=level, to_file=log_file)
