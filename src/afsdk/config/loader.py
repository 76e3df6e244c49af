"""Configuration loading and resolver helpers.

"""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from afsdk.config.defaults import DEFAULT_CONFIG, ENDPOINT_SECTIONS
from afsdk.endpoints import parse_endpoints
from afsdk.failover import ConfigurationError, FailoverConfig, validate_failover_config
from afsdk.failover.types import FailureHook
from afsdk.utils import deep_merge

_PRIMARY_URL_ENV: Dict[str, str] = {
    "graphql": "SDK__GRAPHQL_API_URL",
    "ipfs": "SDK__IPFS__GATEWAY_URL",
    "arweave": "SDK__ARWEAVE__GATEWAY_URL",
}
_LOG_LEVELS: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}
LOGGER = logging.getLogger("afsdk.config")


def load_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    """Load config.

    Args:
        config_path (str | Path | None): Path to a YAML config file; ``None`` uses defaults plus env.

    Returns:
        Dict[str, Any]: Defaults deep-merged with the YAML file, then with ``SDK__*`` env overrides.

    Raises:
        FileNotFoundError: Raised when ``config_path`` does not exist.
        ValueError: Raised when the YAML document is not a mapping or a section has the wrong shape.
        ConfigurationError: Raised when a retry, delay or timeout value is set but not numeric.

    Side Effects / I/O:
        - May read from local filesystem artifacts.
        - Reads environment variables.

    Examples:
        >>> from afsdk.config.loader import load_config
        >>> load_config("afsdk.yaml")["failover"]["max_retries"]
        3

    """
    loaded: Dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}

        if not isinstance(loaded, dict):
            raise ValueError("Config must be a YAML object.")

    cfg = deep_merge(deepcopy(DEFAULT_CONFIG), loaded)
    _apply_env_overrides(cfg)
    _normalize_config(cfg)
    return cfg


def build_failover_config(
    cfg: Dict[str, Any],
    section: str,
    on_failure: Optional[FailureHook] = None,
) -> FailoverConfig:
    """Build a failover configuration for one endpoint section.

    Section-level ``max_retries`` and ``retry_delay_s`` win over the global ``failover`` block.

    Args:
        cfg (Dict[str, Any]): Loaded configuration mapping.
        section (str): Endpoint section name (``ipfs``, ``arweave`` or ``graphql``).
        on_failure (FailureHook | None): Optional per-attempt failure hook.

    Returns:
        FailoverConfig: Validated configuration.

    Raises:
        ConfigurationError: Raised when the section is unknown, has no endpoints or carries invalid values.

    """
    section_cfg = cfg.get(section)
    if not isinstance(section_cfg, dict):
        raise ConfigurationError(f"Unknown endpoint section `{section}`.")
    global_cfg = cfg.get("failover", {}) or {}

    max_retries = _first_defined(section_cfg.get("max_retries"), global_cfg.get("max_retries"), 1)
    retry_delay_s = _first_defined(section_cfg.get("retry_delay_s"), global_cfg.get("retry_delay_s"), 1.0)
    try:
        endpoints = parse_endpoints(section_cfg.get("endpoints") or [])
        config = FailoverConfig(
            endpoints=endpoints,
            max_retries=int(max_retries),
            retry_delay_s=float(retry_delay_s),
            on_failure=on_failure,
        )
    except (TypeError, ValueError) as err:
        raise ConfigurationError(f"Invalid `{section}` failover settings: {err}") from err

    validate_failover_config(config)
    return config


def resolve_request_timeout(cfg: Dict[str, Any], section: str, default: float = 30.0) -> float:
    section_cfg = cfg.get(section, {}) or {}
    value = _as_optional_float(section_cfg.get("request_timeout_s"), f"{section}.request_timeout_s")
    return value if value is not None and value > 0 else default


def resolve_log_level(cfg: Dict[str, Any]) -> int:
    raw = str((cfg.get("logging", {}) or {}).get("level") or "INFO").strip().upper()
    return _LOG_LEVELS.get(raw, logging.INFO)


def _apply_env_overrides(cfg: Dict[str, Any]) -> None:
    failover_cfg = cfg.setdefault("failover", {})
    max_retries = _first_non_empty_env("SDK__FAILOVER__MAX_RETRIES")
    if max_retries is not None:
        failover_cfg["max_retries"] = max_retries
    retry_delay = _first_non_empty_env("SDK__FAILOVER__RETRY_DELAY_S")
    if retry_delay is not None:
        failover_cfg["retry_delay_s"] = retry_delay

    for section in ENDPOINT_SECTIONS:
        section_cfg = cfg.setdefault(section, {})
        env_prefix = f"SDK__{section.upper()}"
        endpoints_raw = _first_non_empty_env(f"{env_prefix}__ENDPOINTS_JSON")
        if endpoints_raw:
            try:
                endpoints = json.loads(endpoints_raw)
            except json.JSONDecodeError:
                LOGGER.warning(f"[config] ignoring malformed {env_prefix}__ENDPOINTS_JSON")
            else:
                if isinstance(endpoints, list):
                    section_cfg["endpoints"] = endpoints
                else:
                    LOGGER.warning(f"[config] {env_prefix}__ENDPOINTS_JSON must be a JSON list")

        for key in ["MAX_RETRIES", "RETRY_DELAY_S", "REQUEST_TIMEOUT_S"]:
            env_value = _first_non_empty_env(f"{env_prefix}__{key}")
            if env_value is not None:
                section_cfg[key.lower()] = env_value

        primary_url = _first_non_empty_env(_PRIMARY_URL_ENV[section])
        if primary_url:
            section_cfg["endpoints"] = _with_primary_endpoint(section_cfg.get("endpoints") or [], primary_url)

    logging_cfg = cfg.setdefault("logging", {})
    level = _first_non_empty_env("SDK__LOG_LEVEL")
    if level is not None:
        logging_cfg["level"] = level
    logs_dir = _first_non_empty_env("SDK__LOG_DIR")
    if logs_dir is not None:
        logging_cfg["dir"] = logs_dir


def _normalize_config(cfg: Dict[str, Any]) -> None:
    failover_cfg = cfg.get("failover")
    if not isinstance(failover_cfg, dict):
        raise ValueError("`failover` must be a mapping.")
    failover_cfg["max_retries"] = _as_optional_int(failover_cfg.get("max_retries"), "failover.max_retries")
    failover_cfg["retry_delay_s"] = _as_optional_float(failover_cfg.get("retry_delay_s"), "failover.retry_delay_s")

    for section in ENDPOINT_SECTIONS:
        section_cfg = cfg.get(section)
        if not isinstance(section_cfg, dict):
            raise ValueError(f"`{section}` must be a mapping.")
        if not isinstance(section_cfg.get("endpoints") or [], list):
            raise ValueError(f"`{section}.endpoints` must be a list.")
        for key, caster in [
            ("max_retries", _as_optional_int),
            ("retry_delay_s", _as_optional_float),
            ("request_timeout_s", _as_optional_float),
        ]:
            if key in section_cfg:
                section_cfg[key] = caster(section_cfg.get(key), f"{section}.{key}")


def _with_primary_endpoint(endpoints: List[Any], url: str) -> List[Any]:
    url = url.strip().rstrip("/")
    remaining = [
        item
        for item in endpoints
        if not (isinstance(item, str) and item.strip().rstrip("/") == url)
        and not (isinstance(item, dict) and str(item.get("url") or "").strip().rstrip("/") == url)
    ]
    return [{"url": url, "priority": 0}] + remaining


def _first_defined(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _first_non_empty_env(*keys: str) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value not in {None, ""}:
            return value
    return None


def _as_optional_int(value: Any, key: str) -> Optional[int]:
    if value is None or value == "":
        return None
    number = _as_optional_float(value, key)
    if not number.is_integer():
        raise ConfigurationError(f"`{key}` must be a whole number, got {value!r}.")
    return int(number)


def _as_optional_float(value: Any, key: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"`{key}` must be numeric, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"`{key}` must be numeric, got {value!r}.") from None
