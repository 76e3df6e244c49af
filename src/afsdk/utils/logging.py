from __future__ import annotations

import logging
from contextlib import suppress
from pathlib import Path
from typing import Dict


_LOGGER_FILES: Dict[str, str] = {
    "afsdk.failover": "failover.log",
    "afsdk.gateway": "gateway.log",
    "afsdk.graphql": "graphql.log",
}


def setup_logging(logs_dir: Path | None = None, level: int = logging.INFO) -> None:
    root = logging.getLogger("afsdk")
    configured_dir = getattr(root, "_afsdk_logs_dir", None)
    configured_level = getattr(root, "_afsdk_logs_level", None)
    logs_key = str(logs_dir) if logs_dir is not None else ""
    if configured_dir == logs_key and configured_level == level:
        return

    _close_handlers(root)
    root.setLevel(level)
    root.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console_handler)

    for logger_name in _LOGGER_FILES:
        _close_handlers(logging.getLogger(logger_name))

    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        run_handler = logging.FileHandler(logs_dir / "run.log", encoding="utf-8")
        run_handler.setLevel(level)
        run_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        root.addHandler(run_handler)

        for logger_name, filename in _LOGGER_FILES.items():
            logger = logging.getLogger(logger_name)
            logger.setLevel(level)
            logger.propagate = True
            file_handler = logging.FileHandler(logs_dir / filename, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
            logger.addHandler(file_handler)

    root._afsdk_logs_dir = logs_key  # type: ignore[attr-defined]
    root._afsdk_logs_level = level  # type: ignore[attr-defined]


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        with suppress(Exception):
            handler.close()
