"""Dotenv loading helpers.

"""

from __future__ import annotations

import os
from pathlib import Path

_DOTENV_PREFIX = "SDK__"


def load_dotenv_files(project_root: Path) -> None:
    """Load ``SDK__*`` keys from ``.env`` files under ``project_root``.

    Args:
        project_root (Path): Directory holding the ``.env`` file.

    Returns:
        None: No value is returned.

    Side Effects / I/O:
        - Reads local files and sets process environment variables.

    Preconditions / Invariants:
        - Variables already present in the environment are never overridden.
        - Keys outside the ``SDK__`` namespace are skipped.

    """
    for path in [project_root / ".env", project_root / ".afsdk.env"]:
        _load_dotenv_file(path)


def _is_allowed_dotenv_key(key: str) -> bool:
    return key.upper().startswith(_DOTENV_PREFIX)


def _load_dotenv_file(path: Path) -> None:
    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"'")
        if key and _is_allowed_dotenv_key(key) and key not in os.environ:
            os.environ[key] = value
