"""Root conftest: test settings must be in the environment before
``direct_chat.config`` is first imported."""
from __future__ import annotations

import os
from pathlib import Path

ENV_FILE = Path(__file__).resolve().parent / ".env.test"


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip("'\"")
    return values


if ENV_FILE.exists():
    for key, value in _read_env_file(ENV_FILE).items():
        os.environ.setdefault(key, value)
