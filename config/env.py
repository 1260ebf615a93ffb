"""Environment variable loading helpers.

This project supports local configuration via dotenv-style files.

Load order (first found wins; existing process env vars are never overridden):
- .env
- .env.dev (only when DJANGO_ENV=dev)

In production, prefer real environment variables instead of dotenv files.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _should_load_dev_env() -> bool:
    return os.environ.get("DJANGO_ENV", "").lower() in {"dev", "development", "local"}


def load_env(base_dir: Path | None = None) -> None:
    """Load .env files into process environment.

    Safe to call multiple times.

    Args:
        base_dir: Project root directory. Defaults to config/.. (the same
            BASE_DIR used by config/settings.py).
    """

    if base_dir is None:
        base_dir = Path(__file__).resolve().parent.parent

    load_dotenv(base_dir / ".env", override=False)

    if _should_load_dev_env():
        load_dotenv(base_dir / ".env.dev", override=False)


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int | None) -> int | None:
    """Read an integer from the environment, falling back to ``default`` when unset/blank."""
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    return int(value)
