"""Environment-driven configuration for the lottery engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Environment variable '{name}' must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment (and ``.env``).

    Attributes
    ----------
    database_url : str
        SQLAlchemy URL for the person/prize store. Relative SQLite paths are
        resolved against the project root.
    exclude_any_win : bool
        When ``True`` a person who already holds any win is not eligible for
        further prizes, unless the prize is flagged ``is_all``.
    log_level : str
        Level name used by the command-line scripts.
    """

    database_url: str = "sqlite:///./dev.db"
    exclude_any_win: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=resolve_sqlite_url(
                os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
            ),
            exclude_any_win=_env_flag("LOTTERY_EXCLUDE_ANY_WIN", True),
            log_level=os.getenv("LOTTERY_LOG_LEVEL", "INFO").upper(),
        )


__all__ = ["ROOT_DIR", "Settings"]
