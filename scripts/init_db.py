"""Create or upgrade the lottery database.

Usage: ``python scripts/init_db.py [REVISION]`` (defaults to ``head``).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from lottery.db.engine import make_engine
from lottery.models import Base
from lottery.settings import Settings

logger = logging.getLogger("lottery.init_db")

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def missing_tables() -> list[str]:
    """Return the model tables that the configured database does not have."""
    engine = make_engine()
    try:
        present = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    return sorted(set(Base.metadata.tables) - present)


def main(argv: list[str]) -> int:
    logging.basicConfig(level=Settings.from_env().log_level)
    revision = argv[0] if argv else "head"
    upgrade_db(revision)
    missing = missing_tables()
    if missing and revision == "head":
        logger.error(f"Tables missing after upgrade: {', '.join(missing)}")
        return 1
    logger.info(f"Database at revision {revision}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
