"""Compare the lottery tables in a database against the ORM models.

Usage: ``python scripts/check_schema_drift.py [DATABASE_URL]``. Without an
argument the URL comes from ``DB_URL`` (see :mod:`lottery.settings`). Exit
status is 0 when the schema matches, 1 on drift and 2 when the check could not
run.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy.exc import SQLAlchemyError

from lottery.db.engine import make_engine
from lottery.models import Base
from lottery.settings import Settings

logger = logging.getLogger("lottery.schema_drift")

IGNORED_TABLES = {"alembic_version"}


def _include_object(obj, name, type_, reflected, compare_to) -> bool:
    return not (type_ == "table" and name in IGNORED_TABLES)


def _describe(ops, depth: int = 0) -> list[str]:
    lines = []
    for op in ops:
        lines.append(f"{'  ' * depth}- {op}")
        lines.extend(_describe(getattr(op, "ops", None) or [], depth + 1))
    return lines


def check(database_url: Optional[str] = None) -> int:
    engine = make_engine(database_url)
    url = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "include_object": _include_object,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(context, Base.metadata).upgrade_ops
    except SQLAlchemyError as exc:
        logger.error(f"Could not inspect {url}: {exc}")
        return 2
    finally:
        engine.dispose()

    if upgrade_ops is None or upgrade_ops.is_empty():
        logger.info(f"No schema drift in {url}")
        return 0
    logger.warning(
        f"Schema drift in {url}:\n" + "\n".join(_describe(upgrade_ops.ops or []))
    )
    return 1


def main(argv: list[str]) -> int:
    logging.basicConfig(level=Settings.from_env().log_level)
    return check(argv[0] if argv else None)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
