from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .person import Person  # noqa: F401
from .prize import (  # noqa: F401
    MAX_DRAW_COUNT,
    FixedWinnerEntry,
    Prize,
    PrizeBatch,
    build_batches,
)

__all__ = [
    "Base",
    "Person",
    "Prize",
    "PrizeBatch",
    "FixedWinnerEntry",
    "build_batches",
    "MAX_DRAW_COUNT",
]
