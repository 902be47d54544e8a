"""Winner selection subsystem."""

from .engine import MAX_DRAW_COUNT, DrawEngine, DrawRequest, DrawResult, DrawnWinner
from .fixed_winners import (
    FixedWinnerResolution,
    FixedWinnerResolver,
    PlacementOutcome,
    ResolvedGuarantee,
)
from .locks import DEFAULT_LOCKS, PrizeLockRegistry
from .pool import PersonPool
from .recorder import ResultRecorder
from .registry import PrizeRegistry
from .scheduler import BatchScheduler

__all__ = [
    "BatchScheduler",
    "DEFAULT_LOCKS",
    "DrawEngine",
    "DrawRequest",
    "DrawResult",
    "DrawnWinner",
    "FixedWinnerResolution",
    "FixedWinnerResolver",
    "MAX_DRAW_COUNT",
    "PersonPool",
    "PlacementOutcome",
    "PrizeLockRegistry",
    "PrizeRegistry",
    "ResolvedGuarantee",
    "ResultRecorder",
]
