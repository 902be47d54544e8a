"""Draw orchestration: validate, gate, resolve guarantees, sample, place."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import (
    DrawLimitExceededError,
    InsufficientCandidatesError,
    PrizeExhaustedError,
)
from ..models import MAX_DRAW_COUNT, FixedWinnerEntry, Person
from ..models.utils import utcnow
from ..settings import Settings
from .fixed_winners import FixedWinnerResolver
from .pool import PersonPool
from .registry import PrizeRegistry
from .scheduler import BatchScheduler

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class DrawRequest:
    """A draw command decoded from the UI or a remote controller.

    Attributes
    ----------
    prize_id : int
        Prize to draw.
    count : Optional[int]
        Explicit number of winners; the prize frequency when omitted.
    request_id : Optional[str]
        Identifier of the originating message, kept for logging.
    requested_at : Optional[datetime]
        Timestamp of the originating message.
    """

    prize_id: int
    count: Optional[int] = None
    request_id: Optional[str] = None
    requested_at: Optional[datetime] = None


@dataclass(frozen=True)
class DrawnWinner:
    person: Person
    position: int
    guaranteed: bool = False


@dataclass(frozen=True)
class DrawResult:
    """Outcome of one draw, ordered by position.

    The result is a preview until handed to
    :class:`~lottery.draw.recorder.ResultRecorder`.
    """

    prize_id: int
    winners: tuple[DrawnWinner, ...]
    drawn_at: datetime
    dropped_guarantees: tuple[FixedWinnerEntry, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.winners)

    @property
    def people(self) -> list[Person]:
        return [winner.person for winner in self.winners]

    @property
    def by_position(self) -> dict[int, Person]:
        return {winner.position: winner.person for winner in self.winners}


class DrawEngine:
    """Produce winners for a prize without mutating any state."""

    def __init__(
        self,
        session: Session,
        *,
        exclude_any_win: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a draw engine bound to a SQLAlchemy session.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session used for lookups.
        exclude_any_win : Optional[bool], default: None
            Whether people holding any win are excluded from further prizes.
            When omitted the value comes from :meth:`Settings.from_env`.
            Prizes flagged ``is_all`` ignore this policy.
        rng : Optional[random.Random], default: None
            Random source shared by guarantee subset selection and sampling.
            Pass a seeded instance for reproducible draws.
        """

        if exclude_any_win is None:
            exclude_any_win = Settings.from_env().exclude_any_win
        self._exclude_any_win = exclude_any_win
        self._rng = rng or random.Random()
        self.pool = PersonPool(session)
        self.registry = PrizeRegistry(session)
        self.scheduler = BatchScheduler(self.registry)
        self.resolver = FixedWinnerResolver(self.pool, rng=self._rng)

    def draw(self, prize_id: int, requested_count: Optional[int] = None) -> DrawResult:
        """Select winners for ``prize_id``.

        Parameters
        ----------
        prize_id : int
            Prize to draw.
        requested_count : Optional[int], default: None
            Number of winners wanted; the prize frequency when omitted.

        Returns
        -------
        DrawResult
            Winners with distinct positions ``1..n``.

        Raises
        ------
        DrawLimitExceededError
            If ``requested_count`` exceeds :data:`MAX_DRAW_COUNT`.
        NotFoundError
            If the prize does not exist.
        PrizeExhaustedError
            If the prize (or its active batch) has no slots left.
        InsufficientCandidatesError
            If too few eligible people remain to fill the draw.

        Notes
        -----
        The draw proceeds in this order:

        1. Validate the requested count against the single-draw limit.
        2. Ask the scheduler for the allowed size ``n``.
        3. Resolve guaranteed winners for up to ``n`` slots.
        4. Sample the shortfall uniformly from the remaining eligible people.
        5. Place sampled winners in the free positions.
        """

        if requested_count is not None:
            if requested_count > MAX_DRAW_COUNT:
                raise DrawLimitExceededError(requested_count, MAX_DRAW_COUNT)
            if requested_count < 1:
                raise ValueError("requested_count must be a positive integer")

        prize = self.registry.get(prize_id)
        if requested_count is not None:
            requested = requested_count
        else:
            # rows written outside Prize.__init__ may carry a larger frequency
            requested = min(prize.frequency, MAX_DRAW_COUNT)
        n = self.scheduler.allowed(prize_id, requested)
        if n == 0:
            raise PrizeExhaustedError(prize_id)

        exclude_any_win = self._exclude_any_win and not prize.is_all
        eligible = self.pool.eligible(prize_id, exclude_any_win=exclude_any_win)
        resolution = self.resolver.resolve(prize, n, eligible)

        shortfall = n - resolution.consumed
        # sort so a seeded rng reproduces the same draw
        remaining = sorted(eligible - resolution.people, key=lambda person: person.id)
        if len(remaining) < shortfall:
            raise InsufficientCandidatesError(prize_id, shortfall, len(remaining))

        sampled = self._rng.sample(remaining, shortfall)
        taken = resolution.assignments
        free_positions = [pos for pos in range(1, n + 1) if pos not in taken]

        winners = [
            DrawnWinner(person=g.person, position=g.position, guaranteed=True)
            for g in resolution.guarantees
        ]
        winners.extend(
            DrawnWinner(person=person, position=pos)
            for person, pos in zip(sampled, free_positions)
        )
        winners.sort(key=lambda winner: winner.position)

        logger.debug(
            f"Drew {n} winners for prize {prize_id} "
            f"({resolution.consumed} guaranteed, {shortfall} random)"
        )
        return DrawResult(
            prize_id=prize_id,
            winners=tuple(winners),
            drawn_at=utcnow(),
            dropped_guarantees=resolution.dropped,
        )


__all__ = [
    "DrawEngine",
    "DrawRequest",
    "DrawResult",
    "DrawnWinner",
    "MAX_DRAW_COUNT",
]
