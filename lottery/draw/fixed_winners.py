"""Resolution of a prize's guaranteed ("fixed") winners for one draw."""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from ..models import FixedWinnerEntry, Person, Prize
from .pool import PersonPool

logger = logging.getLogger(__name__)


class PlacementOutcome(str, enum.Enum):
    """How a guaranteed winner obtained its position."""

    ASSIGNED = "assigned"
    """The entry's explicit position was free and has been granted."""

    DISPLACED = "displaced"
    """The explicit position was taken by an earlier entry (or lies beyond the
    draw size), so the entry was auto-placed instead."""

    AUTO = "auto"
    """No explicit position; placed in the lowest free slot."""


@dataclass(frozen=True)
class ResolvedGuarantee:
    entry: FixedWinnerEntry
    person: Person
    position: int
    outcome: PlacementOutcome


@dataclass(frozen=True)
class FixedWinnerResolution:
    """Guaranteed winners for one draw.

    Attributes
    ----------
    guarantees : tuple[ResolvedGuarantee, ...]
        Forced winners in configuration order, each with its final position.
    dropped : tuple[FixedWinnerEntry, ...]
        Entries skipped because the person left the pool or is not eligible.
    """

    guarantees: tuple[ResolvedGuarantee, ...] = ()
    dropped: tuple[FixedWinnerEntry, ...] = ()

    @property
    def assignments(self) -> dict[int, Person]:
        """Mapping of 1-based position to guaranteed person."""
        return {g.position: g.person for g in self.guarantees}

    @property
    def consumed(self) -> int:
        return len(self.guarantees)

    @property
    def people(self) -> set[Person]:
        return {g.person for g in self.guarantees}


class FixedWinnerResolver:
    """Decide which guaranteed winners apply to a draw of size ``n``.

    The resolver never mutates the stored configuration; conflicts are
    reported through :class:`PlacementOutcome` on the returned guarantees.
    """

    def __init__(self, pool: PersonPool, *, rng: Optional[random.Random] = None) -> None:
        self._pool = pool
        self._rng = rng or random.Random()

    def resolve(
        self, prize: Prize, n: int, eligible: Iterable[Person]
    ) -> FixedWinnerResolution:
        """Resolve guarantees for a draw of ``prize`` producing ``n`` winners.

        Parameters
        ----------
        prize : Prize
            Prize whose guarantee configuration is applied.
        n : int
            Number of winners the draw will produce. ``0`` always yields an
            empty resolution.
        eligible : Iterable[Person]
            Candidates allowed to win this draw. Guaranteed people outside this
            set are dropped.

        Returns
        -------
        FixedWinnerResolution
            At most ``n`` guaranteed winners with distinct positions in
            ``[1, n]``.

        Notes
        -----
        When more guarantees survive filtering than there are slots, a
        uniformly random subset of size ``n`` is kept. The subset keeps the
        configuration order so position conflicts are still broken by it.
        """

        if n <= 0 or not prize.fixed_winners_enabled or not prize.fixed_winners:
            return FixedWinnerResolution()

        eligible_by_uuid = {person.uuid: person for person in eligible}
        candidates: list[tuple[FixedWinnerEntry, Person]] = []
        dropped: list[FixedWinnerEntry] = []
        seen: set[str] = set()
        for entry in prize.fixed_winners:
            if entry.person_uuid in seen:
                # the same person listed twice only counts once
                continue
            seen.add(entry.person_uuid)
            person = eligible_by_uuid.get(entry.person_uuid)
            if person is None:
                reason = (
                    "not eligible"
                    if self._pool.get_by_uuid(entry.person_uuid) is not None
                    else "no longer in the pool"
                )
                logger.warning(
                    f"Dropping guaranteed winner {entry.person_name!r} "
                    f"({entry.person_uuid}) for prize {prize.id}: {reason}"
                )
                dropped.append(entry)
                continue
            candidates.append((entry, person))

        if len(candidates) > n:
            picked = set(self._rng.sample(range(len(candidates)), n))
            logger.debug(
                f"Prize {prize.id} has {len(candidates)} guarantees for {n} slots; "
                "selected a random subset"
            )
            candidates = [c for idx, c in enumerate(candidates) if idx in picked]

        guarantees = self._place(candidates, n)
        return FixedWinnerResolution(guarantees=tuple(guarantees), dropped=tuple(dropped))

    def _place(
        self, candidates: list[tuple[FixedWinnerEntry, Person]], n: int
    ) -> list[ResolvedGuarantee]:
        """Assign positions: explicit claims first, then lowest free slots."""

        claimed: dict[int, int] = {}
        outcomes: list[PlacementOutcome] = []
        for idx, (entry, _person) in enumerate(candidates):
            position = entry.position
            if position is None:
                outcomes.append(PlacementOutcome.AUTO)
            elif 1 <= position <= n and position not in claimed:
                claimed[position] = idx
                outcomes.append(PlacementOutcome.ASSIGNED)
            else:
                logger.warning(
                    f"Guaranteed winner {entry.person_name!r} cannot take position "
                    f"{position}; placing automatically"
                )
                outcomes.append(PlacementOutcome.DISPLACED)

        free = (pos for pos in range(1, n + 1) if pos not in claimed)
        positions: list[int] = []
        for idx, outcome in enumerate(outcomes):
            if outcome is PlacementOutcome.ASSIGNED:
                positions.append(candidates[idx][0].position)  # type: ignore[arg-type]
            else:
                positions.append(next(free))

        return [
            ResolvedGuarantee(entry=entry, person=person, position=pos, outcome=outcome)
            for (entry, person), pos, outcome in zip(candidates, positions, outcomes)
        ]


__all__ = [
    "FixedWinnerResolution",
    "FixedWinnerResolver",
    "PlacementOutcome",
    "ResolvedGuarantee",
]
