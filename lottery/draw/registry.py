"""Prize definitions and their remaining-count bookkeeping."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import MAX_DRAW_COUNT, FixedWinnerEntry, Prize, PrizeBatch, build_batches

logger = logging.getLogger(__name__)


class PrizeRegistry:
    """Session-bound access to :class:`Prize` aggregates.

    Counter changes are delegated to the aggregate itself
    (:meth:`Prize.apply_commit`, :meth:`Prize.reset_counters`) so that the
    overall and per-batch counters are always updated together.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, prize_id: int) -> Prize:
        prize = self._session.get(Prize, prize_id)
        if prize is None:
            raise NotFoundError("prize", prize_id)
        return prize

    def list_prizes(self, *, visible_only: bool = False) -> list[Prize]:
        """Return prizes ordered by ``sort`` then id."""
        stmt = select(Prize).order_by(Prize.sort.asc(), Prize.id.asc())
        if visible_only:
            stmt = stmt.where(Prize.is_show.is_(True))
        return list(self._session.scalars(stmt))

    def remaining_count(self, prize_id: int) -> int:
        return self.get(prize_id).remaining_count

    def active_batch(self, prize_id: int) -> Optional[PrizeBatch]:
        prize = self.get(prize_id)
        if not prize.batches_enabled:
            return None
        return prize.active_batch

    def commit(self, prize_id: int, winner_count: int) -> Prize:
        """Add ``winner_count`` winners to the prize counters.

        Raises
        ------
        OverdrawError
            If ``winner_count`` exceeds the remaining count at call time.
        """
        prize = self.get(prize_id)
        prize.apply_commit(winner_count)
        self._session.flush()
        logger.debug(
            f"Prize {prize_id} counters now {prize.used_count}/{prize.count}"
            f" (fully drawn: {prize.is_used})"
        )
        return prize

    def reset_counts(self, prize_id: int) -> Prize:
        prize = self.get(prize_id)
        prize.reset_counters()
        self._session.flush()
        logger.info(f"Reset counters for prize {prize_id}")
        return prize

    def reset_all_counts(self) -> int:
        prizes = self.list_prizes()
        for prize in prizes:
            prize.reset_counters()
        self._session.flush()
        return len(prizes)

    # -- configuration ---------------------------------------------------

    def add_prize(
        self,
        *,
        name: str,
        count: int,
        frequency: int = 1,
        sort: Optional[int] = None,
        is_all: bool = False,
        description: Optional[str] = None,
        is_show: bool = True,
        picture_url: Optional[str] = None,
        batch_counts: Optional[Sequence[int]] = None,
        is_temporary: bool = False,
    ) -> Prize:
        """Create and persist a prize.

        ``sort`` defaults to one past the current maximum so new prizes are
        appended to the draw order.
        """
        if sort is None:
            current_max = self._session.scalar(select(func.max(Prize.sort)))
            sort = (current_max or 0) + 1
        prize = Prize(
            name=name,
            count=count,
            frequency=frequency,
            sort=sort,
            is_all=is_all,
            description=description,
            is_show=is_show,
            picture_url=picture_url,
            is_temporary=is_temporary,
        )
        self._session.add(prize)
        self._session.flush()
        if batch_counts:
            self.set_batches(prize.id, batch_counts)
        logger.info(f"Added prize {prize.id} ({name!r}) with {count} slots")
        return prize

    def add_temporary_prize(
        self,
        *,
        name: str,
        count: int,
        frequency: Optional[int] = None,
        is_all: bool = False,
        description: Optional[str] = None,
    ) -> Prize:
        """Add an ad-hoc prize at the end of the draw order.

        When ``frequency`` is omitted the whole count is drawn in one go,
        capped at the single-draw limit.
        """
        if frequency is None:
            frequency = max(1, min(count, MAX_DRAW_COUNT))
        return self.add_prize(
            name=name,
            count=count,
            frequency=frequency,
            is_all=is_all,
            description=description,
            is_temporary=True,
        )

    def set_batches(
        self, prize_id: int, counts: Optional[Sequence[int]], *, enabled: bool = True
    ) -> Prize:
        """Replace the batch plan of an undrawn prize.

        Raises
        ------
        ValueError
            If the prize has already been drawn from, or the batch counts exceed
            the prize count. A plan summing to less than the count is allowed;
            the prize is then fully drawn once the last batch is spent.
        """
        prize = self.get(prize_id)
        if prize.used_count:
            raise ValueError("Cannot change the batch plan of a prize that has winners")
        counts = list(counts or [])
        if any(c < 0 for c in counts):
            raise ValueError("batch counts must be non-negative")
        if enabled and sum(counts) > prize.count:
            raise ValueError(
                f"batch counts sum to {sum(counts)} but prize {prize_id} only has "
                f"{prize.count} slots"
            )
        # flush the removal first so (prize_id, seq) stays unique
        prize.batches = []
        self._session.flush()
        prize.batches = build_batches(counts)
        prize.batches_enabled = enabled and bool(counts)
        self._session.flush()
        prize.check_consistency()
        return prize

    def set_fixed_winners(
        self,
        prize_id: int,
        entries: Iterable[FixedWinnerEntry | dict],
        *,
        enabled: bool = True,
    ) -> Prize:
        """Replace the guarantee list of a prize.

        Entries may be :class:`FixedWinnerEntry` objects or dicts with ``uuid``,
        ``name`` and optional ``position``. Duplicate positions are accepted
        here and resolved at draw time.

        Raises
        ------
        ValueError
            If a position lies outside ``[1, frequency]``.
        """
        prize = self.get(prize_id)
        built: list[FixedWinnerEntry] = []
        for seq, entry in enumerate(entries):
            if isinstance(entry, dict):
                entry = FixedWinnerEntry.from_json(entry, seq=seq)
            else:
                entry = FixedWinnerEntry.from_json(entry.to_json(), seq=seq)
            if entry.position is not None and not 1 <= entry.position <= prize.frequency:
                raise ValueError(
                    f"position {entry.position} for {entry.person_name!r} must be "
                    f"within [1, {prize.frequency}]"
                )
            built.append(entry)
        prize.fixed_winners = []
        self._session.flush()
        prize.fixed_winners = built
        prize.fixed_winners_enabled = enabled
        self._session.flush()
        return prize


__all__ = ["PrizeRegistry"]
