"""Atomic commit of a draw result into the person and prize records."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import CommitError, LotteryError, OverdrawError
from ..models import Prize
from .engine import DrawResult
from .pool import PersonPool
from .registry import PrizeRegistry

logger = logging.getLogger(__name__)


class ResultRecorder:
    """Write a :class:`DrawResult` back to the pool and registry.

    All writes happen inside a SAVEPOINT; if any step fails the savepoint is
    rolled back, the touched records are reloaded from the database and
    :class:`CommitError` is raised. The enclosing transaction is left for the
    caller to commit.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._pool = PersonPool(session)
        self._registry = PrizeRegistry(session)

    def commit(self, result: DrawResult) -> Prize:
        prize_id = result.prize_id
        try:
            with self._session.begin_nested():
                prize = self._registry.get(prize_id)
                seen: set[int] = set()
                for winner in result.winners:
                    person = winner.person
                    if person.id in seen or person.has_won_prize(prize.id):
                        raise OverdrawError(
                            f"Person {person.uuid} would win prize {prize.id} twice"
                        )
                    seen.add(person.id)
                    self._pool.record_win(
                        person.id, prize.id, result.drawn_at, prize_name=prize.name
                    )
                self._registry.commit(prize.id, len(result.winners))
                self._session.flush()
        except (LotteryError, SQLAlchemyError, ValueError) as exc:
            logger.error(f"Rolled back draw commit for prize {prize_id}: {exc}")
            raise CommitError(prize_id, exc) from exc

        logger.info(
            f"Committed {len(result.winners)} winners for prize {prize_id} "
            f"({prize.used_count}/{prize.count} used)"
        )
        return prize


__all__ = ["ResultRecorder"]
