"""High-level operations used by the UI and the remote-control channel.

Each workflow takes the appropriate exclusive section from a
:class:`~lottery.draw.locks.PrizeLockRegistry` so that a draw and its commit
appear atomic to any other request touching the same prize.
"""

from __future__ import annotations

import json
import logging
import random
from typing import Any, Optional, Union

from sqlalchemy import delete
from sqlalchemy.orm import Session

from .draw import (
    DEFAULT_LOCKS,
    DrawEngine,
    DrawRequest,
    DrawResult,
    PersonPool,
    PrizeLockRegistry,
    PrizeRegistry,
    ResultRecorder,
)
from .models import FixedWinnerEntry, Person, Prize, PrizeBatch

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def preview_draw(
    session: Session,
    prize_id: int,
    count: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    exclude_any_win: Optional[bool] = None,
) -> DrawResult:
    """Compute a draw for ``prize_id`` without recording it."""

    engine = DrawEngine(session, exclude_any_win=exclude_any_win, rng=rng)
    return engine.draw(prize_id, count)


def run_draw(
    session: Session,
    request: Union[DrawRequest, int],
    *,
    rng: Optional[random.Random] = None,
    exclude_any_win: Optional[bool] = None,
    locks: PrizeLockRegistry = DEFAULT_LOCKS,
    commit: bool = False,
) -> DrawResult:
    """Draw winners for a prize and record them.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    request : DrawRequest | int
        Draw request, or just the prize id to draw the prize frequency.
    rng : Optional[random.Random], default: None
        Random source; pass a seeded instance for reproducible draws.
    exclude_any_win : Optional[bool], default: None
        Override of the "no repeat winners across prizes" setting.
    locks : PrizeLockRegistry
        Lock registry shared by every caller of the same store.
    commit : bool, default: False
        Commit the session before leaving the exclusive section. Callers that
        manage the transaction themselves leave this off.

    Returns
    -------
    DrawResult
        The committed draw.

    Raises
    ------
    LotteryError
        Any error kind from :mod:`lottery.errors`; no state changes in that case.
    """

    if not isinstance(request, DrawRequest):
        request = DrawRequest(prize_id=request)

    with locks.prize(request.prize_id):
        engine = DrawEngine(session, exclude_any_win=exclude_any_win, rng=rng)
        result = engine.draw(request.prize_id, request.count)
        ResultRecorder(session).commit(result)
        if commit:
            session.commit()

    logger.info(
        f"Draw {request.request_id or '-'} for prize {request.prize_id} produced "
        f"{len(result)} winners"
    )
    return result


def reset_prize_counts(
    session: Session, prize_id: int, *, locks: PrizeLockRegistry = DEFAULT_LOCKS
) -> Prize:
    """Zero the counters of one prize and clear its fully-drawn flag."""

    with locks.prize(prize_id):
        return PrizeRegistry(session).reset_counts(prize_id)


def reset_all_wins(
    session: Session,
    *,
    reset_prizes: bool = True,
    locks: PrizeLockRegistry = DEFAULT_LOCKS,
) -> int:
    """Clear everybody's win history.

    With ``reset_prizes`` (the default) every prize counter is zeroed too, so
    the counters keep matching the (now empty) win history.
    """

    with locks.all_prizes():
        changed = PersonPool(session).reset_wins()
        if reset_prizes:
            PrizeRegistry(session).reset_all_counts()
    return changed


def clear_people(session: Session, *, locks: PrizeLockRegistry = DEFAULT_LOCKS) -> int:
    """Delete every person; prize counters are reset to match."""

    with locks.all_prizes():
        removed = PersonPool(session).clear()
        PrizeRegistry(session).reset_all_counts()
    return removed


def reset_all_data(session: Session, *, locks: PrizeLockRegistry = DEFAULT_LOCKS) -> None:
    """Delete every person and every prize."""

    with locks.all_prizes():
        PersonPool(session).clear()
        for prize in PrizeRegistry(session).list_prizes():
            session.delete(prize)
        session.flush()
    logger.info("Reset all lottery data")


def export_snapshot(session: Session) -> dict[str, Any]:
    """Return the whole person pool and prize registry as plain data."""

    return {
        "version": SNAPSHOT_VERSION,
        "people": [person.to_json() for person in PersonPool(session).all()],
        "prizes": [prize.to_json() for prize in PrizeRegistry(session).list_prizes()],
    }


def export_snapshot_str(session: Session) -> str:
    return json.dumps(export_snapshot(session), ensure_ascii=False)


def load_snapshot(
    session: Session,
    snapshot: Union[dict[str, Any], str],
    *,
    locks: PrizeLockRegistry = DEFAULT_LOCKS,
) -> None:
    """Replace the stored pool and registry with ``snapshot``.

    Ids are preserved so that the prize ids recorded in win histories keep
    resolving.

    Raises
    ------
    ValueError
        If the snapshot version is unknown or a win history is malformed.
    OverdrawError
        If a prize's stored counters break the counter invariants.
    """

    if isinstance(snapshot, str):
        snapshot = json.loads(snapshot)
    if snapshot.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {snapshot.get('version')!r}")

    people = [Person.from_json(item) for item in snapshot.get("people") or []]
    prizes = [Prize.from_json(item) for item in snapshot.get("prizes") or []]

    with locks.all_prizes():
        session.execute(delete(Person))
        session.execute(delete(FixedWinnerEntry))
        session.execute(delete(PrizeBatch))
        session.execute(delete(Prize))
        session.expunge_all()
        session.add_all(prizes)
        session.add_all(people)
        session.flush()
    logger.info(f"Loaded snapshot with {len(people)} people and {len(prizes)} prizes")


__all__ = [
    "clear_people",
    "export_snapshot",
    "export_snapshot_str",
    "load_snapshot",
    "preview_draw",
    "reset_all_data",
    "reset_all_wins",
    "reset_prize_counts",
    "run_draw",
]
