"""Roster of draw participants and their win status."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Person, Prize
from ..models.utils import utcnow

logger = logging.getLogger(__name__)


class PersonPool:
    """Session-bound access to :class:`Person` records.

    The pool never commits; callers own the transaction boundary.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, person_id: int) -> Person:
        person = self._session.get(Person, person_id)
        if person is None:
            raise NotFoundError("person", person_id)
        return person

    def get_by_uuid(self, uuid: str) -> Optional[Person]:
        return Person.get_by_uuid(self._session, uuid)

    def all(self) -> list[Person]:
        return list(self._session.scalars(select(Person).order_by(Person.id)))

    def winners(self) -> list[Person]:
        return [person for person in self.all() if person.is_win]

    def non_winners(self) -> list[Person]:
        return [person for person in self.all() if not person.is_win]

    def eligible(
        self,
        prize_id: int,
        exclude_already_won_this_prize: bool = True,
        exclude_any_win: bool = False,
    ) -> set[Person]:
        """Return the people who may be selected in a draw for ``prize_id``.

        Parameters
        ----------
        prize_id : int
            Prize being drawn.
        exclude_already_won_this_prize : bool, default: True
            Exclude people whose win history already contains ``prize_id``.
            Passing ``False`` is ignored: one person never wins the same prize
            twice.
        exclude_any_win : bool, default: False
            Also exclude anybody who holds a win for any prize.

        Returns
        -------
        set[Person]
            Eligible candidates.
        """

        if not exclude_already_won_this_prize:
            logger.debug(f"Ignoring request to include repeat winners of prize {prize_id}")
        candidates: set[Person] = set()
        for person in self.all():
            if person.has_won_prize(prize_id):
                continue
            if exclude_any_win and person.is_win:
                continue
            candidates.add(person)
        return candidates

    def record_win(
        self,
        person_id: int,
        prize_id: int,
        timestamp: Optional[datetime] = None,
        prize_name: Optional[str] = None,
    ) -> Person:
        """Append a win for ``prize_id`` to the person's history.

        The call is not idempotent: invoking it twice for the same event
        records two wins.
        """

        person = self.get(person_id)
        if prize_name is None:
            prize = self._session.get(Prize, prize_id)
            if prize is None:
                raise NotFoundError("prize", prize_id)
            prize_name = prize.name
        person.append_win(prize_id, prize_name, timestamp or utcnow())
        logger.debug(f"Recorded win of prize {prize_id} for person {person.uuid}")
        return person

    def reset_wins(self) -> int:
        """Clear the win history of every person; returns how many changed."""
        changed = 0
        for person in self.all():
            if person.is_win or person.prize_ids:
                person.clear_wins()
                changed += 1
        self._session.flush()
        logger.info(f"Cleared win history for {changed} people")
        return changed

    def add_people(self, records: Iterable[dict[str, Any] | Person]) -> list[Person]:
        """Import people from dicts (or ready-made :class:`Person` objects).

        Dict records accept the keys of :meth:`Person.from_json`; only
        ``name`` is required.
        """

        added: list[Person] = []
        for record in records:
            person = record if isinstance(record, Person) else Person.from_json(record)
            if self.get_by_uuid(person.uuid) is not None:
                raise ValueError(f"Person with uuid {person.uuid!r} already exists")
            self._session.add(person)
            added.append(person)
        self._session.flush()
        logger.info(f"Imported {len(added)} people into the pool")
        return added

    def remove(self, person_id: int) -> None:
        person = self.get(person_id)
        self._session.delete(person)
        self._session.flush()

    def clear(self) -> int:
        """Delete every person from the pool."""
        result = self._session.execute(delete(Person))
        self._session.expire_all()
        logger.info(f"Deleted {result.rowcount} people from the pool")
        return result.rowcount


__all__ = ["PersonPool"]
