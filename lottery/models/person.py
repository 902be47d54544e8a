from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..db.utils import dt_iso, parse_iso
from .base import Base
from .utils import generate_person_uuid, utcnow


class Person(Base):
    """A participant registered for the prize draw.

    Win history is kept as three parallel lists (``prize_names``,
    ``prize_ids`` and ``prize_times``); entry ``i`` of each list describes the
    same win. The lists are replaced, never mutated in place, so SQLAlchemy
    notices the change on flush.
    """

    def __init__(
        self,
        name: str,
        uid: Optional[str] = None,
        uuid: Optional[str] = None,
        department: Optional[str] = None,
        identity: Optional[str] = None,
        avatar: Optional[str] = None,
        x: float = 0.0,
        y: float = 0.0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`Person` with an empty win history.

        Parameters
        ----------
        name : str
            Display name.
        uid : str, optional
            Identifier from the roster import (e.g. employee number).
        uuid : str, optional
            Stable identifier referenced by guarantee entries. Generated when
            omitted.
        department : str, optional
            Organisational tag.
        identity : str, optional
            Secondary tag such as a job title.
        avatar : str, optional
            Reference to an avatar image managed outside the engine.
        x, y : float
            Display coordinate used by the presentation layer.
        """

        now = utcnow()
        self.name = name
        self.uid = uid
        self.uuid = uuid or generate_person_uuid()
        self.department = department
        self.identity = identity
        self.avatar = avatar
        self.x = x
        self.y = y
        self.is_win = False
        self.prize_names = []
        self.prize_ids = []
        self.prize_times = []
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    __tablename__ = "people"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    uid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    identity: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_win: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    x: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    y: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # parallel win history
    prize_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    prize_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    prize_times: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return (
            f"<Person(id={self.id}, uuid='{self.uuid}', name='{self.name}', "
            f"is_win={self.is_win}, wins={len(self.prize_ids or [])})>"
        )

    @classmethod
    def get_by_uuid(cls, session: Session, uuid: str) -> Optional["Person"]:
        """Retrieve a person by their stable identifier."""

        return session.scalar(select(cls).where(cls.uuid == uuid))

    @property
    def win_count(self) -> int:
        return len(self.prize_ids or [])

    def has_won_prize(self, prize_id: int | str) -> bool:
        """Return ``True`` when the win history already contains ``prize_id``."""
        return str(prize_id) in (self.prize_ids or [])

    def append_win(self, prize_id: int | str, prize_name: str, won_at: datetime) -> None:
        """Append one win event to the three history lists and flag the winner."""
        self.prize_names = [*(self.prize_names or []), prize_name]
        self.prize_ids = [*(self.prize_ids or []), str(prize_id)]
        self.prize_times = [*(self.prize_times or []), dt_iso(won_at)]
        self.is_win = True
        self.updated_at = utcnow()

    def clear_wins(self) -> None:
        """Drop the win history while keeping identity fields intact."""
        if not self.is_win and not self.prize_ids:
            return
        self.prize_names = []
        self.prize_ids = []
        self.prize_times = []
        self.is_win = False
        self.updated_at = utcnow()

    def history_is_consistent(self) -> bool:
        names = self.prize_names or []
        ids = self.prize_ids or []
        times = self.prize_times or []
        return len(names) == len(ids) == len(times) and self.is_win == bool(ids)

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of this person."""
        return {
            "id": self.id,
            "uid": self.uid,
            "uuid": self.uuid,
            "name": self.name,
            "department": self.department,
            "identity": self.identity,
            "avatar": self.avatar,
            "is_win": self.is_win,
            "x": self.x,
            "y": self.y,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
            "prize_names": list(self.prize_names or []),
            "prize_ids": list(self.prize_ids or []),
            "prize_times": list(self.prize_times or []),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Person":
        """Rebuild a person (including win history) from :meth:`to_json` output.

        Raises
        ------
        ValueError
            If the three win-history lists differ in length.
        """
        names = list(data.get("prize_names") or [])
        ids = [str(v) for v in data.get("prize_ids") or []]
        times = list(data.get("prize_times") or [])
        if not len(names) == len(ids) == len(times):
            raise ValueError(
                f"Win history lists for person {data.get('uuid')!r} differ in length"
            )

        person = cls(
            name=data["name"],
            uid=data.get("uid"),
            uuid=data.get("uuid"),
            department=data.get("department"),
            identity=data.get("identity"),
            avatar=data.get("avatar"),
            x=float(data.get("x") or 0.0),
            y=float(data.get("y") or 0.0),
            created_at=parse_iso(data.get("created_at")),
            updated_at=parse_iso(data.get("updated_at")),
        )
        if data.get("id") is not None:
            person.id = int(data["id"])
        person.prize_names = names
        person.prize_ids = ids
        person.prize_times = times
        person.is_win = bool(ids)
        return person


__all__ = ["Person"]
