"""Database models for prize configuration and bookkeeping."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso, parse_iso
from ..errors import OverdrawError
from .base import Base
from .utils import utcnow

MAX_DRAW_COUNT = 10
"""Hard ceiling on winners produced by a single draw, whatever the prize."""


class Prize(Base):
    """A configured prize together with its draw counters.

    The prize owns both the overall ``used_count`` and the per-batch counters
    so that every mutation goes through one aggregate. Counter mutations call
    :meth:`check_consistency` before returning.
    """

    __tablename__ = "prizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name."""

    sort: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Ordering key; lower values are drawn first."""

    is_all: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Everyone may win this prize, including people holding other prizes."""

    count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Total number of winners for the prize."""

    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Winners committed so far."""

    picture_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    picture_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    picture_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    """Image reference; the asset itself lives outside the engine."""

    batches_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """When set, ``batches`` gate how many winners each round may produce."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_show: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """The prize has been fully drawn."""

    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    """Winners produced per draw invocation."""

    is_temporary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Ad-hoc prize added during the event rather than at configuration time."""

    fixed_winners_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    batches: Mapped[list["PrizeBatch"]] = relationship(
        back_populates="prize",
        cascade="all, delete-orphan",
        order_by="PrizeBatch.seq",
    )
    fixed_winners: Mapped[list["FixedWinnerEntry"]] = relationship(
        back_populates="prize",
        cascade="all, delete-orphan",
        order_by="FixedWinnerEntry.seq",
    )

    __table_args__ = (
        CheckConstraint("count >= 0", name="count_non_negative"),
        CheckConstraint("used_count >= 0 AND used_count <= count", name="used_within_count"),
        CheckConstraint("frequency >= 1", name="frequency_positive"),
    )

    def __init__(
        self,
        *,
        name: str,
        count: int,
        frequency: int = 1,
        sort: int = 0,
        is_all: bool = False,
        description: Optional[str] = None,
        is_show: bool = True,
        is_temporary: bool = False,
        picture_id: Optional[str] = None,
        picture_name: Optional[str] = None,
        picture_url: Optional[str] = None,
        batches: Optional[list["PrizeBatch"]] = None,
        fixed_winners: Optional[list["FixedWinnerEntry"]] = None,
        fixed_winners_enabled: bool = False,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        if not 1 <= frequency <= MAX_DRAW_COUNT:
            raise ValueError(f"frequency must be between 1 and {MAX_DRAW_COUNT}")
        now = utcnow()
        self.name = name
        self.count = count
        self.used_count = 0
        self.frequency = frequency
        self.sort = sort
        self.is_all = is_all
        self.description = description
        self.is_show = is_show
        self.is_used = False
        self.is_temporary = is_temporary
        self.picture_id = picture_id
        self.picture_name = picture_name
        self.picture_url = picture_url
        self.batches_enabled = bool(batches)
        if batches is not None:
            self.batches = batches
        self.fixed_winners_enabled = fixed_winners_enabled
        if fixed_winners is not None:
            self.fixed_winners = fixed_winners
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Prize(id={self.id}, name='{self.name}', used={self.used_count}/"
            f"{self.count}, frequency={self.frequency}, is_used={self.is_used})>"
        )

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Prize"]:
        """Return the first prize named ``name`` if it exists."""

        return session.scalars(select(cls).where(cls.name == name).order_by(cls.id)).first()

    # -- counters --------------------------------------------------------

    @property
    def active_batch(self) -> Optional["PrizeBatch"]:
        """First batch, in order, that still has capacity; ``None`` when spent."""
        for batch in self.batches:
            if batch.used_count < batch.count:
                return batch
        return None

    @property
    def remaining_count(self) -> int:
        remaining = self.count - self.used_count
        if self.batches_enabled:
            batch = self.active_batch
            if batch is None:
                return 0
            remaining = min(remaining, batch.count - batch.used_count)
        return max(remaining, 0)

    def apply_commit(self, winner_count: int) -> None:
        """Add ``winner_count`` committed winners to the counters.

        Raises
        ------
        OverdrawError
            If ``winner_count`` exceeds :attr:`remaining_count`.
        """
        if winner_count < 0:
            raise ValueError("winner_count must be non-negative")
        remaining = self.remaining_count
        if winner_count > remaining:
            raise OverdrawError(
                f"Prize {self.id} cannot absorb {winner_count} winners; "
                f"only {remaining} remain"
            )
        if winner_count == 0:
            return

        if self.batches_enabled:
            batch = self.active_batch
            if batch is None:
                raise OverdrawError(f"Prize {self.id} has no active batch left")
            batch.used_count += winner_count
        self.used_count += winner_count
        if self.used_count >= self.count or (
            self.batches_enabled and self.active_batch is None
        ):
            self.is_used = True
        self.check_consistency()

    def reset_counters(self) -> None:
        self.used_count = 0
        for batch in self.batches:
            batch.used_count = 0
        self.is_used = False
        self.check_consistency()

    def check_consistency(self) -> None:
        """Verify the counter invariants, raising :class:`OverdrawError` if broken."""
        if not 0 <= self.used_count <= self.count:
            raise OverdrawError(
                f"Prize {self.id} used_count {self.used_count} outside [0, {self.count}]"
            )
        if not self.batches_enabled:
            return
        for batch in self.batches:
            if not 0 <= batch.used_count <= batch.count:
                raise OverdrawError(
                    f"Batch {batch.batch_key!r} of prize {self.id} used_count "
                    f"{batch.used_count} outside [0, {batch.count}]"
                )
        batch_total = sum(batch.used_count for batch in self.batches)
        if batch_total != self.used_count:
            raise OverdrawError(
                f"Prize {self.id} batch usage {batch_total} disagrees with "
                f"used_count {self.used_count}"
            )

    # -- serialization ---------------------------------------------------

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable dict including batches and guarantees."""
        return {
            "id": self.id,
            "name": self.name,
            "sort": self.sort,
            "is_all": self.is_all,
            "count": self.count,
            "used_count": self.used_count,
            "picture": {
                "id": self.picture_id,
                "name": self.picture_name,
                "url": self.picture_url,
            },
            "separate_count": {
                "enable": self.batches_enabled,
                "count_list": [batch.to_json() for batch in self.batches],
            },
            "description": self.description,
            "is_show": self.is_show,
            "is_used": self.is_used,
            "is_temporary": self.is_temporary,
            "frequency": self.frequency,
            "fixed_winners": {
                "enable": self.fixed_winners_enabled,
                "list": [entry.to_json() for entry in self.fixed_winners],
            },
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Prize":
        """Rebuild a prize and its counters from :meth:`to_json` output.

        Raises
        ------
        OverdrawError
            If the stored counters violate the prize invariants.
        """
        picture = data.get("picture") or {}
        separate = data.get("separate_count") or {}
        fixed = data.get("fixed_winners") or {}

        batches = [
            PrizeBatch.from_json(item, seq=idx)
            for idx, item in enumerate(separate.get("count_list") or [])
        ]
        entries = [
            FixedWinnerEntry.from_json(item, seq=idx)
            for idx, item in enumerate(fixed.get("list") or [])
        ]

        prize = cls(
            name=data["name"],
            count=int(data["count"]),
            frequency=int(data.get("frequency") or 1),
            sort=int(data.get("sort") or 0),
            is_all=bool(data.get("is_all", False)),
            description=data.get("description"),
            is_show=bool(data.get("is_show", True)),
            is_temporary=bool(data.get("is_temporary", False)),
            picture_id=picture.get("id"),
            picture_name=picture.get("name"),
            picture_url=picture.get("url"),
            batches=batches,
            fixed_winners=entries,
            fixed_winners_enabled=bool(fixed.get("enable", False)),
            created_at=parse_iso(data.get("created_at")),
            updated_at=parse_iso(data.get("updated_at")),
        )
        if data.get("id") is not None:
            prize.id = int(data["id"])
        prize.batches_enabled = bool(separate.get("enable", False))
        prize.used_count = int(data.get("used_count") or 0)
        prize.is_used = bool(data.get("is_used", False))
        prize.check_consistency()
        return prize


class PrizeBatch(Base):
    """One round of a prize's sequential release plan."""

    __tablename__ = "prize_batches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prize_id: Mapped[int] = mapped_column(
        ForeignKey("prizes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    batch_key: Mapped[str] = mapped_column(String(64), nullable=False)
    """Identifier of the batch as configured by the operator."""

    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    """Position of the batch in the release plan (0-based)."""

    count: Mapped[int] = mapped_column(Integer, nullable=False)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    prize: Mapped["Prize"] = relationship(back_populates="batches")

    __table_args__ = (
        UniqueConstraint("prize_id", "seq", name="uq_prize_batch_seq"),
        CheckConstraint("count >= 0", name="batch_count_non_negative"),
        CheckConstraint(
            "used_count >= 0 AND used_count <= count", name="batch_used_within_count"
        ),
    )

    def __init__(
        self, *, batch_key: str, seq: int, count: int, used_count: int = 0
    ) -> None:
        if count < 0:
            raise ValueError("batch count must be non-negative")
        self.batch_key = batch_key
        self.seq = seq
        self.count = count
        self.used_count = used_count

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<PrizeBatch(prize_id={self.prize_id}, key='{self.batch_key}', "
            f"seq={self.seq}, used={self.used_count}/{self.count})>"
        )

    def to_json(self) -> dict[str, Any]:
        return {"id": self.batch_key, "count": self.count, "used_count": self.used_count}

    @classmethod
    def from_json(cls, data: dict[str, Any], *, seq: int) -> "PrizeBatch":
        return cls(
            batch_key=str(data["id"]),
            seq=seq,
            count=int(data["count"]),
            used_count=int(data.get("used_count") or 0),
        )


class FixedWinnerEntry(Base):
    """A person guaranteed to win a prize, subject to available slots.

    Both the person's ``uuid`` and ``name`` are stored so the entry stays
    readable after the person is removed from the pool.
    """

    __tablename__ = "fixed_winner_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prize_id: Mapped[int] = mapped_column(
        ForeignKey("prizes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    person_uuid: Mapped[str] = mapped_column(String(64), nullable=False)
    person_name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Requested 1-based slot in the draw result, if any."""

    prize: Mapped["Prize"] = relationship(back_populates="fixed_winners")

    __table_args__ = (
        UniqueConstraint("prize_id", "seq", name="uq_fixed_winner_seq"),
        CheckConstraint("position IS NULL OR position >= 1", name="position_positive"),
    )

    def __init__(
        self,
        *,
        person_uuid: str,
        person_name: str,
        seq: int = 0,
        position: Optional[int] = None,
    ) -> None:
        self.person_uuid = person_uuid
        self.person_name = person_name
        self.seq = seq
        self.position = position

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<FixedWinnerEntry(prize_id={self.prize_id}, person_uuid='{self.person_uuid}', "
            f"name='{self.person_name}', position={self.position})>"
        )

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uuid": self.person_uuid, "name": self.person_name}
        if self.position is not None:
            data["position"] = self.position
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any], *, seq: int) -> "FixedWinnerEntry":
        position = data.get("position")
        return cls(
            person_uuid=data["uuid"],
            person_name=data.get("name") or "",
            seq=seq,
            position=int(position) if position is not None else None,
        )


def build_batches(counts: Iterable[int], *, key_prefix: str = "batch") -> list[PrizeBatch]:
    """Create an ordered batch plan from a sequence of per-round counts."""
    return [
        PrizeBatch(batch_key=f"{key_prefix}-{idx + 1}", seq=idx, count=int(count))
        for idx, count in enumerate(counts)
    ]


__all__ = [
    "FixedWinnerEntry",
    "Prize",
    "PrizeBatch",
    "build_batches",
]
