"""Exclusive sections around draw, commit and reset operations."""

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator, Optional


class PrizeLockRegistry:
    """One re-entrant lock per prize plus a global section for pool-wide resets.

    Draws for different prizes proceed independently: a prize section only
    holds the condition guard long enough to register itself, and waits for
    its prize lock outside the guard. A global section waits until no prize
    section is active and keeps new ones out while it is pending or running.
    Both kinds of section are re-entrant within one thread, and a thread that
    owns the global section may open prize sections inside it.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._prize_locks: dict[int, threading.RLock] = defaultdict(threading.RLock)
        self._active_prize_sections = 0
        self._global_owner: Optional[int] = None
        self._global_depth = 0
        self._global_waiting = 0
        self._local = threading.local()

    def _prize_depth(self) -> int:
        return getattr(self._local, "prize_depth", 0)

    @contextmanager
    def prize(self, prize_id: int) -> Iterator[None]:
        me = threading.get_ident()
        with self._cond:
            # a thread already inside a prize section must not queue behind a
            # pending reset that is waiting for that very section
            if self._global_owner != me and self._prize_depth() == 0:
                while self._global_owner is not None or self._global_waiting:
                    self._cond.wait()
            self._active_prize_sections += 1
            lock = self._prize_locks[prize_id]
        self._local.prize_depth = self._prize_depth() + 1
        try:
            with lock:
                yield
        finally:
            self._local.prize_depth -= 1
            with self._cond:
                self._active_prize_sections -= 1
                self._cond.notify_all()

    @contextmanager
    def all_prizes(self) -> Iterator[None]:
        me = threading.get_ident()
        with self._cond:
            if self._global_owner == me:
                self._global_depth += 1
            else:
                if self._prize_depth():
                    raise RuntimeError("cannot enter a global section from a prize section")
                self._global_waiting += 1
                try:
                    while self._global_owner is not None or self._active_prize_sections:
                        self._cond.wait()
                finally:
                    self._global_waiting -= 1
                self._global_owner = me
                self._global_depth = 1
        try:
            yield
        finally:
            with self._cond:
                self._global_depth -= 1
                if self._global_depth == 0:
                    self._global_owner = None
                self._cond.notify_all()


DEFAULT_LOCKS = PrizeLockRegistry()

__all__ = ["DEFAULT_LOCKS", "PrizeLockRegistry"]
