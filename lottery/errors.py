"""Language-neutral error kinds raised by the draw engine.

Every error carries a stable ``code`` that the presentation layer maps to a
localized message; the ``str()`` of the exception is for logs only.
"""

from __future__ import annotations

from typing import Optional


class LotteryError(Exception):
    """Base class for all engine errors."""

    code = "lottery_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(LotteryError, LookupError):
    """An operation referenced an unknown person or prize."""

    code = "not_found"

    def __init__(self, kind: str, identifier: object) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier!r}")


class DrawLimitExceededError(LotteryError):
    code = "draw_limit_exceeded"

    def __init__(self, requested: int, limit: int) -> None:
        self.requested = requested
        self.limit = limit
        super().__init__(
            f"Requested {requested} winners but a single draw is limited to {limit}"
        )


class PrizeExhaustedError(LotteryError):
    """No slots remain for the prize, either overall or in its batch plan."""

    code = "prize_exhausted"

    def __init__(self, prize_id: int) -> None:
        self.prize_id = prize_id
        super().__init__(f"Prize {prize_id} has no remaining slots")


class InsufficientCandidatesError(LotteryError):
    code = "insufficient_candidates"

    def __init__(self, prize_id: int, required: int, available: int) -> None:
        self.prize_id = prize_id
        self.required = required
        self.available = available
        super().__init__(
            f"Prize {prize_id} needs {required} more winners but only "
            f"{available} eligible candidates remain"
        )


class OverdrawError(LotteryError):
    """Counter bookkeeping would be violated.

    This signals a missed check upstream; it is a programming error rather
    than something an operator can fix by retrying.
    """

    code = "overdraw"


class CommitError(LotteryError):
    """Recording a draw failed part-way; nothing was persisted."""

    code = "commit_failed"

    def __init__(self, prize_id: int, cause: Optional[BaseException] = None) -> None:
        self.prize_id = prize_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to commit draw for prize {prize_id}{detail}")


__all__ = [
    "CommitError",
    "DrawLimitExceededError",
    "InsufficientCandidatesError",
    "LotteryError",
    "NotFoundError",
    "OverdrawError",
    "PrizeExhaustedError",
]
