"""Per-draw winner allowance derived from a prize's counters."""

from __future__ import annotations

from .registry import PrizeRegistry


class BatchScheduler:
    """Stateless gate over :class:`PrizeRegistry` counters.

    The remaining count already honours the active batch, so a prize whose
    batches are all spent reports ``0`` even if its overall count has slack.
    """

    def __init__(self, registry: PrizeRegistry) -> None:
        self._registry = registry

    def allowed(self, prize_id: int, requested: int) -> int:
        """Return how many winners the next draw of ``prize_id`` may produce."""
        if requested < 0:
            raise ValueError("requested must be non-negative")
        return min(requested, self._registry.remaining_count(prize_id))


__all__ = ["BatchScheduler"]
