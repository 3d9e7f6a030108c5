"""Local drag-order state for the selected route, reconciled against the server."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReorderState:
    """``server_order`` is the last confirmed route; ``draft_order`` is what the user sees."""

    server_order: tuple[str, ...] = ()
    draft_order: tuple[str, ...] = ()


def should_resync(server_order: Sequence[str], draft_order: Sequence[str]) -> bool:
    """True when the server's id set differs from the draft's.

    A write-back that only changes order or metrics keeps the same ids, so
    it must not overwrite a draft the user may be dragging.
    """
    return set(server_order) != set(draft_order)


def server_updated(state: ReorderState, job_ids: Sequence[str]) -> ReorderState:
    server = tuple(job_ids)
    if should_resync(server, state.draft_order):
        return ReorderState(server_order=server, draft_order=server)
    return replace(state, server_order=server)


def move(state: ReorderState, from_index: int, to_index: int) -> ReorderState:
    draft = list(state.draft_order)
    if not (0 <= from_index < len(draft)) or not (0 <= to_index < len(draft)):
        raise IndexError(f"Cannot move item {from_index} to {to_index} in a list of {len(draft)}")
    draft.insert(to_index, draft.pop(from_index))
    return replace(state, draft_order=tuple(draft))


def pending_recalculation(state: ReorderState) -> Optional[list[str]]:
    """Ids to recompute after a drop, or None when the drop changed nothing."""
    if state.draft_order == state.server_order or len(state.draft_order) < 2:
        return None
    return list(state.draft_order)


class ReorderController:
    """Holds a :class:`ReorderState` and triggers a recompute when a drop changes the order."""

    def __init__(self, recalculate: Callable[[list[str]], Awaitable[Any]]) -> None:
        self._recalculate = recalculate
        self.state = ReorderState()

    @property
    def draft_order(self) -> list[str]:
        return list(self.state.draft_order)

    def on_server_update(self, job_ids: Sequence[str]) -> None:
        self.state = server_updated(self.state, job_ids)

    def on_drag(self, from_index: int, to_index: int) -> None:
        self.state = move(self.state, from_index, to_index)

    async def on_drop(self) -> bool:
        """Recompute metrics for the draft order; returns whether a recompute ran."""
        job_ids = pending_recalculation(self.state)
        if job_ids is None:
            return False
        logger.debug(f"Route reordered, recalculating metrics for {len(job_ids)} stops")
        await self._recalculate(job_ids)
        return True
