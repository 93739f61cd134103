"""Push channel for live match observers.

Delivery is fire-and-forget and at most once. An observer that missed events
resynchronizes by reading the latest snapshot.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Literal, Protocol

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()

DEFAULT_QUEUE_SIZE = 100


class ScoreUpdateEvent(BaseModel):
    """Score changed; carries Team A's live win probability."""

    type: Literal["score_update"] = "score_update"
    match_id: int
    team_a: int
    team_b: int
    win_probability: float = Field(ge=0.0, le=1.0)


class MatchEndEvent(BaseModel):
    """Match reached a terminal state."""

    type: Literal["match_end"] = "match_end"
    match_id: int
    winner_team_id: int


MatchEvent = ScoreUpdateEvent | MatchEndEvent


class MatchNotifier(Protocol):
    """Anything that accepts match events."""

    async def publish(self, event: MatchEvent) -> None: ...


class NullNotifier:
    """Discards every event."""

    async def publish(self, event: MatchEvent) -> None:
        return None


class MatchBroadcaster:
    """Fan events out to per-match subscriber queues.

    Queues are bounded. When one is full the event is dropped for that
    subscriber only.
    """

    def __init__(self, max_queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.max_queue_size = max_queue_size
        self._subscribers: dict[int, list[asyncio.Queue[MatchEvent]]] = defaultdict(list)

    def subscribe(self, match_id: int) -> asyncio.Queue[MatchEvent]:
        """Register a new observer queue for a match."""
        queue: asyncio.Queue[MatchEvent] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[match_id].append(queue)
        logger.debug("observer_subscribed", match_id=match_id)
        return queue

    def unsubscribe(self, match_id: int, queue: asyncio.Queue[MatchEvent]) -> None:
        queues = self._subscribers.get(match_id)
        if not queues or queue not in queues:
            return
        queues.remove(queue)
        if not queues:
            del self._subscribers[match_id]
        logger.debug("observer_unsubscribed", match_id=match_id)

    def subscriber_count(self, match_id: int) -> int:
        return len(self._subscribers.get(match_id, ()))

    async def publish(self, event: MatchEvent) -> None:
        queues = self._subscribers.get(event.match_id)
        if not queues:
            logger.debug("event_dropped_no_observers", match_id=event.match_id, type=event.type)
            return
        for queue in list(queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("event_dropped_queue_full", match_id=event.match_id, type=event.type)
