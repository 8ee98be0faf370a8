"""
Per-session event filtering and fan-out.

One producer task reads the upstream event stream and offers each event to
every subscriber's bounded queue. A subscriber that falls behind is
disconnected instead of stalling the producer or its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Dict, Optional, Set

from taurus_ai.broker.models import Event
from taurus_ai.config import DEFAULT_EVENT_QUEUE_SIZE
from taurus_ai.metrics import MetricsRecorder, default_metrics

logger = logging.getLogger(__name__)

EventSource = Callable[[], AsyncIterator[Dict[str, Any]]]

_END = object()


def event_session_id(event: Dict[str, Any]) -> Optional[str]:
    """Session scope of a raw event: ``properties.sessionID``, then ``properties.part.sessionID``."""
    if not isinstance(event, dict):
        return None
    return Event.from_dict(event).session_id


def matches_session(event: Dict[str, Any], session_id: Optional[str]) -> bool:
    if session_id is None:
        return True
    scoped = event_session_id(event)
    return scoped is None or scoped == session_id


async def filter_session_events(
    events: AsyncIterator[Dict[str, Any]], session_id: str
) -> AsyncIterator[Dict[str, Any]]:
    """Forward events for ``session_id`` and session-agnostic events, in arrival order."""
    async for event in events:
        if matches_session(event, session_id):
            yield event


class EventSubscription:
    """
    A subscriber's view of the hub. Attaches on construction.

    Iterate with ``async for``; iteration stops when the upstream ends, fails
    or this subscriber is dropped for falling behind. ``error`` holds the
    upstream failure, if any.
    """

    def __init__(self, hub: "EventHub", session_id: Optional[str] = None, *, maxsize: int) -> None:
        self.session_id = session_id
        self.error: Optional[BaseException] = None
        self.dropped = False
        self._hub = hub
        self._maxsize = maxsize
        # One extra slot so the end marker always fits.
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize + 1)
        self._finished = False
        self._exhausted = False
        self._group: Optional[Set["EventSubscription"]] = None
        hub._attach(self)

    def accepts(self, event: Dict[str, Any]) -> bool:
        return matches_session(event, self.session_id)

    def _offer(self, event: Dict[str, Any]) -> bool:
        if self._finished or self._queue.qsize() >= self._maxsize:
            return False
        self._queue.put_nowait(event)
        return True

    def _finish(self, *, discard: bool = False) -> None:
        if self._finished:
            return
        self._finished = True
        if discard:
            while not self._queue.empty():
                self._queue.get_nowait()
        self._queue.put_nowait(_END)

    def __aiter__(self) -> "EventSubscription":
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if self._exhausted:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._exhausted = True
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        self._hub._detach(self)

    async def __aenter__(self) -> "EventSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class EventHub:
    def __init__(
        self,
        source: EventSource,
        *,
        queue_size: int = DEFAULT_EVENT_QUEUE_SIZE,
        metrics: MetricsRecorder = default_metrics,
    ) -> None:
        self._source = source
        self.queue_size = queue_size
        self.metrics = metrics
        self._subscribers: Set[EventSubscription] = set()
        self._producer: Optional[asyncio.Task] = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, session_id: Optional[str] = None) -> EventSubscription:
        """Start receiving events from now on; nothing is replayed."""
        return EventSubscription(self, session_id, maxsize=self.queue_size)

    def _attach(self, subscription: EventSubscription) -> None:
        if self._producer is None or self._producer.done():
            # New producer run, new subscriber group.
            self._subscribers = set()
            self._producer = asyncio.get_running_loop().create_task(self._pump(self._subscribers))
        subscription._group = self._subscribers
        self._subscribers.add(subscription)
        self.metrics.subscriber_opened()

    def _detach(self, subscription: EventSubscription, *, dropped: bool = False) -> None:
        group = subscription._group
        if group is None or subscription not in group:
            return
        group.discard(subscription)
        subscription.dropped = dropped
        subscription._finish(discard=dropped)
        self.metrics.subscriber_closed(dropped=dropped)
        if group or group is not self._subscribers:
            return
        # Last subscriber of this run; the next subscribe starts a new producer.
        producer = self._producer
        self._producer = None
        self._subscribers = set()
        if producer is not None and not producer.done() and producer is not asyncio.current_task():
            producer.cancel()

    async def _pump(self, subscribers: Set[EventSubscription]) -> None:
        error: Optional[BaseException] = None
        try:
            async for event in self._source():
                for subscription in list(subscribers):
                    if not subscription.accepts(event):
                        continue
                    if not subscription._offer(event):
                        logger.warning(
                            "Dropping slow event subscriber session_id=%s",
                            subscription.session_id,
                            extra={"session_id": subscription.session_id},
                        )
                        self._detach(subscription, dropped=True)
                if not subscribers:
                    break
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = exc
            logger.warning("Upstream event stream failed: %s", exc, extra={"error": str(exc)})
        finally:
            for subscription in list(subscribers):
                subscription.error = error
                self._detach(subscription)

    async def aclose(self) -> None:
        producer = self._producer
        for subscription in list(self._subscribers):
            self._detach(subscription)
        if producer is not None and not producer.done():
            producer.cancel()
            try:
                await producer
            except asyncio.CancelledError:
                pass
        self._producer = None
        self._subscribers = set()
