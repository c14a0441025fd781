"""Introspection sink: append-only, caller-tagged progress events.

The sink keeps a bounded in-memory history for polling, fans events out to
live subscribers and forwards them to optional transports (e.g. a JSONL log).
Appending never raises; a failing transport loses that event and leaves a
warning in the application log instead.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from collections import deque
from pathlib import Path
from typing import Protocol

from .schema import IntrospectionEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class IntrospectionTransport(Protocol):
    def deliver(self, event: IntrospectionEvent) -> None:
        ...


class JsonlIntrospectionLog:
    """Appends one JSON line per event to a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def deliver(self, event: IntrospectionEvent) -> None:
        payload = json.dumps(event.model_dump(), separators=(",", ":"))
        with self._lock:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(payload)
                handle.write("\n")

    def read(self) -> list[IntrospectionEvent]:
        if not self.path.exists():
            return []
        events: list[IntrospectionEvent] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(IntrospectionEvent.model_validate_json(line))
                except ValueError:
                    logger.warning("skipping malformed introspection line path=%s", self.path)
        return events


class IntrospectionSubscription:
    """Live, non-restartable stream of events for one consumer."""

    def __init__(
        self,
        sink: "IntrospectionSink",
        loop: asyncio.AbstractEventLoop,
        caller_id: str | None,
    ):
        self._sink = sink
        self._loop = loop
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self.caller_id = caller_id
        self._finished = False

    def accepts(self, event: IntrospectionEvent) -> bool:
        return self.caller_id is None or event.caller_id == self.caller_id

    def _push(self, item: object) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def close(self) -> None:
        """Stop the stream; consumers see the end after draining queued events."""
        self._sink._unsubscribe(self)
        try:
            self._push(_CLOSED)
        except RuntimeError:
            self._finished = True

    def __aiter__(self) -> "IntrospectionSubscription":
        return self

    async def __anext__(self) -> IntrospectionEvent:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._finished = True
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def __enter__(self) -> "IntrospectionSubscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class IntrospectionSink:
    """Shared append-only event log, FIFO per sink instance."""

    def __init__(
        self,
        *,
        history_limit: int = 1000,
        transports: list[IntrospectionTransport] | None = None,
    ):
        self._lock = threading.Lock()
        self._seq = 0
        self._history: deque[IntrospectionEvent] = deque(maxlen=max(1, history_limit))
        self._subscriptions: list[IntrospectionSubscription] = []
        self._transports: list[IntrospectionTransport] = list(transports or [])
        self._closed = False
        self.dropped = 0

    def add_transport(self, transport: IntrospectionTransport) -> None:
        with self._lock:
            self._transports.append(transport)

    def append(
        self, caller_id: str, text: str, *, call_id: str | None = None
    ) -> IntrospectionEvent | None:
        """Record an event. Returns the stored event, or None if it was dropped."""
        try:
            with self._lock:
                event = IntrospectionEvent(
                    seq=self._seq + 1,
                    caller_id=str(caller_id),
                    text=str(text),
                    call_id=call_id,
                )
                self._seq = event.seq
                self._history.append(event)
                for subscription in list(self._subscriptions):
                    if subscription.accepts(event):
                        self._push_locked(subscription, event)
                for transport in self._transports:
                    self._deliver_locked(transport, event)
        except Exception:
            with self._lock:
                self.dropped += 1
            logger.exception("introspection event dropped caller=%s", caller_id)
            return None
        logger.debug("introspection caller=%s text=%s", event.caller_id, event.text)
        return event

    def events(self, caller_id: str | None = None) -> list[IntrospectionEvent]:
        """Snapshot of retained events, oldest first."""
        with self._lock:
            history = list(self._history)
        if caller_id is None:
            return history
        return [event for event in history if event.caller_id == caller_id]

    def subscribe(self, caller_id: str | None = None) -> IntrospectionSubscription:
        """Stream events appended from now on; must be called inside an event loop."""
        loop = asyncio.get_running_loop()
        subscription = IntrospectionSubscription(self, loop, caller_id)
        with self._lock:
            if self._closed:
                subscription._finished = True
                return subscription
            self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        """End every live subscription. History and transports stay usable."""
        with self._lock:
            self._closed = True
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def _unsubscribe(self, subscription: IntrospectionSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _push_locked(
        self, subscription: IntrospectionSubscription, event: IntrospectionEvent
    ) -> None:
        try:
            subscription._push(event)
        except RuntimeError:
            # subscriber loop is closed
            self._subscriptions.remove(subscription)
            subscription._finished = True
            logger.warning(
                "introspection subscriber gone caller=%s seq=%s",
                event.caller_id,
                event.seq,
                extra={"caller_id": event.caller_id},
            )

    def _deliver_locked(
        self, transport: IntrospectionTransport, event: IntrospectionEvent
    ) -> None:
        try:
            transport.deliver(event)
        except Exception as exc:
            self.dropped += 1
            logger.warning(
                "introspection transport failed; event dropped transport=%s seq=%s error=%s",
                type(transport).__name__,
                event.seq,
                exc,
                extra={"caller_id": event.caller_id},
            )


__all__ = [
    "IntrospectionSink",
    "IntrospectionSubscription",
    "IntrospectionTransport",
    "JsonlIntrospectionLog",
]
