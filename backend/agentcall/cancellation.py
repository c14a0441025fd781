"""Cooperative cancellation signal passed to tool handlers."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from .exceptions import InvocationCancelled

logger = logging.getLogger(__name__)

CancelCallback = Callable[[str], None]


class CancellationToken:
    """Thread-safe, one-shot cancellation signal.

    Triggering the token only notifies listeners. Handlers observe it by
    polling ``cancelled``, calling ``raise_if_cancelled`` or awaiting
    ``wait``; nothing is interrupted by force.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._reason: str | None = None
        self._callbacks: list[CancelCallback] = []
        self._sealed = False

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        """Trigger the signal. Returns False if it was already triggered or sealed."""
        with self._lock:
            if self._event.is_set() or self._sealed:
                return False
            self._reason = reason
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.exception("cancellation callback failed reason=%s", reason)
        return True

    def seal(self) -> None:
        """Make later ``cancel`` calls no-ops once the owning call has finished."""
        with self._lock:
            self._sealed = True
            self._callbacks.clear()

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """Run callback on cancellation (immediately if already cancelled)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _remove
        callback(self._reason or "cancelled")
        return lambda: None

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InvocationCancelled(self._reason)

    def wait_blocking(self, timeout: float | None = None) -> bool:
        """Block the current thread until cancelled or timeout elapses."""
        return self._event.wait(timeout)

    async def wait(self) -> str:
        """Suspend until the token is cancelled and return the reason."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def _resolve(reason: str) -> None:
            if not future.done():
                future.set_result(reason)

        def _notify(reason: str) -> None:
            try:
                loop.call_soon_threadsafe(_resolve, reason)
            except RuntimeError:
                # loop already closed; the waiter is gone with it
                pass

        remove = self.add_callback(_notify)
        try:
            return await future
        finally:
            remove()


__all__ = ["CancellationToken"]
