"""Per-invocation context handed to tool handlers."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, TypeVar

from .cancellation import CancellationToken
from .exceptions import InvocationCancelled
from .introspection import IntrospectionSink

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvocationContext:
    """Single-use view of one call: caller identity, cancellation and introspection."""

    def __init__(
        self,
        *,
        tool_name: str,
        call_id: str,
        caller_id: str,
        sink: IntrospectionSink,
        token: CancellationToken | None = None,
    ):
        self.tool_name = tool_name
        self.call_id = call_id
        self.caller = caller_id
        self.sink = sink
        self.token = token or CancellationToken()
        self._closed = False

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def closed(self) -> bool:
        return self._closed

    def log_extra(self) -> dict[str, str]:
        return {"caller_id": self.caller}

    def introspect(self, text: str) -> None:
        """Narrate progress on behalf of this context's caller."""
        self.emit(self.caller, text)

    def emit(self, caller: str, message: str) -> None:
        self.sink.append(caller, message, call_id=self.call_id)

    def raise_if_cancelled(self) -> None:
        self.token.raise_if_cancelled()

    async def run_cancellable(self, awaitable: Awaitable[T]) -> T:
        """Await a sub-call, abandoning it if this invocation is cancelled first."""
        if self.token.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise InvocationCancelled(self.token.reason)
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.token.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()
        if work in done:
            return work.result()
        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.debug(
                "sub-call failed after cancellation tool=%s", self.tool_name, extra=self.log_extra()
            )
        raise InvocationCancelled(self.token.reason)

    def close(self) -> None:
        """Discard the context; later cancellation requests are ignored."""
        self._closed = True
        self.token.seal()

    def describe(self) -> dict[str, Any]:
        return {
            "tool_name": self.tool_name,
            "call_id": self.call_id,
            "caller_id": self.caller,
            "cancelled": self.cancelled,
        }


__all__ = ["InvocationContext"]
