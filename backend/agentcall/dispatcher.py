"""Dispatcher that validates tool requests and runs handlers under supervision."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from pydantic import BaseModel

from .cancellation import CancellationToken
from .context import InvocationContext
from .exceptions import ArgumentValidationError, InvocationCancelled, ToolHandlerError
from .introspection import IntrospectionSink
from .schema import FailureKind, InvocationRequest, InvocationResult
from .settings import DispatchSettings
from .tools import ToolDescriptor, ToolRegistry
from .validation import decode_arguments, validate_arguments

logger = logging.getLogger(__name__)

DEADLINE_REASON = "deadline exceeded"


@dataclass
class _Outcome:
    value: str | None = None
    kind: FailureKind | None = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)


def serialize_result(value: Any) -> str:
    """Render a handler's return value as the text the agent loop consumes."""
    if value is None:
        raise ValueError("no result")
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return json.dumps(value, ensure_ascii=False, default=str)


def _is_async_handler(handler: Any) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )


class Dispatcher:
    """Resolves, validates and executes tool invocations.

    Every call to ``invoke`` returns exactly one ``InvocationResult``; handler
    failures, bad arguments, unknown tools and cancellation all come back as
    failure results instead of exceptions.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        sink: IntrospectionSink,
        settings: DispatchSettings | None = None,
    ):
        self.registry = registry
        self.sink = sink
        self.settings = settings or DispatchSettings(
            tool_timeout_seconds=None, cancel_grace_seconds=1.0
        )

    async def invoke(
        self,
        request: InvocationRequest | Mapping[str, Any],
        *,
        timeout: float | None = None,
        token: CancellationToken | None = None,
    ) -> InvocationResult:
        if not isinstance(request, InvocationRequest):
            request = InvocationRequest.model_validate(request)
        start = time.perf_counter()
        log_extra = {"caller_id": request.caller_id}
        logger.info(
            "tool invoked tool=%s call_id=%s",
            request.tool_name,
            request.call_id,
            extra=log_extra,
        )

        descriptor = self.registry.lookup(request.tool_name)
        if descriptor is None:
            outcome = _Outcome(
                kind=FailureKind.UNKNOWN_TOOL,
                message=f"tool '{request.tool_name}' is not registered",
            )
            return self._finish(request, outcome, start)

        try:
            raw_arguments = decode_arguments(request.arguments)
        except ValueError as exc:
            outcome = _Outcome(
                kind=FailureKind.INVALID_ARGUMENTS,
                message=f"arguments are not valid JSON: {exc}",
                details={"violation": "malformed_json"},
            )
            return self._finish(request, outcome, start)

        try:
            arguments = validate_arguments(descriptor.parameters, raw_arguments)
        except ArgumentValidationError as exc:
            outcome = _Outcome(
                kind=FailureKind.INVALID_ARGUMENTS,
                message=str(exc),
                details=exc.details(),
            )
            return self._finish(request, outcome, start)

        context = InvocationContext(
            tool_name=descriptor.name,
            call_id=request.call_id,
            caller_id=request.caller_id,
            sink=self.sink,
            token=token or CancellationToken(),
        )
        if context.token.cancelled:
            reason = context.token.reason or "cancelled"
            context.close()
            outcome = _Outcome(
                kind=FailureKind.CANCELLED,
                message=reason,
                details={"reason": reason},
            )
            return self._finish(request, outcome, start)

        deadline = timeout if timeout is not None else self.settings.tool_timeout_seconds
        watcher: asyncio.TimerHandle | None = None
        if deadline and deadline > 0:
            loop = asyncio.get_running_loop()
            watcher = loop.call_later(deadline, context.token.cancel, DEADLINE_REASON)

        try:
            outcome = await self._supervise(descriptor, arguments, context)
        except asyncio.CancelledError:
            context.token.cancel("caller cancelled")
            logger.info(
                "tool call abandoned by caller tool=%s call_id=%s",
                request.tool_name,
                request.call_id,
                extra=log_extra,
            )
            raise
        finally:
            if watcher is not None:
                watcher.cancel()
            context.close()
        return self._finish(request, outcome, start)

    async def invoke_many(
        self, requests: Sequence[InvocationRequest | Mapping[str, Any]]
    ) -> list[InvocationResult]:
        """Run independent invocations concurrently; results keep request order."""
        return list(await asyncio.gather(*(self.invoke(request) for request in requests)))

    async def _supervise(
        self,
        descriptor: ToolDescriptor,
        arguments: dict[str, Any],
        context: InvocationContext,
    ) -> _Outcome:
        task = asyncio.ensure_future(self._call_handler(descriptor, arguments, context))
        waiter = asyncio.ensure_future(context.token.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return self._outcome_from_task(task, descriptor, context)

        reason = context.token.reason or "cancelled"
        logger.info(
            "tool cancellation requested tool=%s reason=%s",
            descriptor.name,
            reason,
            extra=context.log_extra(),
        )
        finished, _ = await asyncio.wait({task}, timeout=self.settings.cancel_grace_seconds)
        if not finished:
            # async handlers get interrupted at their next await; threads run on
            task.cancel()
            logger.warning(
                "tool ignored cancellation tool=%s grace_seconds=%s",
                descriptor.name,
                self.settings.cancel_grace_seconds,
                extra=context.log_extra(),
            )
        task.add_done_callback(_consume_result)
        return _Outcome(
            kind=FailureKind.CANCELLED,
            message=reason,
            details={"reason": reason},
        )

    async def _call_handler(
        self,
        descriptor: ToolDescriptor,
        arguments: dict[str, Any],
        context: InvocationContext,
    ) -> Any:
        handler = descriptor.handler
        if _is_async_handler(handler):
            return await handler(arguments, context)
        result = await asyncio.to_thread(handler, arguments, context)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _outcome_from_task(
        self,
        task: "asyncio.Future[Any]",
        descriptor: ToolDescriptor,
        context: InvocationContext,
    ) -> _Outcome:
        try:
            value = task.result()
        except InvocationCancelled as exc:
            return _Outcome(
                kind=FailureKind.CANCELLED,
                message=exc.reason,
                details={"reason": exc.reason},
            )
        except asyncio.CancelledError:
            return _Outcome(
                kind=FailureKind.CANCELLED,
                message="handler was cancelled",
                details={"reason": "handler was cancelled"},
            )
        except ToolHandlerError as exc:
            logger.warning(
                "tool reported failure tool=%s error=%s",
                descriptor.name,
                exc,
                extra=context.log_extra(),
            )
            return _Outcome(
                kind=FailureKind.HANDLER_ERROR,
                message=str(exc) or exc.__class__.__name__,
                details=dict(exc.details),
            )
        except Exception as exc:
            logger.exception(
                "tool execution crashed tool=%s",
                descriptor.name,
                extra=context.log_extra(),
            )
            return _Outcome(
                kind=FailureKind.HANDLER_ERROR,
                message=str(exc) or exc.__class__.__name__,
                details={"error": exc.__class__.__name__},
            )

        try:
            text = serialize_result(value)
        except (TypeError, ValueError, RecursionError) as exc:
            message = (
                f"tool '{descriptor.name}' returned no result"
                if value is None
                else f"tool '{descriptor.name}' returned an unserializable result: {exc}"
            )
            return _Outcome(
                kind=FailureKind.HANDLER_ERROR,
                message=message,
                details={"error": "serialization"},
            )
        return _Outcome(value=text)

    def _finish(
        self, request: InvocationRequest, outcome: _Outcome, start: float
    ) -> InvocationResult:
        duration_ms = _duration_ms(start)
        log_extra = {"caller_id": request.caller_id}
        if outcome.kind is None:
            logger.info(
                "tool completed tool=%s duration_ms=%s",
                request.tool_name,
                duration_ms,
                extra=log_extra,
            )
            return InvocationResult.succeeded(
                request, outcome.value or "", duration_ms=duration_ms
            )
        logger.info(
            "tool failed tool=%s kind=%s duration_ms=%s",
            request.tool_name,
            outcome.kind.value,
            duration_ms,
            extra=log_extra,
        )
        return InvocationResult.failed(
            request,
            outcome.kind,
            outcome.message,
            details=outcome.details,
            duration_ms=duration_ms,
        )


def _consume_result(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("late tool failure after cancellation error=%s", exc)


def _duration_ms(start: float) -> int:
    return max(int((time.perf_counter() - start) * 1000), 0)


__all__ = ["DEADLINE_REASON", "Dispatcher", "serialize_result"]
