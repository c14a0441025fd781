"""HTTP routes exposing the tool catalog, invocations and introspection.

Safe to import: routes are bound to a container at app construction time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from .introspection import IntrospectionSink
from .schema import IntrospectionEvent, InvocationRequest

if TYPE_CHECKING:
    from .container import AgentCallContainer

logger = logging.getLogger(__name__)


class InvocationPayload(BaseModel):
    """Request body for POST /invocations."""

    model_config = ConfigDict(extra="forbid")

    tool_name: str = Field(..., min_length=1)
    arguments: Any = Field(default_factory=dict)
    caller_id: str = "agent"
    call_id: str | None = None
    timeout: float | None = Field(default=None, gt=0)

    def to_request(self) -> InvocationRequest:
        data: dict[str, Any] = {
            "tool_name": self.tool_name,
            "arguments": self.arguments,
            "caller_id": self.caller_id,
        }
        if self.call_id:
            data["call_id"] = self.call_id
        return InvocationRequest(**data)


def format_sse(event: IntrospectionEvent) -> str:
    data = json.dumps(event.model_dump(), separators=(",", ":"))
    return f"event: introspection\ndata: {data}\n\n"


async def sse_introspection_stream(
    sink: IntrospectionSink, caller_id: str | None = None
) -> AsyncIterator[str]:
    """Async generator yielding SSE-formatted live introspection events."""
    subscription = sink.subscribe(caller_id)
    try:
        async for event in subscription:
            yield format_sse(event)
    finally:
        subscription.close()


def get_router(container: "AgentCallContainer") -> APIRouter:
    """Build API routes using the provided dependency container."""

    router = APIRouter()

    @router.get("/tools")
    async def list_tools() -> dict[str, Any]:
        return {"tools": container.registry.definitions()}

    @router.post("/invocations")
    async def create_invocation(payload: InvocationPayload) -> dict[str, Any]:
        request = payload.to_request()
        result = await container.dispatcher.invoke(request, timeout=payload.timeout)
        body = result.model_dump(mode="json")
        body["rendered"] = result.render()
        return body

    @router.get("/introspection")
    async def list_introspection(caller_id: str | None = None) -> dict[str, Any]:
        events = container.sink.events(caller_id)
        return {"events": [event.model_dump() for event in events]}

    @router.get("/introspection/stream")
    async def stream_introspection(caller_id: str | None = None) -> StreamingResponse:
        """Stream introspection events as they are appended, using SSE."""
        logger.info(
            "introspection stream opened caller=%s",
            caller_id or "*",
            extra={"caller_id": caller_id or "system"},
        )
        response = StreamingResponse(
            sse_introspection_stream(container.sink, caller_id),
            media_type="text/event-stream",
        )
        response.headers["Cache-Control"] = "no-cache"
        response.headers["X-Accel-Buffering"] = "no"
        return response

    return router


__all__ = ["InvocationPayload", "format_sse", "get_router", "sse_introspection_stream"]
