from __future__ import annotations

import asyncio

import pytest

from agentcall import CancellationToken, InvocationCancelled, InvocationContext


def _context(sink, token=None) -> InvocationContext:
    return InvocationContext(
        tool_name="demo", call_id="call-1", caller_id="@agent", sink=sink, token=token
    )


def test_introspect_tags_caller_and_call(sink):
    context = _context(sink)
    context.introspect("working")
    context.emit("@observer", "noticed")
    events = sink.events()
    assert [(event.caller_id, event.text, event.call_id) for event in events] == [
        ("@agent", "working", "call-1"),
        ("@observer", "noticed", "call-1"),
    ]


def test_close_seals_the_token(sink):
    token = CancellationToken()
    context = _context(sink, token)
    context.close()
    assert context.closed
    assert token.cancel("too late") is False
    assert not context.cancelled


def test_token_callbacks_and_raise():
    token = CancellationToken()
    seen = []
    token.add_callback(seen.append)
    assert token.cancel("stop") is True
    assert token.cancel("again") is False
    assert seen == ["stop"]
    with pytest.raises(InvocationCancelled) as exc_info:
        token.raise_if_cancelled()
    assert exc_info.value.reason == "stop"

    late = []
    token.add_callback(late.append)
    assert late == ["stop"]


@pytest.mark.asyncio
async def test_run_cancellable_returns_sub_call_result(sink):
    context = _context(sink)

    async def sub_call():
        await asyncio.sleep(0)
        return 42

    assert await context.run_cancellable(sub_call()) == 42


@pytest.mark.asyncio
async def test_run_cancellable_abandons_sub_call_on_cancel(sink):
    context = _context(sink)
    asyncio.get_running_loop().call_later(0.02, context.token.cancel, "stop now")
    with pytest.raises(InvocationCancelled) as exc_info:
        await context.run_cancellable(asyncio.sleep(30))
    assert exc_info.value.reason == "stop now"


@pytest.mark.asyncio
async def test_run_cancellable_refuses_when_already_cancelled(sink):
    context = _context(sink)
    context.token.cancel("already")
    with pytest.raises(InvocationCancelled):
        await context.run_cancellable(asyncio.sleep(0))
