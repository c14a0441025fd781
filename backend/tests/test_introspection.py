from __future__ import annotations

import asyncio
import logging
import threading

import pytest

from agentcall import IntrospectionSink, JsonlIntrospectionLog


class _BrokenTransport:
    def deliver(self, event):
        raise OSError("ui push unavailable")


class _RecordingTransport:
    def __init__(self):
        self.events = []

    def deliver(self, event):
        self.events.append(event)


def test_append_assigns_sequence_and_filters_by_caller(sink):
    first = sink.append("alpha", "one")
    sink.append("beta", "two")
    sink.append("alpha", "three")
    assert first.seq == 1
    assert [event.seq for event in sink.events()] == [1, 2, 3]
    assert [event.text for event in sink.events("alpha")] == ["one", "three"]


def test_history_is_bounded():
    sink = IntrospectionSink(history_limit=2)
    for text in ("a", "b", "c"):
        sink.append("alpha", text)
    assert [event.text for event in sink.events()] == ["b", "c"]
    assert len(sink) == 2


def test_failing_transport_drops_event_without_raising(caplog):
    recorder = _RecordingTransport()
    sink = IntrospectionSink(transports=[_BrokenTransport(), recorder])
    with caplog.at_level(logging.WARNING, logger="agentcall.introspection"):
        event = sink.append("alpha", "still recorded")
    assert event is not None
    assert sink.dropped == 1
    assert recorder.events == [event]
    assert sink.events() == [event]
    assert "event dropped" in caplog.text


def test_jsonl_log_round_trip(tmp_path):
    log = JsonlIntrospectionLog(tmp_path / "logs" / "introspection.jsonl")
    sink = IntrospectionSink(transports=[log])
    sink.append("alpha", "first", call_id="call-1")
    sink.append("beta", "second")
    stored = log.read()
    assert [(event.caller_id, event.text, event.call_id) for event in stored] == [
        ("alpha", "first", "call-1"),
        ("beta", "second", None),
    ]


def test_fifo_per_caller_under_threads(sink):
    def writer(caller: str) -> None:
        for index in range(200):
            sink.append(caller, str(index))

    threads = [threading.Thread(target=writer, args=(f"c{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    seqs = [event.seq for event in sink.events()]
    assert seqs == sorted(seqs)
    for n in range(4):
        texts = [int(event.text) for event in sink.events(f"c{n}")]
        assert texts == list(range(200))


@pytest.mark.asyncio
async def test_subscription_streams_live_events_for_caller(sink):
    sink.append("alpha", "before subscribe")
    subscription = sink.subscribe("alpha")
    sink.append("beta", "other caller")
    sink.append("alpha", "live")
    await asyncio.to_thread(sink.append, "alpha", "from thread")
    sink.close()

    received = [event.text async for event in subscription]
    assert received == ["live", "from thread"]

    again = [event.text async for event in subscription]
    assert again == []


@pytest.mark.asyncio
async def test_subscribe_after_close_is_empty(sink):
    sink.close()
    subscription = sink.subscribe()
    assert [event async for event in subscription] == []


class _Unprintable:
    def __str__(self):
        raise RuntimeError("cannot render")


def test_unrecordable_event_is_counted_and_dropped(sink):
    assert sink.append("alpha", _Unprintable()) is None
    assert sink.dropped == 1
    assert sink.events() == []
    assert sink.append("alpha", "next").seq == 1
