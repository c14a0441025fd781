from __future__ import annotations

from typing import Any

import pytest

from agentcall import Dispatcher, IntrospectionSink, ToolDescriptor, ToolRegistry
from agentcall.settings import DispatchSettings, reset_settings

ECHO_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"text": {"type": "string"}},
    "required": ["text"],
    "additionalProperties": False,
}


def echo_handler(args: dict[str, Any], context) -> str:
    return args["text"]


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sink() -> IntrospectionSink:
    return IntrospectionSink()


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def echo_tool() -> ToolDescriptor:
    return ToolDescriptor(
        name="echo",
        description="Echo the given text back.",
        parameters=ECHO_SCHEMA,
        handler=echo_handler,
    )


@pytest.fixture
def dispatcher(registry: ToolRegistry, sink: IntrospectionSink) -> Dispatcher:
    return Dispatcher(
        registry,
        sink,
        DispatchSettings(tool_timeout_seconds=None, cancel_grace_seconds=0.2),
    )
