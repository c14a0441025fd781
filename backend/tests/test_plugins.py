from __future__ import annotations

import json

import httpx
import pytest

from agentcall import (
    DuplicateToolError,
    FailureKind,
    InvocationContext,
    InvocationRequest,
    ToolHandlerError,
    ToolRegistry,
)
from agentcall.plugins import LaserfocusApiPlugin, UIComponentGeneratorPlugin, load_plugins
from agentcall.settings import PluginSettings, Settings

BASE_URL = "http://laserfocus.test"


def _laserfocus(registry, handler) -> LaserfocusApiPlugin:
    plugin = LaserfocusApiPlugin(BASE_URL, transport=httpx.MockTransport(handler))
    plugin.setup(registry, Settings.defaults())
    return plugin


@pytest.mark.asyncio
async def test_button_component(dispatcher, registry, sink):
    UIComponentGeneratorPlugin().setup(registry, Settings.defaults())
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="ui-component-generator",
            arguments={"type": "button", "content": "Click <me>"},
            caller_id="@assistant",
        )
    )
    assert result.ok
    assert result.value.startswith('<button className="bg-primary')
    assert "Click &lt;me&gt;</button>" in result.value
    assert [event.text for event in sink.events()] == [
        "@assistant: Generating a UI component with type: button"
    ]


@pytest.mark.asyncio
async def test_unsupported_component_type_fails(dispatcher, registry):
    UIComponentGeneratorPlugin().setup(registry, Settings.defaults())
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="ui-component-generator",
            arguments={"type": "card", "content": "x"},
        )
    )
    assert result.kind == FailureKind.HANDLER_ERROR
    assert result.message == "unsupported component type 'card'"


@pytest.mark.asyncio
async def test_laserfocus_get(dispatcher, registry, sink):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"forecast": "sunny"})

    _laserfocus(registry, handler)
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="laserfocus-api",
            arguments={"endpoint": "/weather", "method": "GET", "params": "{}"},
            caller_id="@assistant",
        )
    )
    assert result.value == '{"forecast": "sunny"}'
    assert str(seen[0].url) == f"{BASE_URL}/weather"
    assert seen[0].method == "GET"
    assert sink.events()[0].text == "@assistant: Making a GET request to /weather"


@pytest.mark.asyncio
async def test_laserfocus_post_sends_decoded_params(dispatcher, registry):
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=[{"name": "Andres"}])

    _laserfocus(registry, handler)
    params = json.dumps({"table": "user", "query": {"name": "Andres"}})
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="laserfocus-api",
            arguments={"endpoint": "/database/read", "method": "POST", "params": params},
        )
    )
    assert result.ok
    assert json.loads(result.value) == [{"name": "Andres"}]
    assert bodies == [{"table": "user", "query": {"name": "Andres"}}]


@pytest.mark.asyncio
async def test_laserfocus_error_status_is_handler_error(dispatcher, registry, sink):
    _laserfocus(registry, lambda request: httpx.Response(500, text="down"))
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="laserfocus-api",
            arguments={"endpoint": "/", "method": "GET", "params": "{}"},
            caller_id="@assistant",
        )
    )
    assert result.kind == FailureKind.HANDLER_ERROR
    assert result.message == "API request failed with status 500"
    assert result.error.details["status"] == 500
    texts = [event.text for event in sink.events()]
    assert texts[-1] == (
        f"@assistant: Error making request to {BASE_URL}/: API request failed with status 500"
    )


@pytest.mark.asyncio
async def test_laserfocus_rejects_unlisted_method_before_any_request(dispatcher, registry):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    _laserfocus(registry, handler)
    result = await dispatcher.invoke(
        InvocationRequest(
            tool_name="laserfocus-api",
            arguments={"endpoint": "/", "method": "PUT", "params": "{}"},
        )
    )
    assert result.kind == FailureKind.INVALID_ARGUMENTS
    assert calls == []


@pytest.mark.asyncio
async def test_unrecognized_method_raises_instead_of_returning_nothing(registry, sink):
    plugin = _laserfocus(registry, lambda request: httpx.Response(200, json={}))
    context = InvocationContext(
        tool_name="laserfocus-api", call_id="c1", caller_id="@assistant", sink=sink
    )
    with pytest.raises(ToolHandlerError) as exc_info:
        await plugin.make_api_request("/", "DELETE", "{}", context)
    assert str(exc_info.value) == "unsupported HTTP method 'DELETE'"


def test_load_plugins_registers_enabled_builtins_in_order():
    registry = ToolRegistry()
    loaded = load_plugins(registry, Settings.defaults())
    assert loaded == ["laserfocus-api", "ui-component-generator"]
    assert registry.names() == ["laserfocus-api", "ui-component-generator"]

    with pytest.raises(DuplicateToolError):
        load_plugins(registry, Settings.defaults())


def test_load_plugins_skips_unknown_names():
    defaults = Settings.defaults()
    settings = Settings(
        dispatch=defaults.dispatch,
        introspection=defaults.introspection,
        plugins=PluginSettings(
            enabled=("nope", "ui-component-generator"),
            laserfocus_url=BASE_URL,
            laserfocus_timeout_seconds=1.0,
        ),
    )
    registry = ToolRegistry()
    assert load_plugins(registry, settings) == ["ui-component-generator"]
