from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from agentcall.api import format_sse
from agentcall.main import create_app
from agentcall.plugins import UIComponentGeneratorPlugin
from agentcall.schema import IntrospectionEvent
from agentcall.settings import Settings


@pytest.fixture
def client():
    app = create_app(settings=Settings.defaults(), plugins=[UIComponentGeneratorPlugin()])
    with TestClient(app) as test_client:
        yield test_client


def test_health_and_tool_listing(client):
    assert client.get("/health").json() == {"status": "ok", "tools": 1}
    tools = client.get("/tools").json()["tools"]
    assert [tool["name"] for tool in tools] == ["ui-component-generator"]
    assert tools[0]["parameters"]["required"] == ["type", "content"]


def test_invocation_round_trip(client):
    response = client.post(
        "/invocations",
        json={
            "tool_name": "ui-component-generator",
            "arguments": {"type": "button", "content": "Go"},
            "caller_id": "@assistant",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["value"].endswith(">Go</button>")
    assert body["rendered"] == body["value"]

    events = client.get("/introspection", params={"caller_id": "@assistant"}).json()["events"]
    assert [event["text"] for event in events] == [
        "@assistant: Generating a UI component with type: button"
    ]


def test_failed_invocation_is_still_a_result(client):
    response = client.post("/invocations", json={"tool_name": "missing"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failure"
    assert body["error"]["kind"] == "unknown_tool"
    assert body["rendered"] == "Error: tool 'missing' is not registered"


def test_invalid_body_is_rejected(client):
    response = client.post("/invocations", json={"tool_name": ""})
    assert response.status_code == 422


def test_format_sse():
    event = IntrospectionEvent(seq=3, caller_id="@agent", text="hello")
    chunk = format_sse(event)
    assert chunk.startswith("event: introspection\ndata: ")
    assert chunk.endswith("\n\n")
    payload = json.loads(chunk.split("data: ", 1)[1])
    assert payload["seq"] == 3
    assert payload["text"] == "hello"
