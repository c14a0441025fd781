from __future__ import annotations

import json

import pytest

from agentcall import cli


@pytest.fixture(autouse=True)
def _ui_only(monkeypatch):
    monkeypatch.setenv("AGENTCALL_PLUGINS", "ui-component-generator")
    monkeypatch.delenv("INTROSPECTION_LOG_PATH", raising=False)


@pytest.mark.asyncio
async def test_tools_command_prints_definitions(capsys):
    assert await cli.main(["tools"]) == 0
    definitions = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in definitions] == ["ui-component-generator"]


@pytest.mark.asyncio
async def test_invoke_command_prints_rendered_result(capsys):
    code = await cli.main(
        ["invoke", "ui-component-generator", '{"type": "button", "content": "Go"}']
    )
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip().endswith(">Go</button>")
    assert "[cli] cli: Generating a UI component with type: button" in captured.err


@pytest.mark.asyncio
async def test_invoke_command_fails_for_unknown_tool(capsys):
    assert await cli.main(["invoke", "missing"]) == 1
    assert "tool 'missing' is not registered" in capsys.readouterr().out
