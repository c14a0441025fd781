"""Laserfocus API plugin: lets the agent issue GET/POST requests to the local API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..context import InvocationContext
from ..exceptions import InvocationCancelled, ToolHandlerError
from ..settings import Settings
from ..tools import ToolDescriptor, ToolExample, ToolRegistry

logger = logging.getLogger(__name__)

PLUGIN_NAME = "laserfocus-api"

PARAMETERS: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "endpoint": {"type": "string", "description": "The API endpoint to call"},
        "method": {
            "type": "string",
            "enum": ["GET", "POST"],
            "description": "The HTTP method to use for the request",
        },
        "params": {"type": "string", "description": "Parameters for the API request"},
    },
    "required": ["endpoint", "method", "params"],
    "additionalProperties": False,
}

EXAMPLES = (
    ToolExample(
        prompt="Get user with name Andres from database",
        call=json.dumps(
            {
                "endpoint": "/database/read",
                "method": "POST",
                "params": json.dumps({"table": "user", "query": {"name": "Andres"}}),
            }
        ),
    ),
    ToolExample(
        prompt="Get the current weather",
        call=json.dumps({"endpoint": "/weather", "method": "GET", "params": "{}"}),
    ),
    ToolExample(
        prompt="Get the current date and time",
        call=json.dumps({"endpoint": "/", "method": "GET", "params": "{}"}),
    ),
    ToolExample(
        prompt="Test connection to Laserfocus API",
        call=json.dumps({"endpoint": "/", "method": "GET", "params": "{}"}),
    ),
)


class LaserfocusApiPlugin:
    """Registers the ``laserfocus-api`` tool."""

    name = PLUGIN_NAME

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=(
                "Interacts with the Laserfocus API, supporting both GET and POST requests. "
                "Always use Laserfocus API schema and context to figure out the correct "
                "endpoint, method and parameters."
            ),
            parameters=PARAMETERS,
            handler=self.handle,
            examples=EXAMPLES,
        )

    def setup(self, registry: ToolRegistry, settings: Settings) -> None:
        registry.register(self.descriptor())

    async def handle(self, args: dict[str, Any], context: InvocationContext) -> str:
        return await self.make_api_request(
            args["endpoint"], args["method"], args["params"], context
        )

    async def make_api_request(
        self, endpoint: str, method: str, params: str, context: InvocationContext
    ) -> str:
        context.introspect(f"{context.caller}: Making a {method} request to {endpoint}")
        url = self._url_for(endpoint)
        logger.info(
            "laserfocus request method=%s endpoint=%s",
            method,
            endpoint,
            extra=context.log_extra(),
        )
        try:
            async with self._client() as client:
                if method == "GET":
                    response = await context.run_cancellable(client.get(url))
                elif method == "POST":
                    response = await context.run_cancellable(
                        client.post(url, **_request_body(params))
                    )
                else:
                    raise ToolHandlerError(
                        f"unsupported HTTP method '{method}'", details={"method": method}
                    )
            if not 200 <= response.status_code < 300:
                raise ToolHandlerError(
                    f"API request failed with status {response.status_code}",
                    details={"status": response.status_code, "endpoint": endpoint},
                )
            return _response_text(response)
        except InvocationCancelled:
            raise
        except Exception as exc:
            context.introspect(f"{context.caller}: Error making request to {url}: {exc}")
            raise

    def _url_for(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}{endpoint}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)


def _request_body(params: str) -> dict[str, Any]:
    try:
        decoded = json.loads(params) if params.strip() else {}
    except ValueError:
        return {"content": params}
    return {"json": decoded}


def _response_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    return json.dumps(payload, ensure_ascii=False)


__all__ = ["LaserfocusApiPlugin", "PARAMETERS", "PLUGIN_NAME"]
