"""Tool descriptors and the in-memory tool registry."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterator, Mapping, Sequence, Union

from .exceptions import DuplicateToolError
from .schema import ParameterSchema

if TYPE_CHECKING:  # pragma: no cover
    from .context import InvocationContext

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any], "InvocationContext"], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class ToolExample:
    """Few-shot hint shown to the model; never validated at runtime."""

    prompt: str
    call: str

    @classmethod
    def coerce(cls, raw: "ToolExample | Mapping[str, Any]") -> "ToolExample":
        if isinstance(raw, ToolExample):
            return raw
        call = raw.get("call", "")
        if not isinstance(call, str):
            call = json.dumps(call, ensure_ascii=False)
        return cls(prompt=str(raw.get("prompt", "")), call=call)


@dataclass(frozen=True)
class ToolDescriptor:
    """Declarative definition of a tool."""

    name: str
    description: str
    parameters: ParameterSchema
    handler: ToolHandler
    examples: tuple[ToolExample, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("tool name must be a non-empty string")
        if not callable(self.handler):
            raise TypeError(f"handler for tool '{self.name}' is not callable")
        if not isinstance(self.parameters, ParameterSchema):
            object.__setattr__(
                self, "parameters", ParameterSchema.model_validate(self.parameters)
            )
        object.__setattr__(
            self, "examples", tuple(ToolExample.coerce(item) for item in self.examples)
        )

    def definition(self) -> dict[str, Any]:
        """Name, description, JSON-Schema parameters and examples for the model."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_json_schema(),
            "examples": [
                {"prompt": example.prompt, "call": example.call} for example in self.examples
            ],
        }


class ToolRegistry:
    """In-memory registry of available tools, kept in registration order."""

    def __init__(self, descriptors: Sequence[ToolDescriptor] = ()):
        self._tools: dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor
        logger.info("tool registered name=%s", descriptor.name)

    def lookup(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def list(self) -> list[ToolDescriptor]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        return [descriptor.definition() for descriptor in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self.list())


__all__ = ["ToolDescriptor", "ToolExample", "ToolHandler", "ToolRegistry"]
