"""UI component generator plugin."""

from __future__ import annotations

import html
from typing import Any

from ..context import InvocationContext
from ..settings import Settings
from ..tools import ToolDescriptor, ToolExample, ToolRegistry

PLUGIN_NAME = "ui-component-generator"

BUTTON_CLASSES = (
    "bg-primary text-background inline-flex items-center justify-center rounded-md "
    "text-sm font-medium ring-offset-background transition-colors "
    "focus-visible:outline-none focus-visible:ring-2 focus-visible:ring-ring "
    "focus-visible:ring-offset-2 disabled:pointer-events-none disabled:opacity-50"
)

PARAMETERS: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "type": {"type": "string", "description": "The type of the UI component to generate"},
        "content": {"type": "string", "description": "The content of the component"},
    },
    "required": ["type", "content"],
    "additionalProperties": False,
}


def render_component(component_type: str, content: str) -> str:
    if component_type == "button":
        return f'<button className="{BUTTON_CLASSES}">{html.escape(content)}</button>'
    raise ValueError(f"unsupported component type '{component_type}'")


class UIComponentGeneratorPlugin:
    name = PLUGIN_NAME

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description="Generates a UI component with customizable content and styling.",
            parameters=PARAMETERS,
            handler=self.handle,
            examples=(
                ToolExample(
                    prompt="Generate a UI button component",
                    call='{"type": "button", "content": "Click me"}',
                ),
            ),
        )

    def setup(self, registry: ToolRegistry, settings: Settings) -> None:
        registry.register(self.descriptor())

    def handle(self, args: dict[str, Any], context: InvocationContext) -> str:
        component_type = args["type"]
        context.introspect(
            f"{context.caller}: Generating a UI component with type: {component_type}"
        )
        return render_component(component_type, args["content"])


__all__ = ["BUTTON_CLASSES", "PLUGIN_NAME", "UIComponentGeneratorPlugin", "render_component"]
