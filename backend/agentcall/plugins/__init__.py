"""Built-in tool plugins and the loader that registers them."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ..settings import Settings
from ..tools import ToolRegistry
from .laserfocus_api import LaserfocusApiPlugin
from .ui_component_generator import UIComponentGeneratorPlugin

logger = logging.getLogger(__name__)


class ToolPlugin(Protocol):
    name: str

    def setup(self, registry: ToolRegistry, settings: Settings) -> None:
        ...


def builtin_plugins(settings: Settings) -> dict[str, ToolPlugin]:
    plugins: list[ToolPlugin] = [
        LaserfocusApiPlugin(
            base_url=settings.plugins.laserfocus_url,
            timeout_seconds=settings.plugins.laserfocus_timeout_seconds,
        ),
        UIComponentGeneratorPlugin(),
    ]
    return {plugin.name: plugin for plugin in plugins}


def load_plugins(
    registry: ToolRegistry,
    settings: Settings,
    plugins: Sequence[ToolPlugin] | None = None,
) -> list[str]:
    """Register plugin tools. Duplicate tool names abort startup."""

    if plugins is None:
        available = builtin_plugins(settings)
        selected: list[ToolPlugin] = []
        for name in settings.plugins.enabled:
            plugin = available.get(name)
            if plugin is None:
                logger.warning("unknown plugin skipped name=%s", name)
                continue
            selected.append(plugin)
    else:
        selected = list(plugins)

    loaded: list[str] = []
    for plugin in selected:
        plugin.setup(registry, settings)
        loaded.append(plugin.name)
        logger.info("plugin loaded name=%s", plugin.name)
    return loaded


__all__ = [
    "LaserfocusApiPlugin",
    "ToolPlugin",
    "UIComponentGeneratorPlugin",
    "builtin_plugins",
    "load_plugins",
]
