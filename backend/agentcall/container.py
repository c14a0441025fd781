"""Explicit dependency container for the tool invocation runtime.

Building the container has no side effects beyond creating the optional
introspection log directory; plugins are registered by ``startup``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

from .dispatcher import Dispatcher
from .introspection import IntrospectionSink, JsonlIntrospectionLog
from .tools import ToolRegistry

if TYPE_CHECKING:
    from .plugins import ToolPlugin
    from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class AgentCallContainer:
    """Holds the constructed runtime dependencies."""

    settings: Settings
    registry: ToolRegistry
    sink: IntrospectionSink
    dispatcher: Dispatcher
    introspection_log: JsonlIntrospectionLog | None = None
    plugins: Sequence[ToolPlugin] | None = None
    loaded_plugins: list[str] = field(default_factory=list)
    started: bool = False


def build_container(
    *,
    settings: Settings | None = None,
    plugins: Sequence[ToolPlugin] | None = None,
) -> AgentCallContainer:
    """Construct registry, introspection sink and dispatcher."""

    from .settings import get_settings

    settings = settings or get_settings()

    introspection_log: JsonlIntrospectionLog | None = None
    if settings.introspection.enabled_log and settings.introspection.log_path:
        introspection_log = JsonlIntrospectionLog(settings.introspection.log_path)

    sink = IntrospectionSink(
        history_limit=settings.introspection.history_limit,
        transports=[introspection_log] if introspection_log else None,
    )
    registry = ToolRegistry()
    dispatcher = Dispatcher(registry, sink, settings.dispatch)
    return AgentCallContainer(
        settings=settings,
        registry=registry,
        sink=sink,
        dispatcher=dispatcher,
        introspection_log=introspection_log,
        plugins=plugins,
    )


def startup(container: AgentCallContainer) -> None:
    """Register plugin tools once. DuplicateToolError propagates to the caller."""

    from .plugins import load_plugins

    if container.started:
        return
    container.loaded_plugins = load_plugins(
        container.registry, container.settings, container.plugins
    )
    container.started = True
    logger.info(
        "tool runtime ready tools=%s",
        container.registry.names(),
        extra={"caller_id": "system"},
    )


def shutdown(container: AgentCallContainer) -> None:
    container.sink.close()
