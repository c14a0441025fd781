"""FastAPI application bootstrap for the tool invocation service."""

from __future__ import annotations

import logging
from typing import Sequence

from fastapi import FastAPI

from .api import get_router
from .container import build_container, shutdown as shutdown_container, startup as startup_container
from .env import load_dotenv_if_present
from .plugins import ToolPlugin
from .settings import Settings


class _CallerIdFilter(logging.Filter):
    """Ensure every log record has a caller_id attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "caller_id"):
            record.caller_id = "system"
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [caller=%(caller_id)s] %(name)s: %(message)s",
    )
    root_logger = logging.getLogger()
    caller_filter = _CallerIdFilter()
    for handler in root_logger.handlers:
        if not any(isinstance(existing, _CallerIdFilter) for existing in handler.filters):
            handler.addFilter(caller_filter)


def create_app(
    *,
    settings: Settings | None = None,
    plugins: Sequence[ToolPlugin] | None = None,
) -> FastAPI:
    """Construct the FastAPI application with plugins registered."""
    configure_logging()
    load_dotenv_if_present()

    container = build_container(settings=settings, plugins=plugins)
    startup_container(container)

    app = FastAPI(title="agentcall")
    app.state.container = container
    app.include_router(get_router(container))

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        shutdown_container(container)

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "tools": len(container.registry)}

    return app


_APP: FastAPI | None = None


def get_app() -> FastAPI:
    """Accessor for ASGI servers expecting an `app` variable."""

    global _APP
    if _APP is None:
        _APP = create_app()
    return _APP


def __getattr__(name: str):  # pragma: no cover
    if name == "app":
        return get_app()
    raise AttributeError(name)
