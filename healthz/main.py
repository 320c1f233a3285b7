"""FastAPI application entry point.

Start with:
    uvicorn healthz.main:app

One Check is created per process.  It is bound to every request by
``CheckContextMiddleware`` and served at the configured health path.
Other code reports component state by calling ``check.mark_failing`` /
``check.mark_passing`` on the same instance.

Startup hooks passed to ``create_app`` run while the startup component is
failing, so probes see 503 until every hook has finished.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

from fastapi import FastAPI

from healthz.config import get_settings
from healthz.core.check import Check
from healthz.core.context import CheckContextMiddleware

logger = logging.getLogger(__name__)

StartupHook = Callable[[FastAPI], Awaitable[None]]


# ---------------------------------------------------------------------------
#  Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Hold the check unhealthy until startup completes and once shutdown begins."""
    settings = get_settings()
    check: Check = app.state.check
    hooks: Sequence[StartupHook] = app.state.startup_hooks

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    check.mark_failing(settings.startup_component)
    logger.info(
        "healthz starting up",
        extra={"health_path": settings.health_path, "startup_hooks": len(hooks)},
    )

    # A failing hook aborts startup and leaves the startup component failing.
    for hook in hooks:
        logger.debug("Running startup hook", extra={"hook": getattr(hook, "__name__", repr(hook))})
        await hook(app)

    check.mark_passing(settings.startup_component, settings.shutdown_component)
    logger.info("healthz ready")

    yield

    # Fail probes first so traffic drains before the process exits.
    check.mark_failing(settings.shutdown_component)
    logger.info("healthz shutting down")


# ---------------------------------------------------------------------------
#  FastAPI application
# ---------------------------------------------------------------------------

def create_app(check: Check, startup_hooks: Sequence[StartupHook] = ()) -> FastAPI:
    """Build the application around ``check``.

    ``startup_hooks`` are awaited in order during startup, each receiving
    the application.
    """
    # Import routers lazily to avoid circular-import issues.
    from healthz.api import health

    settings = get_settings()

    application = FastAPI(
        title="healthz",
        description="Boolean health aggregator for probes and load balancers",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.check = check
    application.state.startup_hooks = tuple(startup_hooks)
    application.add_middleware(CheckContextMiddleware, check=check)
    health.register(application, settings.health_path)
    return application


check = Check()
app = create_app(check)
