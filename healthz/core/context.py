"""Request-scoped propagation of the process-wide Check.

The Check is attached to a ``contextvars.Context`` by reference.  Code deep
in a request's call chain retrieves it with ``from_context()`` instead of
threading it through every signature.  The ContextVar is private to this
module, so no other context key can collide with it.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, MutableMapping

from healthz.core.check import Check
from healthz.core.exceptions import CheckNotAttachedError

_check_var: contextvars.ContextVar[Check] = contextvars.ContextVar("healthz_check")

Scope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]


def new_context(ctx: contextvars.Context, check: Check) -> contextvars.Context:
    """Return a copy of ``ctx`` which carries ``check``.

    ``ctx`` itself is left untouched and ``check`` is not copied.
    """
    derived = ctx.copy()
    derived.run(_check_var.set, check)
    return derived


def from_context(ctx: contextvars.Context | None = None) -> Check:
    """Return the Check carried by ``ctx`` (the current context by default).

    Raises:
        CheckNotAttachedError: if no Check was ever attached.  This is a
            wiring bug, not a runtime condition to recover from.
    """
    try:
        if ctx is None:
            return _check_var.get()
        return ctx[_check_var]
    except LookupError:
        raise CheckNotAttachedError(
            "No Check attached to this context — attach one with "
            "new_context() or bind() before retrieving it"
        ) from None


@contextmanager
def bind(check: Check) -> Iterator[Check]:
    """Attach ``check`` to the current context for the duration of the block."""
    token = _check_var.set(check)
    try:
        yield check
    finally:
        _check_var.reset(token)


class CheckContextMiddleware:
    """ASGI middleware binding one Check to the context of every request.

    Async endpoints run in the request's task and sync endpoints run in a
    threadpool with a copy of its context, so both see the bound Check.
    """

    def __init__(self, app: ASGIApp, check: Check) -> None:
        self.app = app
        self.check = check

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        with bind(self.check):
            await self.app(scope, receive, send)


async def get_check() -> Check:
    """FastAPI dependency returning the Check bound to the current request."""
    return from_context()
