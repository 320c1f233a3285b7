"""Health-check endpoint.

Process supervisors, load balancers and orchestration probes hit this
endpoint.  The status code carries the whole answer; see
``Check.respond`` for the mapping.

The endpoint is a plain ASGI callable rather than a FastAPI path operation:
Starlette routes every method to such an endpoint, so methods outside
GET/HEAD get the check's own 405 response instead of the framework's JSON
one.
"""

from __future__ import annotations

from fastapi import FastAPI, Response

from healthz.core.context import Receive, Scope, Send, from_context


class HealthEndpoint:
    """ASGI endpoint answering with the health of the bound Check.

    The request body is never read.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        result = from_context().respond(scope["method"])
        response = Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
        )
        await response(scope, receive, send)


def register(app: FastAPI, path: str) -> None:
    """Serve the health endpoint at ``path`` for every request method."""
    app.add_route(path, HealthEndpoint(), include_in_schema=False)
