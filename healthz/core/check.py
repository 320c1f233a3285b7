"""Health check as the logical AND of named boolean components.

A component is *failing* once it has been marked failing and *passing*
otherwise — including when it was never mentioned at all.  The check is
healthy exactly when no component is failing.

Instances are safe for concurrent use: mutations take the lock exclusively,
queries take it shared.  ``Check.respond`` maps the current state onto the
HTTP status policy used by the health endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus

from healthz.core.rwlock import RWLock

logger = logging.getLogger(__name__)


# =============================================================================
#  Constants
# =============================================================================

ALLOWED_METHODS: tuple[str, ...] = ("GET", "HEAD")

TEXT_HEADERS: dict[str, str] = {
    "Content-Type": "text/plain; charset=utf-8",
    "X-Content-Type-Options": "nosniff",
}


# =============================================================================
#  Response model
# =============================================================================


@dataclass(frozen=True, slots=True)
class HealthResponse:
    """Status line, body and headers for one health request."""

    status_code: int
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)


def _text_response(status: HTTPStatus, **extra_headers: str) -> HealthResponse:
    """Reason phrase as a plain-text body, the way standard error helpers write it."""
    return HealthResponse(
        status_code=status.value,
        body=f"{status.phrase}\n",
        headers={**TEXT_HEADERS, **extra_headers},
    )


# =============================================================================
#  Check
# =============================================================================


class Check:
    """Named boolean components summed into one health state.

    A freshly constructed Check is healthy.
    """

    def __init__(self) -> None:
        self._lock = RWLock()
        self._failing: set[str] | None = None

    def __repr__(self) -> str:
        return f"<Check failing={sorted(self.failing())!r}>"

    # -------------------------------------------------------------------------
    #  Mutation
    # -------------------------------------------------------------------------

    def mark_passing(self, *components: str) -> None:
        """Mark the given components as passing."""
        if not components:
            return

        with self._lock.write():
            if not self._failing:
                return
            recovered = [c for c in components if c in self._failing]
            self._failing.difference_update(components)

        if recovered:
            logger.debug("Components passing", extra={"components": recovered})

    def mark_failing(self, *components: str) -> None:
        """Mark the given components as failing."""
        if not components:
            return

        with self._lock.write():
            if self._failing is None:
                self._failing = set()
            failed = [c for c in components if c not in self._failing]
            self._failing.update(components)

        if failed:
            logger.debug("Components failing", extra={"components": failed})

    # -------------------------------------------------------------------------
    #  Queries
    # -------------------------------------------------------------------------

    def healthy(self) -> bool:
        """Report whether no component is currently failing."""
        with self._lock.read():
            return not self._failing

    def failing(self, dst: list[str] | None = None) -> list[str]:
        """Append the failing components to ``dst`` and return it.

        ``dst`` is extended in place, so its existing items stay where they
        are.  Order of the appended names is unspecified.  Any Check for which
        this returns at least one name is unhealthy.
        """
        if dst is None:
            dst = []

        with self._lock.read():
            if self._failing:
                dst.extend(self._failing)

        return dst

    # -------------------------------------------------------------------------
    #  HTTP status policy
    # -------------------------------------------------------------------------

    def respond(self, method: str) -> HealthResponse:
        """Map the request method and current health onto a response.

        GET   → 200 ``OK`` / 503 ``Service Unavailable``
        HEAD  → 204 / 503, always without a body
        other → 405 ``Method Not Allowed`` (with body, for every method)
        """
        if method not in ALLOWED_METHODS:
            return _text_response(
                HTTPStatus.METHOD_NOT_ALLOWED,
                Allow=", ".join(ALLOWED_METHODS),
            )

        # Read health once so the branches below agree with each other.
        healthy = self.healthy()

        if method == "HEAD":
            if healthy:
                return HealthResponse(status_code=HTTPStatus.NO_CONTENT.value)
            return HealthResponse(status_code=HTTPStatus.SERVICE_UNAVAILABLE.value)

        if healthy:
            return _text_response(HTTPStatus.OK)

        return _text_response(HTTPStatus.SERVICE_UNAVAILABLE)
