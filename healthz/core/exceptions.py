"""Domain-specific exceptions for healthz.

Health state itself has no failure modes: marking, checking and listing
components never raise. The exceptions below signal wiring mistakes.
"""

from __future__ import annotations


# =============================================================================
# Base
# =============================================================================


class HealthzError(Exception):
    """Base exception for all healthz errors."""


# =============================================================================
# Context propagation
# =============================================================================


class CheckNotAttachedError(HealthzError, LookupError):
    """No Check was attached to the context — attach one during app wiring.

    This is a programming error. Callers are not expected to catch it.
    """
