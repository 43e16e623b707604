"""Exceptions surfaced to callers of the planner."""
from __future__ import annotations


class PlanningPreconditionError(ValueError):
    """Raised when a planning call is made with inputs it cannot work with.

    Unlike a transport or parse failure, which only shortens the result, this
    rejects the whole call so callers can tell "bad request" apart from
    "nothing found".
    """
