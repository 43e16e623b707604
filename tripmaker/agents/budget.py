"""Budget split across trip categories."""
from __future__ import annotations

from tripmaker.errors import PlanningPreconditionError


def allocate_budget(total_budget: int, category_count: int) -> int:
    """Share of ``total_budget`` for each category, floored.

    Any remainder is dropped rather than handed to a particular stop, so
    ``share * category_count`` never exceeds the total. Callers must not ask
    for a split across zero categories.
    """
    if category_count <= 0:
        raise PlanningPreconditionError("Cannot split a budget across zero categories")
    if total_budget < 0:
        raise PlanningPreconditionError("Budget must not be negative")
    return int(total_budget // category_count)
