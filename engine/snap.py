from typing import List, Sequence

from engine.constants import SNAP_RADIUS
from engine.models import BracketRow


def derive_snap_points(brackets: Sequence[BracketRow], final_deduction) -> List[float]:
    """
    Gross income at which each bracket boundary is reached.

    A cap is a taxable-income threshold; adding the deduction back turns it
    into the gross income that lands exactly on it. Open-ended caps are skipped.
    """
    return sorted(
        bracket.cap + final_deduction
        for bracket in brackets
        if not bracket.is_open_ended
    )


def snap_value(value, snap_points: Sequence[float], radius=SNAP_RADIUS):
    """Pull value onto the first snap point closer than radius, if any."""
    for point in snap_points:
        if abs(value - point) < radius:
            return point
    return value
