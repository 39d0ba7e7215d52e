"""
Bounding-box helpers

Relative position classification of points against axis-aligned shape bounds
(y grows upwards: Bottom < Top)
"""
import math

from ..config import POSITION_EDGE_TOLERANCE

POSITIONS = ("top", "right", "bottom", "left", "center")


def _ratio(numerator: float, denominator: float) -> float:
    """Division that follows IEEE semantics for a zero denominator"""
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def classify_position(
    x: float,
    y: float,
    left: float,
    bottom: float,
    width: float,
    height: float,
    tolerance: float = POSITION_EDGE_TOLERANCE,
) -> str:
    """
    Classify a point as 'left', 'right', 'bottom', 'top' or 'center'

    Horizontal bands are tested before vertical ones, so corner points are
    reported as left/right.
    """
    rel_x = _ratio(x - left, width)
    rel_y = _ratio(y - bottom, height)
    if rel_x < tolerance:
        return "left"
    if rel_x > 1 - tolerance:
        return "right"
    if rel_y < tolerance:
        return "bottom"
    if rel_y > 1 - tolerance:
        return "top"
    return "center"


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)
