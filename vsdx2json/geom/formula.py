"""
Formula evaluation module

Tolerant numeric parsing of cell values and evaluation of simple relative-position
formulas such as "Width*0.5" against a shape's width/height
"""
import math
import re
from typing import Optional

_WIDTH_MULTIPLIER = re.compile(r'Width\s*\*\s*(\d+(\.\d+)?)', re.IGNORECASE)
_HEIGHT_MULTIPLIER = re.compile(r'Height\s*\*\s*(\d+(\.\d+)?)', re.IGNORECASE)


def parse_float(value: Optional[str]) -> Optional[float]:
    """
    Parse a numeric cell value

    Accepts surrounding whitespace, exponents and thousands separators.
    NaN and infinities are not numbers here.

    Args:
        value: Raw text (attribute value or element text)

    Returns:
        Parsed finite float, or None if the text is empty or not a number
    """
    if value is None:
        return None
    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        result = float(text)
    except ValueError:
        if "," not in text:
            return None
        try:
            result = float(text.replace(",", ""))
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def to_float(value: Optional[str], default: float = 0.0) -> float:
    """Parse a numeric cell value, returning default when it is missing or invalid"""
    result = parse_float(value)
    return default if result is None else result


def evaluate_formula(formula: Optional[str], width: float = 1.0, height: float = 1.0) -> float:
    """
    Evaluate a formula that may reference Width or Height

    Args:
        formula: Formula text (e.g. "Width*0.5", "Height * 0.25", "1.5")
        width: Width of the owning shape
        height: Height of the owning shape

    Returns:
        Calculated value, or 0 if the formula is not understood
    """
    if not formula:
        return 0.0

    # Direct numeric value
    value = parse_float(formula)
    if value is not None:
        return value

    width_match = _WIDTH_MULTIPLIER.search(formula)
    if width_match:
        return width * float(width_match.group(1))

    height_match = _HEIGHT_MULTIPLIER.search(formula)
    if height_match:
        return height * float(height_match.group(1))

    return 0.0
