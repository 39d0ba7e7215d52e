"""
Geometry helpers: numeric cell parsing, relative-position formulas and bounds
"""
from .formula import evaluate_formula, parse_float, to_float
from .bounds import POSITIONS, classify_position, distance

__all__ = [
    "POSITIONS",
    "classify_position",
    "distance",
    "evaluate_formula",
    "parse_float",
    "to_float",
]
