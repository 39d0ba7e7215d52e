"""Test module for numeric parsing, formula evaluation and position classification"""

import math

import pytest
from vsdx2json.geom import classify_position, distance, evaluate_formula, parse_float, to_float


# ---- parse_float / to_float ----

def test_parse_float_plain_and_whitespace():
    """Test parse_float with surrounding whitespace"""
    assert parse_float(" 2.5 ") == 2.5
    assert parse_float("1e2") == 100.0


def test_parse_float_thousands_separator():
    """Test parse_float strips thousands separators"""
    assert parse_float("1,000.5") == 1000.5


def test_parse_float_invalid():
    """Test parse_float returns None for missing or non-numeric text"""
    assert parse_float(None) is None
    assert parse_float("") is None
    assert parse_float("abc") is None
    assert parse_float("1,a") is None


@pytest.mark.parametrize("text", ["NaN", "nan", "inf", "-Infinity", "1e400", "1,e400", "1_000"])
def test_parse_float_rejects_non_finite_and_underscores(text):
    """Test parse_float treats non-finite values and digit underscores as not numeric"""
    assert parse_float(text) is None


def test_to_float_defaults():
    """Test to_float falls back to the default"""
    assert to_float("3") == 3.0
    assert to_float("x") == 0.0
    assert to_float(None, default=1.5) == 1.5
    assert to_float("nan") == 0.0
    assert to_float("inf", default=2.0) == 2.0


def test_evaluate_formula_non_finite_is_zero():
    """Test a non-finite literal is not returned as the formula value"""
    assert evaluate_formula("NaN", 10, 10) == 0.0
    assert evaluate_formula("inf", 10, 10) == 0.0


# ---- evaluate_formula ----

def test_evaluate_formula_width_multiplier():
    """Test Width*n formulas scale the width"""
    assert evaluate_formula("Width*0.5", 10, 4) == 5.0
    assert evaluate_formula("Width*2", 3, 4) == 6.0


def test_evaluate_formula_height_multiplier_case_and_spaces():
    """Test Height formulas are case-insensitive and accept spaces"""
    assert evaluate_formula("height * 0.25", 10, 8) == 2.0
    assert evaluate_formula("Height*1", 10, 4) == 4.0


def test_evaluate_formula_numeric():
    """Test a plain number is returned as is"""
    assert evaluate_formula("1.5", 10, 10) == 1.5


def test_evaluate_formula_unknown():
    """Test unsupported or empty formulas evaluate to 0"""
    assert evaluate_formula("", 10, 10) == 0.0
    assert evaluate_formula(None, 10, 10) == 0.0
    assert evaluate_formula("Sqrt(2)", 10, 10) == 0.0


def test_evaluate_formula_embedded_reference():
    """Test references inside a longer formula are found"""
    assert evaluate_formula("=GUARD(Width*0.5)", 8, 2) == 4.0


# ---- classify_position ----

@pytest.mark.parametrize(
    "x, y, expected",
    [
        (0.5, 5, "left"),
        (9.9, 5, "right"),
        (5, 9.9, "top"),
        (5, 0.5, "bottom"),
        (5, 5, "center"),
        (0, 0, "left"),
        (10, 10, "right"),
        (5, 1.0, "center"),
    ],
)
def test_classify_position_bands(x, y, expected):
    """Test edge bands on a 10x10 box with the default 0.1 tolerance"""
    assert classify_position(x, y, 0, 0, 10, 10) == expected


def test_classify_position_custom_tolerance():
    """Test a wider tolerance widens the edge bands"""
    assert classify_position(2, 5, 0, 0, 10, 10) == "center"
    assert classify_position(2, 5, 0, 0, 10, 10, tolerance=0.25) == "left"


def test_classify_position_zero_size():
    """Test zero-sized bounds do not raise"""
    assert classify_position(5, 5, 5, 0, 0, 10) == "center"
    assert classify_position(6, 5, 5, 0, 0, 10) == "right"
    assert classify_position(4, 5, 5, 0, 0, 10) == "left"


def test_distance():
    """Test Euclidean distance"""
    assert distance(0, 0, 3, 4) == 5.0
    assert distance(1, 1, 1, 1) == 0.0
    assert math.isclose(distance(0, 0, 10, 10), math.sqrt(200))
