"""
Weld length normalization — free-text quantity to meters.
"""

import pytest

from weldquote.units import DEFAULT_LENGTH_M, MAX_LENGTH_M, parse_length_meters


@pytest.mark.parametrize("text, meters", [
    ("16.3 м", 16.3),
    ("16,3m", 16.3),
    ("1630 см", 16.3),
    ("5000 мм", 5.0),
    ("5 MM", 0.005),
    ("около 8 метров", 8.0),
    ("12", 12.0),
])
def test_parses_units(text, meters):
    assert parse_length_meters(text) == pytest.approx(meters)


def test_same_length_in_any_unit():
    """'1 m', '100 cm' and '1000 mm' are the same seam."""
    assert parse_length_meters("1 m") == pytest.approx(parse_length_meters("100 cm"))
    assert parse_length_meters("100 cm") == pytest.approx(parse_length_meters("1000 mm"))


@pytest.mark.parametrize("text", [None, "", "   ", "не знаю", "0 м", "0,0"])
def test_missing_or_zero_defaults_to_one_meter(text):
    assert parse_length_meters(text) == DEFAULT_LENGTH_M


def test_caps_absurd_lengths():
    """500 m is a unit mistake — capped at 200 m."""
    assert parse_length_meters("500 м") == MAX_LENGTH_M
    assert parse_length_meters("200 м") == MAX_LENGTH_M
    assert parse_length_meters("199 м") == pytest.approx(199.0)


def test_first_number_wins():
    assert parse_length_meters("3 м шва, 2 детали") == pytest.approx(3.0)


def test_round_trip_across_units():
    assert parse_length_meters("1630 см") == pytest.approx(16.3)
    assert parse_length_meters("16.3 м") == pytest.approx(16.3)
    assert parse_length_meters("16300 мм") == pytest.approx(16.3)


def test_centimeters_typed_as_length_hit_ceiling():
    assert parse_length_meters("50000 см") == MAX_LENGTH_M
