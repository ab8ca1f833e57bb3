"""
Free-text overrides — clarification text beats the form chips.
"""

import pytest

from weldquote.pricing.text_overrides import (
    TextOverrides,
    detect_material,
    detect_thickness,
    detect_weld_type,
    resolve_overrides,
    thickness_band,
)


def test_full_override():
    o = resolve_overrides("На самом деле нержавейка 4 мм, труба")
    assert o == TextOverrides(material="stainless", thickness="mm_3_6", weld_type="pipe")


def test_empty_text_overrides_nothing():
    assert resolve_overrides("") == TextOverrides()
    assert resolve_overrides(None) == TextOverrides()


@pytest.mark.parametrize("text, material", [
    ("нержавеющая сталь", "stainless"),
    ("AISI 304", "stainless"),
    ("латунный фитинг", "brass"),
    ("медная шина", "copper"),
    ("алюминиевый профиль", "aluminium"),
    ("корпус из чугуна", "cast_iron"),
    ("титан", "titanium"),
    ("черный металл ст3", "steel"),
    ("mild steel frame", "steel"),
])
def test_detect_material(text, material):
    assert detect_material(text) == material


def test_material_not_mentioned():
    assert detect_material("забор 20 метров") is None


@pytest.mark.parametrize("text, weld_type", [
    ("труба к трубе", "pipe"),
    ("тавровое соединение", "tee"),
    ("угловой шов", "corner"),
    ("внахлёст", "lap"),
    ("сварить встык", "butt"),
])
def test_detect_weld_type(text, weld_type):
    assert detect_weld_type(text) == weld_type


def test_tee_keyword_does_not_match_inside_steel():
    assert detect_weld_type("stainless steel") is None


@pytest.mark.parametrize("text, band", [
    ("лист 2 мм", "lt_3"),
    ("стенка 3мм", "mm_3_6"),
    ("1,5 мм", "lt_3"),
    ("10 mm plate", "mm_6_12"),
    ("плита 20 мм", "gt_12"),
])
def test_detect_thickness(text, band):
    assert detect_thickness(text) == band


def test_large_mm_value_is_not_thickness():
    """'1630 мм' is a seam length, not a wall."""
    assert detect_thickness("шов 1630 мм") is None


def test_thickness_band_edges():
    assert thickness_band(2.9) == "lt_3"
    assert thickness_band(3) == "mm_3_6"
    assert thickness_band(6) == "mm_6_12"
    assert thickness_band(12) == "mm_6_12"
    assert thickness_band(12.5) == "gt_12"
