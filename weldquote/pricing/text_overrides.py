"""
Text override resolver.

Customers pick a chip in the form, then type the real detail into the
clarification box ("на самом деле нержавейка 4 мм, труба"). When the text
names a material, a thickness or a joint shape, it wins over the chip.

Each axis resolves independently to a value or None.
"""

import re
from dataclasses import dataclass
from typing import Optional

# Checked in order: exotic and alloyed metals first, so "нержавеющая сталь"
# resolves to stainless and not to steel.
MATERIAL_KEYWORDS = [
    ("stainless", ["нерж", "stainless", "aisi", "inox"]),
    ("titanium", ["титан", "titanium"]),
    ("brass", ["латун", "brass"]),
    ("copper", ["медь", "медн", "медью", "copper"]),
    ("aluminium", ["алюмин", "дюрал", "alumin"]),
    ("cast_iron", ["чугун", "cast iron"]),
    ("steel", ["черн", "ст3", "09г2с", "mild steel", "carbon steel", "сталь", "steel"]),
]

WELD_TYPE_KEYWORDS = [
    ("pipe", ["труба", "трубу", "трубы", "труб", "pipe", "tube"]),
    ("tee", ["тавр", "tee", "t-joint"]),
    ("corner", ["углов", "corner"]),
    ("lap", ["нахлест", "нахлёст", "внахлест", "внахлёст", "lap"]),
    ("butt", ["стык", "встык", "butt"]),
]

# "4 мм", "4mm", "1,5 мм": wall or sheet thickness
_THICKNESS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:мм|mm)\b", re.IGNORECASE)

# Bigger "N mm" values are seam lengths, not metal thickness
MAX_THICKNESS_MM = 100.0


@dataclass(frozen=True)
class TextOverrides:
    material: Optional[str] = None
    thickness: Optional[str] = None
    weld_type: Optional[str] = None


def thickness_band(mm: float) -> str:
    """Map a thickness in millimeters to the form's thickness band."""
    if mm < 3:
        return "lt_3"
    if mm < 6:
        return "mm_3_6"
    if mm <= 12:
        return "mm_6_12"
    return "gt_12"


def _match_keywords(text: str, table: list) -> Optional[str]:
    # Keywords match at the start of a word: "tee" must not hit "steel"
    for value, keywords in table:
        for kw in keywords:
            if re.search(r"\b" + re.escape(kw), text):
                return value
    return None


def detect_material(text: str) -> Optional[str]:
    return _match_keywords(text.lower(), MATERIAL_KEYWORDS)


def detect_weld_type(text: str) -> Optional[str]:
    return _match_keywords(text.lower(), WELD_TYPE_KEYWORDS)


def detect_thickness(text: str) -> Optional[str]:
    for match in _THICKNESS_RE.finditer(text):
        try:
            mm = float(match.group(1).replace(",", "."))
        except ValueError:
            continue
        if 0 < mm <= MAX_THICKNESS_MM:
            return thickness_band(mm)
    return None


def resolve_overrides(text) -> TextOverrides:
    """Scan clarification text for material, thickness and joint shape."""
    if not text:
        return TextOverrides()
    text = str(text)
    return TextOverrides(
        material=detect_material(text),
        thickness=detect_thickness(text),
        weld_type=detect_weld_type(text),
    )
