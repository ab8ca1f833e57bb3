"""
Weld length normalization.

Customers type the seam length as free text: "16.3 м", "1630 см", "5000 мм",
"около 8 метров". Everything downstream prices in meters.
"""

import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_LENGTH_M = 1.0
MAX_LENGTH_M = 200.0

# Number, then an optional unit glued to it or separated by spaces.
# "mm"/"мм" must be tried before "m"/"м".
_LENGTH_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(мм|mm|см|cm|м|m)?",
    re.IGNORECASE,
)

_UNIT_DIVISORS = {
    "мм": 1000.0,
    "mm": 1000.0,
    "см": 100.0,
    "cm": 100.0,
    "м": 1.0,
    "m": 1.0,
}


def parse_length_meters(text) -> float:
    """
    Parse a free-text quantity into meters.

    Missing or non-positive numbers fall back to 1 m. Anything above 200 m is
    treated as a unit mistake (centimeters typed as meters) and capped.
    """
    if text is None:
        return DEFAULT_LENGTH_M

    match = _LENGTH_RE.search(str(text))
    if not match:
        return DEFAULT_LENGTH_M

    try:
        value = float(match.group(1).replace(",", "."))
    except ValueError:
        return DEFAULT_LENGTH_M

    unit = (match.group(2) or "").lower()
    meters = value / _UNIT_DIVISORS.get(unit, 1.0)

    if meters <= 0:
        return DEFAULT_LENGTH_M

    if meters > MAX_LENGTH_M:
        logger.warning(
            "Weld length %.1f m from %r exceeds %.0f m ceiling — capped",
            meters, text, MAX_LENGTH_M,
        )
        return MAX_LENGTH_M

    return meters
