"""
Tariff — the coefficient tables and rates behind every price.

One Tariff instance is one calibration of the pricing model. Estimators get
it injected at construction, so several versions can be priced side by side
and recalibrating means shipping a new Tariff, not editing control flow.

All money values are rubles. Multiplier tables are keyed by the JobSpec
string values; every lookup has an explicit fallback.
"""

import json
import logging
from typing import Dict, Tuple

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Legacy / alternate spellings of work scope coming from older forms
SCOPE_ALIASES = {
    "from_blanks": "pre_cut",
    "blanks": "pre_cut",
    "precut": "pre_cut",
    "rework": "repair",
    "scratch": "from_scratch",
}


class CostTriple(BaseModel):
    """Separate multipliers for the weld, prep and finish cost lines."""
    weld: float = 1.0
    prep: float = 1.0
    finish: float = 1.0

    class Config:
        frozen = True


class RateBand(BaseModel):
    """Flat per-meter market rate band for one material."""
    min: float
    max: float

    class Config:
        frozen = True


class Tariff(BaseModel):
    version: str
    currency: str = "RUB"

    # --- Base rates ---
    weld_rate_per_m: float = 6000.0
    butt_backside_cost: float = 3000.0      # reverse-side pass, butt joints only
    prep_rate_per_m: float = 2500.0
    finish_strip_width_m: float = 0.1       # visible band either side of the seam
    finish_rate_per_m2: float = 8000.0

    # --- Coefficient tables ---
    materials: Dict[str, CostTriple] = {}
    default_material: str = "steel"
    thickness: Dict[str, float] = {}
    default_thickness: str = "unknown"
    weld_types: Dict[str, float] = {}
    default_weld_type: str = "butt"
    work_scopes: Dict[str, CostTriple] = {}
    default_work_scope: str = "pre_cut"

    # --- Surcharges ---
    work_type_surcharge: Dict[str, float] = {}      # flat, added to subtotal
    position_surcharge: Dict[str, float] = {}       # fraction, multiplicative
    condition_surcharge: Dict[str, float] = {}      # fractions, summed then applied
    deadline_surcharge: Dict[str, float] = {}       # fraction, multiplicative
    material_owner_multiplier: Dict[str, float] = {}
    extra_service_fees: Dict[str, float] = {}

    # --- Presentation band ---
    band_low: float = 0.9
    band_high: float = 1.1

    # --- Exotic long-run escalator ---
    exotic_materials: Tuple[str, ...] = ("copper", "brass", "titanium")
    escalator_length_m: float = 25.0
    escalator_multiplier: float = 1.6

    # --- Floors and caps ---
    scope_floors: Dict[str, float] = {}
    ceiling_max: float = 500000.0
    ceiling_length_m: float = 5.0
    ceiling_min_fraction: float = 0.9 / 1.1    # same spread as the presentation band

    # --- External estimate sanity band (rubles per meter of seam) ---
    sane_rate_min_per_m: float = 500.0
    sane_rate_max_per_m: float = 20000.0
    corrected_rates_per_m: Dict[str, RateBand] = {}

    # --- Rates for the metrics reply shape ---
    metric_weld_rate_per_m: Dict[str, float] = {}   # by difficulty class
    metric_hour_rates: Dict[str, float] = {}        # by labor phase
    metric_risk_margin: Dict[str, float] = {}
    metric_band_low: float = 0.9
    metric_band_high: float = 1.15

    class Config:
        frozen = True

    # --- Lookups with fallbacks ---

    def material_key(self, material) -> str:
        key = str(material or "").strip().lower()
        return key if key in self.materials else self.default_material

    def material_triple(self, material) -> CostTriple:
        return self.materials.get(self.material_key(material), CostTriple())

    def thickness_key(self, thickness) -> str:
        key = str(thickness or "").strip().lower()
        return key if key in self.thickness else self.default_thickness

    def thickness_factor(self, thickness) -> float:
        return self.thickness.get(self.thickness_key(thickness), 1.0)

    def weld_type_key(self, weld_type) -> str:
        key = str(weld_type or "").strip().lower()
        return key if key in self.weld_types else self.default_weld_type

    def weld_type_factor(self, weld_type) -> float:
        return self.weld_types.get(self.weld_type_key(weld_type), 1.0)

    def work_scope_key(self, work_scope) -> str:
        key = str(work_scope or "").strip().lower()
        key = SCOPE_ALIASES.get(key, key)
        return key if key in self.work_scopes else self.default_work_scope

    def scope_triple(self, work_scope) -> CostTriple:
        return self.work_scopes.get(self.work_scope_key(work_scope), CostTriple())

    def owner_multiplier(self, material_owner) -> float:
        key = str(material_owner or "").strip().lower()
        return self.material_owner_multiplier.get(key, 1.0)

    def floor_for(self, work_scope, material_owner=None) -> float:
        """Minimum order value for the scope, scaled when we buy the metal."""
        base = self.scope_floors.get(self.work_scope_key(work_scope), 0.0)
        return base * self.owner_multiplier(material_owner)

    def corrected_rate(self, material) -> RateBand:
        key = self.material_key(material)
        band = self.corrected_rates_per_m.get(key)
        if band is None:
            band = self.corrected_rates_per_m.get(self.default_material)
        if band is None:
            # Nothing configured, use the centre of the sane band
            mid = (self.sane_rate_min_per_m + self.sane_rate_max_per_m) / 2.0
            band = RateBand(min=mid * 0.9, max=mid * 1.1)
        return band

    def is_exotic(self, material) -> bool:
        return self.material_key(material) in self.exotic_materials


DEFAULT_TARIFF = Tariff(
    version="2025.2",
    materials={
        "steel": CostTriple(weld=1.0, prep=1.0, finish=1.0),
        "stainless": CostTriple(weld=1.3, prep=1.2, finish=1.3),
        "aluminium": CostTriple(weld=1.4, prep=1.2, finish=1.2),
        "cast_iron": CostTriple(weld=1.5, prep=1.4, finish=1.1),
        "copper": CostTriple(weld=1.5, prep=1.3, finish=1.6),
        "brass": CostTriple(weld=1.6, prep=1.4, finish=1.8),
        "titanium": CostTriple(weld=1.9, prep=1.5, finish=1.7),
    },
    thickness={
        "lt_3": 1.0,
        "mm_3_6": 1.15,
        "unknown": 1.25,
        "mm_6_12": 1.35,
        "gt_12": 1.6,
    },
    weld_types={
        "butt": 1.0,
        "lap": 1.0,
        "corner": 1.05,
        "tee": 1.1,
        "pipe": 1.4,
    },
    work_scopes={
        "pre_cut": CostTriple(weld=1.0, prep=1.0, finish=1.0),
        "from_scratch": CostTriple(weld=1.1, prep=1.3, finish=1.1),
        "repair": CostTriple(weld=1.2, prep=1.6, finish=1.2),
    },
    work_type_surcharge={
        "welding": 0.0,
        "grinding": 1500.0,
        "cutting": 2000.0,
        "overlay": 3000.0,
        "complex": 5000.0,
    },
    position_surcharge={
        "flat": 0.0,
        "vertical": 0.2,
        "mixed": 0.3,
        "overhead": 0.4,
    },
    condition_surcharge={
        "indoor": 0.0,
        "outdoor": 0.1,
        "tight_space": 0.15,
        "height": 0.2,
    },
    deadline_surcharge={
        "normal": 0.0,
        "urgent": 0.3,
        "night": 0.5,
    },
    material_owner_multiplier={
        "client": 1.0,
        "contractor": 1.3,
    },
    extra_service_fees={
        "visual_inspection": 2500.0,
        "ultrasonic_test": 4000.0,
        "pressure_test": 2000.0,
        "soap_test": 750.0,
        "documentation": 1500.0,
    },
    scope_floors={
        "pre_cut": 3500.0,
        "from_scratch": 5000.0,
        "repair": 7000.0,
    },
    corrected_rates_per_m={
        "steel": RateBand(min=6000.0, max=9000.0),
        "stainless": RateBand(min=8000.0, max=12000.0),
        "aluminium": RateBand(min=9000.0, max=13000.0),
        "cast_iron": RateBand(min=9000.0, max=13000.0),
        "copper": RateBand(min=11000.0, max=16000.0),
        "brass": RateBand(min=11000.0, max=16000.0),
        "titanium": RateBand(min=14000.0, max=19000.0),
    },
    metric_weld_rate_per_m={
        "simple": 5000.0,
        "medium": 8000.0,
        "complex": 12000.0,
    },
    metric_hour_rates={
        "prep": 1500.0,
        "weld": 2500.0,
        "finish": 1800.0,
    },
    metric_risk_margin={
        "low": 0.0,
        "medium": 0.1,
        "high": 0.25,
    },
)


def load_tariff(path: str) -> Tariff:
    """Load a Tariff from a JSON file. Validation errors propagate."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    tariff = Tariff.model_validate(data)
    logger.info("Loaded tariff %s from %s", tariff.version, path)
    return tariff
