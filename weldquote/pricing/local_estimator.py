"""
Local estimator — the deterministic base tariff.

Input: JobSpec
Output: PriceRange

Always runs, never raises, never touches the network. Every missing or
unrecognised input falls back to a documented default:
  unknown material   -> steel multipliers
  unparseable length -> 1 m
  missing work scope -> pre_cut
This is the price of last resort when the external estimator is down.
"""

import logging
from dataclasses import dataclass

from ..schemas import JobSpec, PriceRange
from ..units import parse_length_meters
from .tariff import DEFAULT_TARIFF, Tariff
from .text_overrides import TextOverrides, resolve_overrides

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedJob:
    """The axes the arithmetic actually prices, after text overrides."""
    material: str
    thickness: str
    weld_type: str
    work_scope: str
    length_m: float
    overrides: TextOverrides


class LocalEstimator:
    """
    Coefficient-based calculator.

    weld   = (length x weld rate + butt back-side pass) x material.weld  x thickness x joint x scope.weld
    prep   =  length x prep rate                        x material.prep  x thickness x joint x scope.prep
    finish =  length x strip width x finish rate        x material.finish x thickness x joint x scope.finish
             (only when extra services were ordered)

    Then flat work-type surcharge, position / conditions / deadline / material
    owner multipliers, exotic long-run escalator, service fees, +-band,
    scope floor and short-job ceiling.
    """

    def __init__(self, tariff: Tariff = DEFAULT_TARIFF):
        self.tariff = tariff

    def resolve(self, job: JobSpec) -> ResolvedJob:
        """Apply free-text overrides on top of the form fields."""
        overrides = resolve_overrides(job.free_text)
        t = self.tariff
        return ResolvedJob(
            material=t.material_key(overrides.material or job.material),
            thickness=t.thickness_key(overrides.thickness or job.thickness),
            weld_type=t.weld_type_key(overrides.weld_type or job.weld_type),
            work_scope=t.work_scope_key(job.work_scope),
            length_m=parse_length_meters(job.volume_text),
            overrides=overrides,
        )

    def estimate(self, job: JobSpec) -> PriceRange:
        """Price range for a job. Pure function of (tariff, job)."""
        b = self.breakdown(job)
        return PriceRange(min=b["min"], max=b["max"])

    def breakdown(self, job: JobSpec) -> dict:
        """Every intermediate line of the calculation, for explanations and tests."""
        t = self.tariff
        r = self.resolve(job)
        length = r.length_m

        mat = t.material_triple(r.material)
        scope = t.scope_triple(r.work_scope)
        common = t.thickness_factor(r.thickness) * t.weld_type_factor(r.weld_type)

        # --- Linear costs ---
        weld_base = length * t.weld_rate_per_m
        if r.weld_type == "butt":
            weld_base += t.butt_backside_cost
        prep_base = length * t.prep_rate_per_m
        finish_base = 0.0
        if job.extra_services:
            # Ordered inspection/testing is the only signal that the seam is visible
            finish_base = length * t.finish_strip_width_m * t.finish_rate_per_m2

        weld_cost = weld_base * mat.weld * common * scope.weld
        prep_cost = prep_base * mat.prep * common * scope.prep
        finish_cost = finish_base * mat.finish * common * scope.finish
        subtotal = weld_cost + prep_cost + finish_cost

        # --- Surcharges ---
        work_type_add = t.work_type_surcharge.get(str(job.work_type).lower(), 0.0)
        subtotal += work_type_add

        position_mult = 1.0 + t.position_surcharge.get(str(job.position).lower(), 0.0)
        conditions_mult = 1.0 + sum(
            t.condition_surcharge.get(str(c).lower(), 0.0) for c in set(job.conditions)
        )
        deadline_mult = 1.0 + t.deadline_surcharge.get(str(job.deadline).lower(), 0.0)
        owner_mult = t.owner_multiplier(job.material_owner)
        subtotal *= position_mult * conditions_mult * deadline_mult * owner_mult

        # --- Exotic long-run escalator ---
        escalated = t.is_exotic(r.material) and length > t.escalator_length_m
        if escalated:
            subtotal *= t.escalator_multiplier

        # --- Inspection / testing fees (flat, not escalated) ---
        service_fees = sum(
            t.extra_service_fees.get(str(s).lower(), 0.0) for s in set(job.extra_services)
        )
        subtotal += service_fees

        low = subtotal * t.band_low
        high = subtotal * t.band_high

        # --- Minimum order floor ---
        floor = t.floor_for(r.work_scope, job.material_owner)
        floor_applied = low < floor
        if floor_applied:
            low, high = raise_to_floor(low, high, floor, t.band_high / t.band_low)
            logger.info("Local estimate raised to %s floor %.0f", r.work_scope, floor)

        # --- Short-job ceiling ---
        ceiling_applied = high > t.ceiling_max and length <= t.ceiling_length_m
        if ceiling_applied:
            logger.info(
                "Local estimate %.0f clamped to %.0f for %.1f m job",
                high, t.ceiling_max, length,
            )
            high = t.ceiling_max
            low = high * t.ceiling_min_fraction

        price_min = int(round(low))
        price_max = max(int(round(high)), price_min)

        return {
            "resolved": r,
            "length_m": round(length, 3),
            "weld_cost": round(weld_cost, 2),
            "prep_cost": round(prep_cost, 2),
            "finish_cost": round(finish_cost, 2),
            "work_type_surcharge": work_type_add,
            "position_mult": position_mult,
            "conditions_mult": round(conditions_mult, 4),
            "deadline_mult": deadline_mult,
            "owner_mult": owner_mult,
            "escalated": escalated,
            "service_fees": service_fees,
            "subtotal": round(subtotal, 2),
            "floor": floor,
            "floor_applied": floor_applied,
            "ceiling_applied": ceiling_applied,
            "min": price_min,
            "max": price_max,
        }

    def summarize(self, job: JobSpec) -> str:
        """One-line human explanation of the base tariff."""
        b = self.breakdown(job)
        r = b["resolved"]
        parts = [
            "Base tariff %s: %.1f m of %s seam, %s, thickness %s, scope %s" % (
                self.tariff.version, r.length_m, r.weld_type, r.material,
                r.thickness, r.work_scope,
            )
        ]
        if b["escalated"]:
            parts.append("long run in exotic metal")
        if b["floor_applied"]:
            parts.append("minimum order applied")
        if b["ceiling_applied"]:
            parts.append("capped for a short job")
        return "; ".join(parts) + "."


def raise_to_floor(low: float, high: float, floor: float, spread: float) -> tuple:
    """
    Lift a range so its minimum sits on the floor, keeping the max/min ratio.
    A zero or negative minimum gets the default spread instead.
    """
    if low > 0:
        high = high * (floor / low)
    else:
        high = floor * spread
    low = floor
    return low, max(high, low)
