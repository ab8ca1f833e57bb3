"""
Reconciliation policy — the only gate between a model's numbers and a price
shown to a paying customer.

Rules, in order:
  1. External failed              -> local range, method 'local'
  2. External max < min           -> bounds swapped, warning
  3. Implied rub/m outside band   -> recomputed from market per-meter rates,
                                     method 'external_corrected'
  4. Otherwise                    -> external range, method 'external'
Every accepted range is lifted to the minimum-order floor.
"""

import logging

from .ai_estimator import ExternalOutcome
from .pricing.local_estimator import LocalEstimator, raise_to_floor
from .pricing.tariff import DEFAULT_TARIFF, Tariff
from .schemas import EstimateResult, JobSpec, PriceRange
from .units import DEFAULT_LENGTH_M

logger = logging.getLogger(__name__)

WARNING_EXTERNAL_UNAVAILABLE = "external estimate unavailable, base tariff used"
WARNING_SWAPPED_BOUNDS = "external estimate had min above max, bounds swapped"
NOTE_MARKET_ADJUSTED = (
    "The figure was adjusted to market per-meter rates for this material "
    "and seam length."
)
NOTE_FLOOR_APPLIED = "raised to the minimum order for this scope of work"


def reconcile(local: PriceRange, external: ExternalOutcome, job: JobSpec,
              tariff: Tariff = DEFAULT_TARIFF) -> EstimateResult:
    """Combine the base tariff with the (untrusted) external estimate."""
    estimator = LocalEstimator(tariff)

    if not external.ok:
        return EstimateResult(
            range=local,
            method="local",
            explanation_short=estimator.summarize(job),
            explanation_long=None,
            warnings=[WARNING_EXTERNAL_UNAVAILABLE],
        )

    resolved = estimator.resolve(job)
    warnings = list(external.warnings)

    ext_min, ext_max = float(external.min), float(external.max)
    if ext_max < ext_min:
        ext_min, ext_max = ext_max, ext_min
        warnings.append(WARNING_SWAPPED_BOUNDS)

    length = resolved.length_m if resolved.length_m > 0 else DEFAULT_LENGTH_M
    rate_per_m = ext_max / length
    floor = tariff.floor_for(resolved.work_scope, job.material_owner)
    explanation_long = str(external.reason_long) if external.reason_long else None

    if not (tariff.sane_rate_min_per_m <= rate_per_m <= tariff.sane_rate_max_per_m):
        band = tariff.corrected_rate(resolved.material)
        low, high = length * band.min, length * band.max
        logger.warning(
            "External estimate %.0f rub/m outside %.0f-%.0f for %s — corrected to %.0f-%.0f",
            rate_per_m, tariff.sane_rate_min_per_m, tariff.sane_rate_max_per_m,
            resolved.material, low, high,
        )
        if low < floor:
            low, high = raise_to_floor(low, high, floor, band.max / band.min)
            warnings.append(NOTE_FLOOR_APPLIED)
        return EstimateResult(
            range=_to_range(low, high),
            method="external_corrected",
            explanation_short=external.reason_short or estimator.summarize(job),
            explanation_long=" ".join(t for t in (explanation_long, NOTE_MARKET_ADJUSTED) if t),
            warnings=warnings,
        )

    low, high = ext_min, ext_max
    if low < floor:
        low, high = floor, max(high + (floor - low), floor)
        logger.info("External estimate raised to floor %.0f", floor)
        warnings.append(NOTE_FLOOR_APPLIED)

    return EstimateResult(
        range=_to_range(low, high),
        method="external",
        explanation_short=external.reason_short or estimator.summarize(job),
        explanation_long=explanation_long,
        warnings=warnings,
    )


def _to_range(low: float, high: float) -> PriceRange:
    price_min = max(int(round(low)), 0)
    return PriceRange(min=price_min, max=max(int(round(high)), price_min))
