"""
Estimation pipeline.

JobSpec -> local tariff (always) -> external estimator (best effort)
        -> reconciliation -> EstimateResult

The external call is the only await point and is bounded by its timeout.
"""

import logging
from typing import Optional, Tuple

from .ai_estimator import EstimateFailure, ExternalEstimator, ExternalResult, FailureReason
from .pricing.local_estimator import LocalEstimator
from .pricing.tariff import Tariff
from .reconciliation import reconcile
from .schemas import EstimateResult, JobSpec, PriceRange

logger = logging.getLogger(__name__)

WARNING_RECHECKED = "estimate re-checked against the tariff when the order was placed"


async def estimate_job(job: JobSpec, tariff: Tariff,
                       external: Optional[ExternalEstimator] = None
                       ) -> Tuple[PriceRange, EstimateResult]:
    """Returns (local reference range, final reconciled estimate)."""
    local = LocalEstimator(tariff).estimate(job)
    external = external or ExternalEstimator(tariff)
    outcome = await external.estimate(job, local)
    result = reconcile(local, outcome, job, tariff)
    logger.info("Estimate %s: %d-%d (local %d-%d)",
                result.method, result.range.min, result.range.max, local.min, local.max)
    return local, result


def recheck_estimate(job: JobSpec, estimate: EstimateResult, tariff: Tariff) -> EstimateResult:
    """
    Bound an estimate that came back from the client at order time.

    The supplied range goes through the same reconciliation as a model
    answer: per-meter sanity band and minimum-order floor. A range that
    survives unchanged is kept as sent. A 'local' estimate is recomputed.
    """
    estimator = LocalEstimator(tariff)
    local = estimator.estimate(job)
    if estimate.method == "local":
        return reconcile(local, EstimateFailure(FailureReason.MISSING_CREDENTIALS), job, tariff)

    supplied = ExternalResult(
        min=estimate.range.min,
        max=estimate.range.max,
        reason_short=estimate.explanation_short,
        reason_long=estimate.explanation_long,
        warnings=tuple(estimate.warnings),
    )
    checked = reconcile(local, supplied, job, tariff)
    if checked.range == estimate.range:
        return estimate

    logger.warning("Supplied estimate %d-%d replaced by %d-%d (%s) at order time",
                   estimate.range.min, estimate.range.max,
                   checked.range.min, checked.range.max, checked.method)
    return checked.model_copy(update={"warnings": checked.warnings + [WARNING_RECHECKED]})
