"""
Reconciliation policy — bounds every external figure before a customer sees it.
"""

import pytest

from weldquote.ai_estimator import EstimateFailure, ExternalResult, FailureReason
from weldquote.pricing.local_estimator import LocalEstimator
from weldquote.pricing.tariff import DEFAULT_TARIFF
from weldquote.reconciliation import (
    NOTE_FLOOR_APPLIED,
    NOTE_MARKET_ADJUSTED,
    WARNING_EXTERNAL_UNAVAILABLE,
    WARNING_SWAPPED_BOUNDS,
    reconcile,
)
from weldquote.schemas import JobSpec


def _job(**overrides):
    fields = dict(material="steel", thickness="lt_3", weld_type="butt",
                  work_scope="pre_cut", volume_text="16.3 м")
    fields.update(overrides)
    return JobSpec(**fields)


def _local(job):
    return LocalEstimator().estimate(job)


@pytest.mark.parametrize("reason", list(FailureReason))
def test_any_failure_falls_back_to_local_exactly(reason):
    job = _job()
    local = _local(job)
    result = reconcile(local, EstimateFailure(reason, "detail"), job)

    assert result.method == "local"
    assert result.range == local
    assert WARNING_EXTERNAL_UNAVAILABLE in result.warnings
    assert result.explanation_short.startswith("Base tariff")


def test_plausible_external_is_accepted():
    job = _job()
    external = ExternalResult(min=130000, max=150000, reason_short="ok", reason_long="подробно")
    result = reconcile(_local(job), external, job)

    assert result.method == "external"
    assert (result.range.min, result.range.max) == (130000, 150000)
    assert result.explanation_short == "ok"
    assert result.explanation_long == "подробно"


def test_absurd_per_meter_rate_is_corrected():
    """50 000 rub/m of steel is replaced by the 6 000-9 000 rub/m market band."""
    job = _job()
    external = ExternalResult(min=700000, max=16.3 * 50000, reason_long="Дорого")
    result = reconcile(_local(job), external, job)

    assert result.method == "external_corrected"
    assert result.range.min == round(16.3 * 6000)
    assert result.range.max == round(16.3 * 9000)
    assert NOTE_MARKET_ADJUSTED in result.explanation_long
    assert result.explanation_long.startswith("Дорого")


def test_too_cheap_rate_is_corrected():
    job = _job()
    result = reconcile(_local(job), ExternalResult(min=1000, max=2000), job)
    assert result.method == "external_corrected"
    assert result.range.min == round(16.3 * 6000)


def test_corrected_band_follows_material():
    job = _job(material="titanium")
    external = ExternalResult(min=10, max=20)
    result = reconcile(_local(job), external, job)
    band = DEFAULT_TARIFF.corrected_rate("titanium")
    assert result.range.min == round(16.3 * band.min)
    assert result.range.max == round(16.3 * band.max)


def test_swapped_bounds_are_fixed_and_flagged():
    job = _job()
    result = reconcile(_local(job), ExternalResult(min=150000, max=130000), job)
    assert (result.range.min, result.range.max) == (130000, 150000)
    assert WARNING_SWAPPED_BOUNDS in result.warnings


def test_external_below_floor_is_lifted():
    """0.1 m seam, sane per-meter rate, but under the minimum order."""
    job = _job(volume_text="10 см")
    result = reconcile(_local(job), ExternalResult(min=1000, max=1500), job)

    assert result.method == "external"
    assert result.range.min == 3500
    assert result.range.max == 4000
    assert NOTE_FLOOR_APPLIED in result.warnings


def test_model_warnings_are_kept():
    job = _job()
    external = ExternalResult(min=130000, max=150000, warnings=("нужно фото",))
    result = reconcile(_local(job), external, job)
    assert "нужно фото" in result.warnings


def test_result_range_always_valid():
    job = _job()
    for lo, hi in [(1, 1), (100000, 100000), (5e6, 1), (0.4, 0.6)]:
        result = reconcile(_local(job), ExternalResult(min=lo, max=hi), job)
        assert 0 <= result.range.min <= result.range.max
