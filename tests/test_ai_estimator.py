"""
External estimator adapter — every failure mode returns a tagged value.

All tests mock Gemini with httpx.MockTransport — no API key or network required.
"""

import asyncio
import json

import httpx
import pytest

from weldquote.ai_estimator import (
    EstimateFailure,
    ExternalEstimator,
    ExternalResult,
    FailureReason,
)
from weldquote.schemas import JobSpec, PriceRange

LOCAL = PriceRange(min=127395, max=155705)


def _job(**overrides):
    fields = dict(material="steel", thickness="lt_3", weld_type="butt", volume_text="16.3 м")
    fields.update(overrides)
    return JobSpec(**fields)


def _gemini_body(text):
    """Wrap model text the way the generateContent endpoint does."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _estimator(handler, **kwargs):
    return ExternalEstimator(
        api_key="test-key",
        timeout=kwargs.pop("timeout", 5.0),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _run(estimator, job=None):
    return asyncio.run(estimator.estimate(job or _job(), LOCAL))


def _reply(payload, status_code=200):
    def handler(request):
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload)
        return httpx.Response(status_code, json=payload)
    return handler


# ============================================================
# Successful replies
# ============================================================

def test_price_shape():
    inner = json.dumps({
        "min": 130000, "max": 150000,
        "reason_short": "Стандартный стыковой шов",
        "reason_long": "Предлагаем выполнить работы за 2 смены.",
        "warnings": ["проверьте толщину"],
    })
    outcome = _run(_estimator(_reply(_gemini_body(inner))))

    assert isinstance(outcome, ExternalResult)
    assert outcome.ok
    assert outcome.min == 130000
    assert outcome.max == 150000
    assert outcome.source == "price"
    assert outcome.reason_short == "Стандартный стыковой шов"
    assert outcome.warnings == ("проверьте толщину",)


def test_price_shape_inside_markdown_fence():
    text = 'Оценка:\n```json\n{"price_min": 90000, "price_max": 110000}\n```'
    outcome = _run(_estimator(_reply(_gemini_body(text))))
    assert outcome.ok
    assert (outcome.min, outcome.max) == (90000, 110000)


def test_wrapped_price_object_is_unwrapped():
    text = json.dumps({"estimate": {"min": 100, "max": 200}})
    outcome = _run(_estimator(_reply(_gemini_body(text))))
    assert outcome.ok
    assert outcome.max == 200


def test_metrics_shape_priced_with_tariff_rates():
    """10 m simple seam + 2 h prep + 4 h weld, low risk, difficulty 1."""
    text = json.dumps({
        "metrics": {
            "weld_length_m": {"simple": 10, "medium": 0, "complex": 0},
            "labor_hours": {"prep": 2, "weld": 4, "finish": 0},
            "difficulty": 1.0,
            "risk": "low",
        },
        "reason_short": "По замерам",
    })
    outcome = _run(_estimator(_reply(_gemini_body(text))))

    assert outcome.ok
    assert outcome.source == "metrics"
    point = 10 * 5000 + 2 * 1500 + 4 * 2500
    assert outcome.min == pytest.approx(point * 0.9)
    assert outcome.max == pytest.approx(point * 1.15)
    assert outcome.metrics["weld_length_m"] == 10


def test_prompt_carries_job_and_reference_range():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["key"] = request.url.params.get("key")
        return httpx.Response(200, json=_gemini_body('{"min": 1, "max": 2}'))

    _run(_estimator(handler), _job(
        material="brass",
        free_text="латунный фланец",
        attachments=("data:image/png;base64,iVBORw0KGgo=", "https://example.com/photo.jpg"),
    ))

    parts = seen["body"]["contents"][0]["parts"]
    prompt = parts[0]["text"]
    assert seen["key"] == "test-key"
    assert "brass" in prompt
    assert "латунный фланец" in prompt
    assert "127395" in prompt and "155705" in prompt
    assert "https://example.com/photo.jpg" in prompt
    assert parts[1]["inline_data"] == {"mime_type": "image/png", "data": "iVBORw0KGgo="}
    assert len(parts) == 2


# ============================================================
# Failure modes
# ============================================================

def test_missing_api_key_makes_no_call():
    def handler(request):
        raise AssertionError("no HTTP call expected")

    estimator = ExternalEstimator(api_key="", transport=httpx.MockTransport(handler))
    outcome = _run(estimator)
    assert isinstance(outcome, EstimateFailure)
    assert outcome.reason == FailureReason.MISSING_CREDENTIALS
    assert not outcome.ok


def test_http_error_status():
    outcome = _run(_estimator(_reply("quota exceeded", status_code=429)))
    assert outcome.reason == FailureReason.HTTP_STATUS
    assert "429" in outcome.detail


def test_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _run(_estimator(handler)).reason == FailureReason.NETWORK_ERROR


def test_transport_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow upstream", request=request)

    assert _run(_estimator(handler)).reason == FailureReason.TIMEOUT


def test_overall_timeout_bounds_the_call():
    estimator = ExternalEstimator(api_key="test-key", timeout=0.05)

    async def slow_call(payload):
        await asyncio.sleep(5)
        return ""

    estimator._call_gemini = slow_call
    outcome = _run(estimator)
    assert outcome.reason == FailureReason.TIMEOUT


def test_body_not_json():
    outcome = _run(_estimator(_reply("<html>502 Bad Gateway</html>")))
    assert outcome.reason == FailureReason.BAD_ENVELOPE


@pytest.mark.parametrize("body", [
    {"candidates": []},
    {"promptFeedback": {"blockReason": "SAFETY"}},
    _gemini_body("   "),
])
def test_no_candidate_content(body):
    assert _run(_estimator(_reply(body))).reason == FailureReason.EMPTY_CONTENT


def test_model_prose_without_json():
    outcome = _run(_estimator(_reply(_gemini_body("Не могу оценить без фото."))))
    assert outcome.reason == FailureReason.MALFORMED_JSON


@pytest.mark.parametrize("inner", [
    {"min": 0, "max": 100000},
    {"min": -5, "max": 100000},
    {"min": "много", "max": 100000},
    {"max": 100000},
    {"min": 1e400, "max": 2e400},
])
def test_invalid_price_numbers(inner):
    text = json.dumps(inner)
    outcome = _run(_estimator(_reply(_gemini_body(text))))
    assert outcome.reason == FailureReason.INVALID_NUMBERS


def test_invalid_metrics():
    text = json.dumps({
        "metrics": {
            "weld_length_m": {"simple": 0, "medium": 0, "complex": 0},
            "labor_hours": {"prep": 1},
            "difficulty": 1.2,
        }
    })
    outcome = _run(_estimator(_reply(_gemini_body(text))))
    assert outcome.reason == FailureReason.INVALID_NUMBERS


def test_unexpected_error_is_tagged():
    estimator = ExternalEstimator(api_key="test-key")

    async def broken_call(payload):
        raise RuntimeError("boom")

    estimator._call_gemini = broken_call
    outcome = _run(estimator)
    assert outcome.reason == FailureReason.UNEXPECTED
    assert "boom" in outcome.detail
