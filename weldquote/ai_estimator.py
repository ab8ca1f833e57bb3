"""
External estimator — asks Gemini for a second opinion on the price.

Input: JobSpec + local PriceRange (sent as a reference, not a target)
Output: ExternalResult, or EstimateFailure tagged with the reason

The model is never trusted: the reply is parsed tolerantly, every number is
validated, and the reconciliation policy still bounds whatever survives.
This adapter NEVER raises to its caller. No retries — the local tariff is
the recovery path.
"""

import asyncio
import enum
import json
import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from .config import settings
from .envelope import extract_json_object
from .pricing.tariff import DEFAULT_TARIFF, Tariff
from .schemas import JobSpec, PriceRange

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

MAX_INLINE_IMAGES = 6
MAX_MODEL_WARNINGS = 5

DIFFICULTY_CLASSES = ("simple", "medium", "complex")
LABOR_PHASES = ("prep", "weld", "finish")


class FailureReason(str, enum.Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    HTTP_STATUS = "http_status"
    BAD_ENVELOPE = "bad_envelope"
    EMPTY_CONTENT = "empty_content"
    MALFORMED_JSON = "malformed_json"
    INVALID_NUMBERS = "invalid_numbers"
    UNEXPECTED = "unexpected_error"


@dataclass(frozen=True)
class EstimateFailure:
    reason: FailureReason
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class ExternalResult:
    min: float
    max: float
    reason_short: str = ""
    reason_long: Optional[str] = None
    warnings: tuple = ()
    source: str = "price"  # 'price' | 'metrics'
    metrics: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return True


ExternalOutcome = Union[ExternalResult, EstimateFailure]


def _positive(value) -> Optional[float]:
    """Finite, strictly positive float — or None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _non_negative(value) -> Optional[float]:
    """Finite float >= 0 — or None. Missing values count as zero."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _first(data: dict, *keys):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


class ExternalEstimator:
    """
    Usage:
        estimator = ExternalEstimator(tariff)
        outcome = await estimator.estimate(job, local_range)
        if outcome.ok:
            # ExternalResult
        else:
            # EstimateFailure, fall back to the local tariff
    """

    def __init__(self, tariff: Tariff = DEFAULT_TARIFF, api_key: Optional[str] = None,
                 model: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.tariff = tariff
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or settings.GEMINI_MODEL
        self.timeout = settings.AI_ESTIMATE_TIMEOUT if timeout is None else timeout
        self.transport = transport

    async def estimate(self, job: JobSpec, local: PriceRange) -> ExternalOutcome:
        """One bounded call to the model. Every failure path returns a tagged value."""
        if not self.api_key:
            logger.info("No GEMINI_API_KEY — skipping external estimate")
            return EstimateFailure(FailureReason.MISSING_CREDENTIALS, "GEMINI_API_KEY not configured")

        try:
            payload = self._build_payload(self._build_prompt(job, local), job.attachments)
            body = await asyncio.wait_for(self._call_gemini(payload), timeout=self.timeout)
            outcome = self._parse_response(body)
        except asyncio.TimeoutError:
            outcome = EstimateFailure(FailureReason.TIMEOUT, f"no reply within {self.timeout:.0f}s")
        except httpx.TimeoutException as e:
            outcome = EstimateFailure(FailureReason.TIMEOUT, str(e) or "transport timeout")
        except httpx.HTTPStatusError as e:
            outcome = EstimateFailure(
                FailureReason.HTTP_STATUS,
                f"{e.response.status_code}: {e.response.text[:200]}",
            )
        except httpx.HTTPError as e:
            outcome = EstimateFailure(FailureReason.NETWORK_ERROR, str(e))
        except Exception as e:
            outcome = EstimateFailure(FailureReason.UNEXPECTED, repr(e))

        if not outcome.ok:
            logger.warning("External estimate unavailable (%s): %s",
                           outcome.reason.value, outcome.detail)
        return outcome

    async def _call_gemini(self, payload: dict) -> str:
        """POST to Gemini and return the raw response body. Raises on HTTP errors."""
        url = GEMINI_URL.format(model=self.model)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
            response.raise_for_status()
            return response.text

    def _build_payload(self, prompt: str, attachments) -> dict:
        """Prompt text plus inline image parts for data-URL attachments."""
        parts = [{"text": prompt}]
        for ref in list(attachments)[:MAX_INLINE_IMAGES]:
            inline = _inline_image(ref)
            if inline:
                parts.append({"inline_data": inline})
        return {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": 0.2,
                "responseMimeType": "application/json",
            },
        }

    def _build_prompt(self, job: JobSpec, local: PriceRange) -> str:
        """
        Structured job context and the demanded reply shape.

        The local range is labelled as a reference. The model may answer with
        a price range or with measurements (metrics) — measurements are priced
        here, with the tariff's own rates.
        """
        link_refs = [ref for ref in job.attachments if not _inline_image(ref)]
        photo_note = "%d photo(s) attached inline." % min(
            len(job.attachments) - len(link_refs), MAX_INLINE_IMAGES)
        if link_refs:
            photo_note += "\nPhoto links:\n" + "\n".join("  - %s" % ref for ref in link_refs[:10])

        prompt = """You are a senior welding estimator for a mobile welding crew (prices in %s).

TASK: Estimate the price of the welding job below.

JOB PARAMETERS:
  Work type: %s
  Work scope: %s
  Material: %s
  Thickness: %s
  Joint type: %s
  Position: %s
  Conditions: %s
  Material supplied by: %s
  Deadline: %s
  Extra services: %s
  Volume (customer's words): %s

CUSTOMER DESCRIPTION AND CLARIFICATIONS:
%s

PHOTOS:
%s

REFERENCE — base tariff for this job: %d to %d %s.
This is a reference only, not a target. Disagree if the photos or the
description show the job is harder or easier than the form suggests.

RULES:
  1. Price per meter of seam must stay realistic for the material.
  2. Small jobs still pay a minimum call-out.
  3. Write reason_short (one sentence) and reason_long (a short commercial
     proposal) in Russian for the customer.
  4. If you cannot judge the price directly, return measurements instead
     (see METRICS shape) and the system will price them.

Return ONLY valid JSON, one of:
PRICE shape:
{"min": 0, "max": 0, "reason_short": "", "reason_long": "", "warnings": []}
METRICS shape:
{"metrics": {"weld_length_m": {"simple": 0.0, "medium": 0.0, "complex": 0.0},
             "labor_hours": {"prep": 0.0, "weld": 0.0, "finish": 0.0},
             "difficulty": 1.0, "risk": "low|medium|high"},
 "reason_short": "", "reason_long": "", "warnings": []}""" % (
            self.tariff.currency,
            job.work_type,
            job.work_scope or "not specified",
            job.material,
            job.thickness,
            job.weld_type,
            job.position,
            ", ".join(job.conditions) or "none",
            job.material_owner,
            job.deadline,
            ", ".join(job.extra_services) or "none",
            job.volume_text or "not specified",
            "\n".join(t for t in (job.description, job.free_text) if t) or "(none)",
            photo_note,
            local.min, local.max, self.tariff.currency,
        )
        return prompt

    def _parse_response(self, body: str) -> ExternalOutcome:
        """Gemini envelope -> candidate text -> JSON object -> validated numbers."""
        try:
            result = json.loads(body)
        except (TypeError, ValueError) as e:
            return EstimateFailure(FailureReason.BAD_ENVELOPE, f"response is not JSON: {e}")

        try:
            parts = result["candidates"][0]["content"]["parts"]
            text = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))
        except (KeyError, IndexError, TypeError):
            return EstimateFailure(FailureReason.EMPTY_CONTENT, "no candidate content")
        if not text.strip():
            return EstimateFailure(FailureReason.EMPTY_CONTENT, "candidate text is empty")

        envelope = extract_json_object(text)
        if not envelope.ok:
            return EstimateFailure(FailureReason.MALFORMED_JSON, envelope.error)

        data = envelope.data
        # If the model wrapped the object, unwrap it
        if len(data) == 1:
            inner = next(iter(data.values()))
            if isinstance(inner, dict) and ("min" in inner or "metrics" in inner):
                data = inner

        if isinstance(data.get("metrics"), dict):
            return self._price_from_metrics(data)
        return self._price_from_range(data)

    def _price_from_range(self, data: dict) -> ExternalOutcome:
        price_min = _positive(_first(data, "min", "price_min", "aiMin"))
        price_max = _positive(_first(data, "max", "price_max", "aiMax"))
        if price_min is None or price_max is None:
            return EstimateFailure(
                FailureReason.INVALID_NUMBERS,
                "min/max missing, non-finite or not positive: %r / %r" % (
                    _first(data, "min", "price_min", "aiMin"),
                    _first(data, "max", "price_max", "aiMax"),
                ),
            )
        return ExternalResult(
            min=price_min,
            max=price_max,
            reason_short=str(_first(data, "reason_short", "reasonShort") or ""),
            reason_long=_first(data, "reason_long", "reasonLong"),
            warnings=_model_warnings(data),
            source="price",
        )

    def _price_from_metrics(self, data: dict) -> ExternalOutcome:
        """
        Price model-reported measurements with the tariff's metric rates.

        point = (sum(length_by_class x rate) + sum(hours_by_phase x rate))
                x difficulty x (1 + risk margin)
        """
        t = self.tariff
        metrics = data["metrics"]

        lengths = metrics.get("weld_length_m") or {}
        hours = metrics.get("labor_hours") or {}
        if not isinstance(lengths, dict) or not isinstance(hours, dict):
            return EstimateFailure(FailureReason.INVALID_NUMBERS, "metrics breakdown is not an object")

        weld_cost = 0.0
        total_length = 0.0
        for cls in DIFFICULTY_CLASSES:
            value = _non_negative(lengths.get(cls))
            if value is None:
                return EstimateFailure(FailureReason.INVALID_NUMBERS, f"weld_length_m.{cls} invalid")
            total_length += value
            weld_cost += value * t.metric_weld_rate_per_m.get(cls, t.weld_rate_per_m)

        labor_cost = 0.0
        for phase in LABOR_PHASES:
            value = _non_negative(hours.get(phase))
            if value is None:
                return EstimateFailure(FailureReason.INVALID_NUMBERS, f"labor_hours.{phase} invalid")
            labor_cost += value * t.metric_hour_rates.get(phase, 0.0)

        difficulty = _positive(metrics.get("difficulty"))
        if total_length <= 0 or difficulty is None:
            return EstimateFailure(
                FailureReason.INVALID_NUMBERS,
                "weld length total and difficulty must be positive",
            )

        risk = str(metrics.get("risk") or "medium").lower()
        point = (weld_cost + labor_cost) * difficulty * (1.0 + t.metric_risk_margin.get(risk, 0.0))

        return ExternalResult(
            min=point * t.metric_band_low,
            max=point * t.metric_band_high,
            reason_short=str(_first(data, "reason_short", "reasonShort")
                             or "Priced from measurements reported by the model"),
            reason_long=_first(data, "reason_long", "reasonLong"),
            warnings=_model_warnings(data),
            source="metrics",
            metrics={
                "weld_length_m": round(total_length, 2),
                "difficulty": difficulty,
                "risk": risk,
            },
        )


def _model_warnings(data: dict) -> tuple:
    warnings = data.get("warnings") or []
    if not isinstance(warnings, list):
        return ()
    return tuple(str(w) for w in warnings[:MAX_MODEL_WARNINGS] if w)


def _inline_image(ref) -> Optional[dict]:
    """'data:image/png;base64,....' -> Gemini inline_data dict, else None."""
    ref = str(ref or "")
    if not ref.startswith("data:") or ";base64," not in ref:
        return None
    header, data = ref.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0] or "image/jpeg"
    if not mime_type.startswith("image/") or not data:
        return None
    return {"mime_type": mime_type, "data": data}
