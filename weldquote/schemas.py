from pydantic import BaseModel, field_validator, model_validator
from typing import Optional, List, Tuple
from datetime import datetime


class JobSpec(BaseModel):
    """
    One estimation request, as the intake form submits it.

    Enumerated fields are plain strings: an unknown value degrades to the
    tariff's fallback instead of rejecting the request.
    """
    work_type: str = "welding"
    work_scope: Optional[str] = None
    material: str = "steel"
    thickness: str = "unknown"
    weld_type: str = "butt"
    position: str = "flat"
    conditions: Tuple[str, ...] = ()
    material_owner: str = "client"
    deadline: str = "normal"
    extra_services: Tuple[str, ...] = ()
    volume_text: str = ""
    free_text: str = ""
    description: str = ""
    attachments: Tuple[str, ...] = ()

    class Config:
        frozen = True

    @field_validator("*", mode="before")
    @classmethod
    def degrade_to_default(cls, value, info):
        """null -> field default, numbers -> text. Never rejects a form."""
        default = cls.model_fields[info.field_name].default
        if isinstance(default, tuple):
            if value is None:
                return ()
            if isinstance(value, (list, tuple, set)):
                return tuple(str(v) for v in value if isinstance(v, (str, int, float)))
            if isinstance(value, (str, int, float)):
                return (str(value),) if str(value).strip() else ()
            return ()
        if value is None or isinstance(value, (dict, list, tuple, set)):
            return default
        if not isinstance(value, str):
            return str(value)
        return value


class PriceRange(BaseModel):
    min: int
    max: int

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min < 0 or self.max < 0:
            raise ValueError("price bounds must be non-negative")
        if self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class EstimateResult(BaseModel):
    range: PriceRange
    method: str  # 'local' | 'external' | 'external_corrected'
    explanation_short: str = ""
    explanation_long: Optional[str] = None
    warnings: List[str] = []

    class Config:
        frozen = True


class EstimateResponse(BaseModel):
    job: JobSpec
    estimate: EstimateResult
    local_range: PriceRange
    tariff_version: str
    status: str = "draft"


class OrderRequest(BaseModel):
    job: JobSpec
    estimate: Optional[EstimateResult] = None


class StatusUpdate(BaseModel):
    status: str


class QuoteSummary(BaseModel):
    id: str
    created_at: datetime
    status: str
    description: str = ""
    range: PriceRange
    method: str

    class Config:
        from_attributes = True


class Quote(BaseModel):
    id: Optional[str] = None
    created_at: datetime
    status: str
    job: JobSpec
    estimate: EstimateResult
