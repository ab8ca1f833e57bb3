from fastapi import APIRouter, Depends

from ..catalog import options_payload
from ..pipeline import estimate_job
from ..pricing.registry import active_tariff
from ..quote_assembler import QuoteAssembler
from ..schemas import EstimateResponse, JobSpec
from .quotes import get_assembler

router = APIRouter(tags=["estimate"])


@router.post("/estimate", response_model=EstimateResponse)
async def estimate(job: JobSpec, assembler: QuoteAssembler = Depends(get_assembler)):
    """
    Price a job. Always answers with a range — the external estimator is
    best effort and the base tariff covers for it.
    Does NOT save anything. Use POST /quotes to place the order.
    """
    tariff = active_tariff()
    local, result = await estimate_job(job, tariff)
    draft = assembler.draft(job, result)
    return EstimateResponse(
        job=draft.job,
        estimate=draft.estimate,
        local_range=local,
        tariff_version=tariff.version,
        status=draft.status,
    )


@router.get("/options")
def options():
    """Enumerated form values with their display labels."""
    return options_payload()
