from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..lifecycle import InvalidTransition
from ..pipeline import estimate_job, recheck_estimate
from ..pricing.registry import active_tariff
from ..quote_assembler import QuoteAssembler
from ..schemas import OrderRequest, Quote, QuoteSummary, StatusUpdate
from ..store import QuoteNotFound, SqlQuoteStore

router = APIRouter(prefix="/quotes", tags=["quotes"])


def get_assembler(db: Session = Depends(get_db)) -> QuoteAssembler:
    return QuoteAssembler(SqlQuoteStore(db))


@router.post("/", response_model=Quote)
async def place_order(
    request: OrderRequest,
    background_tasks: BackgroundTasks,
    assembler: QuoteAssembler = Depends(get_assembler),
):
    """
    Customer confirmed the estimate — persist the order and notify the crew.
    If no estimate is sent, the job is priced first. A supplied estimate is
    re-checked against the tariff: the client never sets the stored price.
    """
    tariff = active_tariff()
    if request.estimate is None:
        _, estimate = await estimate_job(request.job, tariff)
    else:
        estimate = recheck_estimate(request.job, request.estimate, tariff)

    quote_id = assembler.order(request.job, estimate, schedule=background_tasks.add_task)
    return assembler.get_quote(quote_id)


@router.get("/", response_model=List[QuoteSummary])
def list_quotes(skip: int = 0, limit: int = 50,
                assembler: QuoteAssembler = Depends(get_assembler)):
    return assembler.list_quotes(skip=skip, limit=limit)


@router.get("/{quote_id}", response_model=Quote)
def get_quote(quote_id: str, assembler: QuoteAssembler = Depends(get_assembler)):
    try:
        return assembler.get_quote(quote_id)
    except QuoteNotFound:
        raise HTTPException(status_code=404, detail="Quote not found")


@router.patch("/{quote_id}/status", response_model=Quote)
def update_status(quote_id: str, update: StatusUpdate,
                  assembler: QuoteAssembler = Depends(get_assembler)):
    try:
        return assembler.update_status(quote_id, update.status)
    except QuoteNotFound:
        raise HTTPException(status_code=404, detail="Quote not found")
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
