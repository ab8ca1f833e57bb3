"""
Quote storage — SQLAlchemy implementation of the storage collaborator.

createQuote / listQuotes / getQuote / updateStatus. Database errors are not
caught here: an order that failed to persist must not look confirmed.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from . import models
from .lifecycle import QuoteStatus
from .schemas import EstimateResult, JobSpec, PriceRange, Quote, QuoteSummary


class QuoteNotFound(LookupError):
    def __init__(self, quote_id: str):
        self.quote_id = quote_id
        super().__init__(f"Quote not found: {quote_id}")


class SqlQuoteStore:

    def __init__(self, db: Session):
        self.db = db

    def create_quote(self, job: JobSpec, estimate: EstimateResult,
                     status: QuoteStatus = QuoteStatus.ORDERED) -> str:
        quote_id = str(uuid.uuid4())
        row = models.Quote(
            id=quote_id,
            status=QuoteStatus(status).value,
            description=job.description or job.free_text,
            work_type=job.work_type,
            material=job.material,
            deadline=job.deadline,
            price_min=estimate.range.min,
            price_max=estimate.range.max,
            method=estimate.method,
            job_json=job.model_dump(mode="json"),
            estimate_json=estimate.model_dump(mode="json"),
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.commit()
        return quote_id

    def list_quotes(self, skip: int = 0, limit: int = 50) -> List[QuoteSummary]:
        rows = self.db.query(models.Quote).order_by(
            models.Quote.created_at.desc()
        ).offset(skip).limit(limit).all()
        return [_row_to_summary(row) for row in rows]

    def get_quote(self, quote_id: str) -> Quote:
        return _row_to_quote(self._get_row(quote_id))

    def update_status(self, quote_id: str, status: QuoteStatus) -> None:
        row = self._get_row(quote_id)
        row.status = QuoteStatus(status).value
        self.db.commit()

    def _get_row(self, quote_id: str) -> models.Quote:
        row = self.db.query(models.Quote).filter(models.Quote.id == quote_id).first()
        if row is None:
            raise QuoteNotFound(quote_id)
        return row


def _row_to_summary(row: models.Quote) -> QuoteSummary:
    return QuoteSummary(
        id=row.id,
        created_at=row.created_at,
        status=row.status,
        description=row.description or "",
        range=PriceRange(min=row.price_min, max=row.price_max),
        method=row.method,
    )


def _row_to_quote(row: models.Quote) -> Quote:
    return Quote(
        id=row.id,
        created_at=row.created_at,
        status=row.status,
        job=JobSpec.model_validate(row.job_json),
        estimate=EstimateResult.model_validate(row.estimate_json),
    )
