"""
Quote assembler — turns a JobSpec and its EstimateResult into a Quote.

draft():  unpersisted quote shown with the estimate
order():  customer confirmed — persist with status 'ordered', then notify
update_status(): operator transitions, validated by the lifecycle

Persistence errors propagate. Notification errors are logged and dropped.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from .lifecycle import QuoteStatus, check_transition
from .notifier import TelegramNotifier
from .schemas import EstimateResult, JobSpec, Quote

logger = logging.getLogger(__name__)


def key_fields(job: JobSpec, status: QuoteStatus) -> dict:
    """The fields an operator needs to triage a new order at a glance."""
    return {
        "description": job.description or job.free_text,
        "work_type": job.work_type,
        "material": job.material,
        "deadline": job.deadline,
        "status": QuoteStatus(status).value,
    }


class QuoteAssembler:

    def __init__(self, store, notifier: Optional[TelegramNotifier] = None):
        self.store = store
        self.notifier = notifier or TelegramNotifier()
        # Notifications started on a running loop; held until they finish
        self.pending = set()

    def draft(self, job: JobSpec, estimate: EstimateResult) -> Quote:
        return Quote(
            id=None,
            created_at=datetime.utcnow(),
            status=QuoteStatus.DRAFT.value,
            job=job,
            estimate=estimate,
        )

    def order(self, job: JobSpec, estimate: EstimateResult,
              schedule: Optional[Callable] = None) -> str:
        """
        Persist a confirmed order and fire the notification.

        schedule(fn, *args) runs the notification in the background
        (FastAPI's BackgroundTasks.add_task). Without it the notification
        runs as a task on the running event loop, or inline when there is
        none. It never raises into the caller.
        """
        quote_id = self.store.create_quote(job, estimate, QuoteStatus.ORDERED)
        logger.info("Order %s persisted (%s, %d-%d)",
                    quote_id, estimate.method, estimate.range.min, estimate.range.max)

        fields = key_fields(job, QuoteStatus.ORDERED)
        if schedule is not None:
            schedule(self.notify_safely, quote_id, fields, estimate)
        else:
            self._run_notification(quote_id, fields, estimate)
        return quote_id

    def _run_notification(self, quote_id: str, fields: dict, estimate: EstimateResult) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.notify_safely(quote_id, fields, estimate))
            return
        task = loop.create_task(self.notify_safely(quote_id, fields, estimate))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)

    async def notify_safely(self, quote_id: str, fields: dict, estimate: EstimateResult) -> None:
        try:
            await self.notifier.notify(quote_id, fields, estimate)
        except Exception as e:
            # Never let a notification failure touch the order
            logger.warning("Notification for %s failed: %s", quote_id, e)

    def list_quotes(self, skip: int = 0, limit: int = 50):
        return self.store.list_quotes(skip=skip, limit=limit)

    def get_quote(self, quote_id: str) -> Quote:
        return self.store.get_quote(quote_id)

    def update_status(self, quote_id: str, status) -> Quote:
        """Validated status transition. Never recomputes the price."""
        current = self.store.get_quote(quote_id)
        target = check_transition(current.status, status)
        self.store.update_status(quote_id, target)
        logger.info("Quote %s: %s -> %s", quote_id, current.status, target.value)
        return self.store.get_quote(quote_id)
