"""
Order notifications — Telegram message to the crew chat on every new order.

Best effort: a failed notification is logged and dropped. It never blocks
or rolls back the order.
"""

import logging
from typing import Optional

import httpx

from .catalog import get_label
from .config import settings
from .schemas import EstimateResult

logger = logging.getLogger(__name__)

TELEGRAM_URL = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:

    def __init__(self, token: Optional[str] = None, chat_id: Optional[str] = None,
                 timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token = settings.TELEGRAM_TOKEN if token is None else token
        self.chat_id = settings.TELEGRAM_CHAT_ID if chat_id is None else chat_id
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.token and self.chat_id)

    async def notify(self, quote_id: str, key_fields: dict, estimate: EstimateResult) -> bool:
        """Send the order message. Returns True when Telegram accepted it."""
        if not self.configured:
            logger.info("Telegram not configured — skipping notification for %s", quote_id)
            return False

        text = format_order_message(quote_id, key_fields, estimate)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    TELEGRAM_URL.format(token=self.token),
                    json={"chat_id": self.chat_id, "text": text},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("Telegram API error for %s: %s %s",
                           quote_id, e.response.status_code, e.response.text[:200])
            return False
        except httpx.HTTPError as e:
            logger.warning("Telegram notification failed for %s: %s", quote_id, e)
            return False

        logger.info("Order %s notification sent", quote_id)
        return True


def format_order_message(quote_id: str, key_fields: dict, estimate: EstimateResult) -> str:
    method_note = {
        "local": "базовый тариф",
        "external": "подтверждено ИИ",
        "external_corrected": "ИИ, скорректировано по рынку",
    }.get(estimate.method, estimate.method)

    return (
        f"🔧 Новый заказ {settings.COMPANY_NAME}\n\n"
        f"ID: {quote_id}\n"
        f"Тип: {get_label('work_type', key_fields.get('work_type'))}\n"
        f"Материал: {get_label('material', key_fields.get('material'))}\n"
        f"Срок: {get_label('deadline', key_fields.get('deadline'))}\n"
        f"Диапазон: от {estimate.range.min} до {estimate.range.max} ₽ ({method_note})\n"
        f"Статус: {key_fields.get('status', 'ordered')}\n\n"
        f"Описание:\n{key_fields.get('description') or '—'}"
    )
