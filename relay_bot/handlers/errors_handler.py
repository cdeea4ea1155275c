# relay_bot/handlers/errors_handler.py
"""
Последний рубеж обработки ошибок.

Webhook уже ответил Telegram 200, поэтому исключение только логируется
и апдейт считается обработанным.
"""

import logging

from aiogram import Router
from aiogram.types import ErrorEvent

logger = logging.getLogger(__name__)


async def on_error(event: ErrorEvent) -> bool:
    update_id = event.update.update_id if event.update else None
    logger.error(
        f"❌ [ERRORS] Ошибка при обработке update_id={update_id}: {event.exception!r}",
        exc_info=event.exception,
    )
    return True


def create_errors_router() -> Router:
    router = Router(name="errors")
    router.errors.register(on_error)
    return router
