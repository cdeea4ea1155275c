# ============================================================
# PRIVATE MESSAGE COORDINATOR - ЕДИНАЯ ТОЧКА ВХОДА
# ============================================================
# Все сообщения боту (и от гостей, и от администратора) приходят
# сюда и передаются в route_message. Отредактированные сообщения
# обрабатываются так же, как новые.
# ============================================================

import logging

from aiogram import Bot, Router
from aiogram.types import Message

from relay_bot.services.dispatcher import route_message

# Создаём логгер для этого модуля
logger = logging.getLogger(__name__)


async def on_message(message: Message, bot: Bot):
    branch = await route_message(bot, message)
    logger.debug(f"[COORDINATOR] message_id={message.message_id} -> {branch}")


async def on_edited_message(edited_message: Message, bot: Bot):
    branch = await route_message(bot, edited_message)
    logger.debug(f"[COORDINATOR] edited message_id={edited_message.message_id} -> {branch}")


def create_private_message_coordinator_router() -> Router:
    """Создаёт роутер координатора (новый экземпляр на каждый Dispatcher)"""
    router = Router(name="private_message_coordinator")
    router.message.register(on_message)
    router.edited_message.register(on_edited_message)
    return router
