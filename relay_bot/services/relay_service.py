# relay_bot/services/relay_service.py
"""
Пересылка сообщений между гостями и администратором.

Гость -> админ: forward_message (сохраняет автора) + запись связки
msg-map-{id пересланного сообщения} -> chat_id гостя.
Админ -> гость: ответ админа на пересланное сообщение копируется
(copy_message) в чат гостя, найденный по связке.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message

from relay_bot.config import ADMIN_UID, ROUTE_MAP_TTL_SECONDS
from relay_bot.services import kv_store


logger = logging.getLogger(__name__)


async def save_route(forwarded_message_id: int, guest_chat_id: int) -> None:
    await kv_store.set_json(
        kv_store.MESSAGE_ROUTE_KEY.format(message_id=forwarded_message_id),
        guest_chat_id,
        ROUTE_MAP_TTL_SECONDS,
    )


async def resolve_guest_chat(message_id: int) -> Optional[int]:
    """Возвращает chat_id гостя по ID пересланного админу сообщения."""
    value = await kv_store.get_json(kv_store.MESSAGE_ROUTE_KEY.format(message_id=message_id))
    return kv_store.parse_int(value)


async def relay_guest_to_admin(bot: Bot, message: Message) -> Optional[int]:
    """
    Пересылает сообщение гостя администратору.

    Returns:
        ID пересланного сообщения в чате админа или None при ошибке API
    """
    guest_chat_id = message.chat.id
    try:
        forwarded = await bot.forward_message(
            chat_id=ADMIN_UID,
            from_chat_id=guest_chat_id,
            message_id=message.message_id,
        )
    except TelegramAPIError as e:
        logger.warning(
            f"⚠️ [RELAY] Не удалось переслать сообщение админу: "
            f"chat_id={guest_chat_id}, message_id={message.message_id}, error={e}"
        )
        return None

    await save_route(forwarded.message_id, guest_chat_id)
    logger.info(
        f"📨 [RELAY] Гость -> админ: chat_id={guest_chat_id}, "
        f"forwarded_message_id={forwarded.message_id}"
    )
    return forwarded.message_id


async def relay_admin_reply_to_guest(bot: Bot, message: Message) -> bool:
    """
    Копирует ответ администратора гостю, которому принадлежит исходное сообщение.

    Returns:
        True, если копия отправлена
    """
    reply_to = message.reply_to_message
    if reply_to is None:
        return False

    guest_chat_id = await resolve_guest_chat(reply_to.message_id)
    if guest_chat_id is None:
        logger.info(
            f"ℹ️ [RELAY] Нет связки для reply_to_message_id={reply_to.message_id} - пропускаем"
        )
        return False

    try:
        await bot.copy_message(
            chat_id=guest_chat_id,
            from_chat_id=message.chat.id,
            message_id=message.message_id,
        )
    except TelegramAPIError as e:
        logger.warning(
            f"⚠️ [RELAY] Не удалось скопировать ответ гостю: chat_id={guest_chat_id}, error={e}"
        )
        return False

    logger.info(f"📤 [RELAY] Админ -> гость: chat_id={guest_chat_id}")
    return True
