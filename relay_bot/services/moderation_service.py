# relay_bot/services/moderation_service.py
"""
Блокировка гостей администратором.

Команды /block, /unblock, /checkblock админ отправляет ответом на
пересланное сообщение гостя; гость определяется по связке msg-map.
Флаг блокировки хранится без срока жизни.
"""

import logging
from typing import Optional

from aiogram import Bot

from relay_bot import texts
from relay_bot.config import ADMIN_UID
from relay_bot.services import kv_store
from relay_bot.services.relay_service import resolve_guest_chat


logger = logging.getLogger(__name__)


async def is_blocked(chat_id: int) -> bool:
    return bool(await kv_store.get_json(kv_store.BLOCKED_KEY.format(chat_id=chat_id)))


async def set_blocked(chat_id: int, blocked: bool) -> None:
    await kv_store.set_json(kv_store.BLOCKED_KEY.format(chat_id=chat_id), blocked)


async def _resolve_or_report(bot: Bot, reply_to_message_id: int) -> Optional[int]:
    guest_chat_id = await resolve_guest_chat(reply_to_message_id)
    if guest_chat_id is None:
        logger.info(
            f"ℹ️ [MODERATION] Нет связки для reply_to_message_id={reply_to_message_id}"
        )
        await bot.send_message(chat_id=ADMIN_UID, text=texts.ROUTE_UNKNOWN)
    return guest_chat_id


async def block_guest(bot: Bot, reply_to_message_id: int) -> bool:
    """
    Блокирует гостя, которому принадлежит пересланное сообщение.

    Returns:
        True, если флаг блокировки установлен
    """
    guest_chat_id = await _resolve_or_report(bot, reply_to_message_id)
    if guest_chat_id is None:
        return False

    if guest_chat_id == ADMIN_UID:
        logger.warning(f"🚫 [MODERATION] Попытка заблокировать администратора {ADMIN_UID}")
        await bot.send_message(chat_id=ADMIN_UID, text=texts.CANNOT_BLOCK_SELF)
        return False

    await set_blocked(guest_chat_id, True)
    logger.info(f"🔒 [MODERATION] Гость заблокирован: chat_id={guest_chat_id}")
    await bot.send_message(chat_id=ADMIN_UID, text=texts.BLOCK_DONE.format(chat_id=guest_chat_id))
    return True


async def unblock_guest(bot: Bot, reply_to_message_id: int) -> bool:
    guest_chat_id = await _resolve_or_report(bot, reply_to_message_id)
    if guest_chat_id is None:
        return False

    await set_blocked(guest_chat_id, False)
    logger.info(f"🔓 [MODERATION] Гость разблокирован: chat_id={guest_chat_id}")
    await bot.send_message(chat_id=ADMIN_UID, text=texts.UNBLOCK_DONE.format(chat_id=guest_chat_id))
    return True


async def check_block(bot: Bot, reply_to_message_id: int) -> Optional[bool]:
    """
    Сообщает администратору статус блокировки гостя.

    Returns:
        Текущее значение флага или None, если гость не найден
    """
    guest_chat_id = await _resolve_or_report(bot, reply_to_message_id)
    if guest_chat_id is None:
        return None

    blocked = await is_blocked(guest_chat_id)
    await bot.send_message(
        chat_id=ADMIN_UID,
        text=texts.BLOCK_STATUS.format(chat_id=guest_chat_id, status="да" if blocked else "нет"),
    )
    return blocked
