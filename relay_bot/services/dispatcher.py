# relay_bot/services/dispatcher.py
"""
Маршрутизация входящего сообщения - единственное место ветвления.

Порядок:
1. Нет отправителя или чата - молча пропускаем.
2. /start - приветствие (всегда, даже заблокированным), гостю без
   верификации - новая капча.
3. Администратор: /block, /unblock, /checkblock ответом на сообщение;
   любой другой ответ копируется гостю; прочее игнорируется.
4. Гость: блокировка -> капча -> пересылка админу -> уведомление.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.types import Message

from relay_bot.config import ADMIN_UID, CAPTCHA_ENABLED
from relay_bot import texts
from relay_bot.services import moderation_service, relay_service, static_texts
from relay_bot.services.captcha import evaluate_captcha, is_verified, issue_captcha


logger = logging.getLogger(__name__)

START_COMMAND = "/start"

ADMIN_COMMANDS = {
    "/block": moderation_service.block_guest,
    "/unblock": moderation_service.unblock_guest,
    "/checkblock": moderation_service.check_block,
}


async def route_message(bot: Bot, message: Message) -> Optional[str]:
    """
    Обрабатывает одно сообщение (новое или отредактированное).

    Returns:
        Короткая метка выбранной ветки (для логов и тестов)
    """
    if message.from_user is None or message.chat is None:
        return None

    from_id = message.from_user.id
    chat_id = message.chat.id
    text = message.text or ""

    if text == START_COMMAND:
        await handle_start(bot, from_id, chat_id)
        return "start"

    if from_id == ADMIN_UID:
        return await handle_admin_message(bot, message)

    return await handle_guest_message(bot, message)


async def handle_start(bot: Bot, from_id: int, chat_id: int) -> None:
    await static_texts.send_start_message(bot, chat_id)
    if CAPTCHA_ENABLED and from_id != ADMIN_UID:
        if not await is_verified(chat_id):
            await issue_captcha(bot, chat_id, force_new=True)


async def handle_admin_message(bot: Bot, message: Message) -> str:
    reply_to = message.reply_to_message
    if reply_to is None:
        # Сообщения админа без ответа никуда не уходят
        return "admin_ignored"

    command = ADMIN_COMMANDS.get(message.text or "")
    if command is not None:
        await command(bot, reply_to.message_id)
        return f"admin{message.text.replace('/', '_')}"

    await relay_service.relay_admin_reply_to_guest(bot, message)
    return "admin_reply"


async def handle_guest_message(bot: Bot, message: Message) -> str:
    chat_id = message.chat.id

    if await moderation_service.is_blocked(chat_id):
        logger.info(f"🔒 [DISPATCH] Сообщение от заблокированного гостя: chat_id={chat_id}")
        await bot.send_message(chat_id=chat_id, text=texts.YOU_ARE_BLOCKED)
        return "blocked"

    if CAPTCHA_ENABLED and not await is_verified(chat_id):
        result = await evaluate_captcha(bot, chat_id, message.text)
        if not result.verified:
            return "captcha"

    await relay_service.relay_guest_to_admin(bot, message)
    await static_texts.maybe_send_notification(bot, chat_id)
    return "relayed"
