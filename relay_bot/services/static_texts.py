# relay_bot/services/static_texts.py
"""
Приветствие и периодическое уведомление, загружаемые по внешним URL.
"""

import asyncio
import logging
import time

import aiohttp
from aiogram import Bot

from relay_bot import texts
from relay_bot.config import (
    NOTIFICATION_ENABLED,
    NOTIFICATION_URL,
    NOTIFY_INTERVAL_SECONDS,
    START_MESSAGE_URL,
)
from relay_bot.services import kv_store


logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10


class StaticTextError(Exception):
    """Не удалось получить текст по URL."""


async def fetch_text(url: str) -> str:
    """Загружает текстовый файл; статус, отличный от 200, считается ошибкой."""
    timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(url) as resp:
            if resp.status != 200:
                raise StaticTextError(f"{url} вернул статус {resp.status}")
            return await resp.text()


async def send_start_message(bot: Bot, chat_id: int) -> None:
    """Отправляет приветствие; при ошибке загрузки - стандартный текст."""
    try:
        text = await fetch_text(START_MESSAGE_URL)
    except (aiohttp.ClientError, StaticTextError, asyncio.TimeoutError) as e:
        logger.warning(f"⚠️ [START] Не удалось загрузить приветствие: {e}")
        text = texts.DEFAULT_START_MESSAGE

    await bot.send_message(chat_id=chat_id, text=text or texts.DEFAULT_START_MESSAGE)


def _now_ms() -> int:
    return int(time.time() * 1000)


async def maybe_send_notification(bot: Bot, chat_id: int) -> bool:
    """
    Отправляет уведомление не чаще раза в NOTIFY_INTERVAL_SECONDS на чат.

    Любая ошибка только логируется.

    Returns:
        True, если уведомление отправлено
    """
    if not NOTIFICATION_ENABLED:
        return False

    key = kv_store.NOTIFY_LAST_KEY.format(chat_id=chat_id)
    try:
        last_notify = await kv_store.get_int(key)
        now = _now_ms()
        if last_notify is not None and now - last_notify <= NOTIFY_INTERVAL_SECONDS * 1000:
            return False

        text = await fetch_text(NOTIFICATION_URL)
        await bot.send_message(chat_id=chat_id, text=text)
        await kv_store.client().set(key, str(now))
    except Exception as e:
        logger.warning(f"⚠️ [NOTIFY] Уведомление для chat_id={chat_id} пропущено: {e}")
        return False

    logger.debug(f"🔔 [NOTIFY] Уведомление отправлено: chat_id={chat_id}")
    return True
