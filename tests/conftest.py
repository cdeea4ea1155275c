import itertools
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Optional
from unittest.mock import AsyncMock

import pytest

# КРИТИЧНО: Устанавливаем обязательные переменные ДО импорта relay_bot.config,
# иначе конфиг упадёт с "BOT_TOKEN не установлен!"
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("BOT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_UID", "777")
# Не подхватываем локальный .env.dev разработчика
os.environ.setdefault("ENV_PATH", str(Path(__file__).parent / ".env.test-missing"))

# Гарантируем, что пакет relay_bot доступен для импортов из тестов
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aiogram import Bot
from aiogram.types import Message, Update
from fakeredis import aioredis as fakeredis_aioredis

from relay_bot.config import ADMIN_UID
from relay_bot.services import static_texts


@pytest.fixture
async def fake_redis(monkeypatch):
    """Patch project-wide redis client with fakeredis for unit tests."""
    client = fakeredis_aioredis.FakeRedis(decode_responses=True)

    monkeypatch.setattr("relay_bot.services.redis_conn.redis", client)

    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture(autouse=True)
def offline_static_texts(monkeypatch):
    """Без сети: загрузка приветствия/уведомления всегда падает, пока тест не подменит её."""

    async def _offline(url: str) -> str:
        raise static_texts.StaticTextError(f"offline: {url}")

    monkeypatch.setattr(static_texts, "fetch_text", _offline)
    return _offline


@pytest.fixture
def admin_id() -> int:
    return ADMIN_UID


@pytest.fixture
def bot_mock():
    """Async mock for aiogram Bot."""
    forwarded_ids = itertools.count(9001)

    async def _forward(**kwargs):
        return SimpleNamespace(message_id=next(forwarded_ids))

    bot = AsyncMock(spec=Bot)
    bot.send_message = AsyncMock()
    bot.forward_message = AsyncMock(side_effect=_forward)
    bot.copy_message = AsyncMock(return_value=SimpleNamespace(message_id=1))
    bot.set_webhook = AsyncMock(return_value=True)
    bot.delete_webhook = AsyncMock(return_value=True)
    bot.set_my_commands = AsyncMock(return_value=True)
    bot.id = 424242
    return bot


@pytest.fixture
def message_factory() -> Callable[..., Message]:
    """Factory for aiogram Message instances (личные чаты)."""

    def _factory(
        *,
        message_id: int = 1,
        user_id: int = 100,
        chat_id: Optional[int] = None,
        text: Optional[str] = "hello",
        reply_to_message_id: Optional[int] = None,
        first_name: str = "Guest",
    ) -> Message:
        chat_id = user_id if chat_id is None else chat_id
        payload = {
            "message_id": message_id,
            "date": datetime.now(timezone.utc),
            "chat": {"id": chat_id, "type": "private", "first_name": first_name},
            "from": {"id": user_id, "is_bot": False, "first_name": first_name},
        }
        if text is not None:
            payload["text"] = text
        if reply_to_message_id is not None:
            payload["reply_to_message"] = {
                "message_id": reply_to_message_id,
                "date": datetime.now(timezone.utc),
                "chat": {"id": chat_id, "type": "private", "first_name": first_name},
                "text": "forwarded",
            }
        return Message.model_validate(payload)

    return _factory


@pytest.fixture
def update_factory(message_factory) -> Callable[..., Update]:
    """Factory for aiogram Update objects."""
    update_ids = itertools.count(1)

    def _factory(message: Message = None, edited: bool = False) -> Update:
        if message is None:
            message = message_factory()
        field = "edited_message" if edited else "message"
        payload = {"update_id": next(update_ids), field: message.model_dump(mode="json", by_alias=True, exclude_none=True)}
        return Update.model_validate(payload)

    return _factory


@pytest.fixture
def sent_texts():
    """Тексты всех send_message мока (опционально только в заданный чат)."""

    def _collect(bot, chat_id: Optional[int] = None):
        return [
            call.kwargs["text"]
            for call in bot.send_message.await_args_list
            if chat_id is None or call.kwargs["chat_id"] == chat_id
        ]

    return _collect
