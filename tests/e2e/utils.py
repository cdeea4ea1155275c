import asyncio
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from aiogram import Bot
from aiogram.client.session.base import BaseSession
from aiogram.client.telegram import TelegramAPIServer
from aiogram.methods import TelegramMethod
from aiogram.types import Message, MessageId


class RecordingSession(BaseSession):
    """Сессия без сети: запоминает вызовы Bot API и отвечает правдоподобными объектами."""

    def __init__(self, bot_id: int = 5050) -> None:
        super().__init__(api=TelegramAPIServer.from_base("https://api.test"))
        self.bot_id = bot_id
        self.calls: List[Tuple[str, TelegramMethod[Any]]] = []
        self.failures: Dict[str, Exception] = {}
        self._message_ids = itertools.count(9001)

    def calls_of(self, method_name: str) -> List[TelegramMethod[Any]]:
        return [method for name, method in self.calls if name == method_name]

    def sent_texts(self, chat_id: Optional[int] = None) -> List[str]:
        return [
            method.text
            for method in self.calls_of("sendMessage")
            if chat_id is None or method.chat_id == chat_id
        ]

    def _message(self, chat_id: Any, text: Optional[str] = None) -> Message:
        payload = {
            "message_id": next(self._message_ids),
            "date": datetime.now(timezone.utc),
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": self.bot_id, "is_bot": True, "first_name": "RelayBot"},
        }
        if text is not None:
            payload["text"] = text
        return Message.model_validate(payload)

    async def make_request(
        self,
        bot: Bot,
        method: TelegramMethod[Any],
        timeout: Optional[int] = None,
    ) -> Any:
        method_name = method.__api_method__
        self.calls.append((method_name, method))
        if method_name in self.failures:
            raise self.failures[method_name]
        if method_name == "sendMessage":
            return self._message(method.chat_id, method.text)
        if method_name == "forwardMessage":
            return self._message(method.chat_id)
        if method_name == "copyMessage":
            return MessageId(message_id=next(self._message_ids))
        return True

    async def close(self) -> None:
        pass

    async def stream_content(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError


def build_bot(session: RecordingSession) -> Bot:
    return Bot(token="123456:TEST-TOKEN", session=session)


async def wait_for_calls(session: RecordingSession, count: int = 1, timeout: float = 2.0) -> None:
    """Ждёт, пока фоновая обработка апдейта сделает хотя бы count вызовов API."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while len(session.calls) < count and loop.time() < deadline:
        await asyncio.sleep(0.01)
