# middleware/structured_logging.py
"""
Middleware для структурированного логирования апдейтов от Telegram
"""
import logging
from typing import Callable, Dict, Any, Awaitable, Optional
from aiogram import BaseMiddleware
from aiogram.types import Update, Message

logger = logging.getLogger(__name__)


def describe_message(msg: Message, kind: str, update_id: int) -> Dict[str, Any]:
    """Собирает основные поля сообщения для лога (текст обрезается до 100 символов)"""
    return {
        "update_id": update_id,
        "type": kind,
        "message_id": msg.message_id,
        "from": {
            "id": msg.from_user.id if msg.from_user else None,
            "username": msg.from_user.username if msg.from_user else None,
            "first_name": msg.from_user.first_name if msg.from_user else None,
        },
        "chat": {
            "id": msg.chat.id,
            "type": msg.chat.type,
        },
        "reply_to": msg.reply_to_message.message_id if msg.reply_to_message else None,
        "text": msg.text[:100] if msg.text else None,
    }


def describe_update(event: Update) -> Dict[str, Any]:
    if event.message:
        return describe_message(event.message, "message", event.update_id)
    if event.edited_message:
        return describe_message(event.edited_message, "edited_message", event.update_id)
    return {"update_id": event.update_id, "type": "unknown"}


def format_update_log(update_data: Dict[str, Any]) -> str:
    """Форматирует данные апдейта в многострочный лог, пропуская пустые поля"""
    log_parts = [f"📩 === {str(update_data['type']).upper()} ==="]
    for key, value in update_data.items():
        if key == "type":
            continue
        if isinstance(value, dict):
            sub = [f"      {sub_key}: {sub_value}" for sub_key, sub_value in value.items() if sub_value]
            if sub:
                log_parts.append(f"   {key}:")
                log_parts.extend(sub)
        elif value:
            log_parts.append(f"   {key}: {value}")
    return "\n".join(log_parts)


class StructuredLoggingMiddleware(BaseMiddleware):
    """Middleware для структурированного логирования апдейтов"""

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any]
    ) -> Optional[Any]:
        logger.info(format_update_log(describe_update(event)))

        try:
            result = await handler(event, data)
        except Exception as e:
            logger.error(f"❌ Ошибка обработки update id={event.update_id}: {e}")
            raise

        logger.debug(f"✅ Update id={event.update_id} обработан")
        return result
