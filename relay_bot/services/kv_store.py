# relay_bot/services/kv_store.py
"""
Типизированный слой доступа к Redis.

Все состояние бота (капча, верификация, блокировки, связки сообщений)
хранится в Redis как отдельные ключи; в памяти процесса между апдейтами
ничего не живёт.
"""

import json
import logging
from typing import Any, Optional

from relay_bot.services import redis_conn


logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# REDIS КЛЮЧИ
# Централизованное определение всех ключей для консистентности
# ═══════════════════════════════════════════════════════════════════════════

# Ожидаемый ответ активной капчи (целое число)
CAPTCHA_ANSWER_KEY = "captcha-answer-{chat_id}"

# Сколько попыток осталось на текущую капчу
CAPTCHA_ATTEMPTS_KEY = "captcha-attempts-{chat_id}"

# Отметка о пройденной капче
VERIFIED_KEY = "verified-{chat_id}"

# Флаг блокировки гостя администратором
BLOCKED_KEY = "isblocked-{chat_id}"

# Пересланное админу сообщение -> чат гостя
MESSAGE_ROUTE_KEY = "msg-map-{message_id}"

# Время последнего периодического уведомления (epoch ms)
NOTIFY_LAST_KEY = "notify-last-{chat_id}"


# ═══════════════════════════════════════════════════════════════════════════
# СРОКИ ЖИЗНИ
# ═══════════════════════════════════════════════════════════════════════════

VERIFIED_TTL_SECONDS = 30 * 24 * 3600
CAPTCHA_EXPIRE_SECONDS = 10 * 60
CAPTCHA_MAX_ATTEMPTS = 3


def client():
    """Текущий клиент Redis (берётся при каждом вызове)."""
    return redis_conn.redis


async def get_json(key: str) -> Any:
    """
    Читает JSON-значение по ключу.

    Повреждённое значение считается отсутствующим, как и пустой ключ.
    """
    raw = await client().get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"⚠️ [KV] Некорректный JSON в ключе {key}: {raw!r}")
        return None


async def set_json(key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
    """Сохраняет значение как JSON; ttl_seconds=None или 0 - без срока жизни."""
    await client().set(key, json.dumps(value), ex=ttl_seconds or None)


async def get_int(key: str) -> Optional[int]:
    raw = await client().get(key)
    return parse_int(raw)


def parse_int(raw: Any) -> Optional[int]:
    """Приводит сырое значение Redis к int, None если это невозможно."""
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
