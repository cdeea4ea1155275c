from redis.asyncio import Redis
import logging

from relay_bot.config import REDIS_URL

logger = logging.getLogger(__name__)

# Единственный клиент Redis на процесс; тесты подменяют его через monkeypatch
redis = Redis.from_url(REDIS_URL, decode_responses=True)


async def test_connection():
    try:
        await redis.ping()
        logger.info(f"✅ Соединение с Redis ({REDIS_URL}) установлено")
    except Exception as e:
        logger.error(f"❌ Ошибка подключения к Redis ({REDIS_URL}): {e}")
        raise
