# relay_bot/services/captcha/flow_service.py
"""
Основная логика капчи: выдача примера и проверка ответа.

Каждый вызов issue_captcha / evaluate_captcha отправляет пользователю
ровно одно сообщение (кроме гонки с уже пройденной проверкой, см.
evaluate_captcha).
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from aiogram import Bot
from redis.exceptions import WatchError

from relay_bot import texts
from relay_bot.services import kv_store
from relay_bot.services.captcha.generator import generate_captcha
from relay_bot.services.captcha.state_service import (
    CaptchaState,
    load_captcha_snapshot,
)


logger = logging.getLogger(__name__)

# Команда гостя для смены примера
CAPTCHA_COMMAND = "/captcha"


@dataclass
class CaptchaResult:
    verified: bool
    reason: str = ""


def _keys(chat_id: int):
    return (
        kv_store.CAPTCHA_ANSWER_KEY.format(chat_id=chat_id),
        kv_store.CAPTCHA_ATTEMPTS_KEY.format(chat_id=chat_id),
    )


def parse_answer(text: str) -> Optional[float]:
    """
    Разбирает ответ пользователя как конечное число.

    Returns:
        Число или None, если текст не является конечным числом
    """
    if not isinstance(text, str):
        return None
    # float() понимает "8_0" и не-ASCII цифры, такие ответы числом не считаем
    if not text.isascii() or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


async def _store_new_captcha(chat_id: int, answer: int) -> None:
    """Перезаписывает ответ и сбрасывает счётчик попыток одной транзакцией."""
    answer_key, attempts_key = _keys(chat_id)
    async with kv_store.client().pipeline(transaction=True) as pipe:
        pipe.set(answer_key, answer, ex=kv_store.CAPTCHA_EXPIRE_SECONDS)
        pipe.set(attempts_key, kv_store.CAPTCHA_MAX_ATTEMPTS, ex=kv_store.CAPTCHA_EXPIRE_SECONDS)
        await pipe.execute()


def _attempts_ttl_kwargs(answer_ttl_ms: int) -> dict:
    """Срок жизни счётчика попыток = оставшийся срок жизни капчи."""
    if answer_ttl_ms > 0:
        return {"px": answer_ttl_ms}
    return {"ex": kv_store.CAPTCHA_EXPIRE_SECONDS}


async def _restore_attempts(chat_id: int) -> None:
    """Восстанавливает потерянный счётчик попыток, не продлевая капчу."""
    answer_key, attempts_key = _keys(chat_id)
    redis = kv_store.client()
    answer_ttl_ms = await redis.pttl(answer_key)
    if answer_ttl_ms == -2:
        return
    await redis.set(
        attempts_key,
        kv_store.CAPTCHA_MAX_ATTEMPTS,
        nx=True,
        **_attempts_ttl_kwargs(answer_ttl_ms),
    )


async def issue_captcha(
    bot: Bot,
    chat_id: int,
    force_new: bool = False,
    notice: Optional[str] = None,
) -> None:
    """
    Выдаёт пользователю капчу.

    Новый пример создаётся, если force_new или активной капчи нет.
    Иначе пользователю напоминают о текущем примере, состояние не меняется
    (кроме восстановления потерянного счётчика попыток).

    Args:
        bot: Экземпляр бота
        chat_id: ID чата гостя
        force_new: Заменить текущую капчу новой
        notice: Текст, который добавляется перед вопросом
    """
    answer_key, attempts_key = _keys(chat_id)
    redis = kv_store.client()

    captcha = generate_captcha()
    if force_new:
        await _store_new_captcha(chat_id, captcha.answer)
        created = True
    else:
        # NX: при гонке двух апдейтов капчу создаст только один из них
        created = bool(
            await redis.set(answer_key, captcha.answer, ex=kv_store.CAPTCHA_EXPIRE_SECONDS, nx=True)
        )
        if created:
            await redis.set(
                attempts_key, kv_store.CAPTCHA_MAX_ATTEMPTS, ex=kv_store.CAPTCHA_EXPIRE_SECONDS
            )

    if created:
        logger.info(f"🧩 [CAPTCHA] Новая капча: chat_id={chat_id}, force_new={force_new}")
        text = texts.CAPTCHA_PROMPT.format(question=captcha.question)
        if notice:
            text = f"{notice}\n\n{text}"
        await bot.send_message(chat_id=chat_id, text=text)
        return

    await _restore_attempts(chat_id)
    logger.debug(f"⏳ [CAPTCHA] Напоминание о текущей капче: chat_id={chat_id}")
    await bot.send_message(chat_id=chat_id, text=texts.CAPTCHA_REMINDER)


async def _mark_verified(chat_id: int) -> None:
    """Ставит отметку о верификации и удаляет текущую капчу одной транзакцией."""
    answer_key, attempts_key = _keys(chat_id)
    async with kv_store.client().pipeline(transaction=True) as pipe:
        pipe.set(
            kv_store.VERIFIED_KEY.format(chat_id=chat_id),
            "true",
            ex=kv_store.VERIFIED_TTL_SECONDS,
        )
        pipe.delete(answer_key, attempts_key)
        await pipe.execute()


async def _consume_attempt(chat_id: int, expected_answer: int) -> Optional[int]:
    """
    Списывает одну попытку у капчи с ответом expected_answer.

    Ключ ответа под WATCH: если капчу успели заменить или удалить, попытка
    не списывается. Потерянный счётчик создаётся со сроком жизни капчи.

    Returns:
        Остаток попыток (0 - попытки только что закончились) или None,
        если ответ относится к уже неактуальной капче
    """
    answer_key, attempts_key = _keys(chat_id)
    async with kv_store.client().pipeline(transaction=True) as pipe:
        try:
            await pipe.watch(answer_key)
            if kv_store.parse_int(await pipe.get(answer_key)) != expected_answer:
                return None
            answer_ttl_ms = await pipe.pttl(answer_key)

            pipe.multi()
            pipe.set(
                attempts_key,
                kv_store.CAPTCHA_MAX_ATTEMPTS,
                nx=True,
                **_attempts_ttl_kwargs(answer_ttl_ms),
            )
            pipe.decr(attempts_key)
            _, remaining = await pipe.execute()
        except WatchError:
            return None

    # Отрицательный остаток: попытки уже исчерпал параллельный ответ
    if remaining < 0:
        return None
    return remaining


async def evaluate_captcha(bot: Bot, chat_id: int, raw_text: Optional[str]) -> CaptchaResult:
    """
    Проверяет сообщение неверифицированного гостя как ответ на капчу.

    Если чат уже верифицирован параллельным апдейтом, сообщение не
    отправляется: результат verified=True, и вызывающий пересылает
    сообщение администратору.

    Args:
        bot: Экземпляр бота
        chat_id: ID чата гостя
        raw_text: Текст сообщения (может быть None для медиа)

    Returns:
        CaptchaResult(verified=True), если ответ верный или чат уже верифицирован
    """
    text = (raw_text or "").strip()

    if not text:
        await issue_captcha(bot, chat_id, force_new=False)
        return CaptchaResult(verified=False, reason="empty")

    if text == CAPTCHA_COMMAND:
        await issue_captcha(bot, chat_id, force_new=True)
        return CaptchaResult(verified=False, reason="new_requested")

    snapshot = await load_captcha_snapshot(chat_id)
    if snapshot.state is CaptchaState.VERIFIED:
        return CaptchaResult(verified=True, reason="already_verified")
    if snapshot.state is CaptchaState.UNVERIFIED:
        # NX: параллельные сообщения без капчи получат один пример
        await issue_captcha(bot, chat_id, force_new=False)
        return CaptchaResult(verified=False, reason="no_captcha")

    answer = parse_answer(text)
    if answer is None:
        await bot.send_message(chat_id=chat_id, text=texts.CAPTCHA_NOT_A_NUMBER)
        return CaptchaResult(verified=False, reason="not_a_number")

    if answer == snapshot.expected_answer:
        await _mark_verified(chat_id)
        logger.info(f"✅ [CAPTCHA] Капча решена: chat_id={chat_id}")
        await bot.send_message(
            chat_id=chat_id,
            text=texts.CAPTCHA_SOLVED.format(days=kv_store.VERIFIED_TTL_SECONDS // (24 * 3600)),
        )
        return CaptchaResult(verified=True, reason="solved")

    remaining = await _consume_attempt(chat_id, snapshot.expected_answer)
    if remaining is None:
        logger.debug(f"⏳ [CAPTCHA] Ответ на неактуальную капчу: chat_id={chat_id}")
        await bot.send_message(chat_id=chat_id, text=texts.CAPTCHA_REMINDER)
        return CaptchaResult(verified=False, reason="stale")

    logger.info(f"❌ [CAPTCHA] Неверный ответ: chat_id={chat_id}, осталось попыток={remaining}")

    if remaining > 0:
        await bot.send_message(
            chat_id=chat_id,
            text=texts.CAPTCHA_WRONG.format(remaining=remaining),
        )
        return CaptchaResult(verified=False, reason="wrong")

    # Остаток ровно 0 получает только один из параллельных ответов
    await issue_captcha(bot, chat_id, force_new=True, notice=texts.CAPTCHA_EXHAUSTED)
    return CaptchaResult(verified=False, reason="exhausted")
