# relay_bot/services/captcha/state_service.py
"""
Состояние капчи для чата.

Состояние выводится из трёх ключей одним чтением (MGET):
- verified-{chat_id}        -> VERIFIED
- captcha-answer-{chat_id}  -> CHALLENGED
- ничего                    -> UNVERIFIED

Отметка о верификации главнее "зависшей" капчи.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from relay_bot.services import kv_store


logger = logging.getLogger(__name__)


class CaptchaState(str, Enum):
    UNVERIFIED = "unverified"
    CHALLENGED = "challenged"
    VERIFIED = "verified"


@dataclass
class CaptchaSnapshot:
    state: CaptchaState
    expected_answer: Optional[int] = None
    attempts_left: Optional[int] = None

    @property
    def is_verified(self) -> bool:
        return self.state is CaptchaState.VERIFIED


async def load_captcha_snapshot(chat_id: int) -> CaptchaSnapshot:
    """Читает все ключи капчи чата за один запрос и определяет состояние."""
    verified_raw, answer_raw, attempts_raw = await kv_store.client().mget(
        kv_store.VERIFIED_KEY.format(chat_id=chat_id),
        kv_store.CAPTCHA_ANSWER_KEY.format(chat_id=chat_id),
        kv_store.CAPTCHA_ATTEMPTS_KEY.format(chat_id=chat_id),
    )

    expected_answer = kv_store.parse_int(answer_raw)
    attempts_left = kv_store.parse_int(attempts_raw)

    if verified_raw:
        if expected_answer is not None:
            logger.debug(
                f"🔍 [CAPTCHA] chat_id={chat_id}: верифицирован, но висит капча - игнорируем"
            )
        return CaptchaSnapshot(state=CaptchaState.VERIFIED)

    if expected_answer is not None:
        return CaptchaSnapshot(
            state=CaptchaState.CHALLENGED,
            expected_answer=expected_answer,
            attempts_left=attempts_left,
        )

    return CaptchaSnapshot(state=CaptchaState.UNVERIFIED)


async def is_verified(chat_id: int) -> bool:
    raw = await kv_store.client().get(kv_store.VERIFIED_KEY.format(chat_id=chat_id))
    return bool(raw)
