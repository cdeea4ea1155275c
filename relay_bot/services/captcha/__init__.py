# relay_bot/services/captcha/__init__.py
"""
Модуль арифметической капчи для гостей.

Структура модуля:
- generator.py - генерация примера с положительным ответом
- state_service.py - состояние капчи чата (CaptchaState) по ключам Redis
- flow_service.py - выдача капчи и проверка ответов
"""

from relay_bot.services.captcha.generator import (
    Captcha,
    generate_captcha,
)
from relay_bot.services.captcha.state_service import (
    CaptchaState,
    CaptchaSnapshot,
    load_captcha_snapshot,
    is_verified,
)
from relay_bot.services.captcha.flow_service import (
    CAPTCHA_COMMAND,
    CaptchaResult,
    evaluate_captcha,
    issue_captcha,
    parse_answer,
)

__all__ = [
    "Captcha",
    "generate_captcha",
    "CaptchaState",
    "CaptchaSnapshot",
    "load_captcha_snapshot",
    "is_verified",
    "CAPTCHA_COMMAND",
    "CaptchaResult",
    "evaluate_captcha",
    "issue_captcha",
    "parse_answer",
]
