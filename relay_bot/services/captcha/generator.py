# relay_bot/services/captcha/generator.py
"""
Генерация арифметической капчи.

Два операнда из [1, 9], операция "+" или "-", ответ всегда строго
положительный.
"""

import random
from dataclasses import dataclass
from typing import Optional


OPERAND_MIN = 1
OPERAND_MAX = 9
OPERATORS = ("+", "-")

# Отказ случается с вероятностью ~0.28 на итерацию
MAX_DRAWS = 64


@dataclass(frozen=True)
class Captcha:
    question: str
    answer: int


def _build(a: int, op: str, b: int) -> Captcha:
    answer = a + b if op == "+" else a - b
    return Captcha(question=f"{a} {op} {b} = ?", answer=answer)


def generate_captcha(rng: Optional[random.Random] = None) -> Captcha:
    """
    Генерирует пример с положительным ответом (выборка с отклонением).

    Args:
        rng: Источник случайности (для тестов можно передать random.Random(seed))

    Returns:
        Captcha с текстом вопроса и ожидаемым ответом
    """
    rng = rng or random

    a = b = OPERAND_MIN
    op = "-"
    for _ in range(MAX_DRAWS):
        a = rng.randint(OPERAND_MIN, OPERAND_MAX)
        b = rng.randint(OPERAND_MIN, OPERAND_MAX)
        op = rng.choice(OPERATORS)
        captcha = _build(a, op, b)
        if captcha.answer > 0:
            return captcha

    # Граница цикла достигнута только для "-" с a <= b: сложение всегда > 0
    return _build(a, "+", b)
