"""
Unit тесты генератора арифметической капчи.
"""
import itertools
import random

from relay_bot.services.captcha.generator import (
    MAX_DRAWS,
    OPERAND_MAX,
    OPERAND_MIN,
    generate_captcha,
)


class ScriptedRandom:
    """Подставные значения randint/choice в порядке вызова генератором."""

    def __init__(self, draws):
        # draws: [(a, op, b), ...]
        self._ints = iter(itertools.chain.from_iterable((a, b) for a, _, b in draws))
        self._ops = iter(op for _, op, _ in draws)

    def randint(self, low, high):
        return next(self._ints)

    def choice(self, seq):
        return next(self._ops)


def test_addition_is_returned_as_is():
    captcha = generate_captcha(ScriptedRandom([(3, "+", 5)]))

    assert captcha.question == "3 + 5 = ?"
    assert captcha.answer == 8


def test_non_positive_subtraction_is_redrawn():
    """7 - 9 и 4 - 4 отбрасываются, возвращается первый положительный пример."""
    captcha = generate_captcha(ScriptedRandom([(7, "-", 9), (4, "-", 4), (9, "-", 2)]))

    assert captcha.question == "9 - 2 = ?"
    assert captcha.answer == 7


def test_every_draw_is_either_accepted_or_redrawn():
    operands = range(OPERAND_MIN, OPERAND_MAX + 1)
    for a, b, op in itertools.product(operands, operands, ("+", "-")):
        captcha = generate_captcha(ScriptedRandom([(a, op, b), (2, "+", 1)]))
        expected = a + b if op == "+" else a - b
        if expected > 0:
            assert captcha.answer == expected
        else:
            assert captcha.question == "2 + 1 = ?"
            assert captcha.answer == 3


def test_bounded_loop_never_returns_non_positive():
    """Если все попытки неудачны, генератор всё равно возвращает положительный ответ."""
    captcha = generate_captcha(ScriptedRandom([(5, "-", 5)] * MAX_DRAWS))

    assert captcha.answer == 10
    assert captcha.question == "5 + 5 = ?"


def test_random_draws_are_positive_and_in_range():
    rng = random.Random(20240501)
    for _ in range(2000):
        captcha = generate_captcha(rng)
        assert 0 < captcha.answer <= OPERAND_MAX * 2
        assert captcha.question.endswith(" = ?")
