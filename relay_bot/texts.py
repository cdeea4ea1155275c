# relay_bot/texts.py
"""Тексты сообщений, которые видят гости и администратор."""

# ═══════════════════════════════════════════════════════════════════════════
# ПРИВЕТСТВИЕ
# ═══════════════════════════════════════════════════════════════════════════

# Используется, если не удалось загрузить приветствие по START_MESSAGE_URL
DEFAULT_START_MESSAGE = "Hello!"


# ═══════════════════════════════════════════════════════════════════════════
# КАПЧА
# ═══════════════════════════════════════════════════════════════════════════

CAPTCHA_PROMPT = (
    "🧩 Чтобы защититься от ботов, решите простой пример:\n\n"
    "{question}\n\n"
    "Ответьте числом (например: 8)."
)

CAPTCHA_REMINDER = (
    "⏳ Сначала решите текущий пример, потом продолжим разговор.\n"
    "(Просто отправьте число; /captcha - новый пример)"
)

CAPTCHA_NOT_A_NUMBER = (
    "🔢 Ответьте одним числом (например: 8). Новый пример: /captcha"
)

CAPTCHA_SOLVED = (
    "✅ Проверка пройдена! В течение {days} дней можно писать напрямую.\n"
    "Отправьте ваше сообщение ещё раз."
)

CAPTCHA_WRONG = (
    "❌ Неверно, осталось попыток: {remaining}. "
    "Попробуйте ещё раз или отправьте /captcha для нового примера."
)

CAPTCHA_EXHAUSTED = "❌ Неверно, попытки закончились. Вот новый пример."


# ═══════════════════════════════════════════════════════════════════════════
# МОДЕРАЦИЯ
# ═══════════════════════════════════════════════════════════════════════════

YOU_ARE_BLOCKED = "You are blocked"

CANNOT_BLOCK_SELF = "🚫 Нельзя заблокировать самого себя"

BLOCK_DONE = "UID:{chat_id} заблокирован"

UNBLOCK_DONE = "UID:{chat_id} разблокирован"

BLOCK_STATUS = "UID:{chat_id} статус блокировки: {status}"

ROUTE_UNKNOWN = "⚠️ Не удалось определить отправителя этого сообщения"


# ═══════════════════════════════════════════════════════════════════════════
# КОМАНДЫ (меню бота)
# ═══════════════════════════════════════════════════════════════════════════

BOT_COMMANDS = (
    ("block", "Заблокировать (ответом на сообщение пользователя)"),
    ("unblock", "Разблокировать (ответом на сообщение)"),
    ("checkblock", "Статус блокировки (ответом на сообщение)"),
    ("captcha", "(Гостям) новый пример для проверки"),
)
