import os
from dotenv import load_dotenv

# Всегда ищем .env относительно корня проекта
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Определяем окружение
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Получаем путь до .env файла в зависимости от окружения
if ENVIRONMENT == "production":
    env_file = ".env.prod"
elif ENVIRONMENT == "testing":
    env_file = ".env.test"
else:
    env_file = ".env.dev"

# Проверяем, есть ли переменная ENV_PATH (для Docker)
env_path = os.getenv("ENV_PATH")
if not env_path:
    env_path = os.path.join(BASE_DIR, env_file)

# Загружаем .env файл (уже выставленные переменные окружения не перезаписываются)
load_dotenv(dotenv_path=env_path)

# Основные настройки бота
BOT_TOKEN = os.getenv("BOT_TOKEN")
# Секрет вебхука: A-Z, a-z, 0-9, _ и -
BOT_SECRET = os.getenv("BOT_SECRET")
raw_admin_uid = os.getenv("ADMIN_UID", "").strip()

# Redis настройки
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Webhook настройки
USE_WEBHOOK = os.getenv("USE_WEBHOOK", "false").lower() == "true"
WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
WEBHOOK_PATH = os.getenv("WEBHOOK_PATH", "/endpoint")
WEBHOOK_HOST = os.getenv("WEBHOOK_HOST", "0.0.0.0")
WEBHOOK_PORT = int(os.getenv("WEBHOOK_PORT", "8080"))

# Капча и уведомления
CAPTCHA_ENABLED = os.getenv("CAPTCHA_ENABLED", "true").lower() == "true"
NOTIFICATION_ENABLED = os.getenv("NOTIFICATION_ENABLED", "true").lower() == "true"
NOTIFY_INTERVAL_SECONDS = int(os.getenv("NOTIFY_INTERVAL_SECONDS", "3600"))

# Внешние тексты (приветствие и периодическое уведомление)
START_MESSAGE_URL = os.getenv(
    "START_MESSAGE_URL",
    "https://raw.githubusercontent.com/LloydAsp/nfd/main/data/startMessage.md",
)
NOTIFICATION_URL = os.getenv(
    "NOTIFICATION_URL",
    "https://raw.githubusercontent.com/LloydAsp/nfd/main/data/notification.txt",
)

# Срок хранения связки "пересланное сообщение -> гость" (0 = бессрочно)
ROUTE_MAP_TTL_SECONDS = int(os.getenv("ROUTE_MAP_TTL_SECONDS", "0"))

# Настройки логирования
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Валидация обязательных параметров
if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN не установлен!")
if not BOT_SECRET:
    raise ValueError("BOT_SECRET не установлен!")
if not raw_admin_uid.lstrip("-").isdigit():
    raise ValueError("ADMIN_UID не установлен или не является числом!")

ADMIN_UID = int(raw_admin_uid)


def _mask_secret(value: str) -> str:
    """Маскирует секрет для безопасного логирования"""
    if not value:
        return "NOT SET"
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


print(f"[Config] Окружение: {ENVIRONMENT}")
print(f"[Config] BOT_TOKEN: {_mask_secret(BOT_TOKEN)}")
print(f"[Config] BOT_SECRET: {_mask_secret(BOT_SECRET)}")
print(f"[Config] ADMIN_UID: {ADMIN_UID}")
print(f"[Config] USE_WEBHOOK: {USE_WEBHOOK}")
print(f"[Config] CAPTCHA_ENABLED: {CAPTCHA_ENABLED}")
print(f"[Config] LOG_LEVEL: {LOG_LEVEL}")
