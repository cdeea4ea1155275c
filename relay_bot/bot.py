import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession

# ВАЖНО: сначала загружаем конфиг (.env), потом инициализируем Redis
from relay_bot.config import BOT_TOKEN, LOG_LEVEL, USE_WEBHOOK, WEBHOOK_URL
from relay_bot.services.redis_conn import test_connection
from relay_bot.middleware.structured_logging import StructuredLoggingMiddleware
from relay_bot.handlers import create_handlers_router


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Консольный вывод для root-логгера; встроенные логи aiogram только с WARNING"""
    logger = logging.getLogger()
    logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(console_handler)

    # Апдейты логирует StructuredLoggingMiddleware
    for logger_name in ("aiogram.event", "aiogram.dispatcher"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def create_dispatcher() -> Dispatcher:
    """Диспетчер без FSM: всё состояние бота хранится в Redis через сервисы"""
    dp = Dispatcher()
    dp.update.middleware(StructuredLoggingMiddleware())
    dp.include_router(create_handlers_router())
    return dp


# главная асинхронная функция, запускающая бота
async def main():
    setup_logging()

    # Без Redis бот работать не может: состояние капчи и связки сообщений живут только там
    await test_connection()

    session = AiohttpSession(timeout=60.0)
    bot = Bot(token=BOT_TOKEN, session=session)
    dp = create_dispatcher()

    logging.info("🤖 Бот успешно запущен и готов к работе.")

    # ✅ Выбираем режим запуска: webhook или polling
    if USE_WEBHOOK:
        from relay_bot.webhook import register_webhook, run_webhook

        logging.info("🌐 Запуск в режиме webhook...")
        if WEBHOOK_URL:
            await register_webhook(bot, WEBHOOK_URL)
        else:
            logging.info("ℹ️ WEBHOOK_URL не задан - зарегистрируйте webhook через GET /registerWebhook")
        await run_webhook(bot=bot, dp=dp)
    else:
        logging.info("🔄 Запуск в режиме polling...")
        # Удаление вебхука перед запуском поллинга
        await bot.delete_webhook(drop_pending_updates=True)
        await dp.start_polling(bot, allowed_updates=["message", "edited_message"])


def run():
    """Точка входа консольного скрипта relay-bot"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("🛑 Бот остановлен пользователем")


if __name__ == "__main__":
    run()
