"""
Webhook система для Telegram бота
"""
import asyncio
import hmac
import logging
from typing import Optional

from aiohttp import web
from aiogram import Bot, Dispatcher
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BotCommand
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application

from relay_bot import texts
from relay_bot.config import (
    BOT_SECRET, WEBHOOK_URL, WEBHOOK_PATH, WEBHOOK_HOST, WEBHOOK_PORT
)

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

# Апдейты, которые обрабатывает бот
ALLOWED_UPDATES = ["message", "edited_message"]


class SecretRequestHandler(SimpleRequestHandler):
    """
    Обработчик вебхука с проверкой секрета.

    Неверный секрет - 403 без обработки апдейта. Иначе Telegram сразу
    получает 200, а апдейт обрабатывается в фоне.
    """

    async def handle(self, request: web.Request) -> web.Response:
        received = request.headers.get(SECRET_HEADER, "").encode()
        if not hmac.compare_digest(received, (self.secret_token or "").encode()):
            logger.warning(f"🚫 [WEBHOOK] Запрос с неверным секретом от {request.remote}")
            return web.Response(text="Unauthorized", status=403)
        return await super().handle(request)


def build_bot_commands():
    return [BotCommand(command=command, description=description) for command, description in texts.BOT_COMMANDS]


def resolve_webhook_url(request: Optional[web.Request] = None) -> str:
    """Публичный URL вебхука: WEBHOOK_URL из конфига или origin запроса + WEBHOOK_PATH"""
    if WEBHOOK_URL:
        return WEBHOOK_URL
    if request is None:
        raise ValueError("WEBHOOK_URL не установлен")
    return f"{request.url.origin()}{WEBHOOK_PATH}"


async def register_webhook(bot: Bot, url: str) -> None:
    """Регистрирует вебхук с секретом и объявляет команды бота"""
    logger.info(f"🔧 [WEBHOOK] Установка webhook: {url}")
    await bot.set_webhook(url=url, secret_token=BOT_SECRET, allowed_updates=ALLOWED_UPDATES)
    await bot.set_my_commands(build_bot_commands())
    logger.info(f"✅ [WEBHOOK] Webhook установлен: {url}")


async def create_app(bot: Bot, dp: Dispatcher) -> web.Application:
    """Создание и настройка веб-приложения для webhook"""
    app = web.Application()

    webhook_requests_handler = SecretRequestHandler(
        dispatcher=dp,
        bot=bot,
        secret_token=BOT_SECRET,
        handle_in_background=True,
    )
    webhook_requests_handler.register(app, path=WEBHOOK_PATH)

    # Настройка приложения (startup/shutdown диспетчера)
    setup_application(app, dp, bot=bot)

    async def register_handler(request: web.Request) -> web.Response:
        try:
            await register_webhook(bot, resolve_webhook_url(request))
        except TelegramAPIError as e:
            logger.error(f"❌ [WEBHOOK] Ошибка установки webhook: {e}")
            return web.Response(text=str(e))
        return web.Response(text="Ok")

    async def unregister_handler(request: web.Request) -> web.Response:
        try:
            await bot.delete_webhook()
        except TelegramAPIError as e:
            logger.error(f"❌ [WEBHOOK] Ошибка удаления webhook: {e}")
            return web.Response(text=str(e))
        logger.info("✅ [WEBHOOK] Webhook удалён")
        return web.Response(text="Ok")

    # Health check endpoint
    async def health_check(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "service": "relay_bot"})

    app.router.add_get("/registerWebhook", register_handler)
    app.router.add_get("/unRegisterWebhook", unregister_handler)
    app.router.add_get("/health", health_check)

    return app


async def run_webhook(bot: Bot, dp: Dispatcher):
    """Запуск webhook сервера"""
    app = await create_app(bot=bot, dp=dp)

    # SSL обрабатывается на уровне reverse proxy, бот работает по HTTP
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host=WEBHOOK_HOST, port=WEBHOOK_PORT)
    await site.start()
    logger.info(f"🚀 Webhook сервер запущен на {WEBHOOK_HOST}:{WEBHOOK_PORT}{WEBHOOK_PATH}")

    try:
        await asyncio.Future()  # Бесконечный цикл
    finally:
        logger.info("🛑 Остановка webhook сервера...")
        await runner.cleanup()
