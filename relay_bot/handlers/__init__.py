# Импорт фабрик роутеров для удобного подключения
from .private_message_coordinator import create_private_message_coordinator_router
from .errors_handler import create_errors_router

from aiogram import Router


def create_handlers_router() -> Router:
    """
    Собирает все роутеры бота в один.

    aiogram не позволяет подключить один Router к двум диспетчерам,
    поэтому на каждый Dispatcher создаётся свой экземпляр.
    """
    handlers_router = Router()
    handlers_router.include_router(create_errors_router())
    handlers_router.include_router(create_private_message_coordinator_router())
    return handlers_router
