import asyncio
import logging
from logging.handlers import RotatingFileHandler

from aiohttp import web

from jemzy.api.routes import create_app
from jemzy.config import API_HOST, API_PORT, BOT_TOKEN, LOG_DIR, LOG_LEVEL
from jemzy.db.base import init_db
from jemzy.middlewares.rate_limit import RateLimitMiddleware
from jemzy.middlewares.user import UserMiddleware

logger = logging.getLogger("jemzy")


def setup_logging():
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(fmt)

    # Warnings and errors only, kept across restarts
    file_handler = RotatingFileHandler(
        filename=LOG_DIR / "errors.log",
        maxBytes=2 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(fmt)

    logging.basicConfig(level=LOG_LEVEL, handlers=[console_handler, file_handler])

    for noisy in ("aiogram", "aiosqlite", "aiohttp.access", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


async def on_startup() -> asyncio.Task:
    logger.info("Initializing database...")
    await init_db()

    from jemzy.scheduler import start_scheduler
    task = await start_scheduler()

    logger.info("Database ready and Scheduler started.")
    return task


def register_bot(dp):
    from jemzy.handlers import common, nearby

    dp.message.middleware(UserMiddleware())
    dp.callback_query.middleware(UserMiddleware())
    dp.callback_query.middleware(RateLimitMiddleware())

    dp.include_router(common.router)
    dp.include_router(nearby.router)


async def start_api() -> web.AppRunner:
    runner = web.AppRunner(create_app())
    await runner.setup()
    site = web.TCPSite(runner, API_HOST, API_PORT)
    await site.start()
    logger.info(f"API listening on {API_HOST}:{API_PORT}")
    return runner


async def main():
    scheduler_task = await on_startup()
    runner = await start_api()
    try:
        if BOT_TOKEN:
            from jemzy.loader import create_bot, dp
            register_bot(dp)
            logger.info("Bot starting...")
            await dp.start_polling(create_bot())
        else:
            logger.info("BOT_TOKEN not set, running API only")
            await asyncio.Event().wait()
    finally:
        scheduler_task.cancel()
        await runner.cleanup()


def run():
    setup_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
