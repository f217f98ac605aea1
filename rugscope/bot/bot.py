"""Telegram bot lifecycle: aiogram 3.x polling mode.

The analyzer is handed to the Dispatcher as workflow data, so handlers
receive it as an `analyzer` argument.
"""

from aiogram import Bot, Dispatcher
from loguru import logger

from rugscope.parsers.token_analyzer import TokenAnalyzer

_bot_instance: Bot | None = None
_dp_instance: Dispatcher | None = None


def get_bot(token: str) -> Bot:
    """Get or create the aiogram Bot singleton."""
    global _bot_instance
    if _bot_instance is None:
        if not token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN not configured")
        _bot_instance = Bot(token=token)
    return _bot_instance


def get_dispatcher(analyzer: TokenAnalyzer) -> Dispatcher:
    """Get or create the Dispatcher singleton with handlers registered."""
    global _dp_instance
    if _dp_instance is None:
        from rugscope.bot.handlers import router

        _dp_instance = Dispatcher(analyzer=analyzer)
        _dp_instance.include_router(router)
    return _dp_instance


async def run_bot(token: str, analyzer: TokenAnalyzer) -> None:
    """Start the Telegram bot in polling mode. Runs until cancelled."""
    try:
        bot = get_bot(token)
        dp = get_dispatcher(analyzer)
        logger.info("[BOT] Starting Telegram bot (polling mode)")
        await dp.start_polling(bot, close_bot_session=False, handle_signals=False)
    except RuntimeError as e:
        logger.warning(f"[BOT] Cannot start: {e}")
    except Exception as e:
        logger.error(f"[BOT] Fatal error: {type(e).__name__}: {e}")


async def stop_bot() -> None:
    """Gracefully stop the bot."""
    global _bot_instance, _dp_instance
    if _bot_instance is not None:
        await _bot_instance.session.close()
        _bot_instance = None
    _dp_instance = None
