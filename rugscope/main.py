"""Entry point for the rugscope Telegram bot."""

import asyncio
import signal

from loguru import logger

from config.settings import settings
from rugscope.bot.bot import run_bot, stop_bot
from rugscope.parsers.chain.client import ChainRpcClient
from rugscope.parsers.explorer.client import ExplorerClient
from rugscope.parsers.token_analyzer import TokenAnalyzer
from rugscope.utils.logger import setup_logger


def build_analyzer() -> TokenAnalyzer:
    if not settings.rpc_url:
        raise RuntimeError("RPC_URL not configured")
    chain = ChainRpcClient(
        settings.rpc_url,
        max_rps=settings.rpc_max_rps,
        timeout=settings.rpc_timeout_sec,
    )
    explorer = None
    if settings.explorer_api_url:
        explorer = ExplorerClient(
            settings.explorer_api_url,
            max_rps=settings.explorer_max_rps,
            timeout=settings.explorer_timeout_sec,
        )
    else:
        logger.warning("EXPLORER_API_URL not set, explorer-backed fallbacks disabled")
    return TokenAnalyzer(settings, chain, explorer)


async def main() -> None:
    setup_logger(json_logs=settings.json_logs, level=settings.log_level)
    logger.info("Starting rugscope...")

    analyzer = build_analyzer()

    # Graceful shutdown on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _signal_handler)

    bot_task = asyncio.create_task(run_bot(settings.telegram_bot_token, analyzer))

    done, pending = await asyncio.wait(
        [bot_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    for task in pending:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    await stop_bot()
    await analyzer.close()
    logger.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
