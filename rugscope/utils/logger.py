import logging
import os
import sys

from loguru import logger

# stdlib loggers of third-party libs and the level they are forwarded at
FORWARDED_LOGGERS = {
    "aiogram": "INFO",
    "aiogram.event": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


class _InterceptHandler(logging.Handler):
    """Forward stdlib log records (aiogram, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(*, json_logs: bool = False, level: str = "INFO") -> None:
    """Configure loguru for the bot.

    Console level follows LOG_LEVEL env (default: INFO).
    The file sink keeps DEBUG so failed fetch chains can be traced per request.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        "logs/rugscope_{time:YYYY-MM-DD}.log",
        rotation="20 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG",
        serialize=json_logs,
    )

    handler = _InterceptHandler()
    for name, lib_level in FORWARDED_LOGGERS.items():
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = [handler]
        lib_logger.setLevel(lib_level)
        lib_logger.propagate = False
