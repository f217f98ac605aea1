"""Tests for the bot polling lifecycle."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from rugscope.bot import bot as bot_module


@pytest.mark.asyncio
async def test_polling_crash_is_logged() -> None:
    dp = MagicMock()
    dp.start_polling = AsyncMock(side_effect=ConnectionError("telegram unreachable"))

    with (
        patch.object(bot_module, "get_bot", return_value=MagicMock()),
        patch.object(bot_module, "get_dispatcher", return_value=dp),
        patch.object(bot_module, "logger") as logger,
    ):
        await bot_module.run_bot("123:abc", MagicMock())

    logger.error.assert_called_once()
    assert "telegram unreachable" in logger.error.call_args.args[0]


@pytest.mark.asyncio
async def test_missing_token_is_a_warning() -> None:
    with patch.object(bot_module, "logger") as logger:
        await bot_module.run_bot("", MagicMock())

    logger.warning.assert_called_once()
    logger.error.assert_not_called()
