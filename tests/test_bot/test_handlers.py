"""Tests for Telegram message handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.enums import ChatType

from conftest import TOKEN
from rugscope.bot.handlers import ANALYZE_FAILED, USAGE_HINT, on_text


def _message(text: str, chat_type: str = ChatType.PRIVATE) -> MagicMock:
    message = MagicMock()
    message.text = text
    message.chat.id = 42
    message.chat.type = chat_type
    message.answer = AsyncMock()
    message.bot.send_chat_action = AsyncMock()
    return message


@pytest.mark.asyncio
async def test_address_is_analysed() -> None:
    message = _message(f"is this safe? {TOKEN}")
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value="<b>report</b>")

    await on_text(message, analyzer)

    analyzer.analyze.assert_awaited_once_with(TOKEN)
    message.bot.send_chat_action.assert_awaited_once()
    assert message.answer.await_args.args[0] == "<b>report</b>"


@pytest.mark.asyncio
async def test_private_chat_gets_usage_hint() -> None:
    message = _message("hello")
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock()

    await on_text(message, analyzer)

    analyzer.analyze.assert_not_awaited()
    assert message.answer.await_args.args[0] == USAGE_HINT


@pytest.mark.asyncio
async def test_group_chatter_is_ignored() -> None:
    message = _message("gm everyone", chat_type=ChatType.SUPERGROUP)
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock()

    await on_text(message, analyzer)

    message.answer.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_error_gets_generic_reply() -> None:
    message = _message(TOKEN)
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(side_effect=RuntimeError("boom"))

    await on_text(message, analyzer)

    message.answer.assert_awaited_once_with(ANALYZE_FAILED)
