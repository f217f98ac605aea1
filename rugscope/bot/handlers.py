"""Telegram bot message handlers."""

from aiogram import F, Router
from aiogram.enums import ChatAction, ChatType
from aiogram.filters import Command
from aiogram.types import LinkPreviewOptions, Message
from loguru import logger

from rugscope.parsers.token_analyzer import TokenAnalyzer
from rugscope.utils.addresses import extract_address

router = Router()

HELP_TEXT = (
    "<b>Rugscope: token risk scanner</b>\n\n"
    "Send me a token contract address (<code>0x…</code>) and I will check:\n"
    "• liquidity pair, LP burn and lock\n"
    "• buy/sell taxes and transaction limits\n"
    "• ownership and privileged functions\n"
    "• holder concentration\n"
    "• simulated buy/sell (honeypot check)\n"
    "• recent dev wallet sells\n\n"
    "Works here or in any group chat."
)

USAGE_HINT = "Send a token contract address like <code>0x1234…abcd</code> (42 characters)."
ANALYZE_FAILED = "⚠️ Could not analyze this token. Double-check the address."


@router.message(Command("start"))
async def cmd_start(message: Message) -> None:
    await message.answer(
        "👋 Send me a token address to analyze. Works here or in any group chat.\n/help for details.",
        parse_mode="HTML",
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT, parse_mode="HTML")


@router.message(F.text & ~F.text.startswith("/"))
async def on_text(message: Message, analyzer: TokenAnalyzer) -> None:
    """Analyse the first address found in a plain text message."""
    address = extract_address(message.text)
    if address is None:
        # Groups see plenty of unrelated chatter
        if message.chat.type == ChatType.PRIVATE:
            await message.answer(USAGE_HINT, parse_mode="HTML")
        return

    logger.info(f"[BOT] Analyze request for {address} from chat {message.chat.id}")
    await message.bot.send_chat_action(message.chat.id, ChatAction.TYPING)

    try:
        text = await analyzer.analyze(address)
    except Exception as e:
        logger.error(f"[BOT] Analysis of {address} failed: {type(e).__name__}: {e}")
        await message.answer(ANALYZE_FAILED)
        return

    await message.answer(text, parse_mode="HTML", link_preview_options=LinkPreviewOptions(is_disabled=True))
