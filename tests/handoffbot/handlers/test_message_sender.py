"""Tests for message_sender.py — delivery vs. best-effort sends."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import BadRequest, Forbidden, TimedOut

from handoffbot.handlers.message_sender import (
    DeliveryError,
    safe_reply,
    safe_send,
    send_document,
    send_text,
)


@pytest.fixture
def bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.send_document = AsyncMock()
    return bot


class TestSendText:
    async def test_success(self, bot: MagicMock):
        await send_text(bot, "111", "hello")
        bot.send_message.assert_awaited_once_with(chat_id="111", text="hello")

    async def test_blocked_raises_delivery_error(self, bot: MagicMock):
        bot.send_message.side_effect = Forbidden("Forbidden: bot was blocked by the user")
        with pytest.raises(DeliveryError) as exc_info:
            await send_text(bot, "111", "hello")
        assert exc_info.value.chat_id == "111"
        assert isinstance(exc_info.value.cause, Forbidden)
        bot.send_message.assert_awaited_once()

    async def test_bad_request_not_retried(self, bot: MagicMock):
        bot.send_message.side_effect = BadRequest("Chat not found")
        with pytest.raises(DeliveryError):
            await send_text(bot, "111", "hello")
        bot.send_message.assert_awaited_once()

    async def test_transient_error_retried(self, bot: MagicMock):
        bot.send_message.side_effect = [TimedOut(), MagicMock()]
        with patch("handoffbot.handlers.message_sender.asyncio.sleep", new=AsyncMock()):
            await send_text(bot, "111", "hello")
        assert bot.send_message.await_count == 2

    async def test_transient_error_exhausted(self, bot: MagicMock):
        bot.send_message.side_effect = TimedOut()
        with patch("handoffbot.handlers.message_sender.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(DeliveryError):
                await send_text(bot, "111", "hello")
        assert bot.send_message.await_count == 3


class TestSendDocument:
    async def test_success(self, bot: MagicMock):
        await send_document(bot, "111", "file-id")
        bot.send_document.assert_awaited_once_with(chat_id="111", document="file-id")

    async def test_failure(self, bot: MagicMock):
        bot.send_document.side_effect = Forbidden("blocked")
        with pytest.raises(DeliveryError):
            await send_document(bot, "111", "file-id")


class TestBestEffort:
    async def test_safe_send_swallows_errors(self, bot: MagicMock):
        bot.send_message.side_effect = Forbidden("blocked")
        assert await safe_send(bot, -100, "notice") is None

    async def test_safe_reply_swallows_errors(self):
        message = MagicMock()
        message.reply_text = AsyncMock(side_effect=BadRequest("message to reply not found"))
        assert await safe_reply(message, "hi") is None

    async def test_safe_reply_passes_kwargs(self):
        message = MagicMock()
        message.reply_text = AsyncMock()
        markup = MagicMock()
        await safe_reply(message, "hi", reply_markup=markup)
        message.reply_text.assert_awaited_once_with("hi", reply_markup=markup)
