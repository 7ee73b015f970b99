"""Message sending helpers.

Two kinds of sends exist in the bot:
  - Deliveries to a dialog counterpart or a target user: failure matters,
    so send_text/send_document raise DeliveryError once transport retries
    are exhausted.
  - Local notifications (replies to the actor, support chat notices):
    best-effort, failures are logged and swallowed.

Functions:
  - send_text: Send a text message, raise DeliveryError on failure
  - send_document: Send a document by file_id, raise DeliveryError on failure
  - safe_reply: Reply to a message, log on failure
  - safe_send: Send a message, log on failure
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from telegram import Bot, Message
from telegram.error import BadRequest, NetworkError, RetryAfter, TelegramError, TimedOut

logger = logging.getLogger(__name__)

# Retry settings for transient network errors
_SEND_MAX_RETRIES = 3
_SEND_RETRY_DELAYS = [2, 4, 8]


class DeliveryError(Exception):
    """The target chat could not be reached (blocked the bot, not found, ...)."""

    def __init__(self, chat_id: int | str, cause: Exception) -> None:
        super().__init__(f"Failed to deliver to {chat_id}: {cause}")
        self.chat_id = chat_id
        self.cause = cause


async def _send_with_retry(
    send_fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
) -> Any:
    """Retry wrapper for Telegram send/edit calls on transient network errors.

    Retries up to _SEND_MAX_RETRIES times with exponential backoff on
    TimedOut and NetworkError. BadRequest (also a NetworkError) and
    RetryAfter are re-raised immediately.
    """
    for attempt in range(_SEND_MAX_RETRIES):
        try:
            return await send_fn(*args, **kwargs)
        except (RetryAfter, BadRequest):
            raise
        except (TimedOut, NetworkError) as e:
            if attempt == _SEND_MAX_RETRIES - 1:
                raise
            delay = _SEND_RETRY_DELAYS[attempt]
            logger.warning(
                "Send failed (attempt %d/%d): %s, retry in %ds",
                attempt + 1,
                _SEND_MAX_RETRIES,
                e,
                delay,
            )
            await asyncio.sleep(delay)


async def send_text(bot: Bot, chat_id: int | str, text: str, **kwargs: Any) -> Message:
    """Send *text* to *chat_id*.

    Raises:
        DeliveryError: the message could not be delivered.
    """
    try:
        return await _send_with_retry(
            bot.send_message, chat_id=chat_id, text=text, **kwargs
        )
    except TelegramError as e:
        logger.warning("Delivery to %s failed: %s", chat_id, e)
        raise DeliveryError(chat_id, e) from e


async def send_document(
    bot: Bot, chat_id: int | str, document: str, **kwargs: Any
) -> Message:
    """Send a document (by file_id) to *chat_id*.

    Raises:
        DeliveryError: the document could not be delivered.
    """
    try:
        return await _send_with_retry(
            bot.send_document, chat_id=chat_id, document=document, **kwargs
        )
    except TelegramError as e:
        logger.warning("Document delivery to %s failed: %s", chat_id, e)
        raise DeliveryError(chat_id, e) from e


async def safe_reply(message: Message, text: str, **kwargs: Any) -> Message | None:
    """Reply to *message*, logging instead of raising on failure."""
    try:
        return await _send_with_retry(message.reply_text, text, **kwargs)
    except TelegramError as e:
        logger.error("Failed to reply in chat %s: %s", message.chat_id, e)
        return None


async def safe_send(
    bot: Bot, chat_id: int | str, text: str, **kwargs: Any
) -> Message | None:
    """Send *text* to *chat_id*, logging instead of raising on failure."""
    try:
        return await _send_with_retry(
            bot.send_message, chat_id=chat_id, text=text, **kwargs
        )
    except TelegramError as e:
        logger.error(f"Failed to send message to {chat_id}: {e}")
        return None
