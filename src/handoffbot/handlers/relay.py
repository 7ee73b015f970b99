"""Message relay between the two participants of a dialog.

A text message from a dialog participant is forwarded to the counterpart:
user → admin with a sender tag, admin → user verbatim. Delivery failure is
terminal for the dialog: it is closed on the spot and the sender is told,
with no retry.

Control phrases (keyboard labels for leave/close/back) and commands are
never relayed.

Key functions: is_control_text(), relay_message().
"""

from __future__ import annotations

import logging

from telegram import Bot, Message

from ..dialogs import DialogManager
from ..keyboards import DIALOG_CONTROL_LABELS
from .message_sender import DeliveryError, safe_reply, send_text

logger = logging.getLogger(__name__)

RELAY_FAILED_TEXT = "⚠️ Failed to deliver the message. The dialog has been closed."


def is_control_text(text: str) -> bool:
    """Return True for commands and dialog control phrases."""
    return text.startswith("/") or text in DIALOG_CONTROL_LABELS


def format_user_message(sender_id: int | str, text: str, handle: str | None) -> str:
    """Tag a user's message for the admin side."""
    tag = f"@{handle}" if handle else str(sender_id)
    return f"From user {tag}:\n{text}"


async def relay_message(
    bot: Bot,
    dialogs: DialogManager,
    sender_id: int | str,
    text: str,
    *,
    handle: str | None = None,
    reply_to: Message | None = None,
) -> bool:
    """Forward *text* from *sender_id* to its dialog counterpart.

    Args:
        handle: Sender's username (without "@"), used to tag user messages.
        reply_to: Sender's message, used to report delivery failure.

    Returns:
        True if the message belonged to a dialog (relayed or failed),
        False if it should be left to other handlers.
    """
    if is_control_text(text):
        return False

    sender = str(sender_id)
    role = dialogs.get_dialog_participant(sender)
    if role is None:
        return False

    if role == "user":
        dialog = dialogs.get_dialog_by_user(sender)
        target = dialog.admin_id if dialog else None
        body = format_user_message(sender, text, handle)
        close_key = sender
    else:
        dialog = dialogs.get_dialog_by_admin(sender)
        target = dialog.user_id if dialog else None
        body = text
        close_key = target

    if dialog is None or target is None:
        return False

    try:
        await send_text(bot, target, body)
    except DeliveryError as e:
        logger.warning(
            "Relay %s→%s failed, closing dialog for user %s: %s",
            sender,
            target,
            close_key,
            e.cause,
        )
        dialogs.close(close_key)
        if reply_to is not None:
            await safe_reply(reply_to, RELAY_FAILED_TEXT)
    return True
