"""Admin panel: send a file to a user by id.

/admin shows the panel (configured admins only). "Send file to user" starts
a FileRelaySession: the admin types the target user id, then sends a
document which is forwarded to that user. "Cancel sending" aborts.

Key functions: admin_command(), handle_admin_callback(),
handle_file_relay_text(), document_handler().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram import Bot, CallbackQuery, Message, Update
from telegram.ext import ContextTypes

from ..bot_context import FileRelaySession
from ..keyboards import admin_menu_keyboard
from ..utils import user_handle
from .callback_data import CB_ADMIN_CANCEL, CB_ADMIN_SENDFILE
from .message_sender import DeliveryError, safe_reply, safe_send, send_document, send_text

if TYPE_CHECKING:
    from ..bot_context import BotContext

logger = logging.getLogger(__name__)

NO_ACCESS_TEXT = "⛔ You do not have access."


def _ctx(context: ContextTypes.DEFAULT_TYPE) -> BotContext:
    return context.bot_data["bot_ctx"]


async def admin_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    if not user or not update.message:
        return
    if not _ctx(context).config.is_admin(user.id):
        await safe_reply(update.message, NO_ACCESS_TEXT)
        return
    await safe_reply(
        update.message, "\U0001f6e0 Admin panel", reply_markup=admin_menu_keyboard()
    )


async def handle_admin_callback(query: CallbackQuery, bot_ctx: BotContext) -> bool:
    """Handle admin panel buttons. False if *query* is not ours."""
    data = query.data
    if data not in (CB_ADMIN_SENDFILE, CB_ADMIN_CANCEL):
        return False

    admin_id = query.from_user.id
    if not bot_ctx.config.is_admin(admin_id):
        await query.answer(NO_ACCESS_TEXT, show_alert=True)
        return True

    message = query.message
    if data == CB_ADMIN_SENDFILE:
        bot_ctx.file_sessions[admin_id] = FileRelaySession()
        await query.answer()
        if message:
            await safe_reply(
                message,  # type: ignore[arg-type]
                "Enter the ID of the user who should receive the file:",
            )
        return True

    if bot_ctx.file_sessions.pop(admin_id, None) is not None:
        await query.answer("❌ Sending cancelled.")
        text = "File sending cancelled."
    else:
        await query.answer("No active sending.")
        text = "There is no active sending right now."
    if message:
        await safe_reply(message, text)  # type: ignore[arg-type]
    return True


async def handle_file_relay_text(
    message: Message, admin_id: int, bot_ctx: BotContext
) -> bool:
    """Consume the target user id typed by an admin in a file relay session.

    Returns False if the admin is not waiting to enter a user id.
    """
    session = bot_ctx.file_sessions.get(admin_id)
    if session is None or session.step != "awaiting_user_id":
        return False

    user_id = (message.text or "").strip()
    if not (user_id.isascii() and user_id.isdigit()):
        await safe_reply(message, "❗ Enter a valid numeric ID.")
        return True

    session.user_id = user_id
    session.step = "awaiting_file"
    await safe_reply(message, "Send the file that should be delivered to the user.")
    return True


async def relay_document(
    bot: Bot, message: Message, admin_handle: str, admin_id: int, bot_ctx: BotContext
) -> bool:
    """Forward the admin's document to the session's target user.

    Returns False if the admin has no session waiting for a file.
    """
    session = bot_ctx.file_sessions.get(admin_id)
    if session is None or session.step != "awaiting_file" or not message.document:
        return False

    user_id = session.user_id
    try:
        await send_text(bot, user_id, "An admin sent you a presentation from your coach:")
        await send_document(bot, user_id, message.document.file_id)
    except DeliveryError as e:
        logger.error("File relay to user %s failed: %s", user_id, e.cause)
        await safe_reply(
            message,
            "⚠️ Failed to send the file. The user may have blocked the bot "
            "or the ID is incorrect.",
            reply_markup=admin_menu_keyboard(),
        )
    else:
        logger.info("Admin %s sent a file to user %s", admin_id, user_id)
        await safe_reply(
            message,
            f"✅ File sent to user ID: {user_id}",
            reply_markup=admin_menu_keyboard(),
        )
        await safe_send(
            bot,
            bot_ctx.config.support_chat_id,
            f"Admin {admin_handle} sent a file to user ID: {user_id}",
        )
    finally:
        bot_ctx.file_sessions.pop(admin_id, None)
    return True


async def document_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    if not user or not update.message:
        return
    await relay_document(
        context.bot, update.message, user_handle(user), user.id, _ctx(context)
    )
