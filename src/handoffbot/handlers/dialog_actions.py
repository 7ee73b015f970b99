"""Dialog state transitions: admin claim, admin close, user leave, expiry.

Claim protocol (Answer button on a support request):
  1. reject if the admin already has a dialog;
  2. reject if the user is already in a dialog;
  3. DialogManager.create() is the final arbiter: False means another admin
     won the race between our checks and our insert;
  4. notify user, notify admin, strip the buttons from the request message;
  5. if any step of 4 fails, close the new dialog and report the error.

Closing is always addressed by user id. Any admin in the support chat may
close any dialog through the Close button; no ownership check is made.

Key functions: claim_dialog(), admin_close_dialog(), admin_close_current(),
user_leave_dialog(), notify_expired(), handle_dialog_callback().
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from telegram import Bot, CallbackQuery, Message, Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from ..dialogs import Dialog, DialogManager
from ..keyboards import back_keyboard, close_keyboard, leave_keyboard, start_keyboard
from ..utils import user_handle
from .callback_data import CLAIM_RE, CLOSE_RE
from .message_sender import DeliveryError, safe_reply, safe_send, send_text

if TYPE_CHECKING:
    from ..bot_context import BotContext

logger = logging.getLogger(__name__)

ADMIN_BUSY_TEXT = (
    "You already have an active dialog. Close it before starting a new one."
)
USER_TAKEN_TEXT = "This user is already in a dialog with another admin."
CONFLICT_TEXT = "Could not start the dialog. It may already exist."
CLAIM_FAILED_TEXT = (
    "An error occurred while starting the dialog. "
    "The user may have blocked the bot."
)
USER_JOINED_TEXT = "An admin has joined the dialog. You can write your messages now."
ADMIN_JOINED_TEXT = "Dialog started. You can now reply to the user."
DIALOG_NOT_FOUND_TEXT = "Dialog not found."


class ClaimResult(enum.Enum):
    CLAIMED = "claimed"
    ADMIN_BUSY = "admin_busy"
    USER_TAKEN = "user_taken"
    CONFLICT = "conflict"
    FAILED = "failed"


_REJECTION_TEXT = {
    ClaimResult.ADMIN_BUSY: ADMIN_BUSY_TEXT,
    ClaimResult.USER_TAKEN: USER_TAKEN_TEXT,
    ClaimResult.CONFLICT: CONFLICT_TEXT,
}


def _ctx(context: ContextTypes.DEFAULT_TYPE) -> BotContext:
    return context.bot_data["bot_ctx"]


async def claim_dialog(
    bot: Bot,
    dialogs: DialogManager,
    *,
    user_id: str,
    admin_id: int | str,
    admin_handle: str,
    support_chat_id: int,
    message_id: int | None,
    reply_to: Message | None = None,
) -> ClaimResult:
    """Run the claim protocol for *admin_id* answering *user_id*."""
    result: ClaimResult | None = None
    if dialogs.is_admin_in_dialog(admin_id):
        result = ClaimResult.ADMIN_BUSY
    elif dialogs.is_user_in_dialog(user_id):
        result = ClaimResult.USER_TAKEN
    elif not dialogs.create(user_id, admin_id):
        result = ClaimResult.CONFLICT

    if result is not None:
        logger.info(
            "Claim of user %s by admin %s rejected: %s", user_id, admin_id, result.value
        )
        if reply_to is not None:
            await safe_reply(reply_to, _REJECTION_TEXT[result])
        return result

    try:
        await send_text(bot, user_id, USER_JOINED_TEXT, reply_markup=leave_keyboard())
        await send_text(bot, admin_id, ADMIN_JOINED_TEXT, reply_markup=close_keyboard())
        if message_id is not None:
            await bot.edit_message_text(
                text=f"Dialog with user ID: {user_id} started by {admin_handle}",
                chat_id=support_chat_id,
                message_id=message_id,
            )
    except Exception as e:
        logger.error("Error starting dialog for user %s: %s", user_id, e)
        dialogs.close(user_id)
        if reply_to is not None:
            await safe_reply(reply_to, CLAIM_FAILED_TEXT)
        return ClaimResult.FAILED

    return ClaimResult.CLAIMED


async def admin_close_dialog(
    bot: Bot,
    dialogs: DialogManager,
    *,
    user_id: str,
    admin_handle: str,
    support_chat_id: int,
    message_id: int | None,
    reply_to: Message | None = None,
) -> bool:
    """Close the dialog of *user_id* from the support chat Close button.

    Returns whether a dialog existed.
    """
    if not dialogs.close(user_id):
        if reply_to is not None:
            await safe_reply(reply_to, DIALOG_NOT_FOUND_TEXT)
        return False

    # The request message is updated even when the user cannot be reached
    if message_id is not None:
        try:
            await bot.edit_message_text(
                text=f"Dialog with user ID: {user_id} closed by {admin_handle}",
                chat_id=support_chat_id,
                message_id=message_id,
            )
        except TelegramError as e:
            logger.error("Could not update support request of user %s: %s", user_id, e)

    try:
        await send_text(
            bot,
            user_id,
            "Your support dialog has been closed.",
            reply_markup=start_keyboard(),
        )
    except DeliveryError as e:
        logger.error("Error in admin-close for user %s: %s", user_id, e.cause)
        if reply_to is not None:
            await safe_reply(reply_to, "An error occurred while closing the dialog.")
        return True

    if reply_to is not None:
        await safe_reply(reply_to, "You closed the dialog.")
    return True


async def admin_close_current(
    bot: Bot,
    dialogs: DialogManager,
    admin_id: int | str,
    reply_to: Message | None = None,
) -> Dialog | None:
    """Close the dialog *admin_id* is handling (Close dialog keyboard)."""
    dialog = dialogs.get_dialog_by_admin(admin_id)
    if dialog is None:
        if reply_to is not None:
            await safe_reply(reply_to, "You have no active dialogs.")
        return None

    dialogs.close(dialog.user_id)
    try:
        await send_text(
            bot,
            dialog.user_id,
            "The support dialog has ended.",
            reply_markup=start_keyboard(),
        )
    except DeliveryError:
        logger.info("User %s not notified of dialog close", dialog.user_id)
    if reply_to is not None:
        await safe_reply(reply_to, "Dialog closed.", reply_markup=back_keyboard())
    return dialog


async def user_leave_dialog(
    bot: Bot,
    dialogs: DialogManager,
    user_id: int | str,
    *,
    handle: str,
    support_chat_id: int,
    reply_to: Message | None = None,
) -> Dialog | None:
    """Close the dialog of *user_id* at the user's request."""
    dialog = dialogs.get_dialog_by_user(user_id)
    if dialog is None:
        if reply_to is not None:
            await safe_reply(reply_to, DIALOG_NOT_FOUND_TEXT)
        return None

    dialogs.close(dialog.user_id)
    if reply_to is not None:
        await safe_reply(reply_to, "You left the dialog.", reply_markup=start_keyboard())
    await safe_send(
        bot, dialog.admin_id, "The user left the dialog.", reply_markup=back_keyboard()
    )
    await safe_send(
        bot, support_chat_id, f"User {handle} left the support dialog."
    )
    return dialog


async def notify_expired(bot: Bot, expired: list[Dialog]) -> None:
    """Tell both sides of each expired dialog that it timed out."""
    for dialog in expired:
        await safe_send(
            bot,
            dialog.user_id,
            "Your support dialog was closed due to inactivity.",
            reply_markup=start_keyboard(),
        )
        await safe_send(
            bot,
            dialog.admin_id,
            f"Dialog with user ID: {dialog.user_id} timed out.",
            reply_markup=back_keyboard(),
        )


# ---------------------------------------------------------------------------
# Telegram entry points
# ---------------------------------------------------------------------------


async def handle_dialog_callback(
    query: CallbackQuery, bot_ctx: BotContext, bot: Bot
) -> bool:
    """Handle Answer/Close buttons. Returns False if *query* is not ours."""
    data = query.data or ""
    claim = CLAIM_RE.match(data)
    close = CLOSE_RE.match(data)
    if not claim and not close:
        return False

    await query.answer()
    message = query.message
    message_id = message.message_id if message else None
    admin = query.from_user

    if claim:
        await claim_dialog(
            bot,
            bot_ctx.dialogs,
            user_id=claim.group(1),
            admin_id=admin.id,
            admin_handle=user_handle(admin),
            support_chat_id=bot_ctx.config.support_chat_id,
            message_id=message_id,
            reply_to=message,
        )
    elif close:
        await admin_close_dialog(
            bot,
            bot_ctx.dialogs,
            user_id=close.group(1),
            admin_handle=user_handle(admin),
            support_chat_id=bot_ctx.config.support_chat_id,
            message_id=message_id,
            reply_to=message,
        )
    return True


async def close_dialog_handler(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """Admin pressed the "Close dialog" keyboard button."""
    user = update.effective_user
    if not user or not update.message:
        return
    await admin_close_current(
        context.bot, _ctx(context).dialogs, user.id, reply_to=update.message
    )


async def leave_dialog_handler(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """User pressed the "Leave dialog" keyboard button."""
    user = update.effective_user
    if not user or not update.message:
        return
    bot_ctx = _ctx(context)
    await user_leave_dialog(
        context.bot,
        bot_ctx.dialogs,
        user.id,
        handle=user_handle(user),
        support_chat_id=bot_ctx.config.support_chat_id,
        reply_to=update.message,
    )
