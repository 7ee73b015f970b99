"""Telegram bot wiring — registers handlers and manages the bot lifecycle.

Updates are processed concurrently (``concurrent_updates``); dialog state is
only mutated through DialogManager's synchronous methods, so handlers may
interleave at any await without corrupting it.

Core responsibilities:
  - Command handlers: /start, /admin.
  - Keyboard phrase handlers (exact text match): main menu, FAQ, game
    choice, Back, Leave dialog, Close dialog.
  - Callback query handler: dispatches to dialog actions (Answer/Close),
    support prompts and FAQ answers, admin panel.
  - Text handler: admin file-relay input, then dialog relay for
    participants, otherwise intake answers.
  - Error handler: logs unhandled exceptions; the bot keeps running.
  - Lifecycle: post_init starts the DialogSweeper, post_shutdown stops it.

Key functions: create_bot(), text_handler(), callback_handler().
"""

import logging

from telegram import BotCommand, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)
from telegram.request import HTTPXRequest

from .bot_context import BotContext
from .dialogs import Dialog
from .handlers.dialog_actions import (
    close_dialog_handler,
    handle_dialog_callback,
    leave_dialog_handler,
    notify_expired,
)
from .handlers.file_relay import (
    admin_command,
    document_handler,
    handle_admin_callback,
    handle_file_relay_text,
)
from .handlers.intake import GAMES, game_handler, handle_intake_answer, paid_handler
from .handlers.relay import relay_message
from .handlers.support import (
    back_handler,
    faq_handler,
    handle_support_callback,
    not_found_handler,
    start_command,
)
from .keyboards import BTN_ASK, BTN_BACK, BTN_CLOSE, BTN_LEAVE, BTN_NOT_FOUND, BTN_PAID
from .sweeper import DialogSweeper

logger = logging.getLogger(__name__)


def _ctx(context: ContextTypes.DEFAULT_TYPE) -> BotContext:
    """Retrieve the BotContext stored in bot_data."""
    return context.bot_data["bot_ctx"]


def _bot_ctx(application: Application) -> BotContext:
    """Retrieve the BotContext from an Application instance."""
    return application.bot_data["bot_ctx"]


async def text_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Plain text that no keyboard phrase handler claimed."""
    user = update.effective_user
    message = update.message
    if not user or not message or message.text is None:
        return
    bot_ctx = _ctx(context)

    if await handle_file_relay_text(message, user.id, bot_ctx):
        return

    # Dialog participants always reach their counterpart
    in_dialog = bot_ctx.dialogs.get_dialog_participant(user.id) is not None
    if (
        not in_dialog
        and context.user_data is not None
        and await handle_intake_answer(
            context.bot, message, user, context.user_data, bot_ctx
        )
    ):
        return

    await relay_message(
        context.bot,
        bot_ctx.dialogs,
        user.id,
        message.text,
        handle=user.username,
        reply_to=message,
    )


async def callback_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    if not query or not query.data:
        return
    bot_ctx = _ctx(context)

    if await handle_dialog_callback(query, bot_ctx, context.bot):
        return
    if await handle_support_callback(
        query, bot_ctx, context.bot, context.user_data
    ):
        return
    if await handle_admin_callback(query, bot_ctx):
        return

    logger.debug("Unknown callback data: %s", query.data)
    await query.answer()


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    update_id = update.update_id if isinstance(update, Update) else None
    logger.error(
        "Error handling update %s: %s",
        update_id,
        context.error,
        exc_info=context.error,
    )


async def post_init(application: Application) -> None:
    bot_ctx = _bot_ctx(application)

    await application.bot.set_my_commands(
        [
            BotCommand("start", "Main menu"),
            BotCommand("admin", "Admin panel"),
        ]
    )

    async def on_expired(expired: list[Dialog]) -> None:
        await notify_expired(application.bot, expired)

    sweeper = DialogSweeper(
        bot_ctx.dialogs,
        bot_ctx.config.cleanup_interval,
        on_expired=on_expired,
    )
    sweeper.start()
    bot_ctx.sweeper = sweeper


async def post_shutdown(application: Application) -> None:
    bot_ctx = _bot_ctx(application)

    if bot_ctx.sweeper:
        await bot_ctx.sweeper.stop()
        bot_ctx.sweeper = None

    if len(bot_ctx.dialogs):
        logger.info("Dropping %d active dialog(s) on shutdown", len(bot_ctx.dialogs))


def create_bot(bot_ctx: BotContext) -> Application:
    request = HTTPXRequest(
        connection_pool_size=16,
        connect_timeout=10.0,
        read_timeout=30.0,
        write_timeout=30.0,
        pool_timeout=10.0,
    )
    application = (
        Application.builder()
        .token(bot_ctx.config.bot_token)
        .request(request)
        .concurrent_updates(True)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Store bot context in bot_data for handler access
    application.bot_data["bot_ctx"] = bot_ctx

    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("admin", admin_command))
    application.add_handler(CallbackQueryHandler(callback_handler))

    # Keyboard phrases
    application.add_handler(MessageHandler(filters.Text([BTN_PAID]), paid_handler))
    application.add_handler(MessageHandler(filters.Text(list(GAMES)), game_handler))
    application.add_handler(MessageHandler(filters.Text([BTN_BACK]), back_handler))
    application.add_handler(MessageHandler(filters.Text([BTN_ASK]), faq_handler))
    application.add_handler(
        MessageHandler(filters.Text([BTN_NOT_FOUND]), not_found_handler)
    )
    application.add_handler(
        MessageHandler(filters.Text([BTN_CLOSE]), close_dialog_handler)
    )
    application.add_handler(
        MessageHandler(filters.Text([BTN_LEAVE]), leave_dialog_handler)
    )

    application.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, text_handler)
    )
    application.add_handler(MessageHandler(filters.Document.ALL, document_handler))

    application.add_error_handler(error_handler)

    return application
