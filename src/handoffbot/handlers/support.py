"""Main menu, FAQ and support requests.

Flow for end users:
  /start → main menu → "I have a question" → FAQ list with answer buttons
  → "Didn't find my question!" → "Start a dialog?" → Yes posts a support
  request with Answer/Close buttons to the support chat.

Key functions: start_command(), faq_handler(), not_found_handler(),
back_handler(), handle_support_callback().
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from telegram import Bot, CallbackQuery, Update
from telegram.constants import ChatType
from telegram.ext import ContextTypes

from ..keyboards import (
    faq_followup_keyboard,
    faq_inline_keyboard,
    leave_keyboard,
    start_conv_keyboard,
    start_keyboard,
    support_request_keyboard,
)
from ..utils import user_handle
from .callback_data import CB_CANCEL, CB_START_CONV, FAQ_RE
from .intake import clear_intake
from .message_sender import safe_reply, safe_send

if TYPE_CHECKING:
    from ..bot_context import BotContext

logger = logging.getLogger(__name__)

USERNAME_REQUIRED_TEXT = (
    "❗ Please set a Username in Telegram so we can contact you.\n\n"
    "How to do it:\n"
    "1. Open Telegram settings\n"
    "2. Choose 'Username'\n"
    "3. Pick a unique username"
)

FAQ_QUESTIONS = [
    "How do I pay for a service?",
    "What should I do after paying?",
    "How is training time scheduled? Can a session be moved?",
    "What progress do you guarantee? What if there are no results?",
    "Can I record a training session?",
    "How do I become a coach?",
]


def faq_answers(site_url: str) -> list[str]:
    return [
        f"Payment is made on our website: {site_url}",
        'After paying, open this bot and press "I paid for a service". '
        "Fill in a short form and a coach will contact you.",
        "Training time is agreed individually with your coach.\n"
        "A session can be moved no later than 24 hours before it starts.",
        "We guarantee your skills improve as long as you follow "
        "all of the coach's recommendations.",
        "Yes, you can record a training session if you need to.",
        f"To become a coach, fill in the form on {site_url}",
    ]


def _faq_text() -> str:
    lines = [f"{i}. {q}" for i, q in enumerate(FAQ_QUESTIONS, start=1)]
    return (
        "Frequently asked questions:\n\n"
        + "\n".join(lines)
        + "\n\n\nPick your question below to see the answer 👇"
    )


def _ctx(context: ContextTypes.DEFAULT_TYPE) -> BotContext:
    return context.bot_data["bot_ctx"]


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    chat = update.effective_chat
    if not user or not update.message:
        return

    if chat and chat.type != ChatType.PRIVATE:
        await safe_reply(
            update.message, "This command only works in private messages with the bot."
        )
        return

    if not user.username:
        await safe_reply(update.message, USERNAME_REQUIRED_TEXT)
        return

    await safe_reply(
        update.message,
        f"Hi! I'm the {_ctx(context).config.site_url} support bot.\n"
        "Choose what you are interested in below 👇",
        reply_markup=start_keyboard(),
    )


async def faq_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    await safe_reply(
        update.message,
        _faq_text(),
        reply_markup=faq_inline_keyboard(len(FAQ_QUESTIONS)),
    )
    await safe_reply(
        update.message,
        "Didn't find your question? 👇",
        reply_markup=faq_followup_keyboard(),
    )


async def not_found_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    await safe_reply(
        update.message,
        "Do you want to start a dialog with support?",
        reply_markup=start_conv_keyboard(),
    )


async def back_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    if context.user_data is not None:
        clear_intake(context.user_data)
    await safe_reply(update.message, "You went back.", reply_markup=start_keyboard())


async def request_support(
    bot: Bot, query: CallbackQuery, support_chat_id: int
) -> None:
    """Post a support request for the query's user to the support chat."""
    user = query.from_user
    if query.message:
        await safe_reply(
            query.message,  # type: ignore[arg-type]
            "Please wait for a support agent to join...",
            reply_markup=leave_keyboard(),
        )
    sent = await safe_send(
        bot,
        support_chat_id,
        f"{user_handle(user)} (ID: {user.id}) requests support",
        reply_markup=support_request_keyboard(user.id),
    )
    if sent is None:
        logger.error("Support request of user %s was not posted", user.id)
    else:
        logger.info("Support request posted for user %s", user.id)


async def handle_support_callback(
    query: CallbackQuery,
    bot_ctx: BotContext,
    bot: Bot,
    user_data: dict[str, Any] | None = None,
) -> bool:
    """Handle FAQ answers and the start-dialog prompt. False if not ours.

    Starting a support request abandons any questionnaire in *user_data*.
    """
    data = query.data or ""

    faq = FAQ_RE.match(data)
    if faq:
        await query.answer()
        answers = faq_answers(bot_ctx.config.site_url)
        index = int(faq.group(1)) - 1
        if 0 <= index < len(answers) and query.message:
            await safe_reply(query.message, answers[index])  # type: ignore[arg-type]
        return True

    if data == CB_START_CONV:
        await query.answer()
        if user_data is not None:
            clear_intake(user_data)
        await request_support(bot, query, bot_ctx.config.support_chat_id)
        return True

    if data == CB_CANCEL:
        await query.answer()
        if query.message:
            await safe_reply(
                query.message,  # type: ignore[arg-type]
                "How else can I help?",
                reply_markup=start_keyboard(),
            )
        return True

    return False
