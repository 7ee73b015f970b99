"""Intake questionnaire for users who paid for a service.

"I paid for a service" → pick a game → answer the game's questions one
message at a time. The collected answers are posted to the support chat.

State lives in ``context.user_data["_intake"]`` while the questionnaire is
in progress; "Back" abandons it.

Key functions: paid_handler(), game_handler(), handle_intake_answer().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TYPE_CHECKING

from telegram import Bot, Message, Update, User
from telegram.ext import ContextTypes

from ..keyboards import games_keyboard, start_keyboard
from ..utils import user_handle
from .message_sender import safe_reply, safe_send
from .relay import relay_message

if TYPE_CHECKING:
    from ..bot_context import BotContext

logger = logging.getLogger(__name__)

_STATE_KEY = "_intake"


@dataclass(frozen=True)
class Question:
    key: str
    text: str


@dataclass(frozen=True)
class Game:
    label: str
    questions: tuple[Question, ...]


_AGE = Question("age", "How old are you?")
_GOALS = Question("goals", "What are your goals and expectations from training?")

GAMES: dict[str, Game] = {
    "Valorant": Game(
        label="Valorant",
        questions=(
            _AGE,
            Question("rank", "What is your rank in Valorant?"),
            Question("agents", "Which agents do you play?"),
            _GOALS,
        ),
    ),
    "Dota 2": Game(
        label="Dota 2",
        questions=(
            _AGE,
            Question("mmr", "What is your MMR?"),
            Question(
                "heroes",
                "Which position do you play?\nAnd which heroes are you interested in?",
            ),
            _GOALS,
        ),
    ),
}


def clear_intake(user_data: dict[str, Any]) -> None:
    user_data.pop(_STATE_KEY, None)


def format_summary(user: User, game: Game, answers: dict[str, str]) -> str:
    lines = [f"{user_handle(user)} paid for {game.label}"]
    lines.extend(f"{key}: {value}" for key, value in answers.items())
    lines.append(f"Time: {datetime.now().strftime('%H:%M:%S')}")
    return "\n".join(lines)


async def paid_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message:
        return
    await safe_reply(
        update.message, "Choose a game", reply_markup=games_keyboard(list(GAMES))
    )


async def game_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Start the questionnaire for the chosen game.

    Inside a support dialog a game label is ordinary text and is relayed.
    """
    message = update.message
    user = update.effective_user
    if not message or not user or context.user_data is None:
        return
    bot_ctx: BotContext = context.bot_data["bot_ctx"]
    if bot_ctx.dialogs.get_dialog_participant(user.id) is not None:
        await relay_message(
            context.bot,
            bot_ctx.dialogs,
            user.id,
            message.text or "",
            handle=user.username,
            reply_to=message,
        )
        return
    game = GAMES.get(message.text or "")
    if game is None:
        return
    context.user_data[_STATE_KEY] = {"game": game.label, "step": 0, "answers": {}}
    await safe_reply(message, game.questions[0].text)


async def handle_intake_answer(
    bot: Bot,
    message: Message,
    user: User,
    user_data: dict[str, Any],
    bot_ctx: BotContext,
) -> bool:
    """Record *message* as the answer to the current question.

    Returns False if the user is not in a questionnaire.
    """
    state = user_data.get(_STATE_KEY)
    if not state:
        return False
    game = GAMES.get(state["game"])
    if game is None:
        clear_intake(user_data)
        return False

    step: int = state["step"]
    state["answers"][game.questions[step].key] = message.text or ""
    step += 1
    if step < len(game.questions):
        state["step"] = step
        await safe_reply(message, game.questions[step].text)
        return True

    clear_intake(user_data)
    summary = format_summary(user, game, state["answers"])
    await safe_send(bot, bot_ctx.config.support_chat_id, summary)
    logger.info("Intake for %s completed by user %s", game.label, user.id)
    await safe_reply(
        message,
        "Thank you! Your details have been sent to the coaches.",
        reply_markup=start_keyboard(),
    )
    return True
