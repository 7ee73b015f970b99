"""End-to-end handler tests for bot.py with a mocked Telegram Bot."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.ext import Application

from handoffbot.bot import callback_handler, create_bot, error_handler, text_handler
from handoffbot.bot_context import BotContext, FileRelaySession, create_bot_context
from handoffbot.dialogs import DialogManager
from handoffbot.handlers.dialog_actions import USER_TAKEN_TEXT
from handoffbot.settings import BotConfig

SUPPORT_CHAT = -1001
ADMIN_A = 900
ADMIN_B = 901
USER_U = 111


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bot_ctx(clock: FakeClock) -> BotContext:
    config = BotConfig(
        bot_token="test:token",
        support_chat_id=SUPPORT_CHAT,
        admins=frozenset({ADMIN_A, ADMIN_B}),
        dialog_timeout=1800.0,
    )
    return BotContext(
        config=config, dialogs=DialogManager(dialog_timeout=1800.0, clock=clock)
    )


@pytest.fixture
def bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.edit_message_text = AsyncMock()
    return bot


@pytest.fixture
def context(bot: MagicMock, bot_ctx: BotContext) -> MagicMock:
    context = MagicMock()
    context.bot = bot
    context.bot_data = {"bot_ctx": bot_ctx}
    context.user_data = {}
    return context


def _text_update(user_id: int, text: str, username: str | None = None) -> MagicMock:
    update = MagicMock()
    update.effective_user = MagicMock(id=user_id, username=username)
    update.message = MagicMock()
    update.message.text = text
    update.message.reply_text = AsyncMock()
    return update


def _callback_update(user_id: int, data: str, username: str = "admin") -> MagicMock:
    update = MagicMock()
    query = MagicMock()
    query.data = data
    query.answer = AsyncMock()
    query.from_user = MagicMock(id=user_id, username=username)
    query.message = MagicMock(message_id=42)
    query.message.reply_text = AsyncMock()
    update.callback_query = query
    return update


def _last_sent(bot: MagicMock) -> tuple[str, str]:
    kwargs = bot.send_message.call_args.kwargs
    return str(kwargs["chat_id"]), kwargs["text"]


class TestScenarios:
    async def test_claim_relay_close(self, bot, bot_ctx, context):
        await callback_handler(_callback_update(ADMIN_A, f"answer_{USER_U}"), context)
        dialog = bot_ctx.dialogs.get_dialog_by_user(USER_U)
        assert dialog is not None and dialog.admin_id == str(ADMIN_A)
        assert len(bot_ctx.dialogs) == 1

        bot.send_message.reset_mock()
        await text_handler(_text_update(ADMIN_A, "hello"), context)
        assert _last_sent(bot) == (str(USER_U), "hello")

        bot.send_message.reset_mock()
        await text_handler(_text_update(USER_U, "hi", username="user_u"), context)
        assert _last_sent(bot) == (str(ADMIN_A), "From user @user_u:\nhi")

        bot.send_message.reset_mock()
        await callback_handler(_callback_update(ADMIN_A, f"close_{USER_U}"), context)
        assert len(bot_ctx.dialogs) == 0
        assert _last_sent(bot) == (str(USER_U), "Your support dialog has been closed.")

    async def test_second_admin_rejected(self, bot, bot_ctx, context):
        await callback_handler(_callback_update(ADMIN_A, f"answer_{USER_U}"), context)
        before = bot_ctx.dialogs.dialogs()

        update_b = _callback_update(ADMIN_B, f"answer_{USER_U}", username="b")
        await callback_handler(update_b, context)
        update_b.callback_query.message.reply_text.assert_awaited_once_with(
            USER_TAKEN_TEXT
        )
        assert bot_ctx.dialogs.dialogs() == before

    async def test_idle_dialog_swept(self, bot, bot_ctx, context, clock):
        from handoffbot.sweeper import DialogSweeper

        await callback_handler(_callback_update(ADMIN_A, f"answer_{USER_U}"), context)
        clock.now += 1800.001
        await DialogSweeper(bot_ctx.dialogs, interval=300.0).tick()
        assert not bot_ctx.dialogs.is_user_in_dialog(USER_U)

    async def test_game_choice_then_support_request(self, bot, bot_ctx, context):
        from handoffbot.handlers.intake import game_handler

        user_update = _text_update(USER_U, "Valorant", username="u")
        await game_handler(user_update, context)
        assert "_intake" in context.user_data

        await callback_handler(
            _callback_update(USER_U, "start-conv", username="u"), context
        )
        assert "_intake" not in context.user_data
        await callback_handler(_callback_update(ADMIN_A, f"answer_{USER_U}"), context)

        bot.send_message.reset_mock()
        await text_handler(
            _text_update(USER_U, "my account is broken", username="u"), context
        )
        assert _last_sent(bot) == (
            str(ADMIN_A),
            "From user @u:\nmy account is broken",
        )

    async def test_game_label_relayed_inside_dialog(self, bot, bot_ctx, context):
        from handoffbot.handlers.intake import game_handler

        bot_ctx.dialogs.create(USER_U, ADMIN_A)
        await game_handler(_text_update(USER_U, "Valorant", username="u"), context)
        assert "_intake" not in context.user_data
        assert _last_sent(bot) == (str(ADMIN_A), "From user @u:\nValorant")

    async def test_non_participant_text_ignored(self, bot, context):
        update = _text_update(555, "random text")
        await text_handler(update, context)
        bot.send_message.assert_not_called()
        update.message.reply_text.assert_not_called()


class TestTextHandlerPriority:
    async def test_file_relay_input_wins(self, bot, bot_ctx, context):
        bot_ctx.dialogs.create(USER_U, ADMIN_A)
        bot_ctx.file_sessions[ADMIN_A] = FileRelaySession()
        await text_handler(_text_update(ADMIN_A, "222"), context)
        bot.send_message.assert_not_called()
        assert bot_ctx.file_sessions[ADMIN_A].user_id == "222"

    async def test_intake_answer_outside_dialog(self, bot, bot_ctx, context):
        context.user_data["_intake"] = {"game": "Valorant", "step": 0, "answers": {}}
        update = _text_update(USER_U, "20")
        await text_handler(update, context)
        bot.send_message.assert_not_called()
        assert context.user_data["_intake"]["answers"] == {"age": "20"}

    async def test_dialog_relay_beats_stale_intake(self, bot, bot_ctx, context):
        bot_ctx.dialogs.create(USER_U, ADMIN_A)
        context.user_data["_intake"] = {"game": "Valorant", "step": 0, "answers": {}}
        await text_handler(_text_update(USER_U, "20", username="u"), context)
        assert _last_sent(bot) == (str(ADMIN_A), "From user @u:\n20")
        assert context.user_data["_intake"]["answers"] == {}


class TestErrorHandler:
    async def test_logs_error(self, caplog):
        context = MagicMock()
        context.error = RuntimeError("boom")
        with caplog.at_level("ERROR", logger="handoffbot.bot"):
            await error_handler(None, context)
        assert "boom" in caplog.text


class TestCreateBot:
    def test_builds_application(self):
        config = BotConfig(
            bot_token="123456:TESTTOKEN",
            support_chat_id=SUPPORT_CHAT,
            admins=frozenset({ADMIN_A}),
        )
        bot_ctx = create_bot_context(config)
        application = create_bot(bot_ctx)
        assert isinstance(application, Application)
        assert application.bot_data["bot_ctx"] is bot_ctx
        assert len(application.handlers[0]) == 12
        assert application.error_handlers

    def test_context_uses_configured_timeout(self):
        config = BotConfig(dialog_timeout=42.0)
        assert create_bot_context(config).dialogs.dialog_timeout == 42.0
