"""Reply and inline keyboards shared by the handlers.

Reply keyboard labels double as message triggers (matched exactly by
``filters.Text``), so handlers import the BTN_* constants from here.
"""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup

from .handlers.callback_data import (
    CB_ADMIN_CANCEL,
    CB_ADMIN_SENDFILE,
    CB_CANCEL,
    CB_CLAIM,
    CB_CLOSE,
    CB_FAQ,
    CB_START_CONV,
)

BTN_ASK = "I have a question"
BTN_PAID = "I paid for a service"
BTN_BACK = "Back"
BTN_NOT_FOUND = "Didn't find my question!"
BTN_LEAVE = "Leave dialog"
BTN_CLOSE = "Close dialog"

# Labels that control a dialog and must never be relayed as content
DIALOG_CONTROL_LABELS = frozenset({BTN_LEAVE, BTN_CLOSE, BTN_BACK})


def start_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [[BTN_ASK], [BTN_PAID]], resize_keyboard=True, one_time_keyboard=True
    )


def single_button_keyboard(label: str) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup([[label]], resize_keyboard=True, one_time_keyboard=True)


def leave_keyboard() -> ReplyKeyboardMarkup:
    return single_button_keyboard(BTN_LEAVE)


def close_keyboard() -> ReplyKeyboardMarkup:
    return single_button_keyboard(BTN_CLOSE)


def back_keyboard() -> ReplyKeyboardMarkup:
    return single_button_keyboard(BTN_BACK)


def games_keyboard(game_labels: list[str]) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [game_labels, [BTN_BACK]], resize_keyboard=True, one_time_keyboard=True
    )


def faq_followup_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup([[BTN_NOT_FOUND, BTN_BACK]], resize_keyboard=True)


def faq_inline_keyboard(count: int, per_row: int = 3) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(str(n), callback_data=f"{CB_FAQ}{n}")
        for n in range(1, count + 1)
    ]
    rows = [buttons[i : i + per_row] for i in range(0, len(buttons), per_row)]
    return InlineKeyboardMarkup(rows)


def start_conv_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("Yes", callback_data=CB_START_CONV),
                InlineKeyboardButton("No", callback_data=CB_CANCEL),
            ]
        ]
    )


def support_request_keyboard(user_id: int | str) -> InlineKeyboardMarkup:
    """Answer/Close buttons attached to a support request in the support chat."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("Answer", callback_data=f"{CB_CLAIM}{user_id}"),
                InlineKeyboardButton("Close", callback_data=f"{CB_CLOSE}{user_id}"),
            ]
        ]
    )


def admin_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(
                    "\U0001f4e4 Send file to user", callback_data=CB_ADMIN_SENDFILE
                ),
                InlineKeyboardButton(
                    "❌ Cancel sending", callback_data=CB_ADMIN_CANCEL
                ),
            ]
        ]
    )
