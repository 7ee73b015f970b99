"""BotContext — bundles the resolved config with its service instances.

Holds the BotConfig plus the DialogManager, DialogSweeper and admin
file-relay sessions for the running bot.

Used by bot.py and handlers via ``context.bot_data["bot_ctx"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TYPE_CHECKING

from .dialogs import DialogManager

if TYPE_CHECKING:
    from .settings import BotConfig
    from .sweeper import DialogSweeper


@dataclass
class FileRelaySession:
    """An admin's in-progress "send file to user" flow."""

    step: Literal["awaiting_user_id", "awaiting_file"] = "awaiting_user_id"
    user_id: str = ""


@dataclass
class BotContext:
    """Runtime context for the bot."""

    config: BotConfig
    dialogs: DialogManager
    sweeper: DialogSweeper | None = None

    # admin_id -> FileRelaySession
    file_sessions: dict[int, FileRelaySession] = field(default_factory=dict)


def create_bot_context(config: BotConfig) -> BotContext:
    """Build a BotContext from a BotConfig.

    The DialogSweeper is left as None (created during bot startup, when
    the event loop and Bot are available).
    """
    dialogs = DialogManager(dialog_timeout=config.dialog_timeout)
    return BotContext(config=config, dialogs=dialogs)
