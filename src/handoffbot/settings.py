"""Bot settings — reads settings.toml + .env to produce a BotConfig.

Key entities:
  - BotConfig: frozen dataclass with all resolved config for the bot.
  - load_settings(): parse .env + settings.toml → BotConfig.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .utils import handoffbot_dir

logger = logging.getLogger(__name__)

DEFAULT_DIALOG_TIMEOUT = 30 * 60.0  # seconds
DEFAULT_CLEANUP_INTERVAL = 5 * 60.0  # seconds

# ---------------------------------------------------------------------------
# BotConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BotConfig:
    """Resolved configuration for the bot.

    All values are pre-resolved; no further env lookups needed.
    """

    # Secrets (resolved from env var name)
    bot_token: str = ""

    # Support group receiving requests and intake summaries
    support_chat_id: int = 0

    # Users allowed into the admin panel
    admins: frozenset[int] = field(default_factory=frozenset)

    # Dialogs
    dialog_timeout: float = DEFAULT_DIALOG_TIMEOUT
    cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL

    # Links shown in FAQ answers
    site_url: str = "https://example.com"

    config_dir: Path = field(default_factory=lambda: handoffbot_dir())

    def is_admin(self, user_id: int | str) -> bool:
        try:
            return int(user_id) in self.admins
        except (TypeError, ValueError):
            return False


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


def load_settings(config_dir: Path | None = None) -> BotConfig:
    """Read .env + settings.toml and return a BotConfig.

    Args:
        config_dir: Override for the base config directory.
                    Defaults to ``handoffbot_dir()``.
    """
    if config_dir is None:
        config_dir = handoffbot_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    # Load .env files (local cwd first, then config_dir)
    local_env = Path(".env")
    global_env = config_dir / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
    if global_env.is_file():
        load_dotenv(global_env)

    toml_path = config_dir / "settings.toml"
    if not toml_path.is_file():
        raise FileNotFoundError(f"Settings file not found: {toml_path}")

    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)

    bot_token_env = raw.get("bot_token_env", "BOT_API_KEY")
    bot_token = os.getenv(bot_token_env, "") if bot_token_env else ""
    if not bot_token:
        raise ValueError(
            f"bot_token_env='{bot_token_env}' is not set or empty in the environment."
        )

    support_chat_id = raw.get("support_chat_id")
    if not isinstance(support_chat_id, int) or support_chat_id == 0:
        raise ValueError("settings.toml must set an integer 'support_chat_id'.")

    admins = frozenset(int(a) for a in raw.get("admins", []))
    if not admins:
        raise ValueError("settings.toml must list at least one admin in 'admins'.")

    dialog_timeout = float(raw.get("dialog_timeout", DEFAULT_DIALOG_TIMEOUT))
    cleanup_interval = float(raw.get("cleanup_interval", DEFAULT_CLEANUP_INTERVAL))
    if dialog_timeout <= 0 or cleanup_interval <= 0:
        raise ValueError("dialog_timeout and cleanup_interval must be positive.")

    logger.debug("Loaded settings from %s", toml_path)
    return BotConfig(
        bot_token=bot_token,
        support_chat_id=support_chat_id,
        admins=admins,
        dialog_timeout=dialog_timeout,
        cleanup_interval=cleanup_interval,
        site_url=str(raw.get("site_url", "https://example.com")),
        config_dir=config_dir,
    )
