"""Shared helpers: config directory resolution and identity formatting."""

from __future__ import annotations

import os
from pathlib import Path

from telegram import User


def handoffbot_dir() -> Path:
    """Return the config directory ($HANDOFFBOT_DIR or ~/.handoffbot)."""
    raw = os.environ.get("HANDOFFBOT_DIR", "")
    if raw:
        return Path(os.path.expanduser(raw))
    return Path.home() / ".handoffbot"


def user_handle(user: User) -> str:
    """Return ``@username`` when set, otherwise the first name."""
    if user.username:
        return f"@{user.username}"
    return user.first_name or str(user.id)
