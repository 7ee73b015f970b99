"""Dialog registry — live one-to-one pairings between users and admins.

DialogManager exclusively owns the in-memory registry of active dialogs,
keyed by the user's id. Admin lookups scan the (small) set of values.

All methods are synchronous: callers running on the event loop can rely on
``create`` being a single check-and-insert with no suspension point, which
makes it the arbiter when two admins race to claim the same user.

Identities arrive as ints from Telegram and as strings from callback data;
every method normalizes them with ``str()`` before touching the registry.

Key entities:
  - Dialog: frozen record handed out to callers.
  - DialogManager: create / lookup / close / cleanup_stale.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal

from .settings import DEFAULT_DIALOG_TIMEOUT

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Participant = Literal["user", "admin"]


class InvalidIdentityError(ValueError):
    """Raised when a user or admin id is not a numeric string."""


@dataclass(frozen=True)
class Dialog:
    """An open dialog. Closing removes the record; it is never mutated."""

    user_id: str
    admin_id: str
    start_time: float
    status: Literal["open"] = "open"

    def age(self, now: float) -> float:
        return now - self.start_time


def _normalize(identity: int | str) -> str:
    return str(identity)


def _is_valid_identity(identity: str) -> bool:
    return identity.isascii() and identity.isdigit()


class DialogManager:
    """Owns all active dialogs for the process lifetime."""

    def __init__(
        self,
        *,
        dialog_timeout: float = DEFAULT_DIALOG_TIMEOUT,
        clock: Clock = time.time,
    ) -> None:
        self.dialog_timeout = dialog_timeout
        self._clock = clock
        self._dialogs: dict[str, Dialog] = {}  # user_id → dialog

    def __len__(self) -> int:
        return len(self._dialogs)

    def __contains__(self, user_id: object) -> bool:
        return str(user_id) in self._dialogs

    def dialogs(self) -> list[Dialog]:
        """Snapshot of all active dialogs in creation order."""
        return list(self._dialogs.values())

    # --- Mutation ---

    def create(self, user_id: int | str, admin_id: int | str) -> bool:
        """Open a dialog between *user_id* and *admin_id*.

        Returns False without mutation if the user already has a dialog.

        Raises:
            InvalidIdentityError: either id is not a non-empty digit string.
        """
        uid = _normalize(user_id)
        aid = _normalize(admin_id)
        if not _is_valid_identity(uid) or not _is_valid_identity(aid):
            raise InvalidIdentityError(
                f"Invalid user or admin ID: user={uid!r} admin={aid!r}"
            )

        if uid in self._dialogs:
            return False

        self._dialogs[uid] = Dialog(user_id=uid, admin_id=aid, start_time=self._clock())
        logger.info("Dialog opened: user=%s admin=%s", uid, aid)
        return True

    def close(self, user_id: int | str) -> bool:
        """Remove the dialog keyed by *user_id*. Returns whether one existed."""
        dialog = self._dialogs.pop(_normalize(user_id), None)
        if dialog is None:
            return False
        logger.info("Dialog closed: user=%s admin=%s", dialog.user_id, dialog.admin_id)
        return True

    def cleanup_stale(self) -> list[Dialog]:
        """Close every dialog older than ``dialog_timeout``.

        Returns the removed dialogs.
        """
        now = self._clock()
        expired: list[Dialog] = []
        for uid, dialog in list(self._dialogs.items()):
            if dialog.age(now) > self.dialog_timeout and self.close(uid):
                expired.append(dialog)
        if expired:
            logger.info("Expired %d stale dialog(s)", len(expired))
        return expired

    # --- Queries ---

    def is_user_in_dialog(self, user_id: int | str) -> bool:
        return _normalize(user_id) in self._dialogs

    def is_admin_in_dialog(self, admin_id: int | str) -> bool:
        return self.get_dialog_by_admin(admin_id) is not None

    def get_dialog_by_user(self, user_id: int | str) -> Dialog | None:
        return self._dialogs.get(_normalize(user_id))

    def get_dialog_by_admin(self, admin_id: int | str) -> Dialog | None:
        aid = _normalize(admin_id)
        for dialog in self._dialogs.values():
            if dialog.admin_id == aid:
                return dialog
        return None

    def get_dialog_participant(self, identity: int | str) -> Participant | None:
        """Return the role *identity* holds in an active dialog, if any.

        The user role is checked before the admin role.
        """
        if self.get_dialog_by_user(identity) is not None:
            return "user"
        if self.get_dialog_by_admin(identity) is not None:
            return "admin"
        return None
