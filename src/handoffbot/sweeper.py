"""DialogSweeper — periodic expiry of stale dialogs.

Runs a single asyncio timer loop that calls DialogManager.cleanup_stale()
every ``interval`` seconds. Expired dialogs are handed to an optional async
callback (the bot uses it to notify both participants).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from .dialogs import Dialog, DialogManager

logger = logging.getLogger(__name__)

ExpiredCallback = Callable[["list[Dialog]"], Awaitable[None]]


class DialogSweeper:
    """Owns the background task that sweeps stale dialogs."""

    def __init__(
        self,
        dialogs: DialogManager,
        interval: float,
        on_expired: ExpiredCallback | None = None,
    ) -> None:
        self._dialogs = dialogs
        self._interval = interval
        self._on_expired = on_expired
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- Lifecycle ---

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Dialog sweeper started (interval: %ss)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Dialog sweeper stopped")

    # --- Sweep ---

    async def tick(self) -> list[Dialog]:
        """Run one sweep and report expired dialogs to the callback."""
        expired = self._dialogs.cleanup_stale()
        for dialog in expired:
            logger.info(
                "Dialog timed out: user=%s admin=%s", dialog.user_id, dialog.admin_id
            )
        if expired and self._on_expired is not None:
            await self._on_expired(expired)
        return expired

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("Dialog sweep failed")
