"""Periodic copy of the SQLite database file to SharePoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .dispatch import DocumentDispatcher

logger = logging.getLogger("renovaflow.documents")


class BackupScheduler:
    """Runs one backup ``initial_delay`` seconds after start, then every ``interval`` seconds."""

    def __init__(self, dispatcher: DocumentDispatcher, *, interval: float, initial_delay: float) -> None:
        self.dispatcher = dispatcher
        self.interval = interval
        self.initial_delay = initial_delay
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        await asyncio.sleep(self.initial_delay)
        while True:
            logger.info("backup.started")
            try:
                await self.dispatcher.backup_database()
            except Exception:
                logger.exception("backup.failed")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="renovaflow-db-backup")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
