from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.crud.session import sweep_expired_sessions

logger = logging.getLogger(__name__)


def run_sweep(session_factory: Callable[[], Session], *, now: Optional[datetime] = None) -> int:
    """Open a fresh DB session, delete expired sessions and return the count."""
    db = session_factory()
    try:
        deleted = sweep_expired_sessions(db, now=now)
    finally:
        db.close()
    logger.info("Session sweep removed %d expired session(s)", deleted)
    return deleted


class SessionSweeper:
    """Runs :func:`run_sweep` on a fixed interval inside the event loop."""

    def __init__(self, session_factory: Callable[[], Session], interval_seconds: float) -> None:
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Session sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session sweeper stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await asyncio.to_thread(run_sweep, self._session_factory)
            except Exception as exc:  # noqa: BLE001
                logger.error("Session sweep failed: %s", exc)
            await asyncio.sleep(self._interval)
