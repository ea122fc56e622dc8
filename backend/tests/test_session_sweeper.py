from __future__ import annotations

import asyncio
import threading
from datetime import timedelta

from sqlalchemy import func, select

from app.crud.session import create_session
from app.db.types import utcnow
from app.models.session import UserSession
from app.services import session_sweeper
from app.services.session_sweeper import SessionSweeper, run_sweep


def _expired(db, user_id):
    now = utcnow()
    return create_session(
        db,
        user_id=user_id,
        token="t",
        expires_at=now - timedelta(minutes=1),
        now=now - timedelta(hours=1),
    )


def _count(db) -> int:
    return db.execute(select(func.count()).select_from(UserSession)).scalar_one()


async def _wait_for(event: threading.Event) -> None:
    for _ in range(200):
        if event.is_set():
            return
        await asyncio.sleep(0.01)


def test_run_sweep_uses_its_own_session(db, session_factory, user) -> None:
    _expired(db, user.id)
    _expired(db, user.id)
    assert run_sweep(session_factory) == 2
    assert run_sweep(session_factory) == 0
    assert _count(db) == 0


def test_sweeper_runs_immediately_and_stops(monkeypatch, db, session_factory, user) -> None:
    _expired(db, user.id)
    swept = threading.Event()

    def recording_sweep(factory):
        deleted = run_sweep(factory)
        swept.set()
        return deleted

    monkeypatch.setattr(session_sweeper, "run_sweep", recording_sweep)

    async def scenario() -> None:
        sweeper = SessionSweeper(session_factory, interval_seconds=3600)
        sweeper.start()
        assert sweeper.running
        await _wait_for(swept)
        await sweeper.stop()
        assert not sweeper.running

    asyncio.run(scenario())
    assert swept.is_set()
    assert _count(db) == 0


def test_sweeper_survives_failures() -> None:
    calls = []
    retried = threading.Event()

    def broken_factory():
        calls.append(1)
        if len(calls) >= 2:
            retried.set()
        raise RuntimeError("database unavailable")

    async def scenario() -> None:
        sweeper = SessionSweeper(broken_factory, interval_seconds=0.01)
        sweeper.start()
        await _wait_for(retried)
        assert sweeper.running
        await sweeper.stop()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_stop_without_start_is_harmless(session_factory) -> None:
    asyncio.run(SessionSweeper(session_factory, interval_seconds=1).stop())
