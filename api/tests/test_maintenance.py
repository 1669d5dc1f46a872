"""Tests for the expired-session sweep and the maintenance worker."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

from api.services.auth_service import sweep_expired_sessions
from api.services.maintenance import run_maintenance_worker
from sqlalchemy.dialects import postgresql

CUTOFF = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


@asynccontextmanager
async def _fake_session():
    yield MagicMock()


class TestSweepExpiredSessions:
    async def test_deletes_rows_past_cutoff(self, mock_db):
        mock_db.execute.return_value.rowcount = 3

        removed = await sweep_expired_sessions(mock_db, now=CUTOFF)

        assert removed == 3
        statement = mock_db.execute.await_args.args[0]
        compiled = statement.compile(dialect=postgresql.dialect())
        assert str(compiled).startswith("DELETE FROM user_sessions WHERE user_sessions.expires_at <=")
        assert list(compiled.params.values()) == [CUTOFF]

    async def test_nothing_to_sweep(self, mock_db):
        assert await sweep_expired_sessions(mock_db, now=CUTOFF) == 0


class TestMaintenanceWorker:
    async def test_checks_database_then_sweeps(self):
        stop = asyncio.Event()
        check = AsyncMock(return_value=True)

        def sweep(db):
            stop.set()
            return 2

        with (
            patch("api.services.maintenance.probe_database", check),
            patch("api.services.maintenance.get_session", _fake_session),
            patch(
                "api.services.maintenance.sweep_expired_sessions", AsyncMock(side_effect=sweep)
            ) as sweep_mock,
        ):
            await run_maintenance_worker(stop, poll_interval_seconds=0.01)

        check.assert_awaited_once()
        sweep_mock.assert_awaited_once()

    async def test_unhealthy_database_skips_sweep(self):
        stop = asyncio.Event()

        def check():
            stop.set()
            return False

        with (
            patch("api.services.maintenance.probe_database", AsyncMock(side_effect=check)),
            patch("api.services.maintenance.get_session", _fake_session),
            patch("api.services.maintenance.sweep_expired_sessions", AsyncMock()) as sweep_mock,
        ):
            await run_maintenance_worker(stop, poll_interval_seconds=0.01)

        sweep_mock.assert_not_awaited()

    async def test_sweep_failure_keeps_worker_alive(self):
        stop = asyncio.Event()
        calls = {"n": 0}

        def sweep(db):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("lock timeout")
            stop.set()
            return 0

        with (
            patch("api.services.maintenance.probe_database", AsyncMock(return_value=True)),
            patch("api.services.maintenance.get_session", _fake_session),
            patch("api.services.maintenance.sweep_expired_sessions", AsyncMock(side_effect=sweep)),
        ):
            await run_maintenance_worker(stop, poll_interval_seconds=0.01)

        # A failed sweep is retried on the next poll.
        assert calls["n"] == 2
