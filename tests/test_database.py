"""Tests for the database connectivity check and reconnect."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from phoneverse.database import probe_database


async def test_healthy_database_keeps_engine():
    ping = AsyncMock(return_value=None)
    close = AsyncMock()
    with patch("phoneverse.database._ping", ping), patch("phoneverse.database.close_engine", close):
        assert await probe_database() is True
    ping.assert_awaited_once()
    close.assert_not_awaited()


async def test_failed_ping_rebuilds_engine_once():
    ping = AsyncMock(side_effect=[ConnectionError("reset"), None])
    close = AsyncMock()
    with patch("phoneverse.database._ping", ping), patch("phoneverse.database.close_engine", close):
        assert await probe_database() is True
    assert ping.await_count == 2
    close.assert_awaited_once()


async def test_second_failure_gives_up():
    ping = AsyncMock(side_effect=[ConnectionError("reset"), ConnectionError("still down")])
    close = AsyncMock()
    with patch("phoneverse.database._ping", ping), patch("phoneverse.database.close_engine", close):
        assert await probe_database() is False
    # One retry, no loop.
    assert ping.await_count == 2
    close.assert_awaited_once()
