"""Tests for admin automation control endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock

from httpx import AsyncClient


class TestAutomationControl:
    async def test_status(self, client: AsyncClient, automation):
        resp = await client.get("/api/admin/automation/status")
        assert resp.status_code == 200
        body = resp.json()
        assert body["enabled"] is True
        assert body["running"] is False
        assert body["max_publish_per_batch"] == 10

    async def test_start_and_stop(self, client: AsyncClient, automation):
        resp = await client.post("/api/admin/automation/stop")
        assert resp.status_code == 200
        automation.stop.assert_called_once()

        resp = await client.post("/api/admin/automation/start")
        assert resp.status_code == 200
        automation.start.assert_called_once()

    async def test_trigger_launches_manual_run(self, client: AsyncClient, automation):
        resp = await client.post("/api/admin/automation/trigger")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Automation triggered"}
        automation.launch.assert_called_once_with("manual")

    async def test_trigger_while_running(self, client: AsyncClient, automation):
        automation.launch.return_value = False
        resp = await client.post("/api/admin/automation/trigger")
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "message": "Automation is already running"}

    async def test_controller_missing(self, app, client: AsyncClient):
        app.state.automation = None
        resp = await client.get("/api/admin/automation/status")
        assert resp.status_code == 503

    async def test_requires_auth(self, unauthenticated_client: AsyncClient):
        resp = await unauthenticated_client.post("/api/admin/automation/trigger")
        assert resp.status_code == 401


class TestClearSources:
    async def test_clear_sources_reports_count(self, client: AsyncClient, mock_db):
        result = MagicMock()
        result.rowcount = 3
        mock_db.execute.return_value = result
        resp = await client.post("/api/admin/clear-sources")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["cleared"] == 3
