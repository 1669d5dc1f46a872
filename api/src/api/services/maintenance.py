"""Background maintenance loop (database probe + expired session sweep)."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from phoneverse.config import get_settings
from phoneverse.database import get_session, probe_database

from api.services.auth_service import sweep_expired_sessions

logger = logging.getLogger(__name__)


async def run_maintenance_worker(
    stop_event: asyncio.Event,
    *,
    poll_interval_seconds: float | None = None,
) -> None:
    settings = get_settings()
    poll_interval = poll_interval_seconds or settings.db_probe_interval_seconds
    sweep_interval = timedelta(seconds=max(60.0, settings.session_sweep_interval_seconds))
    last_sweep_at: datetime | None = None

    logger.info("Maintenance worker started")
    try:
        while not stop_event.is_set():
            healthy = await probe_database()
            now = datetime.now(timezone.utc)
            should_sweep = last_sweep_at is None or (now - last_sweep_at) >= sweep_interval

            if healthy and should_sweep:
                try:
                    async with get_session() as db:
                        await sweep_expired_sessions(db)
                    last_sweep_at = datetime.now(timezone.utc)
                except Exception:
                    logger.exception("Expired session sweep failed")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=poll_interval)
            except TimeoutError:
                pass
    finally:
        logger.info("Maintenance worker stopped")
