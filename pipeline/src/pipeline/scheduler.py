"""Interval scheduler for automation runs."""

from __future__ import annotations

import asyncio
import logging
import re

from pipeline.automation import TRIGGER_SCHEDULED, AutomationController

logger = logging.getLogger(__name__)

_SHORTHAND_RE = re.compile(r"^(\d+)\s*([mh])$", re.IGNORECASE)


def parse_schedule_interval(schedule: str) -> float:
    """Return the period in seconds for ``*/N * * * *``, ``M */N * * *``, ``Nm`` or ``Nh``."""
    schedule = schedule.strip()
    match = _SHORTHAND_RE.match(schedule)
    if match:
        value = int(match.group(1))
        if value <= 0:
            raise ValueError(f"Invalid schedule '{schedule}'.")
        return float(value * (60 if match.group(2).lower() == "m" else 3600))

    parts = schedule.split()
    if len(parts) != 5:
        raise ValueError(
            f"Unsupported schedule '{schedule}'. Expected '*/N * * * *', 'M */N * * *', 'Nm' or 'Nh'."
        )
    minute_str, hour_str, dom, month, dow = parts
    if dom != "*" or month != "*" or dow != "*":
        raise ValueError(f"Unsupported schedule '{schedule}'. Only interval schedules are supported.")

    if minute_str.startswith("*/") and hour_str == "*":
        minutes = int(minute_str[2:])
        if minutes <= 0 or minutes > 59:
            raise ValueError(f"Invalid schedule '{schedule}'.")
        return float(minutes * 60)

    if hour_str.startswith("*/") and minute_str.isdigit():
        hours = int(hour_str[2:])
        if hours <= 0 or hours > 23 or int(minute_str) > 59:
            raise ValueError(f"Invalid schedule '{schedule}'.")
        return float(hours * 3600)

    raise ValueError(f"Unsupported schedule '{schedule}'.")


async def _wait_or_stop(stop_event: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout``; True when the stop event fired."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=max(timeout, 0.0))
        return True
    except TimeoutError:
        return False


async def _run_scheduled(controller: AutomationController) -> None:
    try:
        await controller.run_once(TRIGGER_SCHEDULED)
    except Exception:
        logger.exception("Scheduled automation run failed")


async def run_automation_scheduler(
    controller: AutomationController,
    stop_event: asyncio.Event,
    *,
    schedule: str = "*/10 * * * *",
    run_on_start: bool = True,
    initial_delay: float = 30.0,
) -> None:
    interval = parse_schedule_interval(schedule)
    logger.info("Automation scheduler started: '%s' (every %d seconds)", schedule, int(interval))
    try:
        if run_on_start:
            if await _wait_or_stop(stop_event, initial_delay):
                return
            logger.info("Running initial automation batch")
            await _run_scheduled(controller)

        while not stop_event.is_set():
            if await _wait_or_stop(stop_event, interval):
                return
            await _run_scheduled(controller)
    finally:
        logger.info("Automation scheduler stopped")
