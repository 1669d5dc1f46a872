"""Pipeline entry point for running as a module: python -m pipeline."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from phoneverse.config import get_settings
from phoneverse.database import close_engine

from pipeline.automation import STATUS_COMPLETED, TRIGGER_MANUAL, build_controller
from pipeline.scheduler import run_automation_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    stream=sys.stdout,
)

logger = logging.getLogger("pipeline")


async def _run_once() -> int:
    controller = build_controller()
    try:
        result = await controller.run_once(TRIGGER_MANUAL)
    finally:
        await controller.aclose()
    logger.info("Automation run finished: %s", result.as_dict())
    return 0 if result.status == STATUS_COMPLETED else 1


async def _run_scheduler() -> None:
    settings = get_settings()
    controller = build_controller(settings)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass
    try:
        await run_automation_scheduler(
            controller,
            stop_event,
            schedule=settings.automation_schedule,
            run_on_start=settings.automation_run_on_start,
            initial_delay=settings.automation_initial_delay_seconds,
        )
    finally:
        await controller.wait_idle(timeout=5)
        await controller.aclose()


async def main() -> None:
    """Run one automation pass or scheduler mode."""
    logger.info("Starting PhoneVerse pipeline")
    try:
        if "--once" in sys.argv[1:]:
            code = await _run_once()
            if code:
                sys.exit(code)
            return
        await _run_scheduler()
    except ValueError as exc:
        logger.error("Pipeline scheduler failed: %s", exc)
        sys.exit(1)
    finally:
        await close_engine()


if __name__ == "__main__":
    asyncio.run(main())
