"""Automation controller: fetch, rewrite, illustrate and publish news in batches."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from phoneverse.config import Settings, get_settings
from phoneverse.schemas.articles import ArticleDraft, NewsItem
from phoneverse.services.publisher import ArticlePublisher, publisher_session_scope
from pipeline.images import ImageResolver
from pipeline.news.rss_fetcher import NewsSourceClient
from pipeline.rewriting.base import ContentRewriter
from pipeline.rewriting.factory import build_rewriter

logger = logging.getLogger(__name__)

PublisherScope = Callable[[], AbstractAsyncContextManager[ArticlePublisher]]

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"

STATUS_COMPLETED = "completed"
STATUS_ALREADY_RUNNING = "already_running"
STATUS_DISABLED = "disabled"
STATUS_FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AutomationRunState:
    enabled: bool = True
    running: bool = False
    last_run: datetime | None = None
    total_runs: int = 0
    articles_processed: int = 0
    last_result: dict[str, Any] | None = None


@dataclass
class RunResult:
    status: str
    trigger: str
    fetched: int = 0
    attempted: int = 0
    saved: int = 0
    skipped: int = 0
    failed: int = 0
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class AutomationController:
    """Owns the run state; at most one batch runs at a time per process."""

    def __init__(
        self,
        news_client: NewsSourceClient,
        rewriter: ContentRewriter,
        image_resolver: ImageResolver,
        publisher_scope: PublisherScope,
        *,
        max_attempts: int = 50,
        max_saved: int = 10,
        item_delay: float = 1.0,
        enabled: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.news_client = news_client
        self.rewriter = rewriter
        self.image_resolver = image_resolver
        self.publisher_scope = publisher_scope
        self.max_attempts = max_attempts
        self.max_saved = max_saved
        self.item_delay = item_delay
        self._sleep = sleep
        self._clock = clock
        self.state = AutomationRunState(enabled=enabled)
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        self.state.enabled = True
        logger.info("Automation enabled")

    def stop(self) -> None:
        self.state.enabled = False
        logger.info("Automation disabled")

    def status(self) -> dict[str, Any]:
        state = self.state
        return {
            "enabled": state.enabled,
            "running": state.running,
            "last_run": state.last_run.isoformat() if state.last_run else None,
            "total_runs": state.total_runs,
            "articles_processed": state.articles_processed,
            "last_result": state.last_result,
            "max_articles_per_batch": self.max_attempts,
            "max_publish_per_batch": self.max_saved,
        }

    async def run_once(self, trigger_source: str = TRIGGER_SCHEDULED) -> RunResult:
        """Run one batch now unless one is in flight (or scheduled runs are disabled)."""
        # No await between the check and the claim.
        if self.state.running:
            logger.info("Automation already running, %s trigger ignored", trigger_source)
            return RunResult(status=STATUS_ALREADY_RUNNING, trigger=trigger_source)
        if trigger_source == TRIGGER_SCHEDULED and not self.state.enabled:
            logger.info("Automation disabled, scheduled run skipped")
            return RunResult(status=STATUS_DISABLED, trigger=trigger_source)
        self.state.running = True
        return await self._run_claimed(trigger_source)

    def launch(self, trigger_source: str = TRIGGER_MANUAL) -> bool:
        """Start a batch in the background; False when one is already running."""
        if self.state.running:
            return False
        self.state.running = True
        self._task = asyncio.create_task(self._run_claimed(trigger_source))
        return True

    async def wait_idle(self, timeout: float | None = None) -> None:
        """Wait for a launched batch; cancel it if still running after ``timeout``."""
        task = self._task
        if task is None or task.done():
            return
        done, _ = await asyncio.wait({task}, timeout=timeout)
        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def aclose(self) -> None:
        """Release the rewriter's HTTP client."""
        await self.rewriter.aclose()

    async def _run_claimed(self, trigger_source: str) -> RunResult:
        try:
            return await self._execute(trigger_source)
        finally:
            self.state.running = False

    async def _execute(self, trigger_source: str) -> RunResult:
        state = self.state
        state.last_run = self._clock()
        state.total_runs += 1
        result = RunResult(status=STATUS_COMPLETED, trigger=trigger_source)
        logger.info("Automation run #%d started (%s)", state.total_runs, trigger_source)

        try:
            items = await self.news_client.fetch_all()
        except Exception as e:
            logger.error("News fetch failed: %s", e)
            result.status = STATUS_FAILED
            result.error = str(e)
            state.last_result = result.as_dict()
            return result

        result.fetched = len(items)
        for item in items:
            if result.saved >= self.max_saved or result.attempted >= self.max_attempts:
                logger.info(
                    "Batch limit reached (attempted: %d, saved: %d)",
                    result.attempted,
                    result.saved,
                )
                break
            if result.attempted and self.item_delay > 0:
                await self._sleep(self.item_delay)
            result.attempted += 1

            try:
                article_id = await self.process_item(item)
            except Exception as e:
                result.failed += 1
                logger.error("Failed to process %r: %s", item.original_title[:60], e)
                continue

            if article_id is None:
                result.skipped += 1
            else:
                result.saved += 1
                state.articles_processed += 1

        state.last_result = result.as_dict()
        logger.info(
            "Automation run complete: fetched=%d attempted=%d saved=%d skipped=%d failed=%d",
            result.fetched,
            result.attempted,
            result.saved,
            result.skipped,
            result.failed,
        )
        return result

    async def process_item(self, item: NewsItem) -> uuid.UUID | None:
        async with self.publisher_scope() as publisher:
            if await publisher.is_duplicate(item.source_url, item.original_title):
                logger.info("Duplicate skipped: %s", item.original_title[:60])
                return None

        rewritten = await self.rewriter.rewrite(
            item.original_title, item.original_content, item.category
        )
        draft = ArticleDraft(
            title=rewritten.title or item.original_title,
            content=rewritten.content,
            excerpt=rewritten.excerpt or item.original_content[:155],
            category=item.category,
            featured_image=self.image_resolver.resolve(rewritten.title, item.category),
            source_url=item.source_url,
            word_count=rewritten.word_count,
        )
        async with self.publisher_scope() as publisher:
            return await publisher.publish(draft)


def build_controller(settings: Settings | None = None) -> AutomationController:
    """Controller wired to the configured feeds, rewriter and database."""
    settings = settings or get_settings()
    return AutomationController(
        NewsSourceClient(
            settings.rss_feeds,
            timeout=settings.rss_timeout,
            max_age_hours=settings.rss_max_age_hours,
        ),
        build_rewriter(settings),
        ImageResolver(settings.image_url_template),
        lambda: publisher_session_scope(settings),
        max_attempts=settings.max_articles_per_batch,
        max_saved=settings.max_publish_per_batch,
        item_delay=settings.automation_item_delay_seconds,
        enabled=settings.automation_enabled,
    )
