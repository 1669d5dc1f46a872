"""Hybrid rewriter: AI while the daily budget lasts, templates otherwise."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

from phoneverse.schemas.articles import RewriteResult
from pipeline.rewriting.ai import AIRewriter
from pipeline.rewriting.template import TemplateRewriter

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


class HybridRewriter:
    def __init__(
        self,
        ai: AIRewriter,
        template: TemplateRewriter,
        *,
        daily_limit: int = 50,
        today: Callable[[], date] = _today,
    ) -> None:
        self.ai = ai
        self.template = template
        self.daily_limit = daily_limit
        self._today = today
        self._day = today()
        self.calls_today = 0

    def _roll_day(self) -> None:
        current = self._today()
        if current != self._day:
            self._day = current
            self.calls_today = 0

    @property
    def budget_left(self) -> int:
        self._roll_day()
        return max(self.daily_limit - self.calls_today, 0)

    async def rewrite(self, title: str, content: str, category: str) -> RewriteResult:
        if self.budget_left <= 0:
            logger.info("AI daily limit reached (%d), using templates", self.daily_limit)
            return await self.template.rewrite(title, content, category)

        # Failed calls still count against the budget.
        self.calls_today += 1
        try:
            return await self.ai.rewrite_strict(title, content, category)
        except Exception as e:
            logger.warning("AI rewrite failed, using templates: %s", e)
            return await self.template.rewrite(title, content, category)

    async def aclose(self) -> None:
        await self.ai.aclose()
