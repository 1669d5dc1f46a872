"""Pick a rewriter from settings."""

from __future__ import annotations

import logging

from phoneverse.config import Settings
from phoneverse.services.llm_client import LLMClient, LLMConfig
from pipeline.rewriting.ai import AIRewriter
from pipeline.rewriting.base import ContentRewriter
from pipeline.rewriting.hybrid import HybridRewriter
from pipeline.rewriting.template import TemplateRewriter

logger = logging.getLogger(__name__)

REWRITER_MODES = ("template", "ai", "hybrid")


def build_rewriter(settings: Settings) -> ContentRewriter:
    mode = settings.rewriter_mode.strip().lower()
    if mode not in REWRITER_MODES:
        logger.warning("Unknown REWRITER_MODE %r, using template", settings.rewriter_mode)
        return TemplateRewriter()
    if mode == "template":
        return TemplateRewriter()
    if not settings.ai_api_key:
        logger.warning("REWRITER_MODE=%s but AI_API_KEY is not set, using template", mode)
        return TemplateRewriter()

    client = LLMClient(
        LLMConfig.from_settings(settings),
        timeout=settings.ai_timeout,
        site_url=settings.site_url,
    )
    ai = AIRewriter(client)
    if mode == "ai":
        return ai
    return HybridRewriter(ai, TemplateRewriter(), daily_limit=settings.ai_daily_call_limit)
