"""Rewriter interface and shared helpers."""

from __future__ import annotations

import re
from typing import Protocol

from phoneverse.schemas.articles import RewriteResult

_TAG_RE = re.compile(r"<[^>]+>")


class ContentRewriter(Protocol):
    """Turns a feed item's title and text into publishable HTML."""

    async def rewrite(self, title: str, content: str, category: str) -> RewriteResult: ...

    async def aclose(self) -> None: ...


def count_words(html_text: str) -> int:
    return len(_TAG_RE.sub(" ", html_text).split())
