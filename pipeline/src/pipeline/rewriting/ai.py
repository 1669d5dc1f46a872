"""AI rewriter over an OpenAI-compatible chat-completions API."""

from __future__ import annotations

import html
import logging
import re

from phoneverse.errors import UpstreamError
from phoneverse.schemas.articles import RewriteResult
from phoneverse.services.llm_client import LLMClient
from pipeline.prompts.rewrite import build_rewrite_prompt
from pipeline.rewriting.base import count_words

logger = logging.getLogger(__name__)

_HEADLINE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")


def _inline(text: str) -> str:
    text = html.escape(text, quote=False)
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    return _ITALIC_RE.sub(r"<em>\1</em>", text)


def markdown_to_html(text: str) -> str:
    """Convert the small markdown subset the prompt asks for into HTML blocks."""
    blocks = []
    for block in re.split(r"\n\s*\n", text.strip()):
        block = block.strip()
        if not block:
            continue
        if block.startswith("### "):
            blocks.append(f"<h3>{_inline(block[4:].strip())}</h3>")
        elif block.startswith("## "):
            blocks.append(f"<h2>{_inline(block[3:].strip())}</h2>")
        else:
            lines = [line.strip() for line in block.splitlines()]
            blocks.append(f"<p>{_inline(' '.join(lines))}</p>")
    return "\n".join(blocks)


def parse_completion(text: str, fallback_title: str) -> tuple[str, str]:
    """Split a completion into (headline, html body)."""
    title = fallback_title
    body = text
    match = _HEADLINE_RE.search(text)
    if match:
        title = match.group(1).strip()
        body = text.replace(match.group(0), "", 1).strip()
    if "<p>" not in body:
        body = markdown_to_html(body)
    return title, body


def fallback_result(title: str, content: str) -> RewriteResult:
    body = f"<p>{html.escape(content)}</p>"
    return RewriteResult(title=title, content=body, word_count=len(content.split()))


class AIRewriter:
    """Rewrites through the LLM; ``rewrite`` never raises."""

    def __init__(self, client: LLMClient, *, temperature: float = 0.8) -> None:
        self.client = client
        self.temperature = temperature

    async def rewrite_strict(self, title: str, content: str, category: str) -> RewriteResult:
        prompt = build_rewrite_prompt(title, content, category)
        text = await self.client.generate(
            [{"role": "user", "content": prompt}], temperature=self.temperature
        )
        headline, body = parse_completion(text, title)
        if not body.strip():
            raise UpstreamError("AI rewrite returned no body")
        word_count = count_words(body)
        logger.info("AI rewrote %r: %d words", title[:50], word_count)
        return RewriteResult(title=headline, content=body, word_count=word_count)

    async def rewrite(self, title: str, content: str, category: str) -> RewriteResult:
        try:
            return await self.rewrite_strict(title, content, category)
        except Exception as e:
            logger.warning("AI rewrite failed, publishing original text: %s", e)
            return fallback_result(title, content)

    async def aclose(self) -> None:
        await self.client.close()
