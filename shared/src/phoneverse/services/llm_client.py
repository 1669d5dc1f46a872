"""OpenAI-compatible chat-completions client (OpenRouter, Groq, OpenAI)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from phoneverse.config import Settings
from phoneverse.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Connection settings for one chat-completions provider."""

    api_endpoint: str
    model_id: str
    api_key: str
    max_tokens: int | None = 2000
    temperature: float = 0.8
    extra_params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMConfig:
        return cls(
            api_endpoint=settings.ai_api_endpoint,
            model_id=settings.ai_model,
            api_key=settings.ai_api_key,
        )


class LLMClient:
    """Thin async wrapper over ``POST {endpoint}/chat/completions``."""

    def __init__(
        self,
        config: LLMConfig,
        timeout: float = 60.0,
        *,
        site_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.site_url = site_url
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @staticmethod
    def _raise_for_status_with_context(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
            return
        except httpx.HTTPStatusError as exc:
            detail = response.text.strip()
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                if isinstance(body.get("error"), dict):
                    detail = body["error"].get("message") or body["error"].get("code") or detail
                elif body.get("error"):
                    detail = str(body["error"])
                elif body.get("message"):
                    detail = str(body["message"])
            if len(detail) > 400:
                detail = detail[:400]
            raise UpstreamError(
                f"LLM API request failed ({response.status_code}) at {response.request.url}: {detail}"
            ) from exc

    async def generate(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Return the assistant message content for ``messages``."""
        config = self.config
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }
        if self.site_url:
            # OpenRouter attribution headers; ignored by other providers.
            headers["HTTP-Referer"] = self.site_url
            headers["X-Title"] = "PhoneVerse"

        payload: dict[str, Any] = {
            "model": config.model_id,
            "messages": messages,
            "temperature": temperature if temperature is not None else config.temperature,
        }
        tokens = max_tokens or config.max_tokens
        if tokens:
            payload["max_tokens"] = tokens
        payload.update(config.extra_params)

        url = f"{config.api_endpoint.rstrip('/')}/chat/completions"
        logger.info("LLM request to %s model=%s", url, config.model_id)

        response = await self._client.post(url, json=payload, headers=headers)
        self._raise_for_status_with_context(response)

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamError("LLM response had no message content") from exc
        if not content:
            raise UpstreamError("LLM response was empty")

        logger.info("LLM response model=%s usage=%s", config.model_id, data.get("usage", {}))
        return content

    async def close(self) -> None:
        await self._client.aclose()
