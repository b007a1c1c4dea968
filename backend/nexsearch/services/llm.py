from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from ..core.config import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def limit_llm_concurrency(semaphore: asyncio.Semaphore):
    """
    Async context manager to bound concurrent calls to the LLM provider.

    Usage:

        async with limit_llm_concurrency(self._semaphore):
            await client.chat.completions.create(...)
    """
    async with semaphore:
        yield


@dataclass(frozen=True)
class LLMProvider:
    name: str
    client: AsyncOpenAI
    model: str


def build_llm_providers(settings: Settings) -> List[LLMProvider]:
    """
    OpenAI-compatible chat providers in preference order.

    - OpenAI (OPENAI_API_KEY) is the primary provider.
    - OpenRouter (OPENROUTER_API_KEY) is the secondary provider, used by the
      name-extraction fallback chain and whenever OpenAI is not configured.
    """
    providers: List[LLMProvider] = []

    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        providers.append(
            LLMProvider(
                name="openai",
                client=AsyncOpenAI(
                    api_key=settings.OPENAI_API_KEY.strip(),
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                    max_retries=0,
                ),
                model=settings.LLM_MODEL,
            )
        )

    if settings.OPENROUTER_API_KEY and settings.OPENROUTER_API_KEY.strip():
        # Sanitize key and add required headers for OpenRouter
        providers.append(
            LLMProvider(
                name="openrouter",
                client=AsyncOpenAI(
                    base_url=settings.OPENROUTER_BASE_URL,
                    api_key=settings.OPENROUTER_API_KEY.strip(),
                    default_headers={
                        "HTTP-Referer": settings.FRONTEND_ORIGIN or "http://localhost:3000",
                        "X-Title": "NexSearch",
                    },
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                    max_retries=0,
                ),
                model=settings.OPENROUTER_MODEL,
            )
        )

    return providers


class LLMService:
    """
    Thin wrapper over one or two OpenAI-compatible chat providers.

    `complete()` never raises: a missing provider, an SDK error or an empty
    answer all come back as None so callers can fall through to their
    deterministic fallbacks.
    """

    def __init__(self, providers: List[LLMProvider], max_concurrency: int = 4) -> None:
        self._providers = list(providers)
        # Hard cap on concurrent LLM calls for this service instance
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    @property
    def is_configured(self) -> bool:
        return bool(self._providers)

    @property
    def has_secondary(self) -> bool:
        return len(self._providers) > 1

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self._providers]

    def _provider(self, secondary: bool) -> Optional[LLMProvider]:
        index = 1 if secondary else 0
        if index < len(self._providers):
            return self._providers[index]
        return None

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        secondary: bool = False,
        temperature: float = 0.0,
        max_tokens: int = 800,
    ) -> Optional[str]:
        provider = self._provider(secondary)
        if provider is None:
            logger.debug("No %s LLM provider configured", "secondary" if secondary else "primary")
            return None

        try:
            async with limit_llm_concurrency(self._semaphore):
                response = await provider.client.chat.completions.create(
                    model=provider.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
        except OpenAIError as e:
            logger.warning(
                "LLM request to %s failed: %s",
                provider.name,
                e,
                extra={"adapter": provider.name},
            )
            return None

        if not response.choices:
            return None
        content = (response.choices[0].message.content or "").strip()
        return content or None

    async def close(self) -> None:
        for provider in self._providers:
            await provider.client.close()


def parse_json_object(raw: str | None) -> Dict[str, Any]:
    """
    Robustly extract a JSON object from model output.

    Accepts bare JSON, fenced JSON and JSON embedded in prose; anything else
    yields {}.
    """
    if not raw:
        return {}

    data: Any = None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        start = raw.find("{")
        end = raw.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                data = json.loads(raw[start : end + 1])
            except json.JSONDecodeError:
                return {}

    return data if isinstance(data, dict) else {}


def parse_json_array(raw: str | None) -> Optional[List[Any]]:
    """Same as parse_json_object, for a top-level JSON array. None when absent."""
    if not raw:
        return None

    data: Any = None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        start = raw.find("[")
        end = raw.rfind("]")
        if start != -1 and end != -1 and end > start:
            try:
                data = json.loads(raw[start : end + 1])
            except json.JSONDecodeError:
                return None

    if isinstance(data, dict):
        # {"companies": [...]} is a common shape even when we ask for a bare array
        for value in data.values():
            if isinstance(value, list):
                return value
        return None
    return data if isinstance(data, list) else None
