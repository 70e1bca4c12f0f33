from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from harvardplate.shared.concurrency import make_llm_semaphore
from harvardplate.shared.config.settings import Settings

log = logging.getLogger("openai")


class LLMUnavailableError(RuntimeError):
    """The model provider could not be reached or returned no usable data."""


class TokenUsage(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class ChatCompletion(BaseModel):
    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    created: int
    model: Optional[str] = None


def _usage_from(data: Dict) -> TokenUsage:
    raw = data.get("usage") or {}
    return TokenUsage(
        prompt_tokens=int(raw.get("prompt_tokens") or 0),
        completion_tokens=int(raw.get("completion_tokens") or 0),
        total_tokens=int(raw.get("total_tokens") or 0),
    )


class LLMClient:
    """
    Thin client for an OpenAI-compatible chat completions API.

    One instance is created per process and shared by every request; it owns
    the underlying httpx.AsyncClient and must be closed with `aclose()`.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        request_timeout: int = 60,
        max_concurrency: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._semaphore = make_llm_semaphore(max_concurrency)
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(request_timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: Settings, **kwargs) -> "LLMClient":
        return cls(
            api_key=cfg.OPENAI_API_KEY,
            base_url=cfg.OPENAI_BASE_URL,
            model=cfg.CHAT_MODEL,
            request_timeout=cfg.LLM_REQUEST_TIMEOUT,
            max_concurrency=cfg.LLM_MAX_CONCURRENCY,
            **kwargs,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def complete_chat(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        model: Optional[str] = None,
    ) -> ChatCompletion:
        """
        Run one non-streaming chat completion and return the reply text with token usage.
        """
        payload = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }
        async with self._semaphore:
            try:
                resp = await self._http.post("/chat/completions", headers=self._headers(), json=payload)
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPError as e:
                log.warning(f"chat completion request failed: {e}")
                raise LLMUnavailableError(f"Model provider request failed: {e}") from e
            except ValueError as e:
                raise LLMUnavailableError("Model provider returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise LLMUnavailableError("Model provider returned an unexpected body")
        choices = data.get("choices") or []
        content = ""
        if choices:
            content = ((choices[0] or {}).get("message") or {}).get("content") or ""
        if not content.strip():
            raise LLMUnavailableError("Model provider returned an empty reply")

        return ChatCompletion(
            content=content,
            usage=_usage_from(data),
            created=int(data.get("created") or time.time()),
            model=data.get("model") or payload["model"],
        )

    async def check_availability(self) -> bool:
        """
        Probe the provider by listing models.
        """
        try:
            resp = await self._http.get("/models", headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(f"model provider unavailable: {e}")
            return False
        models = data.get("data") if isinstance(data, dict) else None
        return isinstance(models, list) and len(models) > 0

    async def aclose(self) -> None:
        await self._http.aclose()
