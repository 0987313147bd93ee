"""Completion provider for OpenAI-compatible chat completion APIs (OpenAI, OpenRouter)."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

import httpx

from salesbot.llm.base import (
    CompletionError,
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    FunctionCall,
)


class OpenAICompatibleProvider(CompletionProvider):
    """POST ``/chat/completions`` and normalise the reply.

    Both the ``tools``/``tool_calls`` shape and the legacy ``function_call``
    shape are understood; only the first function invocation is surfaced.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        min_interval_seconds: float = 0.0,
        referer: str | None = None,
        title: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._referer = referer
        self._title = title
        self._min_interval = max(0.0, min_interval_seconds)
        self._last_call = 0.0
        self._rate_lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._logger = logging.getLogger("salesbot.llm")

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if "openrouter.ai" in self._base_url:
            if self._referer:
                headers["HTTP-Referer"] = self._referer
            if self._title:
                headers["X-Title"] = self._title
        return headers

    def build_payload(self, request: CompletionRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                *(turn.to_dict() for turn in request.messages),
            ],
            "max_tokens": request.max_tokens if request.max_tokens is not None else self._max_tokens,
            "temperature": request.temperature if request.temperature is not None else self._temperature,
        }
        if request.functions:
            payload["tools"] = [spec.to_tool() for spec in request.functions]
            payload["tool_choice"] = "auto"
        return payload

    async def _respect_rate_limit(self) -> None:
        if not self._min_interval:
            return
        async with self._rate_lock:
            wait_for = self._min_interval - (time.monotonic() - self._last_call)
            if wait_for > 0:
                await asyncio.sleep(wait_for)
            self._last_call = time.monotonic()

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        if not self._api_key:
            raise CompletionError("Completion provider API key is not configured")

        await self._respect_rate_limit()
        try:
            response = await self._client.post(
                self.endpoint,
                headers=self._headers(),
                json=self.build_payload(request),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise CompletionError(
                f"Completion provider returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CompletionError(f"Completion provider request failed: {exc}") from exc
        except ValueError as exc:
            raise CompletionError("Completion provider returned invalid JSON") from exc

        return self.parse_response(data)

    def parse_response(self, data: Any) -> CompletionResult:
        if not isinstance(data, dict):
            raise CompletionError("Completion provider returned an unexpected payload")
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            raise CompletionError("Completion provider returned no choices")

        message = choices[0].get("message") or {}
        content = message.get("content") or ""
        if not isinstance(content, str):
            content = str(content)

        usage = data.get("usage") or {}
        total_tokens = usage.get("total_tokens") or 0

        return CompletionResult(
            content=content.strip(),
            function_call=_extract_function_call(message),
            total_tokens=int(total_tokens),
            model=str(data.get("model") or self.model),
        )

    async def close(self) -> None:
        await self._client.aclose()


def _extract_function_call(message: dict[str, Any]) -> FunctionCall | None:
    raw: Any = None
    tool_calls = message.get("tool_calls") or []
    for call in tool_calls:
        if isinstance(call, dict) and isinstance(call.get("function"), dict):
            raw = call["function"]
            break
    if raw is None and isinstance(message.get("function_call"), dict):
        raw = message["function_call"]
    if not raw or not raw.get("name"):
        return None

    arguments = raw.get("arguments")
    if arguments is None:
        arguments = "{}"
    elif not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return FunctionCall(name=str(raw["name"]), arguments=arguments)
