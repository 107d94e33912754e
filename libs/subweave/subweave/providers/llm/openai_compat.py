"""OpenAI-compatible chat-completions translation provider."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from subweave.error_codes import ErrorCode
from subweave.exceptions import ProviderError
from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem
from subweave.pipeline.concurrency import run_cancellable
from subweave.providers._retry import (
    RetryableProviderError,
    exhausted_to_user_error,
    log_retry,
    raise_for_response,
    wait_retry,
)
from subweave.providers.llm.base import Message, TranslationProvider
from subweave.utils.language import to_language_name

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

_SYSTEM_PROMPT = (
    "You are a professional subtitle translator. Translate every subtitle into {language}. "
    "Keep the meaning, keep lines short, and never merge or split entries.\n"
    "Reply with JSON only: {{\"translations\": [{{\"id\": \"<id>\", \"text\": \"<translation>\"}}]}}"
)


def build_messages(
    items: Sequence[SubtitleItem],
    *,
    target_language: str,
    glossary: Sequence[GlossaryItem] = (),
) -> list[Message]:
    system = _SYSTEM_PROMPT.format(language=to_language_name(target_language))
    if glossary:
        lines = [f"- {g.term} -> {g.translation}" + (f" ({g.notes})" if g.notes else "") for g in glossary]
        system += "\nAlways use these term translations:\n" + "\n".join(lines)
    payload = [{"id": s.id, "text": s.original} for s in items]
    return [
        Message(role="system", content=system),
        Message(role="user", content=json.dumps(payload, ensure_ascii=False)),
    ]


def parse_translations(raw_output: str) -> dict[str, str]:
    """Parse `{"translations": [{"id", "text"}]}` (or a bare array) into id -> text."""
    text = (raw_output or "").strip()
    if text.startswith("```"):
        lines = text.splitlines()
        cleaned = [line for line in lines if not line.strip().startswith("```")]
        text = "\n".join(cleaned).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("translations")
    if not isinstance(data, list):
        raise ValueError(f"Expected translations array, got {type(data).__name__}")

    out: dict[str, str] = {}
    for item in data:
        if not isinstance(item, dict) or item.get("id") is None:
            continue
        key = str(item["id"])
        if key not in out:
            out[key] = str(item.get("text") or "").strip()
    return out


class OpenAICompatTranslator(TranslationProvider):
    """OpenAI-compatible API provider (works with OpenAI, vLLM, etc.)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        provider: str = "openai",
        temperature: float = 0.3,
        timeout: float = 600.0,
    ) -> None:
        self.provider = provider
        resolved = str(base_url or "").strip()
        self.base_url = (resolved or DEFAULT_OPENAI_BASE_URL).rstrip("/")
        self.api_key = api_key
        self.model = model
        self.temperature = float(temperature)
        self.timeout = float(timeout)
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    @retry(
        retry=retry_if_exception_type(RetryableProviderError),
        stop=stop_after_attempt(3),
        wait=wait_retry,
        before_sleep=log_retry(logger),
        reraise=True,
    )
    async def _chat_completions(self, messages: list[Message]) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }
        client = await self._get_client()
        started = time.perf_counter()
        try:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            )
        except httpx.TransportError as exc:
            logger.warning("llm request failed: %s", exc)
            raise RetryableProviderError(
                self.provider, str(exc), error_code=ErrorCode.TRANSLATION_FAILED
            ) from exc
        raise_for_response(self.provider, response, error_code=ErrorCode.TRANSLATION_FAILED)

        try:
            result = response.json()
            content = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise RetryableProviderError(
                self.provider,
                f"malformed completion: {response.text[:200]}",
                error_code=ErrorCode.TRANSLATION_FAILED,
            ) from exc

        logger.info(
            "llm call (provider=%s, model=%s, latency_ms=%s)",
            self.provider,
            self.model,
            int((time.perf_counter() - started) * 1000),
        )
        return str(content or "")

    async def translate(
        self,
        items: Sequence[SubtitleItem],
        *,
        target_language: str,
        glossary: Sequence[GlossaryItem] = (),
        cancel_event: asyncio.Event | None = None,
    ) -> list[SubtitleItem]:
        if not items:
            return []
        messages = build_messages(items, target_language=target_language, glossary=glossary)
        try:
            raw = await run_cancellable(
                self._chat_completions(messages),
                cancel_event=cancel_event,
                stage="translation",
            )
        except RetryableProviderError as exc:
            mapped = exhausted_to_user_error(exc)
            if mapped is exc:
                raise
            raise mapped from exc

        try:
            translations = parse_translations(raw)
        except ValueError as exc:
            raise ProviderError(
                self.provider, str(exc), error_code=ErrorCode.TRANSLATION_FAILED
            ) from exc

        missing = [s.id for s in items if s.id not in translations]
        if missing:
            logger.warning("llm translation missing ids=%s (kept untranslated)", missing)
        return [replace(s, translated=translations.get(s.id, s.translated)) for s in items]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
