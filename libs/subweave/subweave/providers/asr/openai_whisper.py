"""OpenAI-compatible Whisper transcription provider."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from subweave.error_codes import ErrorCode
from subweave.exceptions import (
    OperationCancelledError,
    TranscriptionError,
    TranscriptionErrorKind,
)
from subweave.models.subtitle import SubtitleItem, generate_subtitle_id
from subweave.pipeline.concurrency import run_cancellable
from subweave.providers._retry import (
    RetryableProviderError,
    exhausted_to_user_error,
    log_retry,
    raise_for_response,
    wait_retry,
)
from subweave.providers.asr.base import TranscriptionProvider

logger = logging.getLogger(__name__)


class OpenAIWhisperProvider(TranscriptionProvider):
    """`/audio/transcriptions` client (OpenAI, whisper.cpp server, vLLM)."""

    provider = "openai_whisper"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "whisper-1",
        timeout: float = 600.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = float(timeout)
        self._client: httpx.AsyncClient | None = None

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
    async def _post(self, audio_path: str, language: str | None) -> dict[str, Any]:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        data = {"model": self.model, "response_format": "verbose_json"}
        if language:
            data["language"] = language

        with open(audio_path, "rb") as f:
            files = {"file": (Path(audio_path).name, f, "audio/wav")}
            try:
                response = await client.post(
                    f"{self.base_url}/audio/transcriptions",
                    headers=headers,
                    files=files,
                    data=data,
                )
            except httpx.TransportError as exc:
                logger.warning("asr request failed: %s", exc)
                raise RetryableProviderError(
                    self.provider, str(exc), error_code=ErrorCode.TRANSCRIPTION_FAILED
                ) from exc
        raise_for_response(self.provider, response, error_code=ErrorCode.TRANSCRIPTION_FAILED)
        try:
            payload = response.json()
        except ValueError as exc:
            # Proxies sometimes answer with an HTML error page.
            raise RetryableProviderError(
                self.provider,
                f"non-JSON response: {response.text[:200]}",
                error_code=ErrorCode.TRANSCRIPTION_FAILED,
            ) from exc
        if not isinstance(payload, dict):
            raise TranscriptionError(
                f"unexpected response type {type(payload).__name__}",
                kind=TranscriptionErrorKind.TRANSCRIPTION_FAILED,
            )
        return payload

    async def transcribe(
        self,
        audio_path: str,
        *,
        language: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[SubtitleItem]:
        if not Path(audio_path).exists():
            raise TranscriptionError(
                f"audio chunk not found: {audio_path}",
                kind=TranscriptionErrorKind.NOT_AVAILABLE,
            )
        try:
            payload = await run_cancellable(
                self._post(audio_path, language),
                cancel_event=cancel_event,
                stage="transcription",
            )
        except OperationCancelledError:
            raise
        except RetryableProviderError as exc:
            mapped = exhausted_to_user_error(exc)
            if mapped is not exc:
                raise mapped from exc
            raise TranscriptionError(
                str(exc), kind=TranscriptionErrorKind.TRANSCRIPTION_FAILED
            ) from exc

        return _segments_from_payload(payload)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _segments_from_payload(payload: dict[str, Any]) -> list[SubtitleItem]:
    out: list[SubtitleItem] = []
    segments = payload.get("segments")
    if isinstance(segments, list) and segments:
        for seg in segments:
            if not isinstance(seg, dict):
                continue
            text = str(seg.get("text") or "").strip()
            start = float(seg.get("start") or 0.0)
            end = float(seg.get("end") or 0.0)
            if not text or end <= start:
                continue
            out.append(SubtitleItem(id=generate_subtitle_id(), start=start, end=end, original=text))
        return out

    text = str(payload.get("text") or "").strip()
    duration = float(payload.get("duration") or 0.0)
    if text and duration > 0:
        out.append(SubtitleItem(id=generate_subtitle_id(), start=0.0, end=duration, original=text))
    return out
