"""Transcription provider base class."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from subweave.models.subtitle import SubtitleItem


class TranscriptionProvider(ABC):
    """Abstract base class for transcription providers."""

    provider: str = "asr"

    @abstractmethod
    async def transcribe(
        self,
        audio_path: str,
        *,
        language: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[SubtitleItem]:
        """Transcribe an audio chunk.

        Args:
            audio_path: Path to the chunk audio file.
            language: Optional source language hint.
            cancel_event: Cancellation signal; a fired signal rejects the call.

        Returns:
            Segments with timestamps relative to the start of the chunk.

        Raises:
            TranscriptionError: kind NOT_AVAILABLE / TRANSCRIPTION_FAILED / UNKNOWN.
            OperationCancelledError: when `cancel_event` fires.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None
