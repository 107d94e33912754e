"""Transcription stage: chunk audio -> segments on the media timeline."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import cast

from subweave.error_codes import ErrorCode
from subweave.exceptions import (
    OperationCancelledError,
    StageExecutionError,
    TranscriptionError,
    TranscriptionErrorKind,
    UserActionableError,
)
from subweave.pipeline.concurrency import Semaphore, run_cancellable
from subweave.pipeline.context import PipelineContext
from subweave.providers.asr.base import TranscriptionProvider
from subweave.stages.base import Stage

logger = logging.getLogger(__name__)


class TranscriptionStage(Stage):
    """Inputs: chunk, chunk_audio_path. Outputs: segments (absolute times)."""

    name = "transcription"

    def __init__(
        self,
        provider: TranscriptionProvider,
        semaphore: Semaphore,
        *,
        timeout_s: float | None = None,
    ) -> None:
        self.provider = provider
        self.semaphore = semaphore
        self.timeout_s = timeout_s

    def validate_input(self, context: PipelineContext) -> bool:
        return bool(context.get("chunk_audio_path")) and context.get("chunk") is not None

    async def execute(self, context: PipelineContext) -> PipelineContext:
        context = cast(PipelineContext, dict(context))
        if not self.validate_input(context):
            raise StageExecutionError(self.name, "missing chunk or chunk_audio_path")
        chunk = context["chunk"]
        cancel_event = context.get("cancel_event")

        started = time.monotonic()
        try:
            async with self.semaphore.slot(cancel_event):
                items = await run_cancellable(
                    self.provider.transcribe(
                        context["chunk_audio_path"],
                        language=context.get("source_language"),
                        cancel_event=cancel_event,
                    ),
                    cancel_event=cancel_event,
                    timeout_s=self.timeout_s,
                    stage=self.name,
                )
        except (OperationCancelledError, UserActionableError):
            raise
        except TranscriptionError as exc:
            if exc.kind == TranscriptionErrorKind.CANCELLED:
                raise OperationCancelledError(stage=self.name) from exc
            raise StageExecutionError(
                self.name, exc.message, chunk_index=chunk.index, error_code=ErrorCode.TRANSCRIPTION_FAILED
            ) from exc
        except Exception as exc:
            raise StageExecutionError(
                self.name, str(exc), chunk_index=chunk.index, error_code=ErrorCode.TRANSCRIPTION_FAILED
            ) from exc

        offset = float(chunk.start)
        segments = [
            replace(s, start=max(0.0, float(s.start)) + offset, end=max(0.0, float(s.end)) + offset)
            for s in items
            if str(s.original or "").strip()
        ]
        logger.info(
            "transcription done (chunk=%d, segments=%d, elapsed_s=%.2f)",
            chunk.index,
            len(segments),
            time.monotonic() - started,
        )
        context["segments"] = segments
        return context
