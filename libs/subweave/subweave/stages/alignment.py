"""Alignment stage: correct segment timestamps against the chunk audio."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import cast

from subweave.exceptions import (
    OperationCancelledError,
    OperationTimeoutError,
    StageExecutionError,
    UserActionableError,
)
from subweave.pipeline.concurrency import Semaphore, run_cancellable
from subweave.pipeline.context import PipelineContext
from subweave.providers.alignment.base import AlignmentContext, AlignmentStrategy
from subweave.providers.alignment.none import NoAligner
from subweave.stages.base import Stage
from subweave.utils.language import LanguageDetector, detect_language

logger = logging.getLogger(__name__)


class AlignmentStage(Stage):
    """Inputs: chunk, chunk_audio_path, segments. Outputs: segments (aligned).

    The aligner sees chunk-relative times since it works on the chunk audio.
    A failed or timed-out alignment keeps the input timestamps.
    """

    name = "alignment"

    def __init__(
        self,
        aligner: AlignmentStrategy,
        semaphore: Semaphore,
        *,
        timeout_s: float | None = None,
        detector: LanguageDetector | None = None,
    ) -> None:
        self.aligner = aligner
        self.semaphore = semaphore
        self.timeout_s = timeout_s
        self.detector = detector or detect_language

    def validate_input(self, context: PipelineContext) -> bool:
        return context.get("chunk") is not None and "segments" in context

    async def execute(self, context: PipelineContext) -> PipelineContext:
        context = cast(PipelineContext, dict(context))
        segments = list(context.get("segments") or [])
        if isinstance(self.aligner, NoAligner) or not segments:
            context["segments"] = segments
            return context
        if not self.validate_input(context):
            raise StageExecutionError(self.name, "missing chunk or segments")

        chunk = context["chunk"]
        cancel_event = context.get("cancel_event")
        offset = float(chunk.start)
        relative = [replace(s, start=s.start - offset, end=s.end - offset) for s in segments]
        language = context.get("source_language") or self.detector(" ".join(s.original for s in segments[:5]))

        try:
            async with self.semaphore.slot(cancel_event):
                aligned = await run_cancellable(
                    self.aligner.align(
                        relative,
                        str(context.get("chunk_audio_path") or ""),
                        language,
                        AlignmentContext(cancel_event=cancel_event, chunk_index=chunk.index),
                    ),
                    cancel_event=cancel_event,
                    timeout_s=self.timeout_s,
                    stage=self.name,
                )
        except OperationTimeoutError as exc:
            if cancel_event is not None and cancel_event.is_set():
                raise
            logger.error("alignment timed out, keeping input timestamps (chunk=%d): %s", chunk.index, exc)
            context["segments"] = segments
            return context
        except (OperationCancelledError, UserActionableError):
            raise
        except Exception as exc:
            logger.error("alignment failed, keeping input timestamps (chunk=%d): %s", chunk.index, exc)
            context["segments"] = segments
            return context

        low = sum(1 for s in aligned if s.low_confidence)
        if low:
            logger.warning("alignment low confidence (chunk=%d, segments=%d/%d)", chunk.index, low, len(aligned))
        context["segments"] = [replace(s, start=s.start + offset, end=s.end + offset) for s in aligned]
        return context
