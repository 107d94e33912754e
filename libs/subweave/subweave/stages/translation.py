"""Translation stage: fills `translated` batch by batch."""

from __future__ import annotations

import logging
from typing import cast

from subweave.exceptions import (
    OperationCancelledError,
    OperationTimeoutError,
    StageExecutionError,
    UserActionableError,
)
from subweave.models.subtitle import SubtitleItem
from subweave.pipeline.concurrency import Semaphore, run_cancellable
from subweave.pipeline.context import PipelineContext
from subweave.providers.llm.base import TranslationProvider
from subweave.stages.base import Stage

logger = logging.getLogger(__name__)


class TranslationStage(Stage):
    """Inputs: segments, target_language, glossary. Outputs: segments (translated).

    A batch that fails is kept untranslated; the remaining batches still run.
    """

    name = "translation"

    def __init__(
        self,
        provider: TranslationProvider,
        semaphore: Semaphore,
        *,
        batch_size: int = 20,
        timeout_s: float | None = None,
    ) -> None:
        self.provider = provider
        self.semaphore = semaphore
        self.batch_size = max(1, int(batch_size))
        self.timeout_s = timeout_s

    def validate_input(self, context: PipelineContext) -> bool:
        return bool(context.get("target_language")) and "segments" in context

    async def execute(self, context: PipelineContext) -> PipelineContext:
        context = cast(PipelineContext, dict(context))
        segments = list(context.get("segments") or [])
        if not segments:
            context["segments"] = []
            return context
        if not self.validate_input(context):
            raise StageExecutionError(self.name, "missing target_language")

        chunk = context.get("chunk")
        chunk_index = chunk.index if chunk is not None else None
        cancel_event = context.get("cancel_event")
        glossary = list(context.get("glossary") or [])

        out: list[SubtitleItem] = []
        for offset in range(0, len(segments), self.batch_size):
            batch = segments[offset : offset + self.batch_size]
            try:
                async with self.semaphore.slot(cancel_event):
                    translated = await run_cancellable(
                        self.provider.translate(
                            batch,
                            target_language=context["target_language"],
                            glossary=glossary,
                            cancel_event=cancel_event,
                        ),
                        cancel_event=cancel_event,
                        timeout_s=self.timeout_s,
                        stage=self.name,
                    )
            except OperationTimeoutError as exc:
                if cancel_event is not None and cancel_event.is_set():
                    raise
                self._keep_untranslated(out, batch, chunk_index, exc)
                continue
            except (OperationCancelledError, UserActionableError):
                raise
            except Exception as exc:
                self._keep_untranslated(out, batch, chunk_index, exc)
                continue
            if len(translated) != len(batch):
                self._keep_untranslated(
                    out, batch, chunk_index, f"provider returned {len(translated)} items for a batch of {len(batch)}"
                )
                continue
            out.extend(translated)

        logger.info("translation done (chunk=%s, segments=%d)", chunk_index, len(out))
        context["segments"] = out
        return context

    def _keep_untranslated(
        self,
        out: list[SubtitleItem],
        batch: list[SubtitleItem],
        chunk_index: int | None,
        reason: object,
    ) -> None:
        logger.error(
            "translation batch failed, keeping it untranslated (chunk=%s, segments=%d): %s",
            chunk_index,
            len(batch),
            reason,
        )
        out.extend(batch)
