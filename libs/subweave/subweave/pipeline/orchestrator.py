"""Chunked subtitle pipeline (transcribe -> align -> translate -> checks)."""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Protocol, cast

from subweave.config import Settings
from subweave.error_codes import ErrorCode
from subweave.exceptions import OperationCancelledError, StageExecutionError, UserActionableError
from subweave.models.chunk import ChunkSpec
from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem, SubtitleSnapshot, generate_subtitle_id
from subweave.pipeline.chunks import build_chunk_specs, select_chunks_by_duration
from subweave.pipeline.concurrency import Semaphore, map_in_parallel
from subweave.pipeline.context import ChunkProgressReporter, PipelineContext, ProgressReporter
from subweave.providers import create_aligner, get_asr_provider, get_translation_provider
from subweave.providers.alignment.base import AlignmentStrategy
from subweave.providers.asr.base import TranscriptionProvider
from subweave.providers.llm.base import TranslationProvider
from subweave.quality.consistency import ConsistencyIssue, ConsistencyValidator
from subweave.quality.terminology import TerminologyIssue, check_terminology
from subweave.snapshots.store import SnapshotStore
from subweave.stages.alignment import AlignmentStage
from subweave.stages.base import Stage
from subweave.stages.transcription import TranscriptionStage
from subweave.stages.translation import TranslationStage
from subweave.utils.audio import FFmpegChunkExtractor, cleanup_segment_files

logger = logging.getLogger(__name__)

INITIAL_IMPORT_LABEL = "Initial import"


class ChunkExtractor(Protocol):
    async def extract(self, chunk: ChunkSpec, cancel_event: asyncio.Event | None = None) -> str: ...


@dataclass
class PipelineResult:
    subtitles: list[SubtitleItem]
    consistency_issues: list[ConsistencyIssue] = field(default_factory=list)
    terminology_issues: list[TerminologyIssue] = field(default_factory=list)
    chunk_count: int = 0
    snapshot: SubtitleSnapshot | None = None


def merge_chunk_segments(per_chunk: Sequence[Sequence[SubtitleItem]]) -> list[SubtitleItem]:
    """Concatenate per-chunk results in chunk order, re-minting colliding ids."""
    seen: set[str] = set()
    out: list[SubtitleItem] = []
    for segments in per_chunk:
        for seg in segments:
            if seg.id in seen:
                new_id = generate_subtitle_id()
                while new_id in seen:
                    new_id = generate_subtitle_id()
                seg = replace(seg, id=new_id)
            seen.add(seg.id)
            out.append(seg)
    return out


class SubtitlePipeline:
    """Runs every selected chunk through the stages with bounded concurrency.

    Chunks are processed concurrently (at most `concurrency.pipeline` at a
    time); each external resource has its own semaphore. The first chunk
    failure aborts the run.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transcriber: TranscriptionProvider | None = None,
        translator: TranslationProvider | None = None,
        aligner: AlignmentStrategy | None = None,
        extractor: ChunkExtractor | None = None,
        snapshot_store: SnapshotStore | None = None,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        self.settings = settings
        self._owned: list[TranscriptionProvider | TranslationProvider] = []
        if transcriber is None:
            transcriber = get_asr_provider(settings.asr_config())
            self._owned.append(transcriber)
        if translator is None:
            translator = get_translation_provider(settings.llm_config())
            self._owned.append(translator)
        self.aligner = aligner if aligner is not None else create_aligner(settings.alignment)
        self.extractor = extractor
        self.snapshot_store = snapshot_store
        self.progress_reporter = progress_reporter

        concurrency = settings.concurrency
        self.stages: list[Stage] = [
            TranscriptionStage(
                transcriber,
                Semaphore(concurrency.transcription_limit),
                timeout_s=float(settings.asr.timeout),
            ),
            AlignmentStage(
                self.aligner,
                Semaphore(concurrency.alignment),
                timeout_s=float(settings.alignment.timeout_s),
            ),
            TranslationStage(
                translator,
                Semaphore(concurrency.pipeline),
                batch_size=int(settings.llm.translation_batch_size),
                timeout_s=float(settings.llm.request_timeout_s),
            ),
        ]

    async def close(self) -> None:
        for provider in self._owned:
            await provider.close()
        self._owned.clear()

    async def _report(self, progress: int, message: str) -> None:
        if self.progress_reporter is not None:
            await self.progress_reporter.report(max(0, min(100, int(progress))), message)

    async def _report_chunk(self, chunk: ChunkSpec, total: int, stage: str, status: str, message: str = "") -> None:
        reporter = self.progress_reporter
        if isinstance(reporter, ChunkProgressReporter):
            await reporter.report_chunk(
                {
                    "chunk_index": chunk.index,
                    "chunks_total": total,
                    "stage": stage,
                    "status": status,
                    "message": message,
                }
            )

    def plan_chunks(self, media_duration: float) -> list[ChunkSpec]:
        chunking = self.settings.chunking
        chunks = build_chunk_specs(media_duration, chunking.duration_s)
        return select_chunks_by_duration(chunks, chunking.sample_minutes, chunking.duration_s)

    async def run(
        self,
        media_path: str,
        *,
        media_duration: float,
        target_language: str,
        source_language: str | None = None,
        glossary: Sequence[GlossaryItem] = (),
        cancel_event: asyncio.Event | None = None,
        file_id: str = "",
        file_name: str = "",
    ) -> PipelineResult:
        chunks = self.plan_chunks(media_duration)
        total = len(chunks)
        logger.info(
            "pipeline start (media=%s, duration_s=%.1f, chunks=%d, aligner=%s)",
            media_path,
            float(media_duration),
            total,
            self.aligner.name,
        )
        started = time.monotonic()
        await self._report(0, "starting")

        workdir = Path(self.settings.data_dir) / "workdir" / uuid.uuid4().hex
        extractor = self.extractor or FFmpegChunkExtractor(
            media_path, str(workdir), ffmpeg_bin=self.settings.ffmpeg_bin
        )
        base: PipelineContext = {
            "media_path": media_path,
            "media_duration": float(media_duration),
            "source_language": source_language,
            "target_language": target_language,
            "chunks_total": total,
            "glossary": list(glossary),
        }
        if cancel_event is not None:
            base["cancel_event"] = cancel_event

        done = 0

        async def _process_chunk(chunk: ChunkSpec, _index: int) -> list[SubtitleItem]:
            nonlocal done
            stage_name = "extract"
            audio_path = ""
            context = cast(PipelineContext, dict(base))
            context["chunk"] = chunk
            try:
                await self._report_chunk(chunk, total, stage_name, "processing")
                try:
                    audio_path = await extractor.extract(chunk, cancel_event)
                except OperationCancelledError:
                    raise
                except Exception as exc:
                    raise StageExecutionError(
                        stage_name, str(exc), chunk_index=chunk.index, error_code=ErrorCode.PROVIDER_FAILED
                    ) from exc
                context["chunk_audio_path"] = audio_path

                for stage in self.stages:
                    stage_name = stage.name
                    await self._report_chunk(chunk, total, stage_name, "processing")
                    context = await stage.execute(context)
            except Exception as exc:
                await self._report_chunk(chunk, total, stage_name, "failed", str(exc))
                raise
            finally:
                if audio_path:
                    cleanup_segment_files([audio_path])

            done += 1
            await self._report_chunk(chunk, total, stage_name, "completed")
            await self._report(int(done * 90 / max(1, total)), f"chunk {done}/{total}")
            return list(context.get("segments") or [])

        try:
            per_chunk = await map_in_parallel(
                chunks,
                self.settings.concurrency.pipeline,
                _process_chunk,
                cancel_event=cancel_event,
            )
        except OperationCancelledError as exc:
            logger.info("pipeline cancelled (media=%s): %s", media_path, exc)
            raise
        except Exception:
            logger.exception("pipeline failed (media=%s)", media_path)
            raise
        finally:
            if workdir.exists():
                shutil.rmtree(workdir, ignore_errors=True)

        subtitles = merge_chunk_segments(per_chunk)
        if chunks and not subtitles:
            raise UserActionableError("no speech detected in the selected media", ErrorCode.NO_SUBTITLES)

        snapshot: SubtitleSnapshot | None = None
        if self.snapshot_store is not None and subtitles:
            snapshot = self.snapshot_store.create_snapshot(
                INITIAL_IMPORT_LABEL, subtitles, {}, file_id, file_name or Path(media_path).name
            )

        await self._report(95, "checking")
        consistency = ConsistencyValidator.validate(subtitles)
        terminology = check_terminology(subtitles, glossary)

        logger.info(
            "pipeline done (segments=%d, consistency_issues=%d, terminology_issues=%d, elapsed_s=%.2f)",
            len(subtitles),
            len(consistency),
            len(terminology),
            time.monotonic() - started,
        )
        await self._report(100, "completed")
        return PipelineResult(
            subtitles=subtitles,
            consistency_issues=consistency,
            terminology_issues=terminology,
            chunk_count=total,
            snapshot=snapshot,
        )
