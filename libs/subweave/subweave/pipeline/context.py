"""Pipeline context typing.

Stages share a context dict per chunk. This module defines its stable keys and
the progress reporting protocol.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, TypedDict, runtime_checkable

from subweave.models.chunk import ChunkSpec
from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem


class ProgressReporter(Protocol):
    async def report(self, progress: int, message: str) -> None: ...


class ChunkProgress(TypedDict, total=False):
    chunk_index: int
    chunks_total: int
    stage: str
    status: str  # "waiting" | "processing" | "completed" | "failed"
    message: str


@runtime_checkable
class ChunkProgressReporter(ProgressReporter, Protocol):
    async def report_chunk(self, progress: ChunkProgress) -> None: ...


class PipelineContext(TypedDict, total=False):
    media_path: str
    media_duration: float
    source_language: str | None
    target_language: str

    chunk: ChunkSpec
    chunks_total: int
    chunk_audio_path: str

    glossary: list[GlossaryItem]
    cancel_event: asyncio.Event

    segments: list[SubtitleItem]
