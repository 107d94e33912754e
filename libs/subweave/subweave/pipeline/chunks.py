"""Timeline chunk planning and duration-budget selection."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Literal

from subweave.models.chunk import ChunkSpec

SampleBudget = int | float | Literal["all"]


def build_chunk_specs(total_duration: float, chunk_duration: float) -> list[ChunkSpec]:
    """Split [0, total_duration) into contiguous chunks; the last one may be shorter."""
    total = float(total_duration)
    size = float(chunk_duration)
    if size <= 0:
        raise ValueError("chunk_duration must be > 0")
    if total <= 0:
        return []

    out: list[ChunkSpec] = []
    start = 0.0
    index = 0
    while start < total:
        end = min(total, start + size)
        out.append(ChunkSpec(index=index, start=start, end=end))
        index += 1
        start = end
    return out


def select_chunks_by_duration(
    chunks: Sequence[ChunkSpec],
    budget_minutes: SampleBudget,
    chunk_duration: float,
) -> list[ChunkSpec]:
    """Return the prefix of `chunks` covering `budget_minutes` of media.

    `"all"` keeps every chunk. Any positive budget yields at least one chunk.
    """
    if budget_minutes == "all":
        return list(chunks)
    if float(chunk_duration) <= 0:
        raise ValueError("chunk_duration must be > 0")
    if float(budget_minutes) <= 0:
        raise ValueError("budget_minutes must be > 0 or 'all'")

    needed = math.ceil(float(budget_minutes) * 60.0 / float(chunk_duration))
    if needed >= len(chunks):
        return list(chunks)
    return list(chunks[:needed])
