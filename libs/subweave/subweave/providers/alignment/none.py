"""Pass-through alignment (keeps transcription timestamps)."""

from __future__ import annotations

from collections.abc import Sequence

from subweave.models.subtitle import SubtitleItem
from subweave.providers.alignment.base import AlignmentContext, AlignmentStrategy


class NoAligner(AlignmentStrategy):
    name = "none"

    async def align(
        self,
        segments: Sequence[SubtitleItem],
        audio_path: str = "",
        language: str = "",
        context: AlignmentContext | None = None,
    ) -> list[SubtitleItem]:
        return list(segments)
