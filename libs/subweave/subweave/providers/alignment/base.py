"""Alignment strategy base class."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from subweave.models.subtitle import SubtitleItem

# Alignment scores below this mark a segment as low confidence.
CONFIDENCE_THRESHOLD = 0.7


@dataclass
class AlignmentContext:
    cancel_event: asyncio.Event | None = None
    chunk_index: int | None = None


class AlignmentStrategy(ABC):
    """Corrects segment timestamps against the audio."""

    name: ClassVar[str]

    @abstractmethod
    async def align(
        self,
        segments: Sequence[SubtitleItem],
        audio_path: str,
        language: str,
        context: AlignmentContext | None = None,
    ) -> list[SubtitleItem]:
        """Return segments with corrected timestamps, in input order."""
