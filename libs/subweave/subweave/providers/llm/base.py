"""Translation provider base class."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem


@dataclass
class Message:
    """A chat message."""

    role: str  # "system" | "user" | "assistant"
    content: str


class TranslationProvider(ABC):
    """Abstract base class for translation/refinement providers."""

    provider: str = "llm"

    @abstractmethod
    async def translate(
        self,
        items: Sequence[SubtitleItem],
        *,
        target_language: str,
        glossary: Sequence[GlossaryItem] = (),
        cancel_event: asyncio.Event | None = None,
    ) -> list[SubtitleItem]:
        """Translate one batch of subtitles.

        Returns new items in input order with `translated` filled; ids,
        timestamps and speakers are preserved.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None
