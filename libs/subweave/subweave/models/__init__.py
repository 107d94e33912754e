"""Domain models."""

from subweave.models.chunk import ChunkSpec
from subweave.models.glossary import Glossary, GlossaryItem
from subweave.models.subtitle import (
    SpeakerProfile,
    SubtitleItem,
    SubtitleSnapshot,
    generate_subtitle_id,
)

__all__ = [
    "ChunkSpec",
    "Glossary",
    "GlossaryItem",
    "SpeakerProfile",
    "SubtitleItem",
    "SubtitleSnapshot",
    "generate_subtitle_id",
]
