"""Per-chunk pipeline stages."""

from subweave.stages.alignment import AlignmentStage
from subweave.stages.base import Stage
from subweave.stages.transcription import TranscriptionStage
from subweave.stages.translation import TranslationStage

__all__ = ["AlignmentStage", "Stage", "TranscriptionStage", "TranslationStage"]
