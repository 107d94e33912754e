"""Provider abstractions for external capabilities."""

from subweave.providers.registry import (
    create_aligner,
    get_asr_provider,
    get_translation_provider,
)

__all__ = ["create_aligner", "get_asr_provider", "get_translation_provider"]
