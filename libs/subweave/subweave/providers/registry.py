"""Provider factory and registry."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from subweave.config import AlignmentConfig
from subweave.exceptions import ConfigurationError
from subweave.providers.alignment.base import AlignmentStrategy
from subweave.providers.alignment.none import NoAligner
from subweave.providers.asr.base import TranscriptionProvider
from subweave.providers.llm.base import TranslationProvider

logger = logging.getLogger(__name__)


def get_asr_provider(config: Mapping[str, Any]) -> TranscriptionProvider:
    """Get transcription provider based on configuration."""
    provider_type = str(config.get("provider", "openai_whisper")).strip().lower()

    match provider_type:
        case "openai_whisper" | "whisper" | "openai":
            from subweave.providers.asr.openai_whisper import OpenAIWhisperProvider

            return OpenAIWhisperProvider(
                base_url=str(config["base_url"]),
                api_key=str(config.get("api_key") or ""),
                model=str(config.get("model") or "whisper-1"),
                timeout=float(config.get("timeout", 600.0)),
            )
        case _:
            raise ConfigurationError(f"Unknown ASR provider: {provider_type}")


def get_translation_provider(config: Mapping[str, Any]) -> TranslationProvider:
    """Get translation provider based on configuration."""
    provider_type = str(config.get("provider", "openai")).strip().lower()

    match provider_type:
        case "openai" | "openai_compat":
            from subweave.providers.llm.openai_compat import OpenAICompatTranslator

            api_key = str(config.get("api_key") or "").strip()
            if provider_type == "openai" and not api_key:
                raise ConfigurationError("OpenAI provider requires api_key")
            return OpenAICompatTranslator(
                api_key=api_key,
                model=str(config.get("model") or "gpt-4o-mini"),
                base_url=config.get("base_url"),
                provider=provider_type,
                temperature=float(config.get("temperature", 0.3)),
                timeout=float(config.get("request_timeout_s", 600.0)),
            )
        case _:
            raise ConfigurationError(f"Unknown LLM provider: {provider_type}")


def create_aligner(config: AlignmentConfig | Mapping[str, Any]) -> AlignmentStrategy:
    """Select an alignment strategy from configuration.

    Never raises: a missing aligner/model path falls back to `NoAligner` with a
    warning, and unknown modes behave like "none".
    """
    cfg: Mapping[str, Any] = config.model_dump() if isinstance(config, AlignmentConfig) else config
    mode = str(cfg.get("mode") or "none").strip().lower()

    match mode:
        case "ctc":
            from subweave.providers.alignment.ctc import CTCAligner, CTCAlignmentConfig

            aligner_path = str(cfg.get("aligner_path") or "").strip()
            model_path = str(cfg.get("model_path") or "").strip()
            if not aligner_path:
                logger.warning("CTC alignment requested but aligner_path not configured, falling back to none")
                return NoAligner()
            if not model_path:
                logger.warning("CTC alignment requested but model_path not configured, falling back to none")
                return NoAligner()
            batch_size = cfg.get("batch_size")
            timeout_s = cfg.get("timeout_s")
            return CTCAligner(
                CTCAlignmentConfig(
                    aligner_path=aligner_path,
                    model_path=model_path,
                    batch_size=int(batch_size) if batch_size else None,
                    timeout_s=float(timeout_s) if timeout_s else None,
                )
            )
        case "none":
            return NoAligner()
        case _:
            logger.warning("unknown alignment mode %r, using none", mode)
            return NoAligner()
