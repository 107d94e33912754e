"""CTC forced alignment via an external aligner binary.

The binary exchanges JSON files:

  input:  {"segments": [{"index", "text", "start", "end"}]}
  output: {"segments": [{"index", "start", "end", "text", "score"}],
           "metadata": {"count", "processing_time"}}

Only timestamps change; every other field of the source segment is kept.
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from subweave.error_codes import ErrorCode
from subweave.exceptions import ProviderError
from subweave.models.subtitle import SubtitleItem, generate_subtitle_id
from subweave.providers.alignment.base import (
    CONFIDENCE_THRESHOLD,
    AlignmentContext,
    AlignmentStrategy,
)
from subweave.utils.language import iso639_1_to_3, requires_romanization
from subweave.utils.subprocess import run_subprocess

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CTCAlignmentConfig:
    aligner_path: str
    model_path: str
    batch_size: int | None = None
    timeout_s: float | None = None


class CTCAligner(AlignmentStrategy):
    name = "ctc"

    def __init__(self, config: CTCAlignmentConfig) -> None:
        self.config = config

    def build_args(self, audio_path: str, language: str, input_json: str, output_json: str) -> list[str]:
        lang = iso639_1_to_3(language or "eng")
        args = [
            self.config.aligner_path,
            "--audio",
            audio_path,
            "--json-input",
            input_json,
            "--json-output",
            output_json,
            "--model",
            self.config.model_path,
            "--language",
            lang,
        ]
        if requires_romanization(lang):
            args.append("--romanize")
        if self.config.batch_size:
            args.extend(["--batch-size", str(self.config.batch_size)])
        return args

    async def align(
        self,
        segments: Sequence[SubtitleItem],
        audio_path: str,
        language: str,
        context: AlignmentContext | None = None,
    ) -> list[SubtitleItem]:
        if not segments:
            return []
        for path, what in ((self.config.aligner_path, "aligner"), (self.config.model_path, "model")):
            if not Path(path).exists():
                raise ProviderError("ctc", f"{what} not found: {path}", error_code=ErrorCode.ALIGNMENT_FAILED)

        cancel_event = context.cancel_event if context else None
        payload = {
            "segments": [
                {"index": i, "text": s.original, "start": float(s.start), "end": float(s.end)}
                for i, s in enumerate(segments)
            ]
        }

        with tempfile.TemporaryDirectory(prefix="subweave-ctc-") as tmp:
            input_json = Path(tmp) / "input.json"
            output_json = Path(tmp) / "output.json"
            input_json.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")

            args = self.build_args(audio_path, language, str(input_json), str(output_json))
            logger.info("ctc align start (segments=%d, language=%s)", len(segments), language)
            result = await run_subprocess(
                args,
                cwd=str(Path(self.config.aligner_path).parent),
                timeout_s=self.config.timeout_s,
                cancel_event=cancel_event,
            )
            if result.returncode != 0:
                stderr = result.stderr.decode("utf-8", errors="replace").strip()
                raise ProviderError(
                    "ctc",
                    f"aligner exited with code {result.returncode}: {stderr[-2000:]}",
                    error_code=ErrorCode.ALIGNMENT_FAILED,
                )
            try:
                output = json.loads(output_json.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise ProviderError(
                    "ctc", f"unreadable aligner output: {exc}", error_code=ErrorCode.ALIGNMENT_FAILED
                ) from exc

        aligned = list(output.get("segments") or []) if isinstance(output, dict) else []
        metadata = output.get("metadata") if isinstance(output, dict) else None
        logger.info(
            "ctc align done (segments=%d, processing_time=%s)",
            len(aligned),
            (metadata or {}).get("processing_time"),
        )
        return map_aligned_segments(segments, aligned)


def map_aligned_segments(
    originals: Sequence[SubtitleItem],
    aligned: Sequence[dict[str, Any]],
) -> list[SubtitleItem]:
    out: list[SubtitleItem] = []
    for idx, row in enumerate(aligned):
        score = float(row.get("score") or 0.0)
        start = float(row["start"])
        end = float(row["end"])
        original = originals[idx] if idx < len(originals) else None
        if original is None:
            logger.warning("ctc aligner returned extra segment index=%d", idx)
            out.append(
                SubtitleItem(
                    id=generate_subtitle_id(),
                    start=start,
                    end=end,
                    original=str(row.get("text") or ""),
                    alignment_score=score,
                    low_confidence=score < CONFIDENCE_THRESHOLD,
                )
            )
            continue
        out.append(
            replace(
                original,
                start=start,
                end=end,
                alignment_score=score,
                low_confidence=score < CONFIDENCE_THRESHOLD,
            )
        )
    return out
