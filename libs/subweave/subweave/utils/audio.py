"""Audio utilities (FFmpeg helpers)."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from subweave.models.chunk import ChunkSpec
from subweave.utils.subprocess import run_subprocess


async def cut_audio_segment(
    input_path: str,
    output_path: str,
    start: float,
    end: float,
    ffmpeg_bin: str = "ffmpeg",
    cancel_event: asyncio.Event | None = None,
) -> None:
    """Cut [start, end) out of `input_path` as 16 kHz mono WAV."""
    if end <= start:
        raise ValueError("end must be greater than start")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        ffmpeg_bin,
        "-y",
        "-i",
        input_path,
        "-ss",
        str(start),
        "-to",
        str(end),
        "-ar",
        "16000",
        "-ac",
        "1",
        "-f",
        "wav",
        str(output),
    ]
    result = await run_subprocess(cmd, cancel_event=cancel_event)
    if result.returncode != 0:
        raise RuntimeError(f"ffmpeg cut failed (code={result.returncode}): {' '.join(cmd)}")


class FFmpegChunkExtractor:
    """Writes one WAV file per chunk under `output_dir`."""

    def __init__(self, media_path: str, output_dir: str, ffmpeg_bin: str = "ffmpeg") -> None:
        self.media_path = media_path
        self.output_dir = Path(output_dir)
        self.ffmpeg_bin = ffmpeg_bin

    async def extract(self, chunk: ChunkSpec, cancel_event: asyncio.Event | None = None) -> str:
        out = self.output_dir / f"chunk_{chunk.index:04d}.wav"
        await cut_audio_segment(
            input_path=self.media_path,
            output_path=str(out),
            start=float(chunk.start),
            end=float(chunk.end),
            ffmpeg_bin=self.ffmpeg_bin,
            cancel_event=cancel_event,
        )
        return str(out)


def cleanup_segment_files(paths: list[str]) -> None:
    for path in paths:
        try:
            os.remove(path)
        except OSError:
            pass


async def probe_media_duration(
    media_path: str,
    ffprobe_bin: str = "ffprobe",
    cancel_event: asyncio.Event | None = None,
) -> float:
    """Container duration in seconds."""
    cmd = [
        ffprobe_bin,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        media_path,
    ]
    result = await run_subprocess(cmd, cancel_event=cancel_event)
    if result.returncode != 0:
        raise RuntimeError(f"ffprobe failed (code={result.returncode}): {media_path}")
    try:
        return float(result.stdout.decode("utf-8", errors="replace").strip())
    except ValueError as exc:
        raise RuntimeError(f"ffprobe returned no duration for {media_path}") from exc
