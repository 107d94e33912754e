from __future__ import annotations

import argparse
import asyncio
import json
import signal
from pathlib import Path

from subweave.config import Settings
from subweave.exceptions import OperationCancelledError, UserActionableError, readable_error_message
from subweave.glossary import get_active_glossary_terms
from subweave.pipeline import SubtitlePipeline
from subweave.services import SettingsStore
from subweave.snapshots import SnapshotStore
from subweave.utils.audio import probe_media_duration
from subweave.utils.logging_setup import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Subweave pipeline on a local media file.")
    parser.add_argument("--media", required=True, help="Path to local video/audio file")
    parser.add_argument("--output", default=None, help="Write subtitles JSON here (default: stdout)")
    parser.add_argument("--source-language", default=None, help="Source language code (optional)")
    parser.add_argument("--target-language", default=None, help="Target language code")
    parser.add_argument("--duration-s", type=float, default=None, help="Media duration (skips ffprobe)")
    parser.add_argument(
        "--sample-minutes",
        type=int,
        default=None,
        help="Only process the first N minutes (rounded up to whole chunks)",
    )
    parser.add_argument("--alignment", choices=["none", "ctc"], default=None, help="Alignment mode override")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    media_path = Path(args.media)
    if not media_path.exists():
        raise SystemExit(f"Media not found: {media_path}")

    settings = Settings()
    setup_logging(settings)
    if args.sample_minutes is not None:
        settings.chunking.sample_minutes = int(args.sample_minutes)
    if args.alignment is not None:
        settings.alignment.mode = str(args.alignment)

    app_settings = SettingsStore(settings.settings_path).load()
    target_language = args.target_language or app_settings.target_language or "zh"
    glossary = get_active_glossary_terms(app_settings)

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, cancel_event.set)

    duration = args.duration_s
    if duration is None:
        duration = await probe_media_duration(
            str(media_path),
            str(Path(settings.ffmpeg_bin).with_name("ffprobe")),
            cancel_event=cancel_event,
        )

    pipeline = SubtitlePipeline(settings, snapshot_store=SnapshotStore(settings.snapshots.max_snapshots))
    try:
        result = await pipeline.run(
            str(media_path),
            media_duration=float(duration),
            target_language=target_language,
            source_language=args.source_language,
            glossary=glossary,
            cancel_event=cancel_event,
            file_name=media_path.name,
        )
    except OperationCancelledError:
        print("cancelled")
        return 130
    except UserActionableError as exc:
        print(f"error[{exc.code.value}]: {readable_error_message(exc)}")
        return 2
    finally:
        await pipeline.close()

    payload = json.dumps([s.to_dict() for s in result.subtitles], ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    else:
        print(payload)
    print(
        f"chunks={result.chunk_count} segments={len(result.subtitles)} "
        f"consistency_issues={len(result.consistency_issues)} "
        f"terminology_issues={len(result.terminology_issues)}"
    )
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
