from __future__ import annotations

import asyncio
import json
import logging
import sys
import textwrap
import time

import pytest

from subweave.config import AlignmentConfig
from subweave.error_codes import ErrorCode
from subweave.exceptions import OperationCancelledError, ProviderError
from subweave.models.subtitle import SubtitleItem
from subweave.providers import create_aligner
from subweave.providers.alignment.base import AlignmentContext
from subweave.providers.alignment.ctc import CTCAligner, CTCAlignmentConfig, map_aligned_segments
from subweave.providers.alignment.none import NoAligner


def _segments() -> list[SubtitleItem]:
    return [
        SubtitleItem(id="a1", start=0.0, end=1.5, original="hello", speaker="S1"),
        SubtitleItem(id="b2", start=1.5, end=3.0, original="world", comment="check"),
    ]


@pytest.mark.asyncio
async def test_no_aligner_is_identity() -> None:
    segments = _segments()
    aligned = await NoAligner().align(segments, "chunk.wav", "en")

    assert aligned == segments


@pytest.mark.parametrize(
    "config",
    [
        {"mode": "none"},
        {"mode": "whisperx"},
        {},
        {"mode": "ctc", "aligner_path": "", "model_path": "/models/m.onnx"},
        {"mode": "ctc", "aligner_path": "/bin/aligner", "model_path": ""},
    ],
)
def test_create_aligner_falls_back_to_none(config: dict) -> None:
    assert isinstance(create_aligner(config), NoAligner)


def test_create_aligner_warns_on_missing_path(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="subweave"):
        aligner = create_aligner(AlignmentConfig(_env_file=None, mode="ctc", aligner_path="/bin/aligner"))

    assert isinstance(aligner, NoAligner)
    assert "model_path not configured" in caplog.text


def test_create_aligner_ctc() -> None:
    aligner = create_aligner(
        {"mode": "CTC", "aligner_path": "/opt/aligner/bin", "model_path": "/models/m.onnx", "batch_size": 8}
    )

    assert isinstance(aligner, CTCAligner)
    assert aligner.name == "ctc"
    assert aligner.config.batch_size == 8


def test_ctc_build_args_romanizes_non_latin_languages() -> None:
    aligner = CTCAligner(CTCAlignmentConfig(aligner_path="/opt/aligner", model_path="/m.onnx", batch_size=4))

    args = aligner.build_args("a.wav", "ja", "in.json", "out.json")
    assert args[:3] == ["/opt/aligner", "--audio", "a.wav"]
    assert args[args.index("--language") + 1] == "jpn"
    assert "--romanize" in args
    assert args[-2:] == ["--batch-size", "4"]

    en_args = aligner.build_args("a.wav", "en", "in.json", "out.json")
    assert en_args[en_args.index("--language") + 1] == "eng"
    assert "--romanize" not in en_args


def test_map_aligned_segments_keeps_fields_and_flags_low_confidence() -> None:
    out = map_aligned_segments(
        _segments(),
        [
            {"index": 0, "start": 0.1, "end": 1.4, "text": "hello", "score": 0.95},
            {"index": 1, "start": 1.6, "end": 2.8, "text": "world", "score": 0.4},
        ],
    )

    assert [(s.id, s.start, s.end) for s in out] == [("a1", 0.1, 1.4), ("b2", 1.6, 2.8)]
    assert out[0].speaker == "S1"
    assert out[1].comment == "check"
    assert not out[0].low_confidence
    assert out[1].low_confidence


@pytest.mark.asyncio
async def test_ctc_aligner_missing_binary_raises_provider_error(tmp_path) -> None:
    aligner = CTCAligner(
        CTCAlignmentConfig(aligner_path=str(tmp_path / "missing"), model_path=str(tmp_path / "m.onnx"))
    )
    with pytest.raises(ProviderError, match="aligner not found"):
        await aligner.align(_segments(), "a.wav", "en")


def _write_aligner(tmp_path, body: str) -> CTCAligner:
    script = tmp_path / "aligner"
    header = textwrap.dedent(
        """\
        import argparse, json, sys, time
        parser = argparse.ArgumentParser()
        for flag in ("--audio", "--json-input", "--json-output", "--model", "--language", "--batch-size"):
            parser.add_argument(flag)
        parser.add_argument("--romanize", action="store_true")
        args = parser.parse_args()
        """
    )
    script.write_text(f"#!{sys.executable}\n" + header + textwrap.dedent(body), encoding="utf-8")
    script.chmod(0o755)
    model = tmp_path / "model.onnx"
    model.write_bytes(b"")
    return CTCAligner(CTCAlignmentConfig(aligner_path=str(script), model_path=str(model), batch_size=2))


@pytest.mark.asyncio
async def test_ctc_aligner_exchanges_json_with_binary(tmp_path) -> None:
    aligner = _write_aligner(
        tmp_path,
        """
        with open(args.json_input, encoding="utf-8") as f:
            rows = json.load(f)["segments"]
        with open("seen.json", "w", encoding="utf-8") as f:
            json.dump({"rows": rows, "language": args.language, "romanize": args.romanize,
                       "batch_size": args.batch_size, "audio": args.audio}, f)
        out = [{"index": r["index"], "start": r["start"] + 0.2, "end": r["end"] - 0.1,
                "text": r["text"], "score": 0.9 if r["index"] == 0 else 0.3} for r in rows]
        with open(args.json_output, "w", encoding="utf-8") as f:
            json.dump({"segments": out, "metadata": {"count": len(out), "processing_time": 0.01}}, f)
        """,
    )

    out = await aligner.align(_segments(), "chunk.wav", "ja")

    seen = json.loads((tmp_path / "seen.json").read_text(encoding="utf-8"))
    assert [r["text"] for r in seen["rows"]] == ["hello", "world"]
    assert seen["language"] == "jpn"
    assert seen["romanize"] is True
    assert seen["batch_size"] == "2"
    assert seen["audio"] == "chunk.wav"

    assert [s.id for s in out] == ["a1", "b2"]
    assert [s.start for s in out] == pytest.approx([0.2, 1.7])
    assert [s.end for s in out] == pytest.approx([1.4, 2.9])
    assert out[0].speaker == "S1"
    assert not out[0].low_confidence
    assert out[1].low_confidence


@pytest.mark.asyncio
async def test_ctc_aligner_nonzero_exit_raises_provider_error(tmp_path) -> None:
    aligner = _write_aligner(
        tmp_path,
        """
        sys.stderr.write("model load failed")
        sys.exit(3)
        """,
    )

    with pytest.raises(ProviderError, match="code 3: model load failed") as excinfo:
        await aligner.align(_segments(), "chunk.wav", "en")

    assert excinfo.value.error_code == ErrorCode.ALIGNMENT_FAILED


@pytest.mark.asyncio
async def test_ctc_aligner_cancel_kills_binary(tmp_path) -> None:
    aligner = _write_aligner(
        tmp_path,
        """
        time.sleep(30)
        open("finished", "w").close()
        """,
    )
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.2, cancel.set)
    started = time.monotonic()

    with pytest.raises(OperationCancelledError):
        await aligner.align(_segments(), "chunk.wav", "en", AlignmentContext(cancel_event=cancel))

    assert time.monotonic() - started < 10
    assert not (tmp_path / "finished").exists()
