from __future__ import annotations

import pytest

from subweave.models.chunk import ChunkSpec
from subweave.pipeline.chunks import build_chunk_specs, select_chunks_by_duration


def test_build_chunk_specs_covers_timeline() -> None:
    chunks = build_chunk_specs(650.0, 300.0)

    assert [(c.index, c.start, c.end) for c in chunks] == [
        (0, 0.0, 300.0),
        (1, 300.0, 600.0),
        (2, 600.0, 650.0),
    ]
    assert chunks[-1].duration == pytest.approx(50.0)
    assert build_chunk_specs(0.0, 300.0) == []


def test_select_all_returns_identical_list() -> None:
    chunks = build_chunk_specs(1800.0, 300.0)
    selected = select_chunks_by_duration(chunks, "all", 300.0)

    assert selected == chunks
    assert selected is not chunks


@pytest.mark.parametrize(
    ("budget_minutes", "expected"),
    [(1, 1), (5, 1), (6, 2), (10, 2), (11, 3), (29, 6), (1000, 6)],
)
def test_select_by_budget_is_ceil_prefix(budget_minutes: int, expected: int) -> None:
    chunks = build_chunk_specs(1800.0, 300.0)
    selected = select_chunks_by_duration(chunks, budget_minutes, 300.0)

    assert len(selected) == expected
    assert selected == chunks[:expected]


def test_select_rejects_non_positive_budget() -> None:
    chunks = [ChunkSpec(index=0, start=0.0, end=10.0)]
    with pytest.raises(ValueError):
        select_chunks_by_duration(chunks, 0, 300.0)
    with pytest.raises(ValueError):
        select_chunks_by_duration(chunks, 5, 0)
