"""Pipeline orchestration.

Stages import `subweave.pipeline` submodules; keep these re-exports lazy to
avoid circular imports between `subweave.pipeline` and `subweave.stages`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from subweave.pipeline.orchestrator import PipelineResult, SubtitlePipeline

__all__ = ["PipelineResult", "SubtitlePipeline"]


def __getattr__(name: str) -> Any:
    if name == "SubtitlePipeline":
        from subweave.pipeline.orchestrator import SubtitlePipeline

        return SubtitlePipeline
    if name == "PipelineResult":
        from subweave.pipeline.orchestrator import PipelineResult

        return PipelineResult
    raise AttributeError(name)
