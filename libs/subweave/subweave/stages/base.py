"""Stage abstractions for pipeline execution."""

from __future__ import annotations

from abc import ABC, abstractmethod

from subweave.pipeline.context import PipelineContext


class Stage(ABC):
    """One step applied to a single chunk's context."""

    name: str

    @abstractmethod
    async def execute(self, context: PipelineContext) -> PipelineContext:
        """Run the stage and return the updated context."""

    @abstractmethod
    def validate_input(self, context: PipelineContext) -> bool:
        """Whether the context carries everything the stage needs."""
