"""In-memory pipeline store for testing and development.

Pipelines are lost when the process terminates.
"""

import logging
from typing import Any, Dict, List, Union

from toolflow.backends.base import build_saved, utc_now, validate_save_input
from toolflow.backends.schema import SavedPipeline, SavedPipelineSummary, SavePipelineInput
from toolflow.utils.errors import PipelineNotFoundError

logger = logging.getLogger(__name__)


class MemoryPipelineStore:
    """In-memory saved-pipeline storage.

    Useful for:
    - Testing
    - Development
    - Single-process tools that do not need durability
    """

    def __init__(self):
        """Initialize memory store with empty storage."""
        self._storage: Dict[str, SavedPipeline] = {}

    async def list(self) -> List[SavedPipelineSummary]:
        pipelines = sorted(self._storage.values(), key=lambda p: p.updated_at, reverse=True)
        return [pipeline.summary() for pipeline in pipelines]

    async def get(self, pipeline_id: str) -> SavedPipeline:
        if pipeline_id not in self._storage:
            raise PipelineNotFoundError(pipeline_id)
        # Return a copy to avoid external mutations
        return self._storage[pipeline_id].model_copy(deep=True)

    async def save(self, data: Union[SavePipelineInput, Dict[str, Any]]) -> SavedPipeline:
        validated = validate_save_input(data)
        now = utc_now()

        existing = self._storage.get(validated.id)
        created_at = existing.created_at if existing is not None else now

        saved = build_saved(validated, created_at=created_at, updated_at=now)
        self._storage[saved.id] = saved.model_copy(deep=True)
        logger.info("Saved pipeline %s (%d steps)", saved.id, len(saved.steps))
        return saved

    async def remove(self, pipeline_id: str) -> None:
        if pipeline_id not in self._storage:
            raise PipelineNotFoundError(pipeline_id)
        del self._storage[pipeline_id]
        logger.info("Removed pipeline %s", pipeline_id)

    def clear_all(self) -> None:
        """Clear all stored pipelines.

        Useful for testing and cleanup.
        """
        self._storage.clear()

    def __repr__(self) -> str:
        return f"MemoryPipelineStore(pipelines={len(self._storage)})"
