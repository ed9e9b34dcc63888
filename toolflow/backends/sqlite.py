"""SQLite pipeline store for persistent storage.

Each saved pipeline is stored as one JSON document in the camelCase wire
format, with its timestamps duplicated into columns for ordering.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiosqlite
from pydantic import ValidationError

from toolflow.backends.base import build_saved, utc_now, validate_save_input
from toolflow.backends.schema import SavedPipeline, SavedPipelineSummary, SavePipelineInput
from toolflow.utils.config import get_pipelines_db
from toolflow.utils.errors import PipelineNotFoundError

logger = logging.getLogger(__name__)


class SQLitePipelineStore:
    """SQLite-based saved-pipeline storage.

    The database schema:
    - id: TEXT PRIMARY KEY (pipeline slug)
    - document: TEXT (JSON-encoded saved pipeline)
    - created_at: TEXT (ISO-8601 UTC)
    - updated_at: TEXT (ISO-8601 UTC)
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file; defaults to TOOLFLOW_PIPELINES_DB
        """
        self.db_path = db_path or get_pipelines_db()
        self._initialized = False

    async def _ensure_initialized(self):
        """Ensure database and table exist."""
        if self._initialized:
            return

        db_dir = Path(self.db_path).parent
        if db_dir and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS pipelines (
                    id TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_pipelines_updated_at
                ON pipelines(updated_at)
                """
            )
            await db.commit()

        self._initialized = True

    async def list(self) -> List[SavedPipelineSummary]:
        """List saved pipelines, newest update first.

        Rows that no longer parse are skipped with a warning.
        """
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT id, document FROM pipelines ORDER BY updated_at DESC"
            ) as cursor:
                rows = await cursor.fetchall()

        summaries = []
        for pipeline_id, document in rows:
            try:
                summaries.append(SavedPipeline.model_validate(json.loads(document)).summary())
            except (ValueError, ValidationError):
                logger.warning("Skipping malformed stored pipeline %s", pipeline_id)
        return summaries

    async def get(self, pipeline_id: str) -> SavedPipeline:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT document FROM pipelines WHERE id = ?",
                (pipeline_id,),
            ) as cursor:
                row = await cursor.fetchone()

        if row is None:
            raise PipelineNotFoundError(pipeline_id)
        return SavedPipeline.model_validate(json.loads(row[0]))

    async def save(self, data: Union[SavePipelineInput, Dict[str, Any]]) -> SavedPipeline:
        validated = validate_save_input(data)
        await self._ensure_initialized()
        now = utc_now()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT document FROM pipelines WHERE id = ?",
                (validated.id,),
            ) as cursor:
                row = await cursor.fetchone()

            created_at = now
            if row is not None:
                try:
                    created_at = SavedPipeline.model_validate(json.loads(row[0])).created_at
                except (ValueError, ValidationError):
                    logger.warning("Overwriting malformed stored pipeline %s", validated.id)

            saved = build_saved(validated, created_at=created_at, updated_at=now)
            await db.execute(
                """
                INSERT INTO pipelines (id, document, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id)
                DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at
                """,
                (
                    saved.id,
                    json.dumps(saved.to_wire()),
                    saved.created_at.isoformat(),
                    saved.updated_at.isoformat(),
                ),
            )
            await db.commit()

        logger.info("Saved pipeline %s (%d steps)", saved.id, len(saved.steps))
        return saved

    async def remove(self, pipeline_id: str) -> None:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM pipelines WHERE id = ?",
                (pipeline_id,),
            )
            deleted = cursor.rowcount
            await db.commit()

        if not deleted:
            raise PipelineNotFoundError(pipeline_id)
        logger.info("Removed pipeline %s", pipeline_id)

    def __repr__(self) -> str:
        return f"SQLitePipelineStore(db_path='{self.db_path}')"
