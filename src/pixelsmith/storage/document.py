"""Durable document-store backend.

Every entity kind is a named collection of JSON documents kept in a single
SQLite file.  Documents are keyed by opaque string ids (``uuid4().hex``) and
stamped with ISO-8601 UTC timestamps, which sort lexicographically in the
same order as chronologically because they always carry microseconds and an
explicit offset.  Documents sharing a timestamp are ordered by ``rowid``, so
listings break ties by insertion order just like the in-memory backend.

Schema::

    documents(collection TEXT, id TEXT, created_at TEXT, body TEXT,
              PRIMARY KEY (collection, id))

Field lookups (owner filters, unique checks) use SQLite's ``json_extract``
on the document body.  Owner ids are stored as strings because ids from this
backend are strings; callers may pass integers and they are normalised.

Blocking SQLite calls run in a worker thread via :func:`asyncio.to_thread`.
Any ``sqlite3.Error`` is logged and re-raised as
:class:`~pixelsmith.core.errors.StorageUnavailableError`; nothing is
swallowed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import uuid
from collections.abc import Callable, Iterator
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from pixelsmith.core.errors import StorageUnavailableError, ValidationError
from pixelsmith.core.schemas import (
    AiModel,
    AiModelCreate,
    Artifact,
    ArtifactCreate,
    ModelTuning,
    ModelTuningCreate,
    ModelTuningUpdate,
    RecordId,
    StylePreset,
    StylePresetCreate,
    User,
    UserCreate,
)

from .base import DEFAULT_PAGE_SIZE, ArtifactStore, check_page

logger = logging.getLogger(__name__)

R = TypeVar("R")

USERS = "users"
ARTIFACTS = "images"
STYLE_PRESETS = "style_presets"
AI_MODELS = "ai_models"
MODEL_TUNINGS = "model_tunings"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _owner(value: RecordId | None) -> str | None:
    return None if value is None else str(value)


class DocumentStore(ArtifactStore):
    """SQLite-backed collections of JSON documents."""

    backend = "document"

    def __init__(self, db_path: Path | str) -> None:
        """Open (and if needed create) the document store.

        Args:
            db_path: Path to the SQLite file.  Parent directories are created.

        Raises:
            StorageUnavailableError: If the file cannot be opened or the
                schema cannot be created.
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._initialize_db()
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Cannot initialise document store at {self.db_path}: {e}")
            raise StorageUnavailableError(f"Document store unavailable: {e}") from e
        logger.info(f"Initialized document store at {self.db_path}")

    # -- Connection helpers -------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a connection and hold a write lock for the duration."""
        with closing(sqlite3.connect(self.db_path, timeout=10, isolation_level=None)) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _initialize_db(self) -> None:
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    body TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_created
                ON documents(collection, created_at DESC)
                """)

    async def _call(self, fn: Callable[..., R], *args: Any) -> R:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.error(f"Document store operation {fn.__name__} failed: {e}")
            raise StorageUnavailableError(f"Document store unavailable: {e}") from e

    @staticmethod
    def _row_to_document(row: tuple[str, str]) -> dict[str, Any]:
        doc_id, body = row
        return {**json.loads(body), "id": doc_id}

    # -- Synchronous primitives (run in a worker thread) --------------------

    def _insert(
        self,
        collection: str,
        body: dict[str, Any],
        unique: tuple[str, ...] = (),
        stamp_updated: bool = False,
    ) -> dict[str, Any]:
        doc_id = uuid.uuid4().hex
        created_at = _timestamp()
        body = {**body, "created_at": created_at}
        if stamp_updated:
            body["updated_at"] = created_at

        with self._transaction() as conn:
            for field in unique:
                clash = conn.execute(
                    "SELECT 1 FROM documents WHERE collection = ? "
                    "AND json_extract(body, ?) = ? LIMIT 1",
                    (collection, f"$.{field}", body[field]),
                ).fetchone()
                if clash is not None:
                    raise ValidationError(f"{field} '{body[field]}' already exists")
            conn.execute(
                "INSERT INTO documents (collection, id, created_at, body) VALUES (?, ?, ?, ?)",
                (collection, doc_id, created_at, json.dumps(body)),
            )
        return {**body, "id": doc_id}

    def _fetch(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with closing(sqlite3.connect(self.db_path, timeout=10)) as conn:
            row = conn.execute(
                "SELECT id, body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        return self._row_to_document(row) if row else None

    def _query(
        self,
        collection: str,
        field: str | None = None,
        value: Any = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> list[dict[str, Any]]:
        sql = "SELECT id, body FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        if field is not None:
            sql += " AND json_extract(body, ?) = ?"
            params += [f"$.{field}", value]
        if newest_first:
            sql += " ORDER BY created_at DESC, rowid DESC"
        else:
            sql += " ORDER BY created_at ASC, rowid ASC"
        # LIMIT -1 means "no limit" in SQLite.
        sql += " LIMIT ? OFFSET ?"
        params += [-1 if limit is None else limit, offset]

        with closing(sqlite3.connect(self.db_path, timeout=10)) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_document(row) for row in rows]

    def _count(self, collection: str, field: str | None = None, value: Any = None) -> int:
        sql = "SELECT COUNT(*) FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        if field is not None:
            sql += " AND json_extract(body, ?) = ?"
            params += [f"$.{field}", value]
        with closing(sqlite3.connect(self.db_path, timeout=10)) as conn:
            (count,) = conn.execute(sql, params).fetchone()
        return count

    def _update(
        self, collection: str, doc_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id, body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if row is None:
                return None
            existing = self._row_to_document(row)
            merged = {**existing, **changes}
            merged["id"] = existing["id"]
            merged["created_at"] = existing["created_at"]
            merged["updated_at"] = max(_timestamp(), existing.get("updated_at", ""))
            body = {k: v for k, v in merged.items() if k != "id"}
            conn.execute(
                "UPDATE documents SET body = ? WHERE collection = ? AND id = ?",
                (json.dumps(body), collection, doc_id),
            )
        return merged

    def _delete(self, collection: str, doc_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            return cursor.rowcount > 0

    # -- Users --------------------------------------------------------------

    async def create_user(self, data: UserCreate) -> User:
        doc = await self._call(
            self._insert, USERS, data.model_dump(mode="json"), ("username", "email")
        )
        logger.info(f"Created user {doc['id']} ({data.username})")
        return User.model_validate(doc)

    async def get_user(self, user_id: RecordId) -> User | None:
        doc = await self._call(self._fetch, USERS, str(user_id))
        return User.model_validate(doc) if doc else None

    async def get_user_by_username(self, username: str) -> User | None:
        docs = await self._call(self._query, USERS, "username", username, 1)
        return User.model_validate(docs[0]) if docs else None

    # -- Artifacts ----------------------------------------------------------

    async def create_artifact(self, data: ArtifactCreate) -> Artifact:
        body = data.model_dump(mode="json")
        body["user_id"] = _owner(data.user_id)
        doc = await self._call(self._insert, ARTIFACTS, body)
        return Artifact.model_validate(doc)

    async def get_artifact(self, artifact_id: RecordId) -> Artifact | None:
        doc = await self._call(self._fetch, ARTIFACTS, str(artifact_id))
        return Artifact.model_validate(doc) if doc else None

    async def list_artifacts(
        self,
        user_id: RecordId | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Artifact]:
        check_page(limit, offset)
        field = None if user_id is None else "user_id"
        docs = await self._call(self._query, ARTIFACTS, field, _owner(user_id), limit, offset)
        return [Artifact.model_validate(doc) for doc in docs]

    async def count_artifacts(self, user_id: RecordId | None = None) -> int:
        field = None if user_id is None else "user_id"
        return await self._call(self._count, ARTIFACTS, field, _owner(user_id))

    # -- Style presets ------------------------------------------------------

    async def create_style_preset(self, data: StylePresetCreate) -> StylePreset:
        doc = await self._call(
            self._insert, STYLE_PRESETS, data.model_dump(mode="json"), ("name",)
        )
        return StylePreset.model_validate(doc)

    async def get_style_preset(self, preset_id: RecordId) -> StylePreset | None:
        doc = await self._call(self._fetch, STYLE_PRESETS, str(preset_id))
        return StylePreset.model_validate(doc) if doc else None

    async def list_style_presets(self) -> list[StylePreset]:
        docs = await self._call(self._query, STYLE_PRESETS, None, None, None, 0, False)
        return [StylePreset.model_validate(doc) for doc in docs]

    # -- AI models ----------------------------------------------------------

    async def create_ai_model(self, data: AiModelCreate) -> AiModel:
        doc = await self._call(
            self._insert, AI_MODELS, data.model_dump(mode="json"), ("name", "slug")
        )
        return AiModel.model_validate(doc)

    async def get_ai_model(self, model_id: RecordId) -> AiModel | None:
        doc = await self._call(self._fetch, AI_MODELS, str(model_id))
        return AiModel.model_validate(doc) if doc else None

    async def get_ai_model_by_slug(self, slug: str) -> AiModel | None:
        docs = await self._call(self._query, AI_MODELS, "slug", slug, 1)
        return AiModel.model_validate(docs[0]) if docs else None

    async def list_ai_models(self) -> list[AiModel]:
        docs = await self._call(self._query, AI_MODELS, None, None, None, 0, False)
        return [AiModel.model_validate(doc) for doc in docs]

    # -- Model tunings ------------------------------------------------------

    async def create_model_tuning(self, data: ModelTuningCreate) -> ModelTuning:
        body = data.model_dump(mode="json")
        body["user_id"] = _owner(data.user_id)
        doc = await self._call(self._insert, MODEL_TUNINGS, body, (), True)
        return ModelTuning.model_validate(doc)

    async def get_model_tuning(self, tuning_id: RecordId) -> ModelTuning | None:
        doc = await self._call(self._fetch, MODEL_TUNINGS, str(tuning_id))
        return ModelTuning.model_validate(doc) if doc else None

    async def list_model_tunings(
        self,
        user_id: RecordId | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelTuning]:
        check_page(limit, offset)
        field = None if user_id is None else "user_id"
        docs = await self._call(
            self._query, MODEL_TUNINGS, field, _owner(user_id), limit, offset
        )
        return [ModelTuning.model_validate(doc) for doc in docs]

    async def update_model_tuning(
        self, tuning_id: RecordId, changes: ModelTuningUpdate
    ) -> ModelTuning | None:
        fields = changes.model_dump(mode="json", exclude_unset=True)
        if "user_id" in fields:
            fields["user_id"] = _owner(fields["user_id"])
        doc = await self._call(self._update, MODEL_TUNINGS, str(tuning_id), fields)
        return ModelTuning.model_validate(doc) if doc else None

    async def delete_model_tuning(self, tuning_id: RecordId) -> bool:
        return await self._call(self._delete, MODEL_TUNINGS, str(tuning_id))
