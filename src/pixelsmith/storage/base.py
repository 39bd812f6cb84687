"""Abstract persistence contract shared by every storage backend.

``ArtifactStore`` is the only way the services touch persisted data.  Two
backends implement it:

- :class:`~pixelsmith.storage.memory.MemoryStore` keeps everything in
  per-instance dictionaries with monotonic integer ids.
- :class:`~pixelsmith.storage.document.DocumentStore` keeps JSON documents in
  named collections of a SQLite file, keyed by opaque string ids, with
  ISO-8601 timestamps.

Both must behave identically from a caller's point of view:

- ``create_*`` assigns the id, stamps ``created_at`` (and ``updated_at`` for
  tunings) and returns the full stored record.
- ``get_*`` returns ``None`` for an unknown id; it never raises for absence.
- ``list_*`` filters by owner, sorts newest first and slices
  ``[offset:offset + limit]`` after filtering.
- ``update_model_tuning`` merges the supplied fields, keeps ``id`` and
  ``created_at`` and refreshes ``updated_at``.
- ``delete_model_tuning`` reports whether a record existed.
- Unique fields (username, email, preset name, model name and slug) are
  enforced; a duplicate raises :class:`ValidationError`.
- Transport failures raise :class:`StorageUnavailableError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import TypeVar

from pixelsmith.core.errors import ValidationError
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

DEFAULT_PAGE_SIZE = 20

T = TypeVar("T")


def check_page(limit: int | None, offset: int) -> None:
    """Reject negative pagination arguments.

    Raises:
        ValidationError: If ``limit`` or ``offset`` is negative.
    """
    if limit is not None and limit < 0:
        raise ValidationError("limit must be zero or positive")
    if offset < 0:
        raise ValidationError("offset must be zero or positive")


def sort_newest_first(records: Iterable[T]) -> list[T]:
    """Order records by ``created_at`` descending, ties broken by id descending."""
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


def paginate(records: Sequence[T], limit: int | None, offset: int) -> list[T]:
    """Slice an already filtered and ordered list.

    Args:
        records: Filtered records in display order.
        limit: Page size; ``None`` returns everything after ``offset``.
        offset: Number of leading records to skip.
    """
    if limit is None:
        return list(records[offset:])
    return list(records[offset : offset + limit])


class ArtifactStore(ABC):
    """Uniform async CRUD over users, artifacts, presets, models and tunings."""

    backend: str = "abstract"

    # -- Users --------------------------------------------------------------

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User: ...

    @abstractmethod
    async def get_user(self, user_id: RecordId) -> User | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None: ...

    # -- Artifacts ----------------------------------------------------------

    @abstractmethod
    async def create_artifact(self, data: ArtifactCreate) -> Artifact: ...

    @abstractmethod
    async def get_artifact(self, artifact_id: RecordId) -> Artifact | None: ...

    @abstractmethod
    async def list_artifacts(
        self,
        user_id: RecordId | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Artifact]: ...

    @abstractmethod
    async def count_artifacts(self, user_id: RecordId | None = None) -> int: ...

    # -- Style presets ------------------------------------------------------

    @abstractmethod
    async def create_style_preset(self, data: StylePresetCreate) -> StylePreset: ...

    @abstractmethod
    async def get_style_preset(self, preset_id: RecordId) -> StylePreset | None: ...

    @abstractmethod
    async def list_style_presets(self) -> list[StylePreset]: ...

    # -- AI models ----------------------------------------------------------

    @abstractmethod
    async def create_ai_model(self, data: AiModelCreate) -> AiModel: ...

    @abstractmethod
    async def get_ai_model(self, model_id: RecordId) -> AiModel | None: ...

    @abstractmethod
    async def get_ai_model_by_slug(self, slug: str) -> AiModel | None: ...

    @abstractmethod
    async def list_ai_models(self) -> list[AiModel]: ...

    # -- Model tunings ------------------------------------------------------

    @abstractmethod
    async def create_model_tuning(self, data: ModelTuningCreate) -> ModelTuning: ...

    @abstractmethod
    async def get_model_tuning(self, tuning_id: RecordId) -> ModelTuning | None: ...

    @abstractmethod
    async def list_model_tunings(
        self,
        user_id: RecordId | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelTuning]: ...

    @abstractmethod
    async def update_model_tuning(
        self, tuning_id: RecordId, changes: ModelTuningUpdate
    ) -> ModelTuning | None: ...

    @abstractmethod
    async def delete_model_tuning(self, tuning_id: RecordId) -> bool: ...

    # -- Lifecycle ----------------------------------------------------------

    async def close(self) -> None:
        """Release backend resources.  The default has nothing to release."""
