"""In-memory storage backend.

Records live in per-instance dictionaries keyed by monotonic integer ids.
Nothing is shared between instances, so every test (or process) that builds
its own ``MemoryStore`` starts from an empty state.

Id assignment, uniqueness checks and the insert itself happen under one
``threading.Lock`` so concurrent creates, whether interleaved coroutines or
threads from a worker pool, can never observe the same counter value.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

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

from .base import DEFAULT_PAGE_SIZE, ArtifactStore, check_page, paginate, sort_newest_first

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_id(record_id: RecordId) -> int | None:
    """Map an incoming id to this backend's integer keys.

    Path parameters arrive as strings, so ``"3"`` resolves to ``3``.  Anything
    that is not an integer cannot exist here and maps to ``None``.
    """
    if isinstance(record_id, bool):
        return None
    if isinstance(record_id, int):
        return record_id
    if isinstance(record_id, str) and record_id.strip().isdigit():
        return int(record_id)
    return None


def _with_owner(payload: dict[str, Any]) -> dict[str, Any]:
    """Normalise ``user_id`` so owner filters compare integers with integers."""
    owner = payload.get("user_id")
    if owner is not None:
        coerced = _coerce_id(owner)
        payload["user_id"] = coerced if coerced is not None else owner
    return payload


class MemoryStore(ArtifactStore):
    """Map-backed store with one counter per entity kind."""

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._artifacts: dict[int, Artifact] = {}
        self._presets: dict[int, StylePreset] = {}
        self._models: dict[int, AiModel] = {}
        self._tunings: dict[int, ModelTuning] = {}
        self._counters: dict[str, int] = {
            "users": 0,
            "artifacts": 0,
            "presets": 0,
            "models": 0,
            "tunings": 0,
        }

    def _next_id(self, kind: str) -> int:
        # Caller must hold self._lock.
        self._counters[kind] += 1
        return self._counters[kind]

    @staticmethod
    def _ensure_unique(records: dict[int, Any], field: str, value: Any, label: str) -> None:
        # Caller must hold self._lock.
        if any(getattr(r, field) == value for r in records.values()):
            raise ValidationError(f"{label} '{value}' already exists")

    # -- Users --------------------------------------------------------------

    async def create_user(self, data: UserCreate) -> User:
        with self._lock:
            self._ensure_unique(self._users, "username", data.username, "Username")
            self._ensure_unique(self._users, "email", data.email, "Email")
            user = User(**data.model_dump(), id=self._next_id("users"), created_at=_utcnow())
            self._users[user.id] = user
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    async def get_user(self, user_id: RecordId) -> User | None:
        return self._users.get(_coerce_id(user_id))

    async def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self._users.values() if u.username == username), None)

    # -- Artifacts ----------------------------------------------------------

    async def create_artifact(self, data: ArtifactCreate) -> Artifact:
        with self._lock:
            artifact = Artifact(
                **_with_owner(data.model_dump()),
                id=self._next_id("artifacts"),
                created_at=_utcnow(),
            )
            self._artifacts[artifact.id] = artifact
        return artifact

    async def get_artifact(self, artifact_id: RecordId) -> Artifact | None:
        return self._artifacts.get(_coerce_id(artifact_id))

    def _owned_artifacts(self, user_id: RecordId | None) -> list[Artifact]:
        artifacts = list(self._artifacts.values())
        if user_id is not None:
            owner = _coerce_id(user_id)
            if owner is None:
                return []
            artifacts = [a for a in artifacts if a.user_id == owner]
        return artifacts

    async def list_artifacts(
        self,
        user_id: RecordId | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Artifact]:
        check_page(limit, offset)
        return paginate(sort_newest_first(self._owned_artifacts(user_id)), limit, offset)

    async def count_artifacts(self, user_id: RecordId | None = None) -> int:
        return len(self._owned_artifacts(user_id))

    # -- Style presets ------------------------------------------------------

    async def create_style_preset(self, data: StylePresetCreate) -> StylePreset:
        with self._lock:
            self._ensure_unique(self._presets, "name", data.name, "Style preset")
            preset = StylePreset(**data.model_dump(), id=self._next_id("presets"))
            self._presets[preset.id] = preset
        return preset

    async def get_style_preset(self, preset_id: RecordId) -> StylePreset | None:
        return self._presets.get(_coerce_id(preset_id))

    async def list_style_presets(self) -> list[StylePreset]:
        return sorted(self._presets.values(), key=lambda p: p.id)

    # -- AI models ----------------------------------------------------------

    async def create_ai_model(self, data: AiModelCreate) -> AiModel:
        with self._lock:
            self._ensure_unique(self._models, "name", data.name, "Model")
            self._ensure_unique(self._models, "slug", data.slug, "Model slug")
            model = AiModel(**data.model_dump(), id=self._next_id("models"))
            self._models[model.id] = model
        return model

    async def get_ai_model(self, model_id: RecordId) -> AiModel | None:
        return self._models.get(_coerce_id(model_id))

    async def get_ai_model_by_slug(self, slug: str) -> AiModel | None:
        return next((m for m in self._models.values() if m.slug == slug), None)

    async def list_ai_models(self) -> list[AiModel]:
        return sorted(self._models.values(), key=lambda m: m.id)

    # -- Model tunings ------------------------------------------------------

    async def create_model_tuning(self, data: ModelTuningCreate) -> ModelTuning:
        now = _utcnow()
        with self._lock:
            tuning = ModelTuning(
                **_with_owner(data.model_dump()),
                id=self._next_id("tunings"),
                created_at=now,
                updated_at=now,
            )
            self._tunings[tuning.id] = tuning
        return tuning

    async def get_model_tuning(self, tuning_id: RecordId) -> ModelTuning | None:
        return self._tunings.get(_coerce_id(tuning_id))

    async def list_model_tunings(
        self,
        user_id: RecordId | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelTuning]:
        check_page(limit, offset)
        tunings = list(self._tunings.values())
        if user_id is not None:
            owner = _coerce_id(user_id)
            if owner is None:
                return []
            tunings = [t for t in tunings if t.user_id == owner]
        return paginate(sort_newest_first(tunings), limit, offset)

    async def update_model_tuning(
        self, tuning_id: RecordId, changes: ModelTuningUpdate
    ) -> ModelTuning | None:
        key = _coerce_id(tuning_id)
        with self._lock:
            existing = self._tunings.get(key)
            if existing is None:
                return None
            merged = _with_owner({**existing.model_dump(), **changes.changes()})
            merged["id"] = existing.id
            merged["created_at"] = existing.created_at
            merged["updated_at"] = max(_utcnow(), existing.updated_at)
            updated = ModelTuning(**merged)
            self._tunings[key] = updated
        return updated

    async def delete_model_tuning(self, tuning_id: RecordId) -> bool:
        with self._lock:
            return self._tunings.pop(_coerce_id(tuning_id), None) is not None
