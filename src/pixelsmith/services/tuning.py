"""CRUD over named model-tuning profiles.

Reads are enriched with the display name of the targeted AI model.  The
model reference is not validated on write: a tuning that points at a model
missing from the catalogue is stored (with a warning) and reads it back with
the ``"Unknown model"`` placeholder.
"""

from __future__ import annotations

import logging
from typing import Any

import pydantic

from pixelsmith.core.errors import NotFoundError, ValidationError
from pixelsmith.core.schemas import (
    ModelTuning,
    ModelTuningCreate,
    ModelTuningUpdate,
    RecordId,
    TunedModelView,
)
from pixelsmith.storage.base import ArtifactStore

logger = logging.getLogger(__name__)

UNKNOWN_MODEL = "Unknown model"


def _describe(exc: pydantic.ValidationError) -> str:
    """Collapse a pydantic error into one readable line."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"]) or "input"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


class ModelTuningRegistry:
    """Create, read, update and delete tuning profiles."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    async def create(
        self,
        name: str | None,
        model_id: RecordId | None,
        parameters: dict[str, Any] | None,
        description: str | None = None,
        user_id: RecordId | None = None,
    ) -> TunedModelView:
        """Store a new tuning profile.

        Raises:
            ValidationError: If ``name``, ``model_id`` or ``parameters`` is
                missing, or a parameter value is not numeric or boolean.
        """
        missing = [
            label
            for label, value in (("name", name), ("modelId", model_id), ("parameters", parameters))
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            data = ModelTuningCreate(
                name=name,
                model_id=model_id,
                parameters=parameters,
                description=description,
                user_id=user_id,
            )
        except pydantic.ValidationError as e:
            raise ValidationError(_describe(e)) from None

        tuning = await self.store.create_model_tuning(data)
        view = await self._enrich(tuning)
        if view.model_name == UNKNOWN_MODEL:
            logger.warning(f"Tuning {tuning.id} references unknown model {model_id!r}")
        logger.info(f"Created model tuning {tuning.id} ({tuning.name})")
        return view

    async def get(self, tuning_id: RecordId) -> TunedModelView | None:
        tuning = await self.store.get_model_tuning(tuning_id)
        if tuning is None:
            return None
        return await self._enrich(tuning)

    async def list(self, user_id: RecordId | None = None) -> list[TunedModelView]:
        """Return every tuning, optionally for one owner, newest first."""
        tunings = await self.store.list_model_tunings(user_id=user_id)
        return [await self._enrich(t) for t in tunings]

    async def update(
        self, tuning_id: RecordId, changes: ModelTuningUpdate | dict[str, Any]
    ) -> TunedModelView:
        """Merge ``changes`` into an existing tuning.

        Raises:
            NotFoundError: If no tuning has this id.
            ValidationError: If the changes are malformed.
        """
        if not isinstance(changes, ModelTuningUpdate):
            try:
                changes = ModelTuningUpdate.model_validate(changes)
            except pydantic.ValidationError as e:
                raise ValidationError(_describe(e)) from None

        for field in ("name", "model_id", "parameters"):
            if field in changes.model_fields_set and getattr(changes, field) is None:
                raise ValidationError(f"{field} cannot be cleared")

        tuning = await self.store.update_model_tuning(tuning_id, changes)
        if tuning is None:
            raise NotFoundError(f"Model tuning {tuning_id} not found")
        logger.info(f"Updated model tuning {tuning.id}")
        return await self._enrich(tuning)

    async def delete(self, tuning_id: RecordId) -> bool:
        deleted = await self.store.delete_model_tuning(tuning_id)
        if deleted:
            logger.info(f"Deleted model tuning {tuning_id}")
        return deleted

    async def _enrich(self, tuning: ModelTuning) -> TunedModelView:
        model = await self.store.get_ai_model(tuning.model_id)
        if model is None and isinstance(tuning.model_id, str):
            model = await self.store.get_ai_model_by_slug(tuning.model_id)
        model_name = model.name if model is not None else UNKNOWN_MODEL
        return TunedModelView(**tuning.model_dump(), model_name=model_name)
