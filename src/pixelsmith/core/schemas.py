"""Pydantic models for every entity Pixelsmith persists.

Each entity comes as a pair: a ``*Create`` model holding the caller-supplied
fields, and the stored model that adds the store-assigned ``id`` and
timestamps.  Field names are snake_case in Python and camelCase on the wire
(``image_url`` ↔ ``imageUrl``) so the JSON shape matches what the web client
has always consumed.

Identifiers are ``int`` for the in-memory backend and opaque ``str`` keys for
the document-store backend, so ``RecordId`` admits both.  Code outside the
storage package must treat ids as opaque.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel

RecordId = Union[int, str]

# Tuning knobs are numeric or boolean switches.
TuningValue = Union[bool, int, float]


class _Record(BaseModel):
    """Shared model configuration: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(_Record):
    username: str = Field(..., min_length=1)
    password_hash: str
    email: str = Field(..., min_length=3)
    display_name: str | None = None
    avatar: str | None = None


class User(UserCreate):
    """Stored user.  Never returned to clients directly, see :meth:`public`."""

    id: RecordId
    created_at: datetime

    def public(self) -> PublicUser:
        """Return the user without the password hash."""
        return PublicUser.model_validate(self.model_dump(exclude={"password_hash"}))


class PublicUser(_Record):
    id: RecordId
    username: str
    email: str
    display_name: str | None = None
    avatar: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Generated artifacts
# ---------------------------------------------------------------------------


class ArtifactCreate(_Record):
    """One successful generation result, ready to persist.

    Attributes:
        user_id: Owner, or ``None`` for a result that belongs to nobody.
        title: Short label derived from the prompt.
        prompt: The prompt as the caller wrote it (not the enhanced one).
        image_url: Externally hosted result.
        width: Image width in pixels.
        height: Image height in pixels.
        model: Request model identifier (``"dalle"``, ``"stable-diffusion"``).
        metadata: Operation tag plus operation-specific parameters.
    """

    user_id: RecordId | None = None
    title: str
    prompt: str
    image_url: str = Field(..., min_length=1)
    width: PositiveInt
    height: PositiveInt
    model: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Artifact(ArtifactCreate):
    id: RecordId
    created_at: datetime


# ---------------------------------------------------------------------------
# Style presets and model catalogue
# ---------------------------------------------------------------------------


class StylePresetCreate(_Record):
    name: str = Field(..., min_length=1)
    description: str | None = None
    thumbnail_url: str | None = None
    prompt: str
    category: str | None = None
    is_public: bool = True


class StylePreset(StylePresetCreate):
    id: RecordId


class AiModelCreate(_Record):
    """Catalogue entry for a selectable generation backend.

    ``slug`` is the identifier generation requests use to address the model
    (the ``modelId`` of a request).
    """

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str | None = None
    provider: str
    is_active: bool = True
    capabilities: dict[str, Any] = Field(default_factory=dict)


class AiModel(AiModelCreate):
    id: RecordId


# ---------------------------------------------------------------------------
# Model tunings
# ---------------------------------------------------------------------------


class ModelTuningCreate(_Record):
    name: str = Field(..., min_length=1)
    description: str | None = None
    model_id: RecordId
    user_id: RecordId | None = None
    parameters: dict[str, TuningValue]


class ModelTuning(ModelTuningCreate):
    id: RecordId
    created_at: datetime
    updated_at: datetime


class ModelTuningUpdate(_Record):
    """Partial update.  Only fields explicitly set are applied."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    model_id: RecordId | None = None
    user_id: RecordId | None = None
    parameters: dict[str, TuningValue] | None = None

    def changes(self) -> dict[str, Any]:
        """Return the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class TunedModelView(ModelTuning):
    """A tuning enriched with the display name of the model it targets."""

    model_name: str


# ---------------------------------------------------------------------------
# Generation request / result
# ---------------------------------------------------------------------------


class GenerationRequest(_Record):
    """A generation request as it enters the orchestrator.

    ``operation_kind`` is kept as a plain string so an unsupported kind is
    reported as a typed validation failure rather than rejected at parse time.
    """

    operation_kind: str
    prompt: str | None = None
    model_id: str | None = None
    width: PositiveInt | None = None
    height: PositiveInt | None = None
    image_bytes: bytes | None = Field(default=None, repr=False)
    strength: float | None = None
    adjustments: dict[str, float] | None = None
    style_preset_id: RecordId | None = None
    caller_user_id: RecordId | None = None


class ErrorInfo(_Record):
    kind: str
    message: str


class GenerationResult(_Record):
    """Outcome of one generation request.

    Exactly one of ``image_url`` (success) or ``error`` (failure) is set.
    ``artifact`` is only present when the result was persisted.
    """

    success: bool
    image_url: str | None = None
    artifact: Artifact | None = None
    error: ErrorInfo | None = None
