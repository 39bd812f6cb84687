"""Pydantic request and response models for the Pixelsmith HTTP API.

These models define the JSON schema of the endpoints that take a JSON body.
Multipart generation endpoints read their fields as form values instead (see
:mod:`pixelsmith.api.main`).  Every model accepts both the camelCase names the
web client sends and the snake_case attribute names.

Models
------
RegisterRequest
    Payload for ``POST /api/auth/register``.
LoginRequest
    Payload for ``POST /api/auth/login``.
TextToImageRequest
    Payload for ``POST /api/images/text-to-image``.
ModelTuningRequest
    Payload for ``POST /api/model-tunings``.
ArtifactPage
    Response of ``GET /api/images``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pixelsmith.core.schemas import Artifact, RecordId


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class RegisterRequest(_Payload):
    """Request body for ``POST /api/auth/register``.

    Attributes:
        username: Unique login name.
        password: Plain text password; hashed before it is stored.
        email: Unique contact address.
        display_name: Optional name shown in the UI.
        avatar: Optional avatar URL.
    """

    username: str = Field(..., description="Unique login name.")
    password: str = Field(..., description="Plain text password.")
    email: str = Field(..., description="Unique e-mail address.")
    display_name: str | None = Field(default=None, description="Name shown in the UI.")
    avatar: str | None = Field(default=None, description="Avatar URL.")


class LoginRequest(_Payload):
    username: str
    password: str


class TextToImageRequest(_Payload):
    """Request body for ``POST /api/images/text-to-image``.

    Attributes:
        prompt: Scene description.
        model_id: Model slug (``"dalle"``, ``"stable-diffusion"``).
        width: Requested width; mapped onto the closest supported size.
        height: Requested height; mapped onto the closest supported size.
        user_id: Owner of the result.  Guest generations are not persisted.
        style_preset_id: Optional style preset appended to the prompt.
    """

    prompt: str = Field(..., description="Scene description.")
    model_id: str | None = Field(default=None, description="Model slug, e.g. 'dalle'.")
    width: int = Field(default=1024, description="Requested width in pixels.")
    height: int = Field(default=1024, description="Requested height in pixels.")
    user_id: RecordId | None = Field(default=None, description="Owner; omit for guests.")
    style_preset_id: RecordId | None = Field(default=None, description="Style preset id.")


class ModelTuningRequest(_Payload):
    """Request body for ``POST /api/model-tunings``.

    Required fields are optional here so a missing one surfaces as the
    service's ``ValidationError`` rather than a framework 422.
    """

    name: str | None = None
    description: str | None = None
    model_id: RecordId | None = None
    user_id: RecordId | None = None
    parameters: dict[str, Any] | None = None


class ArtifactPage(_Payload):
    """One page of the gallery.

    Attributes:
        total: Number of artifacts matching the owner filter.
        limit: Page size used.
        offset: Number of artifacts skipped.
        images: Artifacts on this page, newest first.
    """

    total: int
    limit: int
    offset: int
    images: list[Artifact]
