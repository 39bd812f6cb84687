"""Generation orchestration: one request in, one artifact (or typed error) out.

``GenerationOrchestrator.generate`` is the single entry point the HTTP layer
calls for every generation.  A request ends in exactly one of two states:

- **succeeded**: the provider returned an image URL.  If the request carries
  a caller user id the artifact is persisted and returned; guest requests
  get the URL only and nothing is written.
- **failed**: a typed error from any layer, returned as-is.  Nothing is
  persisted on this path, so a failed provider call never leaves an
  artifact behind.

There is no retry: one provider attempt per request.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pixelsmith.core.config import PixelsmithConfig
from pixelsmith.core.errors import NotFoundError, PixelsmithError, ValidationError
from pixelsmith.core.schemas import (
    ArtifactCreate,
    ErrorInfo,
    GenerationRequest,
    GenerationResult,
    StylePreset,
)
from pixelsmith.providers.base import OperationKind
from pixelsmith.providers.gateway import ProviderGateway
from pixelsmith.storage.base import ArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION = 1024
TITLE_LENGTH = 50
FACE_CLONE_TITLE_LENGTH = 40
FACE_EDIT_TITLE = "Face Edit"
DEFAULT_STRENGTH = 0.8


def parse_operation_kind(value: str) -> OperationKind:
    """Map a request string onto an operation kind.

    Raises:
        ValidationError: If the kind is not one of the five supported ones.
    """
    try:
        return OperationKind(value)
    except ValueError:
        supported = ", ".join(k.value for k in OperationKind)
        raise ValidationError(
            f"Unsupported operation kind '{value}'. Supported kinds: {supported}"
        ) from None


def _unchanged_image(kind: OperationKind, request: GenerationRequest) -> bool:
    """True for a face edit whose adjustments are all zero (no provider call)."""
    if kind is not OperationKind.EDIT_FACE or not request.adjustments:
        return False
    return all(value == 0 for value in request.adjustments.values())


class GenerationOrchestrator:
    """Ties a generation request to a provider call and an optional artifact.

    Attributes:
        gateway: Provider gateway used for every operation.
        store: Store artifacts are persisted to.
        config: Configuration (default edit model).
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        store: ArtifactStore,
        config: PixelsmithConfig,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.config = config

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run a generation request to completion.

        Args:
            request: Normalised request from the HTTP or UI layer.

        Returns:
            A successful result with ``image_url`` (and ``artifact`` when the
            caller is known), or a failed result carrying the typed error.
        """
        try:
            kind = parse_operation_kind(request.operation_kind)
            model_id = await self._resolve_model(kind, request.model_id)
            style = await self._resolve_style(request.style_preset_id)
            image_url = await self._dispatch(kind, request, model_id, style)
        except PixelsmithError as e:
            logger.info(f"Generation failed ({request.operation_kind}): {e.kind}: {e}")
            return GenerationResult(success=False, error=ErrorInfo(**e.to_dict()))

        if request.caller_user_id is None:
            logger.info(f"Guest {kind.value} generation succeeded; not persisted")
            return GenerationResult(success=True, image_url=image_url)
        if _unchanged_image(kind, request):
            logger.info("Face edit left the image unchanged; not persisted")
            return GenerationResult(success=True, image_url=image_url)

        record = build_artifact(kind, request, model_id, image_url, style)
        try:
            artifact = await self.store.create_artifact(record)
        except PixelsmithError as e:
            logger.error(f"Could not persist {kind.value} artifact: {e.kind}: {e}")
            return GenerationResult(success=False, error=ErrorInfo(**e.to_dict()))

        logger.info(
            f"Persisted artifact {artifact.id} for user {artifact.user_id} ({kind.value})"
        )
        return GenerationResult(success=True, image_url=image_url, artifact=artifact)

    async def _resolve_model(self, kind: OperationKind, model_id: str | None) -> str:
        if not model_id:
            if kind in (OperationKind.EDIT_FACE, OperationKind.EDIT_OBJECTS):
                model_id = self.config.default_edit_model
            else:
                raise ValidationError("modelId is required")

        catalogue_entry = await self.store.get_ai_model_by_slug(model_id)
        if catalogue_entry is not None and not catalogue_entry.is_active:
            raise ValidationError(f"Model '{catalogue_entry.name}' is not currently available")
        return model_id

    async def _resolve_style(self, preset_id: Any) -> StylePreset | None:
        if preset_id is None:
            return None
        preset = await self.store.get_style_preset(preset_id)
        if preset is None:
            raise NotFoundError(f"Style preset {preset_id} not found")
        return preset

    async def _dispatch(
        self,
        kind: OperationKind,
        request: GenerationRequest,
        model_id: str,
        style: StylePreset | None,
    ) -> str:
        style_prompt = style.prompt if style else None

        if kind is OperationKind.TEXT_TO_IMAGE:
            return await self.gateway.text_to_image(
                request.prompt or "",
                model_id,
                request.width or DEFAULT_DIMENSION,
                request.height or DEFAULT_DIMENSION,
                style_prompt=style_prompt,
            )
        if kind is OperationKind.IMAGE_TO_IMAGE:
            strength = DEFAULT_STRENGTH if request.strength is None else request.strength
            return await self.gateway.image_to_image(
                request.image_bytes or b"",
                request.prompt or "",
                model_id,
                strength,
                style_prompt=style_prompt,
            )
        if kind is OperationKind.FACE_CLONING:
            return await self.gateway.face_cloning(
                request.image_bytes or b"",
                request.prompt or "",
                model_id,
                style_prompt=style_prompt,
            )
        if kind is OperationKind.EDIT_FACE:
            if request.adjustments is None:
                raise ValidationError("adjustments are required")
            return await self.gateway.edit_face(
                request.image_bytes or b"", request.adjustments, model_id
            )
        return await self.gateway.edit_objects(
            request.image_bytes or b"", request.prompt or "", model_id
        )


def build_artifact(
    kind: OperationKind,
    request: GenerationRequest,
    model_id: str,
    image_url: str,
    style: StylePreset | None = None,
) -> ArtifactCreate:
    """Build the record persisted for a successful generation."""
    prompt = (request.prompt or "").strip()
    metadata: dict[str, Any] = {"operation": kind.value}
    width = request.width or DEFAULT_DIMENSION
    height = request.height or DEFAULT_DIMENSION
    title = prompt[:TITLE_LENGTH]

    if kind is OperationKind.TEXT_TO_IMAGE:
        metadata["fullPrompt"] = prompt
    elif kind is OperationKind.IMAGE_TO_IMAGE:
        metadata["originalImage"] = True
        metadata["strength"] = DEFAULT_STRENGTH if request.strength is None else request.strength
    elif kind is OperationKind.FACE_CLONING:
        title = f"Face Clone: {prompt[:FACE_CLONE_TITLE_LENGTH]}"
        metadata["faceCloning"] = True
        width = height = DEFAULT_DIMENSION
    elif kind is OperationKind.EDIT_FACE:
        adjustments = dict(request.adjustments or {})
        title = FACE_EDIT_TITLE
        prompt = f"Face editing with adjustments: {json.dumps(adjustments)}"
        metadata["faceEditing"] = True
        metadata["adjustments"] = adjustments
        width = height = DEFAULT_DIMENSION
    else:
        metadata["objectEditing"] = True
        width = height = DEFAULT_DIMENSION

    if style is not None:
        metadata["stylePresetId"] = style.id

    return ArtifactCreate(
        user_id=request.caller_user_id,
        title=title,
        prompt=prompt,
        image_url=image_url,
        width=width,
        height=height,
        model=model_id,
        metadata=metadata,
    )
