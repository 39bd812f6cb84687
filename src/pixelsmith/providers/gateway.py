"""Provider gateway: validation, payload normalisation and error mapping.

``ProviderGateway`` is the only component that talks to image providers.
For each of the five operation kinds it:

1. validates the caller's input (``ValidationError`` on empty prompts,
   zero-byte images, out-of-range strength);
2. builds a :class:`ProviderOperation` (size selection, prompt enhancement,
   dropping zero-valued face adjustments);
3. resolves the adapter for the requested model id;
4. awaits the adapter under a bounded wait of ``config.provider_timeout``
   seconds, uniformly for every operation kind;
5. lets typed errors through unchanged and wraps anything else into
   ``ProviderError`` (or ``ProviderTimeoutError`` for timeouts).

The gateway never writes to storage.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Mapping

import httpx

from pixelsmith.core.config import PixelsmithConfig
from pixelsmith.core.errors import (
    ConfigurationError,
    PixelsmithError,
    ProviderError,
    ProviderTimeoutError,
    ValidationError,
)

from .base import (
    ImageSize,
    OperationKind,
    ProviderAdapter,
    ProviderOperation,
    ProviderRegistry,
    provider_registry,
)

logger = logging.getLogger(__name__)

QUALITY_QUALIFIER = "highly detailed, high quality"

# Aspect ratio thresholds for size selection (width / height).
WIDE_RATIO = 1.5
TALL_RATIO = 0.75

_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"RIFF", "image/webp"),
)


def select_size(width: int, height: int) -> ImageSize:
    """Pick the supported output size closest to the requested aspect ratio.

    Ratios above 1.5 are wide, below 0.75 tall, anything else square.

    Raises:
        ValidationError: If either dimension is not a positive integer.
    """
    if width <= 0 or height <= 0:
        raise ValidationError("width and height must be positive")
    ratio = width / height
    if ratio > WIDE_RATIO:
        return ImageSize.WIDE
    if ratio < TALL_RATIO:
        return ImageSize.TALL
    return ImageSize.SQUARE


def enhance_prompt(prompt: str, min_length: int) -> str:
    """Append a generic quality qualifier to very short prompts."""
    if len(prompt) < min_length:
        return f"{prompt}, {QUALITY_QUALIFIER}"
    return prompt


def image_reference(image: bytes | str) -> str:
    """Return a reference to an image the caller supplied.

    Strings (URLs, data URLs) are returned unchanged; raw bytes become a
    base64 data URL.
    """
    if isinstance(image, str):
        return image
    mime = next(
        (m for signature, m in _IMAGE_SIGNATURES if image.startswith(signature)),
        "application/octet-stream",
    )
    return f"data:{mime};base64,{base64.b64encode(image).decode('ascii')}"


def _require_prompt(prompt: str | None) -> str:
    text = (prompt or "").strip()
    if not text:
        raise ValidationError("A non-empty prompt is required")
    return text


def _require_image(image: bytes | None, label: str = "image") -> bytes:
    if not image:
        raise ValidationError(f"A non-empty {label} is required")
    return image


class ProviderGateway:
    """Single entry point for provider calls.

    Attributes:
        config: Configuration supplying credentials and the bounded wait.
        registry: Registry used to resolve model ids to adapter classes.
    """

    def __init__(
        self,
        config: PixelsmithConfig,
        registry: ProviderRegistry | None = None,
        client: httpx.AsyncClient | None = None,
        adapters: Mapping[str, ProviderAdapter] | None = None,
    ) -> None:
        """Initialise the gateway.

        Args:
            config: Application configuration.
            registry: Adapter registry; defaults to the global one.
            client: Shared HTTP client handed to adapters.
            adapters: Pre-built adapters keyed by model id.  These take
                precedence over the registry (used to plug in stubs).
        """
        self.config = config
        self.registry = registry or provider_registry
        self._client = client
        self._overrides: dict[str, ProviderAdapter] = dict(adapters or {})
        self._instances: dict[type[ProviderAdapter], ProviderAdapter] = {}

    # -- Public operations --------------------------------------------------

    async def text_to_image(
        self,
        prompt: str,
        model_id: str,
        width: int = 1024,
        height: int = 1024,
        style_prompt: str | None = None,
    ) -> str:
        """Generate an image from a prompt.

        The prompt sent to the provider may differ from the caller's: short
        prompts get a quality qualifier and a style preset fragment is
        appended.  Neither change is visible in what the caller persists.
        """
        text = enhance_prompt(_require_prompt(prompt), self.config.min_prompt_length)
        if style_prompt:
            text = f"{text}, {style_prompt}"
        operation = ProviderOperation(
            kind=OperationKind.TEXT_TO_IMAGE,
            model_id=model_id,
            prompt=text,
            size=select_size(width, height),
        )
        return await self._invoke(operation)

    async def image_to_image(
        self,
        image: bytes,
        prompt: str,
        model_id: str,
        strength: float = 0.8,
        style_prompt: str | None = None,
    ) -> str:
        if not 0 < strength <= 1:
            raise ValidationError("strength must be in the range (0, 1]")
        text = _require_prompt(prompt)
        if style_prompt:
            text = f"{text}, {style_prompt}"
        operation = ProviderOperation(
            kind=OperationKind.IMAGE_TO_IMAGE,
            model_id=model_id,
            prompt=text,
            image=_require_image(image),
            strength=strength,
        )
        return await self._invoke(operation)

    async def face_cloning(
        self,
        face_image: bytes,
        prompt: str,
        model_id: str,
        style_prompt: str | None = None,
    ) -> str:
        text = _require_prompt(prompt)
        if style_prompt:
            text = f"{text}, {style_prompt}"
        operation = ProviderOperation(
            kind=OperationKind.FACE_CLONING,
            model_id=model_id,
            prompt=text,
            image=_require_image(face_image, "face image"),
        )
        return await self._invoke(operation)

    async def edit_face(
        self,
        image: bytes,
        adjustments: Mapping[str, float],
        model_id: str | None = None,
    ) -> str:
        """Apply facial-feature adjustments.

        Zero-valued adjustments mean "no change" and are dropped.  When
        nothing is left the original image reference is returned and no
        provider call is made.
        """
        source = _require_image(image)
        if adjustments is None:
            raise ValidationError("adjustments are required")
        for key, value in adjustments.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"Adjustment '{key}' must be a number")

        active = {key: float(value) for key, value in adjustments.items() if value != 0}
        if not active:
            logger.info("No face adjustments to make, returning the original image")
            return image_reference(source)

        operation = ProviderOperation(
            kind=OperationKind.EDIT_FACE,
            model_id=model_id or self.config.default_edit_model,
            image=source,
            adjustments=active,
        )
        return await self._invoke(operation)

    async def edit_objects(
        self,
        image: bytes,
        prompt: str,
        model_id: str | None = None,
    ) -> str:
        operation = ProviderOperation(
            kind=OperationKind.EDIT_OBJECTS,
            model_id=model_id or self.config.default_edit_model,
            prompt=_require_prompt(prompt),
            image=_require_image(image),
        )
        return await self._invoke(operation)

    # -- Internals ----------------------------------------------------------

    def adapter_for(self, model_id: str) -> ProviderAdapter:
        """Return the adapter serving ``model_id``.

        Raises:
            ValidationError: If no adapter serves the model id.
        """
        if model_id in self._overrides:
            return self._overrides[model_id]

        adapter_class = self.registry.resolve(model_id)
        if adapter_class is None:
            available = ", ".join(self.registry.list_available())
            raise ValidationError(f"Unknown model '{model_id}'. Available models: {available}")

        if adapter_class not in self._instances:
            self._instances[adapter_class] = adapter_class(self.config, client=self._client)
        return self._instances[adapter_class]

    async def _invoke(self, operation: ProviderOperation) -> str:
        adapter = self.adapter_for(operation.model_id)
        if not adapter.supports(operation.kind):
            raise ValidationError(
                f"Model '{operation.model_id}' does not support {operation.kind.value}"
            )
        if not adapter.is_configured():
            raise ConfigurationError(f"{adapter.name} credentials are not configured")

        timeout = self.config.provider_timeout
        try:
            image_url = await asyncio.wait_for(adapter.submit(operation), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"{adapter.name} {operation.kind.value} timed out after {timeout}s")
            raise ProviderTimeoutError(
                f"{adapter.name} did not respond within {timeout:g} seconds"
            ) from e
        except PixelsmithError as e:
            logger.warning(f"{adapter.name} {operation.kind.value} failed: {e.kind}: {e}")
            raise
        except httpx.TimeoutException as e:
            logger.warning(f"{adapter.name} {operation.kind.value} timed out: {e}")
            raise ProviderTimeoutError(f"{adapter.name} timed out: {e}") from e
        except Exception as e:
            logger.exception(f"{adapter.name} {operation.kind.value} raised {type(e).__name__}")
            raise ProviderError(f"{adapter.name} request failed: {e}") from e

        if not image_url:
            raise ProviderError(f"{adapter.name} returned no image URL")
        return image_url
