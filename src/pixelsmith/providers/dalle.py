"""DALL-E style provider adapter (OpenAI images API).

DALL-E 3 only exposes a generation endpoint, so every image-based operation
is expressed as a generation prompt that describes the requested change.
The prompts keep identity, lighting and background instructions explicit
because the model never sees the source pixels.
"""

from __future__ import annotations

import logging

from pixelsmith.core.errors import ConfigurationError, ProviderError

from .base import (
    OperationKind,
    ProviderAdapter,
    ProviderOperation,
    provider_registry,
    raise_for_provider_status,
)

logger = logging.getLogger(__name__)


def describe_adjustments(adjustments: dict[str, float]) -> str:
    """Render facial adjustments as prompt fragments.

    ``{"smile": 0.4, "eye_size": -0.2}`` becomes
    ``"more smile (intensity: 0.4), less eye size (intensity: 0.2)"``.
    Zero values are skipped.
    """
    parts = []
    for key, value in adjustments.items():
        if value == 0:
            continue
        direction = "more" if value > 0 else "less"
        parts.append(f"{direction} {key.replace('_', ' ')} (intensity: {abs(value):g})")
    return ", ".join(parts)


def build_prompt(operation: ProviderOperation) -> str:
    """Build the generation prompt sent for an operation."""
    kind = operation.kind
    if kind is OperationKind.TEXT_TO_IMAGE:
        return operation.prompt
    if kind is OperationKind.IMAGE_TO_IMAGE:
        strength = operation.strength if operation.strength is not None else 0.8
        return (
            f"{operation.prompt}. Reinterpret the reference image with a transformation "
            f"strength of {strength:.2f}, keeping its overall composition."
        )
    if kind is OperationKind.FACE_CLONING:
        return (
            f"{operation.prompt}. Feature the person from the reference photo and "
            "preserve their facial identity and likeness."
        )
    if kind is OperationKind.EDIT_FACE:
        return (
            "Edit this person's face with the following adjustments: "
            f"{describe_adjustments(operation.adjustments)}. "
            "Make the changes look natural and realistic. Maintain the overall identity "
            "and likeness. Do not change the background or other elements in the image."
        )
    return (
        f"{operation.prompt}. Make the changes look natural and well-integrated. "
        "Maintain the same lighting, style, and quality as the reference image."
    )


class OpenAIImageAdapter(ProviderAdapter):
    """Adapter for the OpenAI ``/images/generations`` endpoint."""

    name = "OpenAI"
    model_ids = ("dalle", "dall-e-3")
    supported_kinds = frozenset(OperationKind)

    def is_configured(self) -> bool:
        return bool(self.config.openai_api_key)

    async def submit(self, operation: ProviderOperation) -> str:
        if not self.is_configured():
            raise ConfigurationError("OpenAI API key is not configured")

        payload = {
            "model": self.config.openai_image_model,
            "prompt": build_prompt(operation),
            "n": 1,
            "size": operation.size.value,
        }
        headers = {"Authorization": f"Bearer {self.config.openai_api_key}"}
        url = f"{self.config.openai_base_url.rstrip('/')}/images/generations"

        async with self._http() as client:
            response = await client.post(url, json=payload, headers=headers)
        raise_for_provider_status(response, self.name)

        try:
            image_url = response.json()["data"][0].get("url")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"OpenAI returned an unreadable response: {e}") from e
        if not image_url:
            raise ProviderError("OpenAI returned no image URL")

        logger.info(f"OpenAI {operation.kind.value} succeeded ({operation.size.value})")
        return image_url


provider_registry.register(OpenAIImageAdapter)
