"""Stable-Diffusion style provider adapter (Stability v1 generation API).

Stability answers with base64 artifacts instead of hosted URLs, so results
are returned as ``data:image/png;base64,...`` URLs.  SDXL engines accept a
fixed set of dimensions; the square/wide/tall sizes map to the closest
supported ones.
"""

from __future__ import annotations

import logging

from pixelsmith.core.errors import ConfigurationError, ContentPolicyError, ProviderError

from .base import (
    ImageSize,
    OperationKind,
    ProviderAdapter,
    ProviderOperation,
    provider_registry,
    raise_for_provider_status,
)

logger = logging.getLogger(__name__)

# SDXL only accepts specific resolutions.
SDXL_DIMENSIONS: dict[ImageSize, tuple[int, int]] = {
    ImageSize.SQUARE: (1024, 1024),
    ImageSize.WIDE: (1344, 768),
    ImageSize.TALL: (768, 1344),
}

# How much of the reference face survives face cloning.
FACE_IDENTITY_STRENGTH = 0.35


class StabilityAdapter(ProviderAdapter):
    """Adapter for the Stability text-to-image and image-to-image endpoints."""

    name = "Stability AI"
    model_ids = ("stable-diffusion", "sdxl")
    supported_kinds = frozenset(
        {
            OperationKind.TEXT_TO_IMAGE,
            OperationKind.IMAGE_TO_IMAGE,
            OperationKind.FACE_CLONING,
        }
    )

    def is_configured(self) -> bool:
        return bool(self.config.stability_api_key)

    def _endpoint(self, action: str) -> str:
        base = self.config.stability_base_url.rstrip("/")
        return f"{base}/v1/generation/{self.config.stability_engine}/{action}"

    async def submit(self, operation: ProviderOperation) -> str:
        if not self.is_configured():
            raise ConfigurationError("Stability API key is not configured")

        headers = {
            "Authorization": f"Bearer {self.config.stability_api_key}",
            "Accept": "application/json",
        }

        async with self._http() as client:
            if operation.kind is OperationKind.TEXT_TO_IMAGE:
                width, height = SDXL_DIMENSIONS[operation.size]
                response = await client.post(
                    self._endpoint("text-to-image"),
                    headers=headers,
                    json={
                        "text_prompts": [{"text": operation.prompt}],
                        "width": width,
                        "height": height,
                        "samples": 1,
                    },
                )
            else:
                if operation.kind is OperationKind.FACE_CLONING:
                    image_strength = FACE_IDENTITY_STRENGTH
                else:
                    # Stability's image_strength is how much of the source to keep.
                    image_strength = 1.0 - (operation.strength or 0.8)
                response = await client.post(
                    self._endpoint("image-to-image"),
                    headers=headers,
                    data={
                        "text_prompts[0][text]": operation.prompt,
                        "init_image_mode": "IMAGE_STRENGTH",
                        "image_strength": f"{image_strength:.2f}",
                        "samples": "1",
                    },
                    files={"init_image": ("source.png", operation.image or b"", "image/png")},
                )

        raise_for_provider_status(response, self.name)
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"Stability AI returned an unreadable response: {e}") from e
        return self._extract_image(payload, operation)

    def _extract_image(self, payload: dict, operation: ProviderOperation) -> str:
        artifacts = payload.get("artifacts") if isinstance(payload, dict) else None
        if not artifacts:
            raise ProviderError("Stability AI returned no artifacts")

        artifact = artifacts[0]
        reason = artifact.get("finishReason")
        if reason == "CONTENT_FILTERED":
            raise ContentPolicyError("Stability AI filtered the generated content")
        if reason == "ERROR" or not artifact.get("base64"):
            raise ProviderError(f"Stability AI could not produce an image ({reason})")

        logger.info(f"Stability {operation.kind.value} succeeded")
        return f"data:image/png;base64,{artifact['base64']}"


provider_registry.register(StabilityAdapter)
