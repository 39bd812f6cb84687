"""Base classes and registry for image-generation provider adapters.

Every external image service (DALL-E style, Stable-Diffusion style, ...) is
wrapped by an adapter that implements one narrow contract: take a normalised
:class:`ProviderOperation`, return the URL of the produced image.  The
gateway and the orchestrator never know which concrete adapter serves a
request; they go through :data:`provider_registry`.

Operation Kinds
---------------
- **text-to-image**: generate from a prompt
- **image-to-image**: transform a source image guided by a prompt
- **face-cloning**: place a face from a reference photo into a new scene
- **edit-face**: apply signed facial-feature adjustments
- **edit-objects**: change objects in an image described by a prompt

Usage Example
-------------
    >>> from pixelsmith.providers.base import provider_registry
    >>> adapter_cls = provider_registry.resolve("dalle")
    >>> adapter = adapter_cls(config)
    >>> url = await adapter.submit(operation)

Error Mapping
-------------
Adapters call :func:`raise_for_provider_status` on every HTTP response so
that credential problems, throttling and content refusals surface as the
typed errors in :mod:`pixelsmith.core.errors` rather than raw HTTP errors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, ClassVar

import httpx

from pixelsmith.core.config import PixelsmithConfig
from pixelsmith.core.errors import (
    ConfigurationError,
    ContentPolicyError,
    ProviderError,
    RateLimitError,
)

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """The five generation request types."""

    TEXT_TO_IMAGE = "text-to-image"
    IMAGE_TO_IMAGE = "image-to-image"
    FACE_CLONING = "face-cloning"
    EDIT_FACE = "edit-face"
    EDIT_OBJECTS = "edit-objects"


class ImageSize(str, Enum):
    """Output sizes every provider is asked for."""

    SQUARE = "1024x1024"
    WIDE = "1792x1024"
    TALL = "1024x1792"


@dataclass
class ProviderOperation:
    """A generation request normalised for submission to a provider.

    Attributes:
        kind: Which operation to perform.
        model_id: Request model identifier (``"dalle"``, ``"stable-diffusion"``).
        prompt: Prompt as it should be sent (already enhanced / styled).
        image: Source image bytes for image-based operations.
        size: Target output size.
        strength: Transformation strength in (0, 1] for image-to-image.
        adjustments: Non-zero facial-feature adjustments for edit-face.
    """

    kind: OperationKind
    model_id: str
    prompt: str = ""
    image: bytes | None = None
    size: ImageSize = ImageSize.SQUARE
    strength: float | None = None
    adjustments: dict[str, float] = field(default_factory=dict)


# Error codes providers use when they refuse content.
CONTENT_POLICY_CODES = frozenset(
    {
        "content_policy_violation",
        "moderation_blocked",
        "content_moderation",
        "invalid_prompts",
    }
)


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    """Pull an error code and message out of a provider error body."""
    try:
        payload = response.json()
    except ValueError:
        return None, response.text.strip() or response.reason_phrase

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("code") or error.get("type"), str(error.get("message", ""))
        code = payload.get("name") or payload.get("code")
        message = payload.get("message") or payload.get("errors") or error or ""
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        return code, str(message)
    return None, str(payload)


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Translate a non-2xx provider response into a typed error.

    Args:
        response: Response returned by the provider.
        provider: Provider name used in messages.

    Raises:
        ContentPolicyError: The provider refused the content.
        ConfigurationError: HTTP 401/403 (credentials missing or rejected).
        RateLimitError: HTTP 429.
        ProviderError: Any other non-2xx status.
    """
    if response.is_success:
        return

    status = response.status_code
    code, message = _error_details(response)
    message = message or response.reason_phrase

    if code in CONTENT_POLICY_CODES:
        raise ContentPolicyError(f"{provider} rejected the content: {message}")
    if status in (401, 403):
        raise ConfigurationError(f"{provider} rejected the credentials: {message}")
    if status == 429:
        raise RateLimitError(f"{provider} rate limit reached: {message}")
    raise ProviderError(f"{provider} returned HTTP {status}: {message}")


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses declare which request model identifiers they serve and which
    operation kinds they support, and implement :meth:`submit`.

    Attributes
    ----------
    name : str
        Provider name used in logs and error messages
    model_ids : tuple[str, ...]
        Request model identifiers routed to this adapter
    supported_kinds : frozenset[OperationKind]
        Operation kinds this provider can perform
    """

    name: ClassVar[str] = "Base Provider"
    model_ids: ClassVar[tuple[str, ...]] = ()
    supported_kinds: ClassVar[frozenset[OperationKind]] = frozenset()

    def __init__(
        self, config: PixelsmithConfig, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Configuration holding credentials and endpoints.
            client: Shared HTTP client.  When omitted a short-lived client is
                opened for each request.
        """
        self.config = config
        self._client = client

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if the credentials needed to call the provider are set."""

    @abstractmethod
    async def submit(self, operation: ProviderOperation) -> str:
        """Run one operation and return the resulting image URL.

        Raises
        ------
        PixelsmithError
            Typed failure from :func:`raise_for_provider_status` or a
            :class:`ProviderError` for unusable responses.
        httpx.HTTPError
            Transport failures; the gateway maps these.
        """

    def supports(self, kind: OperationKind) -> bool:
        return kind in self.supported_kinds

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.provider_timeout) as client:
            yield client


class ProviderRegistry:
    """Registry mapping request model identifiers to adapter classes.

    Usage
    -----
        >>> provider_registry.register(OpenAIImageAdapter)
        >>> provider_registry.resolve("dalle")
        <class 'OpenAIImageAdapter'>
    """

    def __init__(self) -> None:
        self._adapters: dict[str, type[ProviderAdapter]] = {}

    def register(self, adapter_class: type[ProviderAdapter]) -> type[ProviderAdapter]:
        """Register an adapter class under each of its model identifiers."""
        for model_id in adapter_class.model_ids:
            if model_id in self._adapters:
                logger.warning(f"Model id '{model_id}' already registered, overwriting")
            self._adapters[model_id] = adapter_class
        logger.debug(f"Registered provider adapter: {adapter_class.name}")
        return adapter_class

    def resolve(self, model_id: str) -> type[ProviderAdapter] | None:
        return self._adapters.get(model_id)

    def list_available(self) -> list[str]:
        return list(self._adapters.keys())


# Global provider registry instance
provider_registry = ProviderRegistry()
