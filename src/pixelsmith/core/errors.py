"""Error taxonomy shared by the store, the provider gateway and the services.

Every failure that reaches a caller is one of the classes below.  Each
carries a stable ``kind`` string (what the HTTP adapter and the generation
result expose) and a human-readable message.  Raw provider or backend
exceptions never cross a layer boundary; they are wrapped into one of these
kinds where they are first caught.
"""

from __future__ import annotations


class PixelsmithError(Exception):
    """Base class for every typed error raised by Pixelsmith."""

    kind: str = "PixelsmithError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the ``{"kind", "message"}`` shape used in responses."""
        return {"kind": self.kind, "message": self.message}


class ValidationError(PixelsmithError):
    """Required input missing or malformed."""

    kind = "ValidationError"


class ConfigurationError(PixelsmithError):
    """Provider or backend credentials/configuration missing or rejected."""

    kind = "ConfigurationError"


class NotFoundError(PixelsmithError):
    """A lookup by id found nothing."""

    kind = "NotFoundError"


class StorageUnavailableError(PixelsmithError):
    """The storage backend could not be reached or failed mid-operation."""

    kind = "StorageUnavailableError"


class ProviderFailure(PixelsmithError):
    """Base for failures reported by (or while waiting on) a provider."""

    kind = "ProviderFailure"


class ContentPolicyError(ProviderFailure):
    """The provider refused the prompt or image on content grounds."""

    kind = "ContentPolicyError"


class RateLimitError(ProviderFailure):
    """The provider throttled the request."""

    kind = "RateLimitError"


class ProviderTimeoutError(ProviderFailure):
    """The bounded wait elapsed before the provider answered."""

    kind = "TimeoutError"


class ProviderError(ProviderFailure):
    """Any other provider-side failure, wrapping the provider's message."""

    kind = "ProviderError"


class AuthenticationError(PixelsmithError):
    """Username/password pair did not match a stored account."""

    kind = "AuthenticationError"
