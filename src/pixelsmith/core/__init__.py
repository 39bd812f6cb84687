"""Core building blocks shared by every Pixelsmith layer.

- **PixelsmithConfig / config**: environment-driven settings (``PIXELSMITH_`` prefix)
- **errors**: the closed error taxonomy every layer raises
- **schemas**: pydantic models for persisted entities and generation requests
- **security**: salted password hashing
"""

from pixelsmith.core.config import PixelsmithConfig, config
from pixelsmith.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ContentPolicyError,
    NotFoundError,
    PixelsmithError,
    ProviderError,
    ProviderFailure,
    ProviderTimeoutError,
    RateLimitError,
    StorageUnavailableError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ContentPolicyError",
    "NotFoundError",
    "PixelsmithConfig",
    "PixelsmithError",
    "ProviderError",
    "ProviderFailure",
    "ProviderTimeoutError",
    "RateLimitError",
    "StorageUnavailableError",
    "ValidationError",
    "config",
]
