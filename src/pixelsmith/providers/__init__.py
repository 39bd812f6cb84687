"""Image-generation providers.

Importing this package registers the bundled adapters with
:data:`provider_registry`.
"""

# Import adapters to ensure they're registered
from pixelsmith.providers.base import (
    ImageSize,
    OperationKind,
    ProviderAdapter,
    ProviderOperation,
    provider_registry,
)
from pixelsmith.providers.dalle import OpenAIImageAdapter
from pixelsmith.providers.gateway import ProviderGateway
from pixelsmith.providers.stability import StabilityAdapter

__all__ = [
    "ImageSize",
    "OperationKind",
    "OpenAIImageAdapter",
    "ProviderAdapter",
    "ProviderGateway",
    "ProviderOperation",
    "StabilityAdapter",
    "provider_registry",
]
