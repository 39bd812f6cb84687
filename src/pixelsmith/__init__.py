"""Pixelsmith - AI image generation and editing behind one provider gateway."""

__version__ = "0.1.0"

from pixelsmith.core.config import PixelsmithConfig, config
from pixelsmith.core.errors import PixelsmithError

# Import adapters to ensure they're registered
from pixelsmith.providers import OpenAIImageAdapter, StabilityAdapter, provider_registry  # noqa: F401
from pixelsmith.providers.gateway import ProviderGateway
from pixelsmith.services import AccountService, GenerationOrchestrator, ModelTuningRegistry
from pixelsmith.storage import ArtifactStore, create_store

__all__ = [
    "AccountService",
    "ArtifactStore",
    "GenerationOrchestrator",
    "ModelTuningRegistry",
    "PixelsmithConfig",
    "PixelsmithError",
    "ProviderGateway",
    "config",
    "create_store",
    "provider_registry",
]
