"""Application services built on the store and the provider gateway."""

from pixelsmith.services.accounts import AccountService
from pixelsmith.services.orchestrator import GenerationOrchestrator
from pixelsmith.services.tuning import UNKNOWN_MODEL, ModelTuningRegistry

__all__ = [
    "UNKNOWN_MODEL",
    "AccountService",
    "GenerationOrchestrator",
    "ModelTuningRegistry",
]
