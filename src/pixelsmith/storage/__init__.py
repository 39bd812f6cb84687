"""Persistence layer: one contract, two interchangeable backends.

Modules
-------
base
    ``ArtifactStore`` abstract contract plus shared sort/paginate helpers.
memory
    ``MemoryStore`` — per-instance dictionaries and integer counters.
document
    ``DocumentStore`` — JSON documents in a SQLite file, string ids.
seed
    Default style presets and AI model catalogue.

The backend is chosen once, from ``PixelsmithConfig.use_document_store``,
by :func:`create_store`.  Nothing else in the code base branches on it.
"""

from __future__ import annotations

import logging

from pixelsmith.core.config import PixelsmithConfig

from .base import DEFAULT_PAGE_SIZE, ArtifactStore
from .document import DocumentStore
from .memory import MemoryStore
from .seed import seed_defaults

logger = logging.getLogger(__name__)


async def create_store(config: PixelsmithConfig, seed: bool = True) -> ArtifactStore:
    """Build the configured backend and optionally seed the default catalogue.

    Args:
        config: Application configuration.
        seed: Whether to write default presets and models into an empty store.

    Returns:
        A ready-to-use ``ArtifactStore``.
    """
    store: ArtifactStore
    if config.use_document_store:
        store = DocumentStore(config.document_store_path)
    else:
        store = MemoryStore()
    logger.info(f"Using {store.backend} storage backend")

    if seed:
        await seed_defaults(store)
    return store


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ArtifactStore",
    "DocumentStore",
    "MemoryStore",
    "create_store",
    "seed_defaults",
]
