"""Shared pytest fixtures for Pixelsmith tests."""

import asyncio
import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

from pixelsmith.core.config import PixelsmithConfig
from pixelsmith.providers.base import OperationKind, ProviderAdapter, ProviderOperation
from pixelsmith.providers.gateway import ProviderGateway
from pixelsmith.services.orchestrator import GenerationOrchestrator
from pixelsmith.storage.document import DocumentStore
from pixelsmith.storage.memory import MemoryStore

STUB_IMAGE_URL = "https://example.test/img1.png"


class StubAdapter(ProviderAdapter):
    """Provider adapter that records operations instead of calling a service.

    Attributes
    ----------
    calls : list[ProviderOperation]
        Every operation submitted, in order
    result : str
        URL returned by a successful submit
    error : Exception | None
        Raised by submit when set
    delay : float
        Seconds to sleep before answering
    """

    name = "Stub"
    model_ids = ("dalle", "stable-diffusion")
    supported_kinds = frozenset(OperationKind)

    def __init__(
        self,
        config: PixelsmithConfig,
        result: str = STUB_IMAGE_URL,
        error: Exception | None = None,
        delay: float = 0.0,
        configured: bool = True,
    ) -> None:
        super().__init__(config)
        self.result = result
        self.error = error
        self.delay = delay
        self.configured = configured
        self.calls: list[ProviderOperation] = []

    def is_configured(self) -> bool:
        return self.configured

    async def submit(self, operation: ProviderOperation) -> str:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> PixelsmithConfig:
    """Create a test configuration with fake credentials and a temporary store file.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        PixelsmithConfig instance for testing
    """
    return PixelsmithConfig(
        _env_file=None,
        openai_api_key="test-openai-key",
        openai_base_url="https://openai.test/v1",
        stability_api_key="test-stability-key",
        stability_base_url="https://stability.test",
        document_store_path=temp_dir / "store" / "pixelsmith.db",
        use_document_store=False,
        provider_timeout=2.0,
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def document_store(test_config: PixelsmithConfig) -> DocumentStore:
    return DocumentStore(test_config.document_store_path)


@pytest.fixture(params=["memory", "document"])
def store(request):
    """Each test using this fixture runs once per storage backend."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def stub_adapter(test_config: PixelsmithConfig) -> StubAdapter:
    return StubAdapter(test_config)


@pytest.fixture
def gateway(test_config: PixelsmithConfig, stub_adapter: StubAdapter) -> ProviderGateway:
    """Gateway that routes both bundled model ids to the stub adapter."""
    return ProviderGateway(
        test_config,
        adapters={model_id: stub_adapter for model_id in StubAdapter.model_ids},
    )


@pytest.fixture
def orchestrator(
    gateway: ProviderGateway, memory_store: MemoryStore, test_config: PixelsmithConfig
) -> GenerationOrchestrator:
    return GenerationOrchestrator(gateway, memory_store, test_config)


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image.

    Returns:
        PNG encoded 64x48 RGB image
    """
    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), color=(200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()
