"""Tests for pixelsmith.providers.gateway — the provider gateway.

Tests cover:
- Aspect-ratio size selection and short-prompt enhancement.
- Input validation before any provider call.
- The zero-adjustment short-circuit of edit-face.
- Adapter resolution, unsupported kinds and missing credentials.
- The bounded wait on every operation kind.
- Pass-through of typed errors and wrapping of everything else.
"""

from __future__ import annotations

import base64

import httpx
import pytest
from conftest import STUB_IMAGE_URL, StubAdapter

from pixelsmith.core.errors import (
    ConfigurationError,
    ContentPolicyError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    ValidationError,
)
from pixelsmith.providers.base import ImageSize, OperationKind
from pixelsmith.providers.gateway import (
    QUALITY_QUALIFIER,
    ProviderGateway,
    enhance_prompt,
    image_reference,
    select_size,
)


class TestSelectSize:
    """Verify aspect-ratio to output size mapping."""

    @pytest.mark.parametrize(
        "width,height,expected",
        [
            (1024, 1024, ImageSize.SQUARE),
            (1792, 1024, ImageSize.WIDE),
            (1600, 1000, ImageSize.WIDE),
            (1500, 1000, ImageSize.SQUARE),
            (1024, 1792, ImageSize.TALL),
            (700, 1000, ImageSize.TALL),
            (750, 1000, ImageSize.SQUARE),
        ],
    )
    def test_ratio_thresholds(self, width, height, expected):
        """Above 1.5 is wide, below 0.75 tall, the boundaries are square."""
        assert select_size(width, height) is expected

    def test_non_positive_dimensions_rejected(self):
        with pytest.raises(ValidationError):
            select_size(0, 1024)
        with pytest.raises(ValidationError):
            select_size(1024, -1)


class TestEnhancePrompt:
    def test_short_prompt_gets_qualifier(self):
        assert enhance_prompt("a red fox", 15) == f"a red fox, {QUALITY_QUALIFIER}"

    def test_long_prompt_unchanged(self):
        prompt = "a red fox sitting in a snowy forest at dawn"
        assert enhance_prompt(prompt, 15) == prompt


class TestImageReference:
    def test_png_bytes_become_data_url(self, png_bytes):
        reference = image_reference(png_bytes)
        assert reference.startswith("data:image/png;base64,")
        assert base64.b64decode(reference.split(",", 1)[1]) == png_bytes

    def test_unknown_bytes_use_octet_stream(self):
        assert image_reference(b"\x00\x01").startswith("data:application/octet-stream;base64,")

    def test_strings_pass_through(self):
        assert image_reference("https://example.test/a.png") == "https://example.test/a.png"


class TestTextToImage:
    """Verify payload normalisation for text-to-image."""

    @pytest.mark.asyncio
    async def test_returns_adapter_url(self, gateway, stub_adapter):
        url = await gateway.text_to_image("a red fox in the snow at dawn", "dalle", 1024, 1024)
        assert url == STUB_IMAGE_URL
        assert len(stub_adapter.calls) == 1

    @pytest.mark.asyncio
    async def test_operation_fields(self, gateway, stub_adapter):
        await gateway.text_to_image("a red fox", "dalle", 1792, 1024)
        operation = stub_adapter.calls[0]
        assert operation.kind is OperationKind.TEXT_TO_IMAGE
        assert operation.size is ImageSize.WIDE
        assert operation.prompt == f"a red fox, {QUALITY_QUALIFIER}"

    @pytest.mark.asyncio
    async def test_style_prompt_appended(self, gateway, stub_adapter):
        await gateway.text_to_image(
            "a castle on a hill above the sea", "dalle", style_prompt="anime style"
        )
        assert stub_adapter.calls[0].prompt == "a castle on a hill above the sea, anime style"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "   "])
    async def test_empty_prompt_rejected_without_call(self, gateway, stub_adapter, prompt):
        with pytest.raises(ValidationError):
            await gateway.text_to_image(prompt, "dalle")
        assert stub_adapter.calls == []

    @pytest.mark.asyncio
    async def test_unknown_model_rejected(self, test_config):
        gateway = ProviderGateway(test_config)
        with pytest.raises(ValidationError, match="Unknown model"):
            await gateway.text_to_image("a red fox", "imagen-9")


class TestImageOperations:
    """Verify validation of image-based operations."""

    @pytest.mark.asyncio
    async def test_image_to_image_carries_strength(self, gateway, stub_adapter, png_bytes):
        await gateway.image_to_image(png_bytes, "make it winter", "stable-diffusion", 0.6)
        operation = stub_adapter.calls[0]
        assert operation.kind is OperationKind.IMAGE_TO_IMAGE
        assert operation.strength == 0.6
        assert operation.image == png_bytes

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strength", [0, -0.1, 1.5])
    async def test_strength_out_of_range(self, gateway, stub_adapter, png_bytes, strength):
        with pytest.raises(ValidationError):
            await gateway.image_to_image(png_bytes, "make it winter", "dalle", strength)
        assert stub_adapter.calls == []

    @pytest.mark.asyncio
    async def test_empty_image_rejected(self, gateway, stub_adapter):
        with pytest.raises(ValidationError):
            await gateway.image_to_image(b"", "make it winter", "dalle")
        with pytest.raises(ValidationError):
            await gateway.face_cloning(b"", "astronaut portrait", "dalle")
        with pytest.raises(ValidationError):
            await gateway.edit_objects(b"", "remove the car")
        assert stub_adapter.calls == []

    @pytest.mark.asyncio
    async def test_edit_objects_uses_default_model(self, gateway, stub_adapter, png_bytes):
        await gateway.edit_objects(png_bytes, "remove the car")
        assert stub_adapter.calls[0].model_id == "dalle"
        assert stub_adapter.calls[0].kind is OperationKind.EDIT_OBJECTS


class TestEditFace:
    """Verify facial adjustment handling."""

    @pytest.mark.asyncio
    async def test_all_zero_adjustments_make_no_call(self, gateway, stub_adapter, png_bytes):
        """Nothing to change returns the original image reference."""
        result = await gateway.edit_face(png_bytes, {"smile": 0, "age": 0})
        assert stub_adapter.calls == []
        assert result == image_reference(png_bytes)

    @pytest.mark.asyncio
    async def test_empty_adjustments_make_no_call(self, gateway, stub_adapter, png_bytes):
        await gateway.edit_face(png_bytes, {})
        assert stub_adapter.calls == []

    @pytest.mark.asyncio
    async def test_zero_values_dropped(self, gateway, stub_adapter, png_bytes):
        url = await gateway.edit_face(png_bytes, {"smile": 0.4, "age": 0, "eye_size": -0.2})
        assert url == STUB_IMAGE_URL
        assert stub_adapter.calls[0].adjustments == {"smile": 0.4, "eye_size": -0.2}

    @pytest.mark.asyncio
    async def test_non_numeric_adjustment_rejected(self, gateway, png_bytes):
        with pytest.raises(ValidationError):
            await gateway.edit_face(png_bytes, {"smile": "lots"})
        with pytest.raises(ValidationError):
            await gateway.edit_face(png_bytes, {"smile": True})

    @pytest.mark.asyncio
    async def test_missing_image_rejected(self, gateway):
        with pytest.raises(ValidationError):
            await gateway.edit_face(b"", {"smile": 0.5})


class TestAdapterChecks:
    """Verify capability and credential checks."""

    @pytest.mark.asyncio
    async def test_unsupported_kind_rejected(self, test_config, png_bytes):
        adapter = StubAdapter(test_config)
        adapter.supported_kinds = frozenset({OperationKind.TEXT_TO_IMAGE})
        gateway = ProviderGateway(test_config, adapters={"dalle": adapter})

        with pytest.raises(ValidationError, match="does not support"):
            await gateway.edit_objects(png_bytes, "remove the car", "dalle")
        assert adapter.calls == []

    @pytest.mark.asyncio
    async def test_unconfigured_adapter_raises_configuration_error(self, test_config):
        adapter = StubAdapter(test_config, configured=False)
        gateway = ProviderGateway(test_config, adapters={"dalle": adapter})

        with pytest.raises(ConfigurationError):
            await gateway.text_to_image("a red fox", "dalle")
        assert adapter.calls == []

    @pytest.mark.asyncio
    async def test_registry_adapters_cached(self, test_config):
        gateway = ProviderGateway(test_config)
        assert gateway.adapter_for("dalle") is gateway.adapter_for("dall-e-3")

    @pytest.mark.asyncio
    async def test_stability_cannot_edit_faces(self, test_config, png_bytes):
        gateway = ProviderGateway(test_config)
        with pytest.raises(ValidationError):
            await gateway.edit_face(png_bytes, {"smile": 0.5}, "stable-diffusion")


class TestBoundedWait:
    """Verify the timeout applies to every operation kind."""

    @pytest.fixture
    def slow_gateway(self, test_config):
        cfg = test_config.model_copy(update={"provider_timeout": 0.05})
        adapter = StubAdapter(cfg, delay=1.0)
        return ProviderGateway(cfg, adapters={"dalle": adapter})

    @pytest.mark.asyncio
    async def test_text_to_image_times_out(self, slow_gateway):
        with pytest.raises(ProviderTimeoutError) as exc_info:
            await slow_gateway.text_to_image("a red fox", "dalle")
        assert exc_info.value.kind == "TimeoutError"

    @pytest.mark.asyncio
    async def test_image_to_image_times_out(self, slow_gateway, png_bytes):
        with pytest.raises(ProviderTimeoutError):
            await slow_gateway.image_to_image(png_bytes, "winter", "dalle")

    @pytest.mark.asyncio
    async def test_face_cloning_times_out(self, slow_gateway, png_bytes):
        with pytest.raises(ProviderTimeoutError):
            await slow_gateway.face_cloning(png_bytes, "astronaut", "dalle")

    @pytest.mark.asyncio
    async def test_edit_face_times_out(self, slow_gateway, png_bytes):
        with pytest.raises(ProviderTimeoutError):
            await slow_gateway.edit_face(png_bytes, {"smile": 0.5}, "dalle")

    @pytest.mark.asyncio
    async def test_edit_objects_times_out(self, slow_gateway, png_bytes):
        with pytest.raises(ProviderTimeoutError):
            await slow_gateway.edit_objects(png_bytes, "remove the car", "dalle")


class TestErrorMapping:
    """Verify typed errors pass through and anything else is wrapped."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            RateLimitError("slow down"),
            ContentPolicyError("refused"),
            ConfigurationError("bad key"),
            ProviderError("boom"),
        ],
    )
    async def test_typed_errors_pass_through(self, test_config, error):
        gateway = ProviderGateway(
            test_config, adapters={"dalle": StubAdapter(test_config, error=error)}
        )
        with pytest.raises(type(error)) as exc_info:
            await gateway.text_to_image("a red fox", "dalle")
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self, test_config):
        adapter = StubAdapter(test_config, error=RuntimeError("socket closed"))
        gateway = ProviderGateway(test_config, adapters={"dalle": adapter})

        with pytest.raises(ProviderError, match="socket closed"):
            await gateway.text_to_image("a red fox", "dalle")

    @pytest.mark.asyncio
    async def test_httpx_timeout_mapped(self, test_config):
        adapter = StubAdapter(test_config, error=httpx.ReadTimeout("read timed out"))
        gateway = ProviderGateway(test_config, adapters={"dalle": adapter})

        with pytest.raises(ProviderTimeoutError):
            await gateway.text_to_image("a red fox", "dalle")

    @pytest.mark.asyncio
    async def test_empty_url_is_provider_error(self, test_config):
        adapter = StubAdapter(test_config, result="")
        gateway = ProviderGateway(test_config, adapters={"dalle": adapter})

        with pytest.raises(ProviderError):
            await gateway.text_to_image("a red fox", "dalle")
