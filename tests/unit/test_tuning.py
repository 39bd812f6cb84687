"""Tests for pixelsmith.services.tuning — the model tuning registry."""

from __future__ import annotations

import pytest

from pixelsmith.core.errors import NotFoundError, ValidationError
from pixelsmith.core.schemas import AiModelCreate, ModelTuningUpdate
from pixelsmith.services.tuning import UNKNOWN_MODEL, ModelTuningRegistry


@pytest.fixture
def registry(store) -> ModelTuningRegistry:
    return ModelTuningRegistry(store)


class TestCreate:
    @pytest.mark.asyncio
    async def test_dangling_model_reads_as_unknown(self, registry):
        """A tuning for a model missing from the catalogue gets a placeholder name."""
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        fetched = await registry.get(created.id)

        assert fetched.name == "Portrait"
        assert fetched.parameters == {"temperature": 0.7}
        assert fetched.model_name == UNKNOWN_MODEL

    @pytest.mark.asyncio
    async def test_model_name_resolved_by_id(self, registry, store):
        model = await store.create_ai_model(
            AiModelCreate(name="Stable Diffusion", slug="stable-diffusion", provider="Stability AI")
        )
        created = await registry.create("Portrait", model.id, {"steps": 30})
        assert (await registry.get(created.id)).model_name == "Stable Diffusion"

    @pytest.mark.asyncio
    async def test_model_name_resolved_by_slug(self, registry, store):
        await store.create_ai_model(AiModelCreate(name="DALL-E 3", slug="dalle", provider="OpenAI"))
        created = await registry.create("Vivid", "dalle", {"hd": True})
        assert created.model_name == "DALL-E 3"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,model_id,parameters",
        [
            (None, "m1", {"t": 1}),
            ("", "m1", {"t": 1}),
            ("Portrait", None, {"t": 1}),
            ("Portrait", "m1", None),
        ],
    )
    async def test_missing_required_field(self, registry, name, model_id, parameters):
        with pytest.raises(ValidationError, match="Missing required fields"):
            await registry.create(name, model_id, parameters)

    @pytest.mark.asyncio
    async def test_non_numeric_parameter_rejected(self, registry):
        with pytest.raises(ValidationError):
            await registry.create("Portrait", "m1", {"style": ["a", "b"]})

    @pytest.mark.asyncio
    async def test_timestamps_set(self, registry):
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        assert created.created_at == created.updated_at


class TestReadUpdateDelete:
    @pytest.mark.asyncio
    async def test_get_missing_is_none(self, registry):
        assert await registry.get(424242) is None

    @pytest.mark.asyncio
    async def test_list_filters_by_user_and_enriches(self, registry):
        await registry.create("Mine", "m1", {"a": 1}, user_id=5)
        await registry.create("Global", "m1", {"a": 2})

        mine = await registry.list(user_id=5)
        assert [t.name for t in mine] == ["Mine"]
        assert all(t.model_name == UNKNOWN_MODEL for t in await registry.list())

    @pytest.mark.asyncio
    async def test_list_newest_first(self, registry):
        first = await registry.create("First", "m1", {"a": 1})
        second = await registry.create("Second", "m1", {"a": 1})
        assert [t.id for t in await registry.list()] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_from_dict(self, registry):
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        updated = await registry.update(created.id, {"description": "soft light"})

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert updated.description == "soft light"
        assert updated.name == "Portrait"

    @pytest.mark.asyncio
    async def test_update_accepts_camel_case(self, registry, store):
        model = await store.create_ai_model(AiModelCreate(name="DALL-E 3", slug="dalle", provider="OpenAI"))
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        updated = await registry.update(created.id, {"modelId": model.id})
        assert updated.model_name == "DALL-E 3"

    @pytest.mark.asyncio
    async def test_update_with_model(self, registry):
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        updated = await registry.update(created.id, ModelTuningUpdate(parameters={"temperature": 0.2}))
        assert updated.parameters == {"temperature": 0.2}

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.update(424242, {"name": "x"})

    @pytest.mark.asyncio
    async def test_update_cannot_clear_required_field(self, registry):
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        with pytest.raises(ValidationError):
            await registry.update(created.id, {"name": None})

    @pytest.mark.asyncio
    async def test_delete(self, registry):
        created = await registry.create("Portrait", "m1", {"temperature": 0.7})
        assert await registry.delete(created.id) is True
        assert await registry.delete(created.id) is False
        assert await registry.get(created.id) is None
