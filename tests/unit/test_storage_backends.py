"""Backend-specific storage tests.

The shared contract lives in ``test_storage.py``; this module covers what
differs between the in-memory maps and the SQLite document store: id types,
isolation, durability and transport failures.
"""

from __future__ import annotations

import asyncio
import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from pixelsmith.core.errors import StorageUnavailableError
from pixelsmith.core.schemas import ArtifactCreate, UserCreate
from pixelsmith.storage.document import DocumentStore
from pixelsmith.storage.memory import MemoryStore


def _artifact(user_id=None) -> ArtifactCreate:
    return ArtifactCreate(
        user_id=user_id,
        title="t",
        prompt="p",
        image_url="https://example.test/x.png",
        width=512,
        height=512,
        model="dalle",
    )


def _user(name: str) -> UserCreate:
    return UserCreate(username=name, password_hash="hash", email=f"{name}@example.test")


class TestMemoryStore:
    """In-memory backend specifics."""

    @pytest.mark.asyncio
    async def test_ids_are_monotonic_integers(self, memory_store: MemoryStore):
        ids = [(await memory_store.create_artifact(_artifact())).id for _ in range(3)]
        assert ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_counters_are_per_entity(self, memory_store: MemoryStore):
        user = await memory_store.create_user(_user("alice"))
        artifact = await memory_store.create_artifact(_artifact())
        assert user.id == 1
        assert artifact.id == 1

    @pytest.mark.asyncio
    async def test_numeric_string_ids_resolve(self, memory_store: MemoryStore):
        """Path parameters arrive as strings."""
        artifact = await memory_store.create_artifact(_artifact())
        assert (await memory_store.get_artifact("1")).id == artifact.id
        assert await memory_store.get_artifact("abc") is None

    @pytest.mark.asyncio
    async def test_string_owner_normalised(self, memory_store: MemoryStore):
        await memory_store.create_artifact(_artifact(user_id="7"))
        listed = await memory_store.list_artifacts(user_id=7)
        assert len(listed) == 1
        assert listed[0].user_id == 7

    @pytest.mark.asyncio
    async def test_instances_are_isolated(self):
        first = MemoryStore()
        second = MemoryStore()
        await first.create_artifact(_artifact())
        assert await second.count_artifacts() == 0

    def test_ids_unique_across_threads(self, memory_store: MemoryStore):
        """Creates from a worker pool never observe the same counter value."""

        def create_one(_):
            return asyncio.run(memory_store.create_artifact(_artifact())).id

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(create_one, range(200)))

        assert len(set(ids)) == 200
        assert sorted(ids) == list(range(1, 201))


class TestDocumentStore:
    """SQLite document-store specifics."""

    @pytest.mark.asyncio
    async def test_ids_are_opaque_strings(self, document_store: DocumentStore):
        artifact = await document_store.create_artifact(_artifact())
        assert isinstance(artifact.id, str)
        assert len(artifact.id) == 32

    @pytest.mark.asyncio
    async def test_owner_ids_stored_as_strings(self, document_store: DocumentStore):
        await document_store.create_artifact(_artifact(user_id=7))
        listed = await document_store.list_artifacts(user_id=7)
        assert [a.user_id for a in listed] == ["7"]
        assert len(await document_store.list_artifacts(user_id="7")) == 1

    @pytest.mark.asyncio
    async def test_records_survive_reopen(self, test_config):
        """A second store on the same file sees earlier writes."""
        first = DocumentStore(test_config.document_store_path)
        user = await first.create_user(_user("alice"))

        reopened = DocumentStore(test_config.document_store_path)
        fetched = await reopened.get_user(user.id)
        assert fetched is not None
        assert fetched.username == "alice"
        assert fetched.created_at == user.created_at

    def test_parent_directory_created(self, temp_dir):
        path = temp_dir / "nested" / "dir" / "store.db"
        DocumentStore(path)
        assert path.exists()

    def test_unopenable_path_raises_storage_unavailable(self, temp_dir):
        """A directory cannot be opened as a database file."""
        with pytest.raises(StorageUnavailableError):
            DocumentStore(temp_dir)

    def test_uncreatable_parent_raises_storage_unavailable(self, temp_dir):
        """A regular file in the parent chain blocks directory creation."""
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(StorageUnavailableError):
            DocumentStore(blocker / "nested" / "store.db")

    @pytest.mark.asyncio
    async def test_transport_failure_raises_storage_unavailable(
        self, document_store: DocumentStore, monkeypatch
    ):
        def broken_connect(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr("pixelsmith.storage.document.sqlite3.connect", broken_connect)
        with pytest.raises(StorageUnavailableError):
            await document_store.create_user(_user("alice"))
        with pytest.raises(StorageUnavailableError):
            await document_store.list_artifacts()
