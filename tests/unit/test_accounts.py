"""Tests for account registration, login and password hashing."""

from __future__ import annotations

import pytest

from pixelsmith.core.errors import AuthenticationError, ValidationError
from pixelsmith.core.security import hash_password, verify_password
from pixelsmith.services.accounts import AccountService


@pytest.fixture
def accounts(store) -> AccountService:
    return AccountService(store)


class TestPasswordHashing:
    def test_hash_is_salted(self):
        first = hash_password("hunter2")
        second = hash_password("hunter2")
        assert first != second
        assert first.startswith("$argon2")

    def test_verify(self):
        hashed = hash_password("hunter2")
        assert verify_password("hunter2", hashed) is True
        assert verify_password("hunter3", hashed) is False

    def test_foreign_hash_is_mismatch(self):
        assert verify_password("hunter2", "hunter2") is False


class TestAccountService:
    @pytest.mark.asyncio
    async def test_register_returns_public_user(self, accounts, store):
        user = await accounts.register("alice", "hunter2", "alice@example.test", display_name="Alice")

        assert user.username == "alice"
        assert user.display_name == "Alice"
        assert not hasattr(user, "password_hash")
        stored = await store.get_user(user.id)
        assert stored.password_hash != "hunter2"

    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, accounts):
        registered = await accounts.register("alice", "hunter2", "alice@example.test")
        user = await accounts.login("alice", "hunter2")
        assert user.id == registered.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, accounts):
        await accounts.register("alice", "hunter2", "alice@example.test")

        with pytest.raises(AuthenticationError) as wrong_password:
            await accounts.login("alice", "wrong")
        with pytest.raises(AuthenticationError) as unknown_user:
            await accounts.login("mallory", "hunter2")
        assert wrong_password.value.message == unknown_user.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_duplicate_username(self, accounts):
        await accounts.register("alice", "hunter2", "alice@example.test")
        with pytest.raises(ValidationError):
            await accounts.register("alice", "other", "other@example.test")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "username,password,email",
        [("", "pw", "a@example.test"), ("alice", "", "a@example.test"), ("alice", "pw", "")],
    )
    async def test_missing_fields(self, accounts, username, password, email):
        with pytest.raises(ValidationError):
            await accounts.register(username, password, email)

    @pytest.mark.asyncio
    async def test_get_user(self, accounts):
        registered = await accounts.register("alice", "hunter2", "alice@example.test")
        assert (await accounts.get_user(registered.id)).username == "alice"
        assert await accounts.get_user(987654) is None
