"""User registration, login and lookup."""

from __future__ import annotations

import logging

import pydantic

from pixelsmith.core.errors import AuthenticationError, ValidationError
from pixelsmith.core.schemas import PublicUser, RecordId, UserCreate
from pixelsmith.core.security import hash_password, verify_password
from pixelsmith.storage.base import ArtifactStore

logger = logging.getLogger(__name__)


class AccountService:
    """Thin layer over the store that owns password handling.

    Every user returned from here is a :class:`PublicUser`; password hashes
    never leave this module.
    """

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    async def register(
        self,
        username: str,
        password: str,
        email: str,
        display_name: str | None = None,
        avatar: str | None = None,
    ) -> PublicUser:
        """Create an account.

        Raises:
            ValidationError: If a field is missing or the username or email
                is already taken.
        """
        if not password:
            raise ValidationError("password is required")
        try:
            data = UserCreate(
                username=(username or "").strip(),
                password_hash=hash_password(password),
                email=(email or "").strip(),
                display_name=display_name,
                avatar=avatar,
            )
        except pydantic.ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ValidationError(f"Invalid registration fields: {fields}") from None

        user = await self.store.create_user(data)
        return user.public()

    async def login(self, username: str, password: str) -> PublicUser:
        """Check credentials and return the matching user.

        Raises:
            AuthenticationError: If the username is unknown or the password
                does not match.  Both cases share one message.
        """
        user = await self.store.get_user_by_username(username or "")
        if user is None or not verify_password(password or "", user.password_hash):
            logger.warning(f"Failed login for {username!r}")
            raise AuthenticationError("Invalid credentials")
        return user.public()

    async def get_user(self, user_id: RecordId) -> PublicUser | None:
        user = await self.store.get_user(user_id)
        return user.public() if user is not None else None
