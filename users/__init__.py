"""Users module for registering and looking up platform users."""

import logging
from typing import Any, Dict, Union

from errors import ConflictError, DomainError, NotFoundError, parse_model
from models import User, UserCreate
from storage import DuplicateKeyError, Storage

logger = logging.getLogger(__name__)


class UserError(DomainError):
    """Base exception for user operations."""
    pass


class UserNotFoundError(UserError, NotFoundError):
    """Raised when a user is not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class DuplicateUsernameError(UserError, ConflictError):
    """Raised when the username is already registered."""

    def __init__(self, message: str = "Username already exists"):
        super().__init__(message)


class DuplicateEmailError(UserError, ConflictError):
    """Raised when the email is already registered."""

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)


class UserManager:
    """Manager class for handling user operations."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_user(self, user_id: int) -> User:
        """Get a user by id.

        Raises:
            UserNotFoundError: If no user has this id
        """
        user = await self.storage.get_user(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def create_user(self, data: Union[UserCreate, Dict[str, Any]]) -> User:
        """Register a new user.

        Args:
            data: UserCreate or raw camelCase mapping

        Returns:
            The stored user

        Raises:
            ValidationError: If the data is malformed
            DuplicateUsernameError: If the username is taken
            DuplicateEmailError: If the email is taken
        """
        user_data = parse_model(UserCreate, data, "Invalid user data")

        if await self.storage.get_user_by_username(user_data.username):
            raise DuplicateUsernameError()
        if await self.storage.get_user_by_email(user_data.email):
            raise DuplicateEmailError()

        try:
            user = await self.storage.create_user(user_data)
        except DuplicateKeyError as e:
            if e.field == 'email':
                raise DuplicateEmailError() from e
            raise DuplicateUsernameError() from e

        logger.info(f"Created user {user.id} ({user.username})")
        return user


__all__ = [
    'UserManager', 'UserError', 'UserNotFoundError',
    'DuplicateUsernameError', 'DuplicateEmailError'
]
