from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.tenancy import TenantScope
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def list_for_scope(self, scope: TenantScope) -> Sequence[User]:
        raise NotImplementedError

    def create(self, user: User) -> User:
        """Insert ``user`` (its id is ignored) and return it with the new id."""

        raise NotImplementedError

    def save(self, user: User) -> User:
        """Overwrite the whole row; devices are stored with it."""

        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def rename_center(self, old_name: str, new_name: str) -> int:
        raise NotImplementedError
