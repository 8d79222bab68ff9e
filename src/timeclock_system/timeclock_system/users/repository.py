from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import UserProfile


class UserRepository(Protocol):
    """Repository interface for user profiles.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def list_all(self) -> Sequence[UserProfile]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        full_name: Optional[str],
        phone: Optional[str],
        role: Role,
        now: datetime,
        workplace_id: Optional[str] = None,
    ) -> str:
        """Insert a profile (and optionally its first assignment) in one transaction.

        Returns user_id.
        """

        raise NotImplementedError

    def update_profile(self, user_id: str, *, changes: dict, now: datetime) -> bool:
        """Apply a subset of full_name / phone / role / password_hash."""

        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError
