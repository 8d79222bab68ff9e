from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import Role


@dataclass(frozen=True)
class UserProfile:
    """Domain entity: a user account (worker or admin).

    Note: plain data object, no DB access here.
    """

    user_id: str
    email: str
    role: Role
    password_hash: str = field(repr=False, default="")
    full_name: Optional[str] = None
    phone: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "full_name": self.full_name,
            "phone": self.phone,
            "metadata": dict(self.metadata),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }
