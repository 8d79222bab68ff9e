from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import UserProfile
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    email: str
    full_name: str
    role: Role


def parse_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Role must be admin or worker")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hash values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            user_id=user.user_id,
            email=user.email,
            full_name=user.display_name,
            role=user.role,
        )


class UserService:
    """Use case: manage worker accounts and profiles."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_profile(self, user_id: str) -> UserProfile:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> Sequence[UserProfile]:
        return self._users.list_all()

    def create_worker(
        self,
        *,
        current_role: Role,
        email: str,
        password: str,
        full_name: str,
        phone: Optional[str] = None,
        role: Any = Role.WORKER,
        workplace_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> str:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can create accounts")
        return self.create_account(
            email=email,
            password=password,
            full_name=full_name,
            phone=phone,
            role=parse_role(role or Role.WORKER),
            workplace_id=optional_text(workplace_id),
            now=now,
        )

    def create_account(
        self,
        *,
        email: str,
        password: str,
        full_name: str,
        role: Role,
        phone: Optional[str] = None,
        workplace_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> str:
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        full_name = require_non_empty(full_name, "Full name")

        if self._users.get_by_email(email):
            raise ValidationError("User with this email already exists")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            full_name=full_name,
            phone=optional_text(phone),
            role=role,
            now=now or now_utc(),
            workplace_id=workplace_id,
        )
        logger.info("Account %s created (role=%s)", user_id, role.value)
        return user_id

    def update_profile(
        self,
        *,
        current_role: Role,
        user_id: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        role: Any = None,
        now: datetime | None = None,
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can edit other profiles")

        changes: dict = {}
        if full_name is not None:
            changes["full_name"] = optional_text(full_name)
        if phone is not None:
            changes["phone"] = optional_text(phone)
        if role is not None:
            changes["role"] = parse_role(role)

        if not self._users.update_profile(user_id, changes=changes, now=now or now_utc()):
            raise NotFoundError("User not found")

    def update_self_profile(
        self,
        user_id: str,
        *,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        now: datetime | None = None,
    ) -> None:
        changes: dict = {}
        if full_name is not None:
            changes["full_name"] = optional_text(full_name)
        if phone is not None:
            changes["phone"] = optional_text(phone)

        if not changes:
            return
        if not self._users.update_profile(user_id, changes=changes, now=now or now_utc()):
            raise NotFoundError("User not found")

    def ensure_admin(self, *, email: str, password: str, full_name: str, now: datetime | None = None) -> str:
        """Create an admin account, or promote and reset an existing one."""

        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        now = now or now_utc()

        existing = self._users.get_by_email(email)
        if existing:
            self._users.update_profile(
                existing.user_id,
                changes={
                    "role": Role.ADMIN,
                    "password_hash": generate_password_hash(password),
                    "full_name": optional_text(full_name) or existing.full_name,
                },
                now=now,
            )
            logger.info("Account %s promoted to admin", existing.user_id)
            return existing.user_id

        return self.create_account(email=email, password=password, full_name=full_name, role=Role.ADMIN, now=now)

    def delete_admin(self, *, email: str) -> bool:
        user = self._users.get_by_email(require_email(email))
        if not user:
            return False
        if user.role != Role.ADMIN:
            raise ValidationError("Account is not an admin")
        return self._users.delete_by_id(user.user_id)
