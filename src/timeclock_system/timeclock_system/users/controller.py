from __future__ import annotations

import logging

from flask import Flask, session

from ..common.http import (
    admin_required,
    current_role,
    current_user_id,
    error_response,
    json_body,
    login_required,
    ok,
    system_error_response,
)
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.before_request
    def refresh_session_role():
        # Role changes and deleted accounts take effect on the next request.
        user_id = session.get("user_id")
        if user_id is None:
            return None
        profile = container.users_repo.get_by_id(str(user_id))
        if profile is None:
            session.clear()
        elif session.get("role") != profile.role.value:
            session["role"] = profile.role.value
        return None

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        try:
            s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except DomainError as e:
            logger.warning("Failed login for %r", data.get("email"))
            return error_response(e)
        except Exception:
            logger.exception("Login failed")
            return system_error_response("System error while logging in")

        session.clear()
        session.permanent = bool(data.get("remember_me"))

        session["user_id"] = s_user.user_id
        session["email"] = s_user.email
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        return ok({"user": {"user_id": s_user.user_id, "name": s_user.full_name, "role": s_user.role.value}})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/me/profile", methods=["PATCH"], endpoint="update_self_profile")
    @login_required
    def update_self_profile():
        data = json_body()
        try:
            container.user_service.update_self_profile(
                current_user_id(),
                full_name=data.get("full_name"),
                phone=data.get("phone"),
            )
            profile = container.user_service.get_profile(current_user_id())
            session["name"] = profile.display_name
            return ok({"profile": profile.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Updating own profile failed")
            return system_error_response("System error while updating the profile")

    @app.route("/api/admin/workers", methods=["POST"], endpoint="create_worker")
    @admin_required
    def create_worker():
        data = json_body()
        try:
            user_id = container.user_service.create_worker(
                current_role=current_role(),
                email=data.get("email", ""),
                password=data.get("password", ""),
                full_name=data.get("full_name", ""),
                phone=data.get("phone"),
                role=data.get("role") or "worker",
                workplace_id=data.get("workplace_id"),
            )
            return ok({"user_id": user_id, "message": "Worker created successfully."}, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Creating worker failed")
            return system_error_response("An unexpected error occurred while creating the worker.")

    @app.route("/api/admin/workers/<worker_id>", methods=["PATCH"], endpoint="update_worker")
    @admin_required
    def update_worker(worker_id: str):
        data = json_body()
        try:
            container.user_service.update_profile(
                current_role=current_role(),
                user_id=worker_id,
                full_name=data.get("full_name"),
                phone=data.get("phone"),
                role=data.get("role"),
            )
            return ok({"profile": container.user_service.get_profile(worker_id).to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Updating worker failed")
            return system_error_response("System error while updating the worker")
