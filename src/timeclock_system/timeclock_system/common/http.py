"""Helpers shared by the JSON controllers."""

from __future__ import annotations

from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ClockError,
    DomainError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ClockError, 409),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def error_response(error: DomainError):
    body = {"success": False, "kind": error.kind, "message": error.message}
    return jsonify(body), status_for(error)


def system_error_response(message: str):
    return jsonify({"success": False, "kind": "SystemError", "message": message}), 500


def ok(payload: dict | None = None, status: int = 200):
    body = {"success": True}
    body.update(payload or {})
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def current_user_id() -> str:
    return str(session["user_id"])


def current_role() -> Role:
    """Role from the session; the users controller refreshes it from the profile on every request."""
    return Role(session.get("role", Role.WORKER.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please log in to continue"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please log in to continue"))
        if session.get("role") != Role.ADMIN.value:
            return error_response(AuthorizationError())
        return view(*args, **kwargs)

    return wrapper
