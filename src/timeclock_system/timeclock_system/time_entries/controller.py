from __future__ import annotations

import logging

from flask import Flask

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
    @app.route("/api/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        data = json_body()
        try:
            result = container.shift_service.worker_clock_in(
                current_user_id(),
                data.get("latitude"),
                data.get("longitude"),
            )
            return ok(
                {
                    "entry": result.entry.to_dict(),
                    "workplace": result.match.workplace.to_dict(),
                    "distance_m": round(result.match.distance_m, 1),
                },
                201,
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Clock-in failed")
            return system_error_response("System error while clocking in")

    @app.route("/api/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        try:
            entry = container.shift_service.worker_clock_out(current_user_id())
            return ok({"entry": entry.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Clock-out failed")
            return system_error_response("System error while clocking out")

    @app.route("/api/admin/clock", methods=["POST"], endpoint="admin_clock")
    @admin_required
    def admin_clock():
        data = json_body()
        try:
            entry = container.shift_service.admin_clock(
                current_role=current_role(),
                admin_id=current_user_id(),
                worker_id=data.get("worker_id"),
                workplace_id=data.get("workplace_id"),
                action=data.get("action"),
            )
            return ok({"entry": entry.to_dict()})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Admin clock override failed")
            return system_error_response("System error while updating the shift")
