from __future__ import annotations

import logging

from flask import Flask

from ..common.http import (
    admin_required,
    current_role,
    current_user_id,
    error_response,
    login_required,
    ok,
    system_error_response,
)
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/me", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        data = container.report_service.worker_dashboard(current_user_id())
        return ok(data.to_dict())

    @app.route("/api/me/stats", methods=["GET"], endpoint="my_stats")
    @login_required
    def my_stats():
        stats = container.report_service.worker_stats(current_user_id())
        return ok({"stats": stats.to_dict()})

    @app.route("/api/admin/dashboard", methods=["GET"], endpoint="admin_dashboard")
    @admin_required
    def admin_dashboard():
        try:
            data = container.report_service.admin_dashboard(current_role=current_role())
            return ok(data.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Building admin dashboard failed")
            return system_error_response("System error while loading the dashboard")

    @app.route("/api/admin/workers/<worker_id>", methods=["GET"], endpoint="worker_detail")
    @admin_required
    def worker_detail(worker_id: str):
        try:
            data = container.report_service.worker_detail(current_role=current_role(), worker_id=worker_id)
            return ok(data.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Loading worker %s failed", worker_id)
            return system_error_response("System error while loading the worker")
