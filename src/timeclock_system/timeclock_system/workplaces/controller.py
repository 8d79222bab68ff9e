from __future__ import annotations

import logging

from flask import Flask

from ..common.http import (
    admin_required,
    current_role,
    error_response,
    json_body,
    ok,
    system_error_response,
)
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/workplaces", methods=["GET"], endpoint="admin_workplaces")
    @admin_required
    def admin_workplaces():
        workplaces = container.workplace_service.list_workplaces()
        return ok({"workplaces": [w.to_dict() for w in workplaces]})

    @app.route("/api/admin/workplaces", methods=["POST"], endpoint="create_workplace")
    @app.route("/api/admin/workplaces/<workplace_id>", methods=["PUT"], endpoint="update_workplace")
    @admin_required
    def upsert_workplace(workplace_id: str | None = None):
        data = json_body()
        try:
            saved_id = container.workplace_service.upsert_workplace(
                current_role=current_role(),
                workplace_id=workplace_id,
                name=data.get("name", ""),
                description=data.get("description"),
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
                radius_m=data.get("radius_m"),
            )
            workplace = container.workplace_service.get_workplace(saved_id)
            return ok({"workplace": workplace.to_dict()}, 200 if workplace_id else 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Saving workplace failed")
            return system_error_response("System error while saving the workplace")

    @app.route("/api/admin/workplaces/<workplace_id>", methods=["DELETE"], endpoint="delete_workplace")
    @admin_required
    def delete_workplace(workplace_id: str):
        try:
            container.workplace_service.delete_workplace(current_role=current_role(), workplace_id=workplace_id)
            return ok()
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Deleting workplace failed")
            return system_error_response("System error while deleting the workplace")

    @app.route("/api/admin/assignments", methods=["POST"], endpoint="assign_worker")
    @admin_required
    def assign_worker():
        data = json_body()
        try:
            created = container.workplace_service.assign_worker(
                current_role=current_role(),
                worker_id=data.get("worker_id"),
                workplace_id=data.get("workplace_id"),
            )
            return ok({"created": created}, 201 if created else 200)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Assigning worker failed")
            return system_error_response("System error while assigning the worker")

    @app.route("/api/admin/assignments", methods=["DELETE"], endpoint="remove_assignment")
    @admin_required
    def remove_assignment():
        data = json_body()
        try:
            container.workplace_service.remove_assignment(
                current_role=current_role(),
                worker_id=data.get("worker_id"),
                workplace_id=data.get("workplace_id"),
            )
            return ok()
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Removing assignment failed")
            return system_error_response("System error while removing the assignment")
