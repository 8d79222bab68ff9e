"""Example: drive the service layer directly (no Flask).

Prints the weekly stats and recent shifts of the demo worker.
"""

import importlib

from config import get_settings_module

from src.timeclock_system.timeclock_system.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    worker = container.users_repo.get_by_email("worker@example.com")
    if not worker:
        print("Run scripts/seed_db.py first")
        return

    print(container.report_service.worker_stats(worker.user_id).to_dict())
    for entry in container.report_service.worker_dashboard(worker.user_id).recent_entries:
        print(entry.to_dict())


if __name__ == "__main__":
    main()
