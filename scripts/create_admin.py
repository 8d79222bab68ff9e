"""Create (or promote) an admin account.

Usage:
    python scripts/create_admin.py admin@example.com 's3cret-pass' "Site Admin"
    python scripts/create_admin.py admin@example.com --delete
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.timeclock_system.timeclock_system.container import build_container
from src.timeclock_system.timeclock_system.core.exceptions import DomainError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create, promote or delete an admin account")
    parser.add_argument("email")
    parser.add_argument("password", nargs="?")
    parser.add_argument("full_name", nargs="?", default="Administrator")
    parser.add_argument("--delete", action="store_true", help="delete the admin account instead")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=dict(settings.DB_CONFIG))

    try:
        if args.delete:
            if container.user_service.delete_admin(email=args.email):
                print(f"OK: Deleted admin {args.email}")
            else:
                print(f"No account found for {args.email}")
            return 0

        if not args.password:
            parser.error("password is required unless --delete is given")

        user_id = container.user_service.ensure_admin(
            email=args.email,
            password=args.password,
            full_name=args.full_name,
        )
    except DomainError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 1

    print(f"OK: Admin ready -> {args.email} (id={user_id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
