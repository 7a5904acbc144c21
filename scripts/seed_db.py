"""
Seed script for the cleanup API (mock DB or Firestore).

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Use a different seed file: python scripts/seed_db.py --file ./my_seed.json --apply

Behavior:
  - Loads `db_seed.json` from repo root: {"cleanup_requests": [...], "users": [...]}.
  - Every record goes through the services, so it is validated and gets its
    derived fields (problem label, priority) exactly like an API submission.
  - Invalid records are reported with their field errors and skipped.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` is set and `USE_MOCK_DB=false` in `.env`.
"""

import argparse
import json
import os

from app.core.errors import CleanupAppError
from app.models.cleanup_request import CleanupRequestPage
from app.services.cleanup_request_service import get_cleanup_request_service
from app.services.user_service import get_user_service


def load_seed(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def seed_users(users: list, apply: bool) -> int:
    service = get_user_service()
    written = 0
    for user in users:
        print(f"Preparing user: {user.get('email')}")
        if not apply:
            continue
        try:
            service.register(user)
            written += 1
        except CleanupAppError as e:
            print(f"Skipped user {user.get('email')}: {e.message} {e.errors}")
    return written


def seed_requests(requests: list, apply: bool) -> int:
    service = get_cleanup_request_service()
    written = 0
    for payload in requests:
        print(f"Preparing cleanup request: {payload.get('problemType')} @ {payload.get('location')}")
        if not apply:
            continue
        try:
            created = service.create_request(payload)
            written += 1
            print(f"Wrote: cleanup_requests/{created.id} ({created.problem_label})")
        except CleanupAppError as e:
            print(f"Skipped request: {e.message} {e.errors}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Seed file not found: {args.file}")
        return

    seed = load_seed(args.file)
    users = seed_users(seed.get("users", []), args.apply)
    requests = seed_requests(seed.get("cleanup_requests", []), args.apply)

    if args.apply:
        print(f"Seeding completed: {users} users, {requests} cleanup requests.")
        page: CleanupRequestPage = get_cleanup_request_service().list_requests(limit=1)
        print(f"Collection now holds {page.pagination.total_requests} cleanup requests.")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
