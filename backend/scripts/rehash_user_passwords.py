#!/usr/bin/env python3
import argparse
from typing import Iterable, Optional

from armorydb.database import SessionLocal
from armorydb.security import get_password_hash
from armorydb.apps.accounts import models


def _is_known_hash(value: Optional[str]) -> bool:
    if not value:
        return False
    return value.startswith("$argon2") or value.startswith(("$2a$", "$2b$", "$2y$"))


def _iter_target_users(
    session,
    *,
    base_id: Optional[int],
    username: Optional[str],
) -> Iterable[models.User]:
    query = session.query(models.User)
    if base_id is not None:
        query = query.filter(models.User.base_id == base_id)
    if username:
        query = query.filter(models.User.username == username.strip().lower())
    return query.all()


def main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Hash user passwords imported from a legacy database. "
            "By default the stored plaintext value itself is hashed."
        )
    )
    parser.add_argument(
        "--password",
        help="Replace the stored value with this password instead of hashing it in place.",
    )
    parser.add_argument("--base-id", type=int, help="Restrict to users of one base.")
    parser.add_argument("--username", help="Restrict to a single username.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which users would be updated without writing changes.",
    )
    args = parser.parse_args()

    session = SessionLocal()
    try:
        users = list(
            _iter_target_users(session, base_id=args.base_id, username=args.username)
        )

        if not users:
            print("No users matched the supplied filters.")
            return

        updated = []
        skipped = []

        for user in users:
            if _is_known_hash(user.hashed_password):
                skipped.append(user)
                continue
            plaintext = args.password or user.hashed_password
            user.hashed_password = get_password_hash(plaintext)
            updated.append(user)

        if args.dry_run:
            session.rollback()
            print("Dry run complete.")
            print(f"Would update {len(updated)} user(s).")
            for user in updated:
                print(f"- {user.username} ({user.id})")
            print(f"Skipped {len(skipped)} user(s) with valid hashes.")
            return

        session.commit()
        print(f"Updated {len(updated)} user(s).")
        if skipped:
            print(f"Skipped {len(skipped)} user(s) with valid hashes.")
    finally:
        session.close()


if __name__ == "__main__":
    main()
