# backend/create_initial_admin.py

import os

from armorydb.database import SessionLocal
from armorydb.apps.accounts import models, schemas, services


def main() -> None:
    db = SessionLocal()
    try:
        username = os.getenv("ADMIN_USERNAME", "admin")
        password = os.getenv("ADMIN_PASSWORD", "ChangeMe123!")

        existing = services.get_user_by_username(db, username)
        if existing:
            print(f"[INFO] User already exists: id={existing.id}, username={existing.username}")
            return

        user = services.create_user(
            db,
            schemas.UserCreate(
                username=username,
                password=password,
                role=models.AccountRole.ADMIN,
                base_id=None,
            ),
        )

        print("[OK] Created admin user:")
        print(f"  id:       {user.id}")
        print(f"  username: {user.username}")
        print(f"  role:     {user.role.value}")
        print(f"  login password: {password}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
