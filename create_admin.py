"""
Script to create the initial superadmin
Run: python create_admin.py --username admin --email admin@example.com
The password is read from ADMIN_PASSWORD or prompted for.
"""
import argparse
import getpass
import os

from app.database.config.db import SessionLocal, engine, Base
from app.database.models import Admin
from app.utils.auth import get_password_hash
from app.workflow.states import AdminRole


def create_admin_user(username: str, email: str, name: str, password: str) -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing_admin = (
            db.query(Admin)
            .filter((Admin.username == username) | (Admin.email == email))
            .first()
        )
        if existing_admin:
            print("Admin user already exists!")
            if existing_admin.role != AdminRole.SUPERADMIN:
                existing_admin.role = AdminRole.SUPERADMIN
                db.commit()
                print("Updated existing admin to superadmin role.")
            return

        admin_user = Admin(
            username=username,
            email=email,
            name=name,
            password_hash=get_password_hash(password),
            role=AdminRole.SUPERADMIN,
        )
        db.add(admin_user)
        db.commit()
        db.refresh(admin_user)

        print("Superadmin created successfully!")
        print(f"  Username: {admin_user.username}")
        print(f"  Email: {admin_user.email}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the initial superadmin")
    parser.add_argument("--username", default=os.getenv("ADMIN_USERNAME", "admin"))
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@example.com"))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        parser.error("password must be at least 8 characters")

    create_admin_user(args.username.strip(), args.email.strip().lower(), args.name, password)
