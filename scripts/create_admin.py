"""
Create an ADMIN user, or reset the password of an existing one.

    python scripts/create_admin.py admin --password 'Secret123' --name 'Administrator'
"""
import argparse
import os
import sys

# Add parent directory to path so we can import stockbook
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stockbook.core import Base, SessionLocal, engine
from stockbook.core.rbac import Role
from stockbook.core.security import get_password_hash
from stockbook.models import AppUser
from stockbook.schemas.user import check_password_strength


def create_admin(username: str, password: str, name: str, email: str = None) -> None:
    check_password_strength(password)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = db.query(AppUser).filter(AppUser.username == username).first()
        if user:
            user.hashed_password = get_password_hash(password)
            user.role = Role.ADMIN.value
            user.is_active = True
            print(f"Reset password and role for existing user '{username}'")
        else:
            user = AppUser(
                username=username,
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=Role.ADMIN.value,
                is_active=True,
            )
            db.add(user)
            print(f"Created admin user '{username}'")
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset an ADMIN user")
    parser.add_argument("username")
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Administrator")
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    try:
        create_admin(args.username, args.password, args.name, args.email)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
