"""
Rewrite user roles left over from the old OFFICE / FACTORY role set.

Legacy rows are denied every capability until migrated.

    python scripts/migrate_legacy_roles.py --dry-run
"""
import argparse
import os
import sys

# Add parent directory to path so we can import stockbook
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from stockbook.core import SessionLocal
from stockbook.core.rbac import LEGACY_ROLES, migrate_legacy_role
from stockbook.models import AppUser


def migrate(dry_run: bool = False) -> int:
    print("Migrating legacy user roles...")
    db = SessionLocal()
    try:
        users = db.query(AppUser).filter(AppUser.role.in_(sorted(LEGACY_ROLES))).all()
        for user in users:
            new_role = migrate_legacy_role(user.role)
            print(f"  {user.username}: {user.role} -> {new_role.value}")
            if not dry_run:
                user.role = new_role.value

        if dry_run:
            db.rollback()
            print(f"Dry run: {len(users)} users would be updated")
        else:
            db.commit()
            print(f"Updated {len(users)} users")
        return len(users)
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Map OFFICE / FACTORY roles onto the current role set")
    parser.add_argument("--dry-run", action="store_true", help="report changes without writing them")
    args = parser.parse_args()
    migrate(dry_run=args.dry_run)
