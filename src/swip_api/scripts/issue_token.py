# src/swip_api/scripts/issue_token.py
"""Create (or look up) a developer account and print a portal bearer token."""

from __future__ import annotations

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from swip_api.core.security import create_access_token
from swip_api.db.session import SessionLocal
from swip_api.models import User


def get_or_create_user(db: Session, email: str, name: str | None = None) -> User:
    """Return the user with ``email``, creating it if needed."""
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Issue a developer-portal access token.")
    parser.add_argument("--email", required=True, help="Developer email address.")
    parser.add_argument("--name", default=None, help="Display name for new accounts.")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = get_or_create_user(db, args.email, args.name)
        token = create_access_token(user.id, {"email": user.email})
    finally:
        db.close()

    print(f"user_id={user.id}")
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
