#!/usr/bin/env python3
"""Create or update a reviewer account allowed to resolve name changes."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hstrack.admin_auth import create_or_update_admin_user, hash_password
from hstrack.db.session import get_session


def _read_password() -> str | None:
    password = getpass.getpass("Password: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        print("Passwords do not match.", file=sys.stderr)
        return None
    return password


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or update a name change reviewer")
    parser.add_argument("--username", help="Reviewer username")
    parser.add_argument(
        "--password",
        default=None,
        help="Reviewer password (omit to be prompted securely)",
    )
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create/update reviewer as inactive",
    )
    parser.add_argument(
        "--hash-only",
        action="store_true",
        help="Print a hash for ADMIN_PASSWORD_HASH instead of writing a user",
    )
    args = parser.parse_args()

    if not args.hash_only and not args.username:
        parser.error("--username is required unless --hash-only is given")

    password = args.password if args.password is not None else _read_password()
    if password is None:
        return 1

    if args.hash_only:
        print(hash_password(password))
        return 0

    with get_session() as session:
        admin = create_or_update_admin_user(
            db=session,
            username=args.username,
            password=password,
            is_active=not args.inactive,
        )
        print(
            f"Reviewer ready: id={admin.id}, username={admin.username}, active={admin.is_active}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
