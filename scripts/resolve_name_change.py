#!/usr/bin/env python3
"""
Submit, inspect and resolve name change requests from the shell.

Usage:
    # Submit a request
    python scripts/resolve_name_change.py submit "Bob" "Bobby"

    # Show the review comparison for request 12
    python scripts/resolve_name_change.py details 12

    # Approve or deny request 12 (prompts for the admin password)
    python scripts/resolve_name_change.py approve 12
    python scripts/resolve_name_change.py deny 12
"""

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hstrack.admin_auth import PasswordAuthorizer
from hstrack.config import settings
from hstrack.db.session import get_session
from hstrack.efficiency import NullEfficiency
from hstrack.errors import HstrackError
from hstrack.hiscores import HttpHiscoresClient
from hstrack.names import NameChangeReporter, NameChangeService

logging.basicConfig(
    level=settings.log_level,
    format=settings.log_format,
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> dict:
    with get_session() as session:
        if args.command == "details":
            reporter = NameChangeReporter(session, HttpHiscoresClient(), NullEfficiency())
            return reporter.describe(args.id).to_dict()

        service = NameChangeService(session, PasswordAuthorizer(session))

        if args.command == "submit":
            return service.submit(args.old_name, args.new_name).to_dict()

        password = args.password if args.password is not None else getpass.getpass("Admin password: ")

        if args.command == "approve":
            name_change = service.approve(args.id, password)
            logger.info("Transfer: %s", service.last_transfer.summary())
            return name_change.to_dict()

        return service.deny(args.id, password).to_dict()


def main() -> int:
    parser = argparse.ArgumentParser(description="Manage name change requests")
    subparsers = parser.add_subparsers(dest="command", required=True)

    submit = subparsers.add_parser("submit", help="Submit a name change request")
    submit.add_argument("old_name")
    submit.add_argument("new_name")

    details = subparsers.add_parser("details", help="Show the review comparison")
    details.add_argument("id", type=int)

    for command in ("approve", "deny"):
        resolve = subparsers.add_parser(command, help=f"{command.capitalize()} a pending request")
        resolve.add_argument("id", type=int)
        resolve.add_argument(
            "--password",
            default=None,
            help="Admin password (omit to be prompted securely)",
        )

    args = parser.parse_args()

    try:
        result = run(args)
    except HstrackError as exc:
        logger.error("%s failed: %s", args.command, exc.message)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
