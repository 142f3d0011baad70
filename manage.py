#!/usr/bin/env python3
"""
PRG site -- operator commands.

Usage:
  python manage.py hash-password 'my secret'
  python manage.py create-admin admin@example.com 'my secret'
  python manage.py create-admin admin@example.com 'my secret' --name "Jane Doe"

hash-password prints a bcrypt hash (cost 12) to put in ADMIN_PASSWORD_HASH
when IDENTITY_BACKEND=static. create-admin writes an identity to the admins
collection used when IDENTITY_BACKEND=database (the default).

Environment variables:
  MONGODB_URI, MONGODB_DATABASE   Where create-admin writes.
  SECRET_KEY / DEBUG              Required by the settings loader, as for the API.
"""

import argparse
import sys

from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from auth.store import COLLECTION_NAME, IdentityStore, normalize_email
from auth.tokens import hash_password
from core.config import get_settings


def _cmd_hash_password(args: argparse.Namespace) -> int:
    print(hash_password(args.password))
    return 0


def _cmd_create_admin(args: argparse.Namespace) -> int:
    if len(args.password) < 8:
        print("  [!] Password must be at least 8 characters.", file=sys.stderr)
        return 1
    settings = get_settings()
    client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongodb_timeout_ms)
    try:
        store = IdentityStore(client[settings.mongodb_database][COLLECTION_NAME])
        identity_id = store.create_identity(args.email, hash_password(args.password), name=args.name)
    except DuplicateKeyError:
        print(f"  [!] An admin with email '{normalize_email(args.email)}' already exists.", file=sys.stderr)
        return 1
    except PyMongoError as e:
        print(f"  [!] Could not write to the database: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()
    print(f"  Created admin {normalize_email(args.email)} (id {identity_id})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manage.py",
        description="PRG site operator commands.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_hash = sub.add_parser("hash-password", help="Print a bcrypt hash for ADMIN_PASSWORD_HASH.")
    p_hash.add_argument("password")
    p_hash.set_defaults(func=_cmd_hash_password)

    p_admin = sub.add_parser("create-admin", help="Add an admin identity to the database.")
    p_admin.add_argument("email")
    p_admin.add_argument("password")
    p_admin.add_argument("--name", default="Admin User", help="Display name (default: Admin User).")
    p_admin.set_defaults(func=_cmd_create_admin)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
