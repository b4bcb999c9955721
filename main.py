#!/usr/bin/env python3
"""
SmartSprint -- management CLI for the authentication service.

Usage:
  python main.py create-user "Ada Lovelace" ada@example.com --role admin
  python main.py create-user "Dev One" dev@example.com --password s3cret!
  python main.py serve --host 0.0.0.0 --port 8000

create-user is the bootstrap path for the first admin: it writes straight to
the credential store, with no role-hierarchy check. When --password is
omitted the password is prompted for (twice) without echo.

Environment variables:
  SECRET_KEY     Required. At least 32 characters. Signs access tokens.
  DATABASE_URL   Optional. SQLAlchemy URL of the user database.
"""

import argparse
import getpass
import sys

from pydantic import ValidationError

from auth.errors import DuplicateEmailError
from auth.roles import Role
from auth.service import register_user
from auth.store import UserStore
from core.config import get_settings

_PASSWORD_MIN_LEN = 6


def _read_password(given: str | None) -> str | None:
    if given is not None:
        return given
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.", file=sys.stderr)
        return None
    return first


def _cmd_create_user(args: argparse.Namespace) -> int:
    name = args.name.strip()
    email = args.email.strip()
    if not name or "@" not in email:
        print("  [!] A name and a valid email are required.", file=sys.stderr)
        return 1

    password = _read_password(args.password)
    if password is None:
        return 1
    if len(password) < _PASSWORD_MIN_LEN:
        print(f"  [!] Password must be at least {_PASSWORD_MIN_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        user = register_user(store, name, email, password, role=args.role, rounds=settings.bcrypt_rounds)
    except DuplicateEmailError:
        print(f"  [!] A user with email '{email}' already exists.", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"Created user {user.id} '{user.email}' with role '{user.role}'.")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartsprint",
        description="SmartSprint authentication service management.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user directly in the credential store.")
    create.add_argument("name", help="Display name")
    create.add_argument("email", help="Login email (unique, case-sensitive)")
    create.add_argument(
        "--role",
        default=Role.developer.value,
        choices=[r.value for r in Role],
        help="Role for the new user (default: developer)",
    )
    create.add_argument("--password", help="Password (prompted for when omitted)")
    create.set_defaults(func=_cmd_create_user)

    serve = sub.add_parser("serve", help="Run the API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        return args.func(args)
    except ValidationError as exc:
        print(f"  [!] Invalid configuration:\n{exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
