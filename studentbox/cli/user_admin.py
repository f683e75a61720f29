"""User administration script for StudentBox.

Commands:
    add       Add a new user
    list      List all users
    disable   Disable a user account
    enable    Enable a user account
    passwd    Change a user's password
    imports   Show a user's student import history
"""

import argparse
import asyncio
import sys
from datetime import datetime
from getpass import getpass
from typing import Optional

from studentbox.database import close_db, init_db
from studentbox.models.import_batch import ImportBatch
from studentbox.models.user import User
from studentbox.services.auth import get_password_hash


async def _find_user(email: str) -> User:
    user = await User.find_one(User.email == email)
    if not user:
        print(f"Error: User '{email}' not found.")
        sys.exit(1)
    return user


async def add_user(
    email: str,
    password: str,
    full_name: Optional[str] = None,
    is_admin: bool = False,
) -> None:
    """Add a new user."""
    if await User.find_one(User.email == email):
        print(f"Error: User '{email}' already exists.")
        sys.exit(1)

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        is_superuser=is_admin,
        is_active=True,
    )
    await user.insert()

    role = "admin" if is_admin else "user"
    print(f"User '{email}' created successfully as {role}.")


async def list_users() -> None:
    """List all users."""
    users = await User.find_all().sort(+User.email).to_list()

    if not users:
        print("No users found.")
        return

    print(f"{'Email':<35} {'Name':<25} {'Admin':<6} {'Active':<6} {'Last Login':<20}")
    print("-" * 95)

    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        admin = "Yes" if user.is_admin else "No"
        active = "Yes" if user.is_active else "No"
        print(f"{user.email:<35} {user.full_name or '':<25} {admin:<6} {active:<6} {last_login:<20}")


async def set_active(email: str, active: bool) -> None:
    """Enable or disable a user account."""
    user = await _find_user(email)
    label = "active" if active else "disabled"

    if user.is_active == active:
        print(f"User '{email}' is already {label}.")
        return

    user.is_active = active
    user.updated_at = datetime.utcnow()
    await user.save()
    print(f"User '{email}' is now {label}.")


async def change_password(email: str, password: str) -> None:
    """Change a user's password."""
    user = await _find_user(email)
    user.hashed_password = get_password_hash(password)
    user.updated_at = datetime.utcnow()
    await user.save()
    print(f"Password for user '{email}' has been updated.")


async def list_imports(email: str) -> None:
    """Show the import runs recorded for a user, newest first."""
    user = await _find_user(email)
    batches = (
        await ImportBatch.find(ImportBatch.owner_id == user.id)
        .sort(-ImportBatch.imported_at)
        .to_list()
    )

    if not batches:
        print(f"No imports recorded for '{email}'.")
        return

    print(f"{'Started':<17} {'Status':<11} {'Rows':>6} {'Added':>6} {'Dups':>6} {'Errors':>6}  File")
    print("-" * 80)
    for batch in batches:
        started = batch.imported_at.strftime("%Y-%m-%d %H:%M")
        print(
            f"{started:<17} {batch.status.value:<11} {batch.row_count:>6} "
            f"{batch.success_count:>6} {batch.duplicate_count:>6} {batch.error_count:>6}  "
            f"{batch.filename}"
        )


async def _run(coro) -> None:
    await init_db()
    try:
        await coro
    finally:
        await close_db()


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively from user."""
    password = getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty.")
        sys.exit(1)

    if confirm:
        password2 = getpass("Confirm password: ")
        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

    return password


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="StudentBox user administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    add_parser = subparsers.add_parser("add", help="Add a new user")
    add_parser.add_argument("email", help="Email address (used to log in)")
    add_parser.add_argument("--name", "-n", help="Full name")
    add_parser.add_argument("--admin", "-a", action="store_true", help="Make user an admin")
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    subparsers.add_parser("list", help="List all users")

    disable_parser = subparsers.add_parser("disable", help="Disable a user account")
    disable_parser.add_argument("email", help="User to disable")

    enable_parser = subparsers.add_parser("enable", help="Enable a user account")
    enable_parser.add_argument("email", help="User to enable")

    passwd_parser = subparsers.add_parser("passwd", help="Change a user's password")
    passwd_parser.add_argument("email", help="User to change password for")
    passwd_parser.add_argument("--password", "-p", help="New password (will prompt if not provided)")

    imports_parser = subparsers.add_parser("imports", help="Show a user's import history")
    imports_parser.add_argument("email", help="User whose imports to list")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "add":
            password = args.password if args.password else get_password_interactive()
            asyncio.run(_run(add_user(args.email, password, args.name, args.admin)))

        elif args.command == "list":
            asyncio.run(_run(list_users()))

        elif args.command == "disable":
            asyncio.run(_run(set_active(args.email, False)))

        elif args.command == "enable":
            asyncio.run(_run(set_active(args.email, True)))

        elif args.command == "passwd":
            password = args.password if args.password else get_password_interactive()
            asyncio.run(_run(change_password(args.email, password)))

        elif args.command == "imports":
            asyncio.run(_run(list_imports(args.email)))

    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
