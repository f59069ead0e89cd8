"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Execute `pip install -e .` from the project root "
        "to install dependencies."
    ) from exc

from userhub.client import APIError, DEFAULT_SERVICE_URL, DirectoryClient, is_valid_email

logger = logging.getLogger("userhub.main")

PAGE_SIZE = 5


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User directory service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP directory service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 4000)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (defaults to USERHUB_CONFIG or config/userhub.yaml)",
    )

    admin_parser = subparsers.add_parser(
        "admin", help="Launch the interactive directory console"
    )
    admin_parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of a running directory service (default: {DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(*, host: str | None, port: int | None, config_path: str | None) -> None:
    from userhub.config import load_settings
    from userhub.service import create_app
    import uvicorn

    settings = load_settings(Path(config_path).expanduser() if config_path else None)
    bind_host = host or settings.host
    bind_port = port or settings.port

    logger.info("Starting user directory API on http://%s:%s", bind_host, bind_port)

    app = create_app(settings=settings)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level="info")


def _run_admin_cli(client: DirectoryClient) -> None:
    """Provide an interactive console mirroring the web dashboard."""

    print("User Directory Console")
    print("Any username works; press Ctrl+C at any time to exit.\n")

    page = 1
    shown = 0
    try:
        while True:
            if not client.is_authenticated:
                if not _login(client):
                    print("Goodbye!")
                    return
                page = 1
                print()
                continue

            print(f"Signed in as {client.username}. Select an option:")
            print("  1) List users")
            print("  2) Next page")
            print("  3) Previous page")
            print("  4) Add a new user")
            print("  5) Delete a user")
            print("  6) Log out")
            print("  7) Exit")

            choice = input("Enter choice [1-7]: ").strip()

            try:
                if choice == "1":
                    page, shown = _list_users(client, page)
                elif choice == "2":
                    page, shown = _list_users(client, page + 1)
                elif choice == "3":
                    page, shown = _list_users(client, max(page - 1, 1))
                elif choice == "4":
                    _add_user(client)
                elif choice == "5":
                    if _delete_user(client) and shown == 1 and page > 1:
                        page -= 1
                    page, shown = _list_users(client, page)
                elif choice == "6":
                    client.logout()
                    print("Logged out.")
                elif choice == "7":
                    print("Goodbye!")
                    return
                else:
                    print("Invalid selection. Please choose a number from the menu.")
            except APIError as exc:
                if exc.credential_rejected:
                    print("Your session is invalid or has expired. Please log in again.")
                else:
                    print(f"Error: {exc.message}")
            except httpx.HTTPError as exc:
                print(f"Failed to contact directory service: {exc}")

            print()
    except KeyboardInterrupt:
        print("\nExiting directory console.")


def _login(client: DirectoryClient) -> bool:
    username = input("Username (leave blank to exit): ").strip()
    if not username:
        return False

    try:
        client.login(username)
    except APIError as exc:
        print(f"Login failed: {exc.message}")
    except httpx.HTTPError as exc:
        print(f"Failed to contact directory service: {exc}")
    else:
        print(f"Welcome, {client.username}!")
    return True


def _list_users(client: DirectoryClient, page: int) -> tuple[int, int]:
    data: Dict[str, Any] = client.list_users(page=page, limit=PAGE_SIZE)
    total_pages = int(data.get("totalPages", 0))
    if page > 1 and page > total_pages:
        print("Already on the last page.")
        return _list_users(client, max(total_pages, 1))

    users = data.get("users", [])
    print(f"Total Users: {data.get('totalUsers', 0)} | Page {data.get('page', page)} of {total_pages}")
    if not users:
        print("No users found.")
        return page, 0

    print(f"{'ID':>4}  {'Name':<24}  Email")
    print("-" * 64)
    for user in users:
        print(f"{user['id']:>4}  {user['name']:<24}  {user['email']}")
    return page, len(users)


def _add_user(client: DirectoryClient) -> None:
    print("\nAdd a new user (leave the name blank to cancel).")
    name = input("Name: ").strip()
    if not name:
        print("User creation cancelled.")
        return

    email = input("Email address: ").strip()
    if not email:
        print("Please fill in all fields.")
        return
    if not is_valid_email(email):
        print("Please enter a valid email address.")
        return

    data = client.create_user(name, email)
    print(f'User "{data["user"]["name"]}" added successfully!')


def _delete_user(client: DirectoryClient) -> bool:
    raw = input("ID of the user to delete: ").strip()
    try:
        user_id = int(raw)
    except ValueError:
        print("Please enter a numeric user ID.")
        return False

    confirmation = input("Are you sure you want to delete this user? [y/N]: ").strip().lower()
    if confirmation not in {"y", "yes"}:
        print("Deletion cancelled.")
        return False

    data = client.delete_user(user_id)
    deleted = data["deletedUser"]
    print(f"Deleted user #{deleted['id']}: {deleted['name']} <{deleted['email']}>")
    return True


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(host=args.host, port=args.port, config_path=args.config)
    elif args.command == "admin":
        service_url: Optional[str] = args.service_url or os.getenv("USERHUB_SERVICE_URL")
        with DirectoryClient(service_url or DEFAULT_SERVICE_URL) as client:
            _run_admin_cli(client)


if __name__ == "__main__":
    main()
