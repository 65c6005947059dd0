"""
bench-admin: command-line super-admin session tool.

    bench-admin login EMAIL        log in and cache the session
    bench-admin whoami             verify the cached session with the server
    bench-admin logout             end the session and clear the cache
    bench-admin clear              clear cached auth data only
    bench-admin reap               delete expired sessions from the store once
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from bench.client import ClientSessionCache, SuperAdminClient
from bench.utils.exceptions import BenchError

console = Console()

DEFAULT_URL = os.getenv("BENCH_API_URL", "http://localhost:8000")


def _client(args) -> SuperAdminClient:
    cache = ClientSessionCache(Path(args.cache)) if args.cache else ClientSessionCache()
    return SuperAdminClient(args.url, cache=cache)


def _print_user(user: dict) -> None:
    table = Table(show_header=False, box=None)
    for key in ("id", "email", "full_name", "role", "avatar_url"):
        if key in user:
            table.add_row(f"[bold]{key}[/bold]", str(user.get(key) or ""))
    console.print(table)


def cmd_login(args) -> int:
    password = args.password or Prompt.ask("Password", password=True)
    session = _client(args).login(args.email, password)
    console.print(f"[green]Logged in[/green] as {session.email} (expires {session.expires_at.isoformat()})")
    _print_user(session.user)
    return 0


def cmd_whoami(args) -> int:
    user = _client(args).require_super_admin()
    _print_user(user)
    return 0


def cmd_logout(args) -> int:
    _client(args).logout()
    console.print("Logged out")
    return 0


def cmd_clear(args) -> int:
    _client(args).clear_all_auth_data()
    console.print("Cleared cached auth data")
    return 0


def cmd_reap(args) -> int:
    from bench.auth import build_auth_service
    from bench.services.session_reaper import run_reaper_once
    from bench.stores import create_store
    from bench.utils.config import config_manager

    settings = config_manager.load_settings(Path(args.settings) if args.settings else None)
    service = build_auth_service(settings.auth, create_store(settings.store))
    removed = run_reaper_once(service)
    console.print(f"Removed {removed} expired session(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bench-admin", description="Super admin session tool")
    parser.add_argument("--url", default=DEFAULT_URL, help="API base URL")
    parser.add_argument("--cache", default=None, help="Client session cache file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="Log in as super admin")
    p_login.add_argument("email")
    p_login.add_argument("--password", default=None, help="Password (prompted if omitted)")
    p_login.set_defaults(func=cmd_login)

    sub.add_parser("whoami", help="Verify the cached session").set_defaults(func=cmd_whoami)
    sub.add_parser("logout", help="Log out").set_defaults(func=cmd_logout)
    sub.add_parser("clear", help="Clear cached auth data").set_defaults(func=cmd_clear)

    p_reap = sub.add_parser("reap", help="Delete expired sessions once")
    p_reap.add_argument("--settings", default=None, help="Path to settings.yaml")
    p_reap.set_defaults(func=cmd_reap)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except BenchError as e:
        console.print(f"[red]Error:[/red] {e.public_message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
