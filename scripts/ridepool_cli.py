#!/usr/bin/env python3
"""Drive the Ride Pool client from a terminal.

Tokens live in a JSON file so that the browser redirect (which happens
outside this process) can be completed by a second invocation.

Usage
-----
Set environment variables and run::

    export RIDEPOOL_REGION="us-east-2"
    export RIDEPOOL_USER_POOL_ID="us-east-2_XXXXXXXXX"
    export RIDEPOOL_USER_POOL_CLIENT_ID="..."
    export RIDEPOOL_API_ENDPOINT="https://....execute-api.us-east-2.amazonaws.com"
    export RIDEPOOL_OAUTH_DOMAIN="....auth.us-east-2.amazoncognito.com"

    python scripts/ridepool_cli.py login           # opens the browser
    python scripts/ridepool_cli.py callback URL    # paste the redirect URL
    python scripts/ridepool_cli.py status
    python scripts/ridepool_cli.py register --nickname Sam --phone 555-2222 --address "2 Elm St"
    python scripts/ridepool_cli.py update --seats 4 --status offering
    python scripts/ridepool_cli.py delete --yes
    python scripts/ridepool_cli.py logout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyridepool import (  # noqa: E402
    FileTokenStore,
    HostedUIIdentityClient,
    RidePoolClient,
    RidePoolConfig,
    RidePoolError,
    ViewState,
)

_DEFAULT_STORE = Path.home() / ".config" / "pyridepool" / "tokens.json"

_FIELD_OPTIONS = {
    "nickname": "nickname",
    "phone": "phone",
    "address": "address",
    "kids": "number_of_kids",
    "seats": "number_of_seats",
    "status": "carpool_status",
}


def _print_state(client: RidePoolClient) -> None:
    out: dict[str, Any] = {"view": client.view.value}
    if client.session is not None:
        out["email"] = client.session.email
    if client.profile is not None:
        out["profile"] = client.profile.model_dump(mode="json", by_alias=True)
    if client.draft is not None and client.draft.errors:
        out["errors"] = client.draft.errors
    if client.error:
        out["error"] = client.error
    print(json.dumps(out, indent=2))


def _collect_fields(args: argparse.Namespace) -> dict[str, Any]:
    return {field: getattr(args, opt) for opt, field in _FIELD_OPTIONS.items() if getattr(args, opt) is not None}


async def _run(args: argparse.Namespace, config: RidePoolConfig) -> int:
    store = FileTokenStore(args.store)
    async with RidePoolClient(config, token_store=store, opener=None if args.no_browser else webbrowser.open) as client:
        if args.command == "login":
            url = await client.begin_sign_in(args.provider)
            if url is None:
                _print_state(client)
                return 1
            print(url)
            return 0

        if args.command == "callback":
            identity = client.identity
            if not isinstance(identity, HostedUIIdentityClient):
                print("callback requires the Hosted UI identity client", file=sys.stderr)
                return 2
            try:
                await identity.complete_sign_in(args.url)
            except RidePoolError as exc:
                print(f"Sign-in failed: {exc}", file=sys.stderr)
                return 1

        if args.command == "logout":
            await client.sign_out()
            _print_state(client)
            return 0 if client.error is None else 1

        await client.evaluate_session()

        if args.command == "register" and client.view is ViewState.AUTHENTICATED_UNREGISTERED:
            await client.submit_registration(_collect_fields(args))
        elif args.command == "update" and client.view is ViewState.AUTHENTICATED_REGISTERED:
            await client.submit_update(_collect_fields(args))
        elif args.command == "delete" and client.view is ViewState.AUTHENTICATED_REGISTERED:
            client.request_deletion()
            if args.yes:
                await client.confirm_deletion()
            else:
                client.cancel_deletion()
                print("Deletion not confirmed (pass --yes)", file=sys.stderr)
        elif args.command in ("register", "update", "delete"):
            print(f"'{args.command}' is not available in state {client.view.value}", file=sys.stderr)
            _print_state(client)
            return 2

        _print_state(client)
        failed = client.error is not None or (client.draft is not None and bool(client.draft.errors))
        return 1 if failed else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Ride Pool carpool profile client")
    parser.add_argument("--store", type=Path, default=_DEFAULT_STORE, help="Token store file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Start a federated sign-in")
    login.add_argument("--provider", default="Google")
    login.add_argument("--no-browser", action="store_true", help="Only print the authorize URL")

    callback = sub.add_parser("callback", help="Finish sign-in with the redirect URL")
    callback.add_argument("url")

    sub.add_parser("status", help="Show the current view state and profile")
    sub.add_parser("logout", help="Sign out")

    for name in ("register", "update"):
        cmd = sub.add_parser(name, help=f"{name.capitalize()} the carpool profile")
        for opt in _FIELD_OPTIONS:
            cmd.add_argument(f"--{opt}")

    delete = sub.add_parser("delete", help="Delete the carpool profile")
    delete.add_argument("--yes", action="store_true", help="Confirm deletion")

    args = parser.parse_args()
    if not hasattr(args, "no_browser"):
        args.no_browser = True

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = RidePoolConfig.from_env()
    except RidePoolError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    return asyncio.run(_run(args, config))


if __name__ == "__main__":
    sys.exit(main())
