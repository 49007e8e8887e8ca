#!/usr/bin/env python3
import argparse
import json
import os
import sys
from typing import List, Optional

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from marketlink.services.account_store import AccountStore, default_db
from marketlink.services.errors import MarketLinkError
from marketlink.services.provider_store import SEED_PROVIDERS, ProviderStore


def _stores(db_path: str) -> tuple[AccountStore, ProviderStore]:
    return AccountStore(db_path=db_path), ProviderStore(db_path=db_path, seed_demo=False)


def cmd_seed(args: argparse.Namespace) -> int:
    _, providers = _stores(args.db)
    created = providers.seed(SEED_PROVIDERS)
    print(f"Seeded {created} provider(s)")
    return 0


def cmd_link_owners(args: argparse.Namespace) -> int:
    accounts, providers = _stores(args.db)
    unowned = providers.list_unowned_providers()
    print(f"Found {len(unowned)} unowned provider(s) to link")
    linked = 0
    for provider in unowned:
        user = accounts.ensure_user(provider.email)
        try:
            providers.link_owner(provider_id=provider.id, user_id=user.id)
        except MarketLinkError as exc:
            print(f"  - skipped {provider.slug}: {exc}")
            continue
        linked += 1
    print(f"Linked {linked} provider(s) to user accounts")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    accounts, _ = _stores(args.db)
    try:
        user = accounts.ensure_user(args.email, role="admin")
    except MarketLinkError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"Admin ready: {user.email} ({user.id})")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    _, providers = _stores(args.db)
    stats = providers.count_by_status()
    print(json.dumps(stats.model_dump(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MarketLink maintenance commands.")
    parser.add_argument(
        "--db",
        default=os.getenv("MARKETLINK_DB_PATH", default_db),
        help="SQLite database path (defaults to MARKETLINK_DB_PATH).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Insert the demo providers (existing slugs/emails are skipped).").set_defaults(
        func=cmd_seed
    )
    sub.add_parser("link-owners", help="Create a provider user per unowned provider email and link it.").set_defaults(
        func=cmd_link_owners
    )
    create_admin = sub.add_parser("create-admin", help="Create or promote an admin user.")
    create_admin.add_argument("email")
    create_admin.set_defaults(func=cmd_create_admin)
    sub.add_parser("stats", help="Print provider counts by status.").set_defaults(func=cmd_stats)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
