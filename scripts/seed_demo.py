"""Seed a demo store with overlapping exports and print the merge suggestions.

Usage (from repository root):
    python scripts/seed_demo.py
    python scripts/seed_demo.py --data-dir /tmp/chatvault-demo --no-reset
"""

from __future__ import annotations

import argparse
from pathlib import Path

from chatvault.config import Settings
from chatvault.db.health import delete_database_files
from chatvault.merge.suggestions import build_auto_merge_suggestions
from chatvault.models.export import ExportSource
from chatvault.schemas.ingest import ConversationCreate, ExportCreate, MessageCreate
from chatvault.services.chats import list_chats
from chatvault.services.ingest import create_export
from chatvault.services.provider import DataProvider

BASE_TIME = 1_760_000_000


def build_demo_exports() -> list[ExportCreate]:
    """Return two exports sharing a renamed DM and one group chat."""

    def dm(name: str, other: str, count: int, offset: int) -> ConversationCreate:
        return ConversationCreate(
            name=name,
            participants=["Me", other],
            messages=[
                MessageCreate(
                    sender="Me" if idx % 2 == 0 else other,
                    sent_at=BASE_TIME + offset + idx * 60,
                    text=f"message {idx}",
                )
                for idx in range(count)
            ],
        )

    group = ConversationCreate(
        name="Climbing crew",
        participants=["Me", "Ana", "Bo"],
        messages=[MessageCreate(sender="Ana", sent_at=BASE_TIME + 5, text="Saturday?")],
    )
    return [
        ExportCreate(
            source=ExportSource.MESSENGER_FACEBOOK,
            checksum="demo-fb",
            conversations=[dm("Jamie Lee", "Jamie Lee", 12, 0), group],
        ),
        ExportCreate(
            source=ExportSource.MESSENGER_E2E,
            checksum="demo-e2e",
            conversations=[dm("  jamie   LEE ", "Jamie Lee", 4, 10_000), dm("Sam", "Sam", 3, 20_000)],
        ),
    ]


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a demo chat store.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the database file.")
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Keep the existing database instead of starting from an empty one.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    settings = Settings(data_dir=args.data_dir) if args.data_dir else Settings()
    if not args.no_reset:
        delete_database_files(settings.database_path)

    provider = DataProvider(settings)
    provider.open()
    try:
        with provider.session_factory() as db:
            exports = [create_export(db, payload) for payload in build_demo_exports()]
            chats = list_chats(db)
    finally:
        provider.close()

    suggestions = build_auto_merge_suggestions(chats)
    print("Seed complete")
    print(f"database={settings.database_path}")
    print(f"exports_created={len(exports)}")
    print(f"chats={len(chats)}")
    for suggestion in suggestions:
        print(f"suggestion key={suggestion.key!r} target={suggestion.target.id} absorbs={suggestion.absorbed_ids}")
    print()
    print("Inspect:")
    print("  GET /chats")
    print("  GET /merge-suggestions")


if __name__ == "__main__":
    main()
