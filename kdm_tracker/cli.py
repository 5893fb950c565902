from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from kdm_tracker import config
from kdm_tracker.catalogs.loader import load_catalogs
from kdm_tracker.migrations.engine import MigrationEngine, MigrationResult
from kdm_tracker.storage.blob_store import FileBlobStore
from kdm_tracker.storage.persistence import (
    CampaignLoadError,
    decode_document,
    export_backup,
    load_campaign,
)


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_engine(target_version: Optional[str]) -> MigrationEngine:
    return MigrationEngine(
        catalogs=load_catalogs(),
        target_version=target_version or config.TARGET_VERSION,
    )


def _report_failure(result: MigrationResult) -> None:
    error = result.error
    print(f"Migration error: {error}", file=sys.stderr)
    for message in getattr(error, "messages", []) or []:
        print(f"Validation error: {message}", file=sys.stderr)
    print("Your campaign data was left unchanged.", file=sys.stderr)


def _cmd_migrate(args: argparse.Namespace) -> int:
    store = FileBlobStore(args.store_root)
    engine = _build_engine(args.target_version)
    outcome = load_campaign(store, engine, args.key, persist=not args.dry_run)

    if outcome.created:
        print(f"No campaign found. Created a new one at version {engine.target_version}.")
        return 0

    result = outcome.result
    if result is None or not result.ok:
        if result is not None:
            _report_failure(result)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if not result.applied_steps:
        print(f"Campaign is already at version {engine.target_version}.")
    elif outcome.written:
        print(f"Campaign migrated {result.from_version} -> {result.to_version}.")
    else:
        print(f"Dry run: campaign would migrate {result.from_version} -> {result.to_version}.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    store = FileBlobStore(args.store_root)
    engine = _build_engine(args.target_version)
    raw = store.read(args.key or config.CAMPAIGN_KEY)
    if raw is None:
        print("No campaign stored.")
        return 0
    document = decode_document(raw)
    version = engine.detect_version(document)
    if engine.needs_migration(document):
        print(f"Campaign version {version} needs migration to {engine.target_version}.")
    else:
        print(f"Campaign version {version} is current.")
    return 0


def _cmd_backup(args: argparse.Namespace) -> int:
    store = FileBlobStore(args.store_root)
    path = export_backup(store, args.output, args.key)
    print(str(path))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Kingdom Death campaign tracker data tools")
    parser.add_argument("--store-root", type=Path, default=None, help="Directory holding stored blobs")
    parser.add_argument("--key", default=None, help="Storage key of the campaign")
    parser.add_argument("--target-version", default=None, help="Schema version to migrate to")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    migrate_cmd = sub.add_parser("migrate", help="Upgrade the stored campaign to the current schema")
    migrate_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the migration without writing the result back.",
    )
    migrate_cmd.set_defaults(handler=_cmd_migrate)

    check_cmd = sub.add_parser("check", help="Report whether the stored campaign needs migration")
    check_cmd.set_defaults(handler=_cmd_check)

    backup_cmd = sub.add_parser("backup", help="Export the stored campaign bytes to a backup file")
    backup_cmd.add_argument("--output", type=Path, default=Path.cwd(), help="Backup directory")
    backup_cmd.set_defaults(handler=_cmd_backup)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    load_dotenv()
    config.refresh_from_env()
    setup_logging(args.debug)

    try:
        code = args.handler(args)
    except CampaignLoadError as exc:
        print(f"Load error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    if code:
        raise SystemExit(code)


if __name__ == "__main__":
    main()
