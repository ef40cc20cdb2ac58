#!/usr/bin/env python3
"""Bulk import of employees into the staff directory container.

Run from the backend/ directory:

    python3 scripts/import_employees.py employees.json [--dry-run] [--batch-size N] [--create-container] [--verbose]

The input is a JSON array of objects with ``login``, ``email``, optional
``first_name``/``last_name``/``display_name``/``roles``/``listed``/``id``/``slug``
and a ``profile`` object. Existing employees with the same id are replaced.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from azure.cosmos import exceptions  # noqa: E402
from azure.cosmos.aio import CosmosClient  # noqa: E402

from staff_directory.core.config import Settings  # noqa: E402
from staff_directory.core.cosmos_schema import ensure_container  # noqa: E402
from staff_directory.models.employee import Account, EmployeeRecord  # noqa: E402
from staff_directory.models.profile import (  # noqa: E402
    Profile,
    ProfileUpdate,
    TextField,
    apply_profile_changes,
    sanitize_profile_update,
)
from staff_directory.services.employee_service import build_document  # noqa: E402
from staff_directory.services.hr_service import sanitize_login, sanitize_roles, slugify  # noqa: E402

logger = logging.getLogger(__name__)

_text = TextField()


class InvalidEntryError(ValueError):
    pass


def record_from_entry(entry: dict[str, Any]) -> EmployeeRecord:
    login = sanitize_login(str(entry.get("login", "")))
    email = str(entry.get("email", "")).strip().lower()
    if not login or "@" not in email:
        raise InvalidEntryError(f"Entry needs a login and an email: {entry!r:.80}")

    first_name = _text.normalize(entry.get("first_name"))
    last_name = _text.normalize(entry.get("last_name"))
    account = Account(
        id=str(entry.get("id") or uuid.uuid5(uuid.NAMESPACE_URL, f"staff:{login}").hex),
        login=login,
        email=email,
        first_name=first_name,
        last_name=last_name,
        display_name=_text.normalize(entry.get("display_name")) or f"{first_name} {last_name}".strip() or login,
        slug=slugify(str(entry.get("slug") or login)),
        roles=sanitize_roles([str(r) for r in entry.get("roles", [])]),
        listed=bool(entry.get("listed", True)),
    )
    changes = sanitize_profile_update(ProfileUpdate(**(entry.get("profile") or {})))
    return EmployeeRecord(account=account, profile=apply_profile_changes(Profile(), changes))


def load_records(path: str) -> tuple[list[EmployeeRecord], int]:
    """Parsed records plus the number of rejected entries."""
    with open(path, encoding="utf-8") as fh:
        entries = json.load(fh)
    if not isinstance(entries, list):
        raise InvalidEntryError("Input must be a JSON array of employee objects")

    records: list[EmployeeRecord] = []
    rejected = 0
    for entry in entries:
        try:
            records.append(record_from_entry(entry))
        except (ValueError, TypeError) as e:
            logger.warning("Skipping entry: %s", e)
            rejected += 1
    return records, rejected


async def upsert_batch(container: Any, records: list[EmployeeRecord], *, dry_run: bool = False) -> tuple[int, int]:
    if dry_run:
        return len(records), 0

    succeeded = failed = 0
    for record in records:
        try:
            await container.upsert_item(body=build_document(record))
            succeeded += 1
        except exceptions.CosmosHttpResponseError as e:
            logger.error("Upsert failed for %s: %s", record.account.login, e.message)
            failed += 1
    return succeeded, failed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import employees into the staff directory")
    parser.add_argument("path", help="JSON file with an array of employees")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and build documents without writing to Cosmos DB",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=50,
        help="Number of employees per batch (default: 50)",
    )
    parser.add_argument(
        "--create-container",
        action="store_true",
        help="Create the database and container with the directory indexing policy first",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def import_employees(args: argparse.Namespace) -> tuple[int, int]:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    records, rejected = load_records(args.path)
    logger.info("Loaded %d employees (%d rejected)", len(records), rejected)
    if not records:
        logger.warning("Nothing to import. Exiting.")
        return 0, rejected

    if args.create_container and not args.dry_run:
        await ensure_container(settings)

    total_succeeded = 0
    total_failed = rejected
    batch_size = max(1, args.batch_size)
    batches = [records[i : i + batch_size] for i in range(0, len(records), batch_size)]

    client = None if args.dry_run else CosmosClient(settings.COSMOS_DB_ENDPOINT, settings.COSMOS_DB_KEY)
    try:
        container = None
        if client is not None:
            db = client.get_database_client(settings.COSMOS_DB_DATABASE)
            container = db.get_container_client(settings.COSMOS_DB_EMPLOYEES_CONTAINER)

        for index, batch in enumerate(batches, start=1):
            succeeded, failed = await upsert_batch(container, batch, dry_run=args.dry_run)
            total_succeeded += succeeded
            total_failed += failed
            logger.info("Batch %d/%d: %d succeeded, %d failed", index, len(batches), succeeded, failed)
    finally:
        if client is not None:
            await client.close()

    logger.info("Import complete: %d succeeded, %d failed", total_succeeded, total_failed)
    if args.dry_run:
        logger.info("[DRY RUN] No documents were written.")
    return total_succeeded, total_failed


def main() -> None:
    args = parse_args()
    _, failed = asyncio.run(import_employees(args))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
