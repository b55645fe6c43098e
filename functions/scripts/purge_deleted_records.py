"""
Hard-delete records that a project deletion cascade already soft-deleted.

For one project, removes documents from the project-owned collections and
`notifications` that have `projectId == <project>` and `deleted == True`.
Worker assignments and worker accounts are never touched.

Usage:
  python scripts/purge_deleted_records.py --project-id P1 --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from google.cloud.firestore_v1.base_query import FieldFilter

from cascade.batched_delete import delete_query_batch
from shared.config import get_settings
from shared.firebase_constants import (
    DELETED_FIELD,
    NOTIFICATIONS_COLLECTION,
    PROJECT_DEPENDENT_COLLECTIONS,
    PROJECT_ID_FIELD,
)

logger = logging.getLogger(__name__)

PURGEABLE_COLLECTIONS = PROJECT_DEPENDENT_COLLECTIONS + [NOTIFICATIONS_COLLECTION]


def soft_deleted_query(db, collection_name: str, project_id: str):
    return (
        db.collection(collection_name)
        .where(filter=FieldFilter(PROJECT_ID_FIELD, "==", project_id))
        .where(filter=FieldFilter(DELETED_FIELD, "==", True))
    )


def purge_project(
    db,
    project_id: str,
    *,
    collections: Iterable[str] = PURGEABLE_COLLECTIONS,
    batch_size: int,
    dry_run: bool,
) -> Dict[str, int]:
    counts = {}
    for collection_name in collections:
        query = soft_deleted_query(db, collection_name, project_id)
        if dry_run:
            counts[collection_name] = len(query.get())
        else:
            counts[collection_name] = delete_query_batch(db, query, batch_size)
        logger.info(
            "%s %d documents from %s",
            "Would delete" if dry_run else "Deleted",
            counts[collection_name],
            collection_name,
        )
    return counts


def main(argv: Optional[list[str]] = None, db=None) -> int:
    parser = argparse.ArgumentParser(
        description="Hard-delete soft-deleted records of a deleted project"
    )
    parser.add_argument("--project-id", required=True, help="Deleted project id")
    parser.add_argument(
        "--collection",
        action="append",
        choices=PURGEABLE_COLLECTIONS,
        help="Collection to purge (repeatable, defaults to all)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Documents deleted per batch commit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many documents would be deleted without deleting",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    batch_size = (
        args.batch_size
        if args.batch_size is not None
        else get_settings().delete_batch_size
    )
    if batch_size <= 0:
        logger.error("--batch-size must be positive")
        return 1

    if db is None:
        from firebase_admin import firestore, initialize_app

        initialize_app()
        db = firestore.client()

    counts = purge_project(
        db,
        args.project_id,
        collections=args.collection or PURGEABLE_COLLECTIONS,
        batch_size=batch_size,
        dry_run=args.dry_run,
    )
    logger.info(
        "%s %d documents for project %s",
        "Would delete" if args.dry_run else "Deleted",
        sum(counts.values()),
        args.project_id,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
