# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import logging

from shared.firebase_constants import FIRESTORE_MAX_BATCH_WRITES

logger = logging.getLogger(__name__)


def delete_query_batch(db, query, batch_size: int = FIRESTORE_MAX_BATCH_WRITES) -> int:
    """
    Permanently deletes every document matched by `query`, one page at a time.

    Each page is fetched with `query.limit(batch_size)` and deleted in a single
    batch commit. A full page means more documents may remain, so the same
    query is issued again until a short or empty page comes back.

    Documents inserted concurrently that match the query may be picked up by
    a later page; exactly-once deletion is not guaranteed under concurrent
    writes.

    Args:
        db: Firestore client used to create write batches.
        query: Firestore query (collection reference or filtered query).
        batch_size (int): Maximum documents fetched and deleted per page.

    Returns:
        The number of documents deleted.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    snapshots = query.limit(batch_size).get()
    if not snapshots:
        return 0

    batch = db.batch()
    for snapshot in snapshots:
        batch.delete(snapshot.reference)
    batch.commit()

    page_size = len(snapshots)
    logger.info("Deleted page of %d documents", page_size)

    if page_size >= batch_size:
        return page_size + delete_query_batch(db, query, batch_size)
    return page_size
