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

import concurrent.futures
import logging
from typing import Any, Dict, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from google.cloud.firestore_v1.base_query import FieldFilter

from shared.config import Settings, get_settings
from shared.firebase_constants import (
    NOTIFICATIONS_COLLECTION,
    PROJECT_DEPENDENT_COLLECTIONS,
    PROJECT_ID_FIELD,
    WORKER_ACCOUNTS_COLLECTION,
    WORKER_ASSIGNMENTS_COLLECTION,
)
from shared.types import AssignmentStatus, CascadeResult

logger = logging.getLogger(__name__)


class SoftDeleteCascade:
    """
    Propagates a project deletion to every document that references it.

    Records owned by the project are flagged `deleted`, its worker assignments
    are moved to `removed` and worker accounts are detached from it. All
    writes are unconditional field sets, so running the cascade again for the
    same project converges to the same state.

    Store errors are not caught here; the trigger is expected to fail so the
    platform retries it.
    """

    def __init__(self, db, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def run(self, project_id: str, project_data: Optional[Dict[str, Any]]) -> CascadeResult:
        """
        Runs the cascade for a deleted project.

        Args:
            project_id (str): Id of the deleted project document.
            project_data (dict): Field values of the project before deletion.

        Returns:
            A CascadeResult whose `deleted_count` is the total over the
            project-dependent collections.
        """
        deleted_by = (project_data or {}).get("engineerId")
        timestamp = SERVER_TIMESTAMP
        soft_delete_fields = {
            "deleted": True,
            "deletedAt": timestamp,
            "deletedBy": deleted_by,
        }

        logger.info("Starting cascading soft-delete for project: %s", project_id)

        counts: Dict[str, int] = {}

        counts[NOTIFICATIONS_COLLECTION] = self._update_matching(
            NOTIFICATIONS_COLLECTION, project_id, soft_delete_fields
        )
        if counts[NOTIFICATIONS_COLLECTION]:
            logger.info(
                "Soft-deleted %d notifications", counts[NOTIFICATIONS_COLLECTION]
            )

        counts[WORKER_ASSIGNMENTS_COLLECTION] = self._update_matching(
            WORKER_ASSIGNMENTS_COLLECTION,
            project_id,
            {"status": AssignmentStatus.REMOVED.value, "decidedAt": timestamp},
        )
        if counts[WORKER_ASSIGNMENTS_COLLECTION]:
            logger.info(
                "Removed %d worker assignments", counts[WORKER_ASSIGNMENTS_COLLECTION]
            )

        counts[WORKER_ACCOUNTS_COLLECTION] = self._update_matching(
            WORKER_ACCOUNTS_COLLECTION,
            project_id,
            {PROJECT_ID_FIELD: None, "removedAt": timestamp},
        )
        if counts[WORKER_ACCOUNTS_COLLECTION]:
            logger.info(
                "Cleared project from %d worker accounts",
                counts[WORKER_ACCOUNTS_COLLECTION],
            )

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.settings.cascade_max_workers
        ) as executor:
            futures = {
                collection_name: executor.submit(
                    self._soft_delete_collection,
                    collection_name,
                    project_id,
                    soft_delete_fields,
                )
                for collection_name in PROJECT_DEPENDENT_COLLECTIONS
            }
            # Re-raises the first failure after every submitted batch settles.
            dependent_counts = {
                collection_name: future.result()
                for collection_name, future in futures.items()
            }

        counts.update(dependent_counts)
        total_deleted = sum(dependent_counts.values())
        logger.info(
            "Successfully soft-deleted %d total documents for project %s",
            total_deleted,
            project_id,
        )
        return CascadeResult(
            project_id=project_id, deleted_count=total_deleted, counts=counts
        )

    def _soft_delete_collection(
        self, collection_name: str, project_id: str, fields: Dict[str, Any]
    ) -> int:
        count = self._update_matching(collection_name, project_id, fields)
        if count:
            logger.info("Soft-deleted %d documents from %s", count, collection_name)
        return count

    def _update_matching(
        self, collection_name: str, project_id: str, fields: Dict[str, Any]
    ) -> int:
        """
        Applies `fields` to every document of `collection_name` whose
        projectId equals `project_id`, as one batch commit.

        Nothing is committed when no document matches.
        """
        snapshots = (
            self.db.collection(collection_name)
            .where(filter=FieldFilter(PROJECT_ID_FIELD, "==", project_id))
            .get()
        )
        if not snapshots:
            return 0

        if len(snapshots) > self.settings.max_batch_writes:
            # Not paged: Firestore rejects the commit and the trigger fails.
            logger.warning(
                "%s has %d documents for project %s, above the %d writes a "
                "single batch accepts",
                collection_name,
                len(snapshots),
                project_id,
                self.settings.max_batch_writes,
            )

        batch = self.db.batch()
        for snapshot in snapshots:
            batch.update(snapshot.reference, fields)
        batch.commit()
        return len(snapshots)
