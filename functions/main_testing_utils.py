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

"""
Test doubles for Firestore and FCM.

InMemoryFirestore implements the subset of the google-cloud-firestore client
used by the functions: equality `where(filter=FieldFilter(...))` queries,
`limit`, point reads, `add`, and write batches. Batches enforce Firestore's
limit on writes per commit.
"""

import copy
import threading
import uuid
from typing import Any, Dict, List, Optional

from google.api_core import exceptions

from shared.firebase_constants import FIRESTORE_MAX_BATCH_WRITES


class InMemoryDocumentSnapshot:
    def __init__(self, reference: "InMemoryDocumentReference", data: Optional[dict]):
        self.reference = reference
        self._data = data

    @property
    def id(self) -> str:
        return self.reference.id

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.copy(self._data) if self._data is not None else None

    def get(self, field_path: str) -> Any:
        return (self._data or {}).get(field_path)


class InMemoryDocumentReference:
    def __init__(self, db: "InMemoryFirestore", collection_name: str, doc_id: str):
        self._db = db
        self.collection_name = collection_name
        self.id = doc_id

    def get(self) -> InMemoryDocumentSnapshot:
        self._db.check_failure(self.collection_name)
        return InMemoryDocumentSnapshot(
            self, self._db.read(self.collection_name, self.id)
        )

    def set(self, data: dict) -> None:
        self._db.check_failure(self.collection_name)
        self._db.write(self.collection_name, self.id, dict(data))


class InMemoryQuery:
    def __init__(
        self,
        db: "InMemoryFirestore",
        collection_name: str,
        filters: Optional[List[Any]] = None,
        limit_count: Optional[int] = None,
    ):
        self._db = db
        self.collection_name = collection_name
        self._filters = filters or []
        self._limit = limit_count

    def where(self, *, filter) -> "InMemoryQuery":
        if filter.op_string != "==":
            raise NotImplementedError(f"Unsupported operator: {filter.op_string}")
        return InMemoryQuery(
            self._db, self.collection_name, self._filters + [filter], self._limit
        )

    def limit(self, count: int) -> "InMemoryQuery":
        return InMemoryQuery(self._db, self.collection_name, self._filters, count)

    def get(self) -> List[InMemoryDocumentSnapshot]:
        self._db.check_failure(self.collection_name)
        self._db.record_query(self.collection_name)
        snapshots = []
        for doc_id, data in self._db.items(self.collection_name):
            if all(
                f.field_path in data and data[f.field_path] == f.value
                for f in self._filters
            ):
                reference = InMemoryDocumentReference(
                    self._db, self.collection_name, doc_id
                )
                snapshots.append(InMemoryDocumentSnapshot(reference, data))
        if self._limit is not None:
            snapshots = snapshots[: self._limit]
        return snapshots

    def stream(self):
        return iter(self.get())


class InMemoryCollectionReference(InMemoryQuery):
    def document(self, doc_id: Optional[str] = None) -> InMemoryDocumentReference:
        return InMemoryDocumentReference(
            self._db, self.collection_name, doc_id or uuid.uuid4().hex
        )

    def add(self, data: dict):
        reference = self.document()
        reference.set(data)
        return None, reference


class InMemoryWriteBatch:
    def __init__(self, db: "InMemoryFirestore"):
        self._db = db
        self._writes = []

    def update(self, reference: InMemoryDocumentReference, data: dict) -> None:
        self._writes.append(("update", reference, dict(data)))

    def delete(self, reference: InMemoryDocumentReference) -> None:
        self._writes.append(("delete", reference, None))

    def commit(self) -> None:
        self._db.commit(self._writes)


class InMemoryFirestore:
    """In-memory stand-in for `firestore.client()`."""

    def __init__(self, max_batch_writes: int = FIRESTORE_MAX_BATCH_WRITES):
        self.max_batch_writes = max_batch_writes
        self.collections: Dict[str, Dict[str, dict]] = {}
        # Number of writes in each successful commit, in commit order.
        self.commits: List[int] = []
        self.queries: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self._lock = threading.Lock()

    def collection(self, name: str) -> InMemoryCollectionReference:
        return InMemoryCollectionReference(self, name)

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def seed(self, collection_name: str, doc_id: str, data: dict) -> None:
        self.write(collection_name, doc_id, dict(data))

    def read(self, collection_name: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            data = self.collections.get(collection_name, {}).get(doc_id)
            return copy.copy(data) if data is not None else None

    def write(self, collection_name: str, doc_id: str, data: dict) -> None:
        with self._lock:
            self.collections.setdefault(collection_name, {})[doc_id] = data

    def items(self, collection_name: str):
        with self._lock:
            return sorted(
                (doc_id, copy.copy(data))
                for doc_id, data in self.collections.get(collection_name, {}).items()
            )

    def record_query(self, collection_name: str) -> None:
        with self._lock:
            self.queries.append(collection_name)

    def check_failure(self, collection_name: str) -> None:
        failure = self.failures.get(collection_name)
        if failure is not None:
            raise failure

    def commit(self, writes) -> None:
        if len(writes) > self.max_batch_writes:
            raise exceptions.InvalidArgument(
                f"maximum {self.max_batch_writes} writes allowed per request"
            )
        with self._lock:
            for op, reference, data in writes:
                documents = self.collections.get(reference.collection_name, {})
                if reference.id not in documents:
                    raise exceptions.NotFound(
                        f"No document to {op}: "
                        f"{reference.collection_name}/{reference.id}"
                    )
            for op, reference, data in writes:
                documents = self.collections[reference.collection_name]
                if op == "update":
                    documents[reference.id].update(data)
                else:
                    del documents[reference.id]
            self.commits.append(len(writes))


class InMemoryMessaging:
    """Records FCM messages instead of sending them."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent = []

    def send(self, message, dry_run: bool = False, app=None) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return f"projects/sitepulse-test/messages/{len(self.sent)}"


def create_mock_project(db: InMemoryFirestore, project_id: str = "P1") -> dict:
    """
    Seeds the deletion scenario used across tests: project P1 owned by engineer
    E1 with 3 materials, 2 task photos, a pending assignment and an assigned
    worker account. Returns the project's field values.
    """
    project_data = {"name": "Riverside Clinic", "engineerId": "E1"}
    db.seed("projects", project_id, project_data)
    for i in range(3):
        db.seed(
            "materials",
            f"mat{i}",
            {"projectId": project_id, "name": f"Rebar {i}", "deleted": False},
        )
    for i in range(2):
        db.seed(
            "task_photos",
            f"photo{i}",
            {"projectId": project_id, "taskId": "T1", "deleted": False},
        )
    db.seed(
        "worker_assignments",
        "assign1",
        {"projectId": project_id, "workerId": "W1", "status": "pending"},
    )
    db.seed(
        "worker_accounts",
        "W1",
        {"projectId": project_id, "name": "Ana Reyes", "fcmToken": "worker-token"},
    )
    # Belongs to another project and must be left alone.
    db.seed("materials", "other", {"projectId": "P2", "deleted": False})
    return project_data


def create_mock_notification_data(**overrides) -> dict:
    data = {
        "userId": "E1",
        "title": "Task approved",
        "body": "Pouring of slab B was approved.",
        "type": "task_approval",
        "read": False,
        "projectId": "P1",
        "relatedId": "T1",
        "status": "info",
    }
    data.update(overrides)
    return data
