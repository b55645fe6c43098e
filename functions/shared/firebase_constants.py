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

PROJECTS_COLLECTION = "projects"
NOTIFICATIONS_COLLECTION = "notifications"
WORKER_ASSIGNMENTS_COLLECTION = "worker_assignments"
WORKER_ACCOUNTS_COLLECTION = "worker_accounts"
ENGINEER_ACCOUNTS_COLLECTION = "engineer_accounts"

# Records owned by a project that carry the {deleted, deletedAt, deletedBy} flags.
PROJECT_DEPENDENT_COLLECTIONS = [
    "materials",
    "equipment",
    "workers",
    "budget_logs",
    "task_photos",
    "usage_submissions",
]

# Probed in order when resolving the recipient of a notification.
RECIPIENT_ACCOUNT_COLLECTIONS = [
    ENGINEER_ACCOUNTS_COLLECTION,
    WORKER_ACCOUNTS_COLLECTION,
]

PROJECT_ID_FIELD = "projectId"
DELETED_FIELD = "deleted"

# Firestore rejects commits with more writes than this.
FIRESTORE_MAX_BATCH_WRITES = 500

MAX_NOTIFICATION_TITLE_LENGTH = 200
MAX_NOTIFICATION_BODY_LENGTH = 2000
