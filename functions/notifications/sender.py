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
from typing import Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from shared.firebase_constants import NOTIFICATIONS_COLLECTION
from shared.types import NotificationStatus

logger = logging.getLogger(__name__)


def send_notification(
    db,
    user_id: str,
    title: str,
    body: str,
    notification_type: str,
    related_id: Optional[str] = None,
    project_id: Optional[str] = None,
    assignment_id: Optional[str] = None,
    status: Optional[str] = None,
) -> str:
    """
    Writes a new unread notification for `user_id` and returns its id.

    Creating the document fires the push dispatch trigger; this function
    does not send anything itself.
    """
    notification_data = {
        "userId": user_id,
        "title": title,
        "body": body,
        "type": notification_type,
        "read": False,
        "timestamp": SERVER_TIMESTAMP,
        "relatedId": related_id or None,
        "projectId": project_id or None,
        "assignmentId": assignment_id or None,
        "status": status or NotificationStatus.INFO.value,
    }
    _, doc_ref = db.collection(NOTIFICATIONS_COLLECTION).add(notification_data)
    logger.info("Notification %s created for user %s", doc_ref.id, user_id)
    return doc_ref.id
