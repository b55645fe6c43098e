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

# Cloud functions for SitePulse - project deletion cascade + push notifications.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
from dataclasses import asdict, dataclass
from typing import Optional

# Third-party library imports
from firebase_admin import initialize_app, firestore, messaging
from firebase_functions import https_fn, logger, options
from firebase_functions.firestore_fn import (
    on_document_created,
    on_document_deleted,
    Event,
    DocumentSnapshot,
)
from google.api_core import exceptions

# Local application imports
from cascade.soft_delete import SoftDeleteCascade
from notifications.dispatcher import NotificationDispatcher
from notifications.sender import send_notification
from shared.firebase_constants import (
    MAX_NOTIFICATION_BODY_LENGTH,
    MAX_NOTIFICATION_TITLE_LENGTH,
    NOTIFICATIONS_COLLECTION,
    PROJECTS_COLLECTION,
)
from shared.json_utils import convert_keys
from shared.types import NotificationType

CASCADE_FUNCTION_TIMEOUT = 540

initialize_app()


@dataclass
class SendNotificationResult:
    notification_id: str


@on_document_deleted(
    timeout_sec=CASCADE_FUNCTION_TIMEOUT,
    memory=options.MemoryOption.MB_512,
    document=PROJECTS_COLLECTION + "/{projectId}",
)
def on_project_deleted(event: Event[Optional[DocumentSnapshot]]) -> None:
    """
    Soft-deletes everything that belongs to a deleted project.
    Triggered once per deleted project document.

    Errors are re-raised so the platform can retry; the cascade only sets
    fields, so a retry is safe.
    """
    project_id = event.params["projectId"]
    project_data = event.data.to_dict() if event.data else {}

    cascade = SoftDeleteCascade(db=firestore.client())
    try:
        result = cascade.run(project_id, project_data)
    except Exception as e:
        logger.error(f"Error in cascade delete for project {project_id}: {e}")
        raise

    logger.info(
        f"Cascade for project {project_id} complete: {result.deleted_count} "
        f"documents soft-deleted",
        counts=result.counts,
    )


@on_document_created(document=NOTIFICATIONS_COLLECTION + "/{notificationId}")
def on_notification_created(event: Event[Optional[DocumentSnapshot]]) -> None:
    """
    Sends an FCM push for a newly created in-app notification.
    Never raises: a failed push is logged and dropped.
    """
    notification_id = event.params["notificationId"]
    if not event.data:
        return

    dispatcher = NotificationDispatcher(db=firestore.client(), messaging_client=messaging)
    message_id = dispatcher.run(notification_id, event.data.to_dict())
    if message_id is None:
        logger.info(f"No push sent for notification {notification_id}")


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def send_project_notification(req: https_fn.CallableRequest) -> dict:
    """
    Creates an in-app notification for a user.

    Args:
        req (https_fn.CallableRequest): The request, containing userId, title,
            body, type and optionally projectId, relatedId, assignmentId, status.

    Returns:
        A dictionary representation of the SendNotificationResult object.
    """
    user_id = req.data.get("userId")
    title = req.data.get("title")
    body = req.data.get("body")
    notification_type = req.data.get("type")

    if not user_id or not title or not body or not notification_type:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Must specify 'userId', 'title', 'body' and 'type' parameters.",
        )

    if notification_type not in set(NotificationType):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            f"Unknown notification type: {notification_type}",
        )

    if len(title) > MAX_NOTIFICATION_TITLE_LENGTH:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Title exceeds max length.",
        )
    if len(body) > MAX_NOTIFICATION_BODY_LENGTH:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Body exceeds max length.",
        )

    try:
        notification_id = send_notification(
            firestore.client(),
            user_id=user_id,
            title=title,
            body=body,
            notification_type=notification_type,
            related_id=req.data.get("relatedId"),
            project_id=req.data.get("projectId"),
            assignment_id=req.data.get("assignmentId"),
            status=req.data.get("status"),
        )
    except exceptions.GoogleAPICallError as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INTERNAL,
            f"Failed to send notification: {e}",
        )

    result = SendNotificationResult(notification_id=notification_id)
    return convert_keys(asdict(result), "snake_to_camel")
