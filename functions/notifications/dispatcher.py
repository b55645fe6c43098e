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
from typing import Any, Dict, List, Optional

from dacite import Config, from_dict
from firebase_admin import messaging
from google.api_core import exceptions

from shared.config import Settings, get_settings
from shared.firebase_constants import RECIPIENT_ACCOUNT_COLLECTIONS
from shared.json_utils import convert_keys
from shared.types import Notification

logger = logging.getLogger(__name__)


def build_push_message(
    notification_id: str, notification: Notification, token: str
) -> messaging.Message:
    """
    Builds the FCM message for an in-app notification.

    FCM data payloads only accept string values, so optional fields are sent
    as empty strings.
    """
    return messaging.Message(
        notification=messaging.Notification(
            title=notification.title,
            body=notification.body,
        ),
        data={
            "type": notification.type or "",
            "notificationId": notification_id or "",
            "projectId": notification.project_id or "",
            "relatedId": notification.related_id or "",
        },
        token=token,
    )


class NotificationDispatcher:
    """
    Sends a push notification for each newly created notification document.

    A push that fails is logged and dropped, never raised: a retried trigger
    would deliver duplicate pushes to the user.
    """

    def __init__(
        self,
        db,
        messaging_client,
        settings: Optional[Settings] = None,
        account_collections: Optional[List[str]] = None,
    ):
        self.db = db
        self.messaging_client = messaging_client
        self.settings = settings or get_settings()
        self.account_collections = account_collections or RECIPIENT_ACCOUNT_COLLECTIONS

    def run(
        self, notification_id: str, notification_data: Optional[Dict[str, Any]]
    ) -> Optional[str]:
        """
        Dispatches the push for one notification.

        Returns:
            The FCM message id, or None when nothing was sent.
        """
        user_id = (notification_data or {}).get("userId")
        try:
            notification = from_dict(
                data_class=Notification,
                data=convert_keys(notification_data or {}, "camel_to_snake"),
                config=Config(check_types=False),
            )

            account = self.resolve_recipient(notification.user_id)
            if account is None:
                logger.info(
                    "User %s not found, skipping push notification",
                    notification.user_id,
                )
                return None

            token = account.get(self.settings.push_token_field)
            if not token:
                logger.info(
                    "No FCM token for user %s, skipping push notification",
                    notification.user_id,
                )
                return None

            message = build_push_message(notification_id, notification, token)
            response = self.messaging_client.send(message)
            logger.info(
                "Successfully sent push notification to %s: %s",
                notification.user_id,
                response,
            )
            return response
        except Exception as e:
            logger.error("Error sending push notification to %s: %s", user_id, e)
            return None

    def resolve_recipient(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns the first account document found for `user_id`, probing the
        account collections in order, or None if no collection has one.

        A failed lookup moves on to the next collection. The last error is
        raised only when every collection failed or missed.
        """
        last_error = None
        for collection_name in self.account_collections:
            try:
                snapshot = self.db.collection(collection_name).document(user_id).get()
            except exceptions.GoogleAPICallError as e:
                logger.warning(
                    "Lookup of user %s in %s failed: %s", user_id, collection_name, e
                )
                last_error = e
                continue
            if snapshot.exists:
                logger.debug("Resolved user %s in %s", user_id, collection_name)
                return snapshot.to_dict() or {}
        if last_error is not None:
            raise last_error
        return None
