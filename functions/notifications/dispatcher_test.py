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

import unittest
from unittest.mock import MagicMock

from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions

from main_testing_utils import (
    InMemoryFirestore,
    InMemoryMessaging,
    create_mock_notification_data,
)
from notifications.dispatcher import NotificationDispatcher, build_push_message
from shared.config import Settings
from shared.types import Notification


class NotificationDispatcherTest(unittest.TestCase):

    def setUp(self):
        self.db = InMemoryFirestore()
        self.messaging = InMemoryMessaging()
        self.dispatcher = NotificationDispatcher(
            self.db, self.messaging, settings=Settings()
        )

    def test_sends_push_to_engineer(self):
        self.db.seed("engineer_accounts", "E1", {"fcmToken": "engineer-token"})

        message_id = self.dispatcher.run("N1", create_mock_notification_data())

        self.assertEqual(message_id, "projects/sitepulse-test/messages/1")
        self.assertEqual(len(self.messaging.sent), 1)
        message = self.messaging.sent[0]
        self.assertEqual(message.token, "engineer-token")
        self.assertEqual(message.notification.title, "Task approved")
        self.assertEqual(message.notification.body, "Pouring of slab B was approved.")
        self.assertEqual(
            message.data,
            {
                "type": "task_approval",
                "notificationId": "N1",
                "projectId": "P1",
                "relatedId": "T1",
            },
        )

    def test_falls_back_to_worker_account(self):
        self.db.seed("worker_accounts", "W1", {"fcmToken": "worker-token"})

        self.dispatcher.run("N2", create_mock_notification_data(userId="W1"))

        self.assertEqual(len(self.messaging.sent), 1)
        self.assertEqual(self.messaging.sent[0].token, "worker-token")

    def test_engineer_account_takes_precedence(self):
        self.db.seed("engineer_accounts", "U1", {"fcmToken": "engineer-token"})
        self.db.seed("worker_accounts", "U1", {"fcmToken": "worker-token"})

        self.dispatcher.run("N3", create_mock_notification_data(userId="U1"))

        self.assertEqual(self.messaging.sent[0].token, "engineer-token")

    def test_unknown_user_is_skipped(self):
        with self.assertLogs("notifications.dispatcher", level="INFO") as logs:
            result = self.dispatcher.run(
                "N4", create_mock_notification_data(userId="ghost")
            )

        self.assertIsNone(result)
        self.assertEqual(self.messaging.sent, [])
        self.assertIn("User ghost not found", logs.output[0])

    def test_account_without_token_is_skipped(self):
        self.db.seed("worker_accounts", "W2", {"name": "No Device"})

        result = self.dispatcher.run("N5", create_mock_notification_data(userId="W2"))

        self.assertIsNone(result)
        self.assertEqual(self.messaging.sent, [])

    def test_optional_data_fields_default_to_empty_strings(self):
        self.db.seed("engineer_accounts", "E1", {"fcmToken": "engineer-token"})
        data = create_mock_notification_data()
        del data["projectId"]
        del data["relatedId"]

        self.dispatcher.run("N6", data)

        payload = self.messaging.sent[0].data
        self.assertEqual(payload["projectId"], "")
        self.assertEqual(payload["relatedId"], "")
        self.assertTrue(all(isinstance(v, str) for v in payload.values()))

    def test_null_optional_fields_default_to_empty_strings(self):
        self.db.seed("engineer_accounts", "E1", {"fcmToken": "engineer-token"})

        self.dispatcher.run(
            "N7", create_mock_notification_data(projectId=None, relatedId=None)
        )

        payload = self.messaging.sent[0].data
        self.assertEqual(payload["projectId"], "")
        self.assertEqual(payload["relatedId"], "")

    def test_transport_error_is_swallowed(self):
        self.db.seed("engineer_accounts", "E1", {"fcmToken": "stale-token"})
        messaging = InMemoryMessaging(
            error=firebase_exceptions.NotFoundError("Requested entity was not found.")
        )
        dispatcher = NotificationDispatcher(self.db, messaging, settings=Settings())

        with self.assertLogs("notifications.dispatcher", level="ERROR") as logs:
            result = dispatcher.run("N8", create_mock_notification_data())

        self.assertIsNone(result)
        self.assertIn("Error sending push notification to E1", logs.output[0])

    def test_engineer_lookup_error_falls_back_to_worker(self):
        self.db.seed("worker_accounts", "W1", {"fcmToken": "worker-token"})
        self.db.failures["engineer_accounts"] = exceptions.ServiceUnavailable("down")

        with self.assertLogs("notifications.dispatcher", level="WARNING") as logs:
            result = self.dispatcher.run(
                "N9", create_mock_notification_data(userId="W1")
            )

        self.assertEqual(result, "projects/sitepulse-test/messages/1")
        self.assertEqual(len(self.messaging.sent), 1)
        self.assertEqual(self.messaging.sent[0].token, "worker-token")
        self.assertIn("Lookup of user W1 in engineer_accounts failed", logs.output[0])

    def test_engineer_lookup_error_then_worker_miss_sends_nothing(self):
        self.db.failures["engineer_accounts"] = exceptions.ServiceUnavailable("down")

        result = self.dispatcher.run("N9", create_mock_notification_data(userId="W9"))

        self.assertIsNone(result)
        self.assertEqual(self.messaging.sent, [])

    def test_lookup_error_in_every_collection_is_swallowed(self):
        self.db.seed("worker_accounts", "W1", {"fcmToken": "worker-token"})
        self.db.failures["engineer_accounts"] = exceptions.ServiceUnavailable("down")
        self.db.failures["worker_accounts"] = exceptions.DeadlineExceeded("slow")

        with self.assertLogs("notifications.dispatcher", level="WARNING") as logs:
            result = self.dispatcher.run(
                "N9", create_mock_notification_data(userId="W1")
            )

        self.assertIsNone(result)
        self.assertEqual(self.messaging.sent, [])
        self.assertTrue(
            any("Error sending push notification to W1" in m for m in logs.output),
            logs.output,
        )

    def test_missing_user_id_is_swallowed(self):
        data = create_mock_notification_data()
        del data["userId"]

        result = self.dispatcher.run("N10", data)

        self.assertIsNone(result)

    def test_custom_token_field(self):
        self.db.seed("engineer_accounts", "E1", {"pushToken": "custom-token"})
        dispatcher = NotificationDispatcher(
            self.db, self.messaging, settings=Settings(push_token_field="pushToken")
        )

        dispatcher.run("N11", create_mock_notification_data())

        self.assertEqual(self.messaging.sent[0].token, "custom-token")

    def test_messaging_client_receives_built_message(self):
        self.db.seed("engineer_accounts", "E1", {"fcmToken": "engineer-token"})
        messaging = MagicMock()
        messaging.send.return_value = "projects/p/messages/42"
        dispatcher = NotificationDispatcher(self.db, messaging, settings=Settings())

        result = dispatcher.run("N12", create_mock_notification_data())

        self.assertEqual(result, "projects/p/messages/42")
        messaging.send.assert_called_once()
        self.assertEqual(messaging.send.call_args.args[0].token, "engineer-token")


class BuildPushMessageTest(unittest.TestCase):

    def test_type_defaults_to_empty_string(self):
        message = build_push_message(
            "N1", Notification(user_id="E1", title="t", body="b"), "token"
        )

        self.assertEqual(message.data["type"], "")
        self.assertEqual(message.data["notificationId"], "N1")


if __name__ == "__main__":
    unittest.main()
