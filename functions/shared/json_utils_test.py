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

from shared.json_utils import convert_keys


class ConvertKeysTest(unittest.TestCase):

    def test_camel_to_snake_nested(self):
        data = {"userId": "E1", "meta": {"relatedId": "T1"}, "items": [{"fcmToken": "x"}]}

        self.assertEqual(
            convert_keys(data, "camel_to_snake"),
            {"user_id": "E1", "meta": {"related_id": "T1"}, "items": [{"fcm_token": "x"}]},
        )

    def test_snake_to_camel(self):
        self.assertEqual(
            convert_keys({"notification_id": "N1", "read": False}, "snake_to_camel"),
            {"notificationId": "N1", "read": False},
        )

    def test_unknown_direction(self):
        with self.assertRaises(ValueError):
            convert_keys({}, "sideways")


if __name__ == "__main__":
    unittest.main()
