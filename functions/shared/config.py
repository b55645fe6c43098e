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
Environment-backed settings for the Cloud Functions.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.firebase_constants import FIRESTORE_MAX_BATCH_WRITES


class Settings(BaseSettings):
    """Settings read from SITEPULSE_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="SITEPULSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Matched sets larger than this are reported before a cascade commit.
    max_batch_writes: int = Field(default=FIRESTORE_MAX_BATCH_WRITES, gt=0)

    # Page size for hard deletes.
    delete_batch_size: int = Field(default=FIRESTORE_MAX_BATCH_WRITES, gt=0)

    # Account field holding the device's FCM registration token.
    push_token_field: str = Field(default="fcmToken")

    cascade_max_workers: int = Field(default=6, gt=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
