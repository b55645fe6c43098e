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

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, Optional


class AssignmentStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    REMOVED = "removed"


class NotificationType(StrEnum):
    TASK_APPROVAL = "task_approval"
    TASK_REJECTION = "task_rejection"
    PROJECT_ASSIGNMENT = "project_assignment"
    USAGE_APPROVED = "usage_approved"
    USAGE_REJECTED = "usage_rejected"
    SYSTEM = "system"
    MESSAGE = "message"


class NotificationStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    INFO = "info"


@dataclass
class Notification:
    """In-app notification document as stored in the `notifications` collection."""

    user_id: str
    title: Optional[str] = None
    body: Optional[str] = None
    type: Optional[str] = None
    project_id: Optional[str] = None
    related_id: Optional[str] = None
    assignment_id: Optional[str] = None
    status: Optional[str] = None
    read: bool = False


@dataclass
class CascadeResult:
    """Outcome of a project soft-delete cascade."""

    project_id: str
    # Sum over the project-dependent collections only.
    deleted_count: int
    # Affected document count per touched collection.
    counts: Dict[str, int] = field(default_factory=dict)
