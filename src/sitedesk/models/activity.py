"""Activity log entry model."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

SYSTEM_PROJECT_ID = "sys"
SYSTEM_PROJECT_NAME = "System"


class ActivityEntry(BaseModel):
    """One immutable line of the activity log."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    project_id: str
    project_name: str
    user_name: str
    action: str
    urgent: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_storage(self) -> dict:
        return self.model_dump(mode="json")

    def to_response(self) -> dict:
        return {
            "_v": "1.0",
            "id": self.id,
            "project": self.project_name,
            "user": self.user_name,
            "action": self.action,
            "urgent": self.urgent,
            "timestamp": self.timestamp.isoformat(),
        }
