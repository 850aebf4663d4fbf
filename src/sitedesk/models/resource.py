"""Resource board unit model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

PROCUREMENT_UNIT_ID = "pu"


class ResourceStatus(StrEnum):
    READY = "Ready"
    WAIT = "Wait"
    LOW = "Low"
    IN_PROGRESS = "In-progress"
    DELAYED = "Delayed"
    AVAILABLE = "Available"
    BUSY = "Busy"
    URGENT = "URGENT"


class ResourceUnit(BaseModel):
    """A logistics category shown on the resource board."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    status: ResourceStatus
    message: str

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "status": self.status.value,
            "message": self.message,
        }
