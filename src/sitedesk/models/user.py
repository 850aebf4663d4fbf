"""Roster user model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Someone who can sign off on a command. No authentication."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: str
