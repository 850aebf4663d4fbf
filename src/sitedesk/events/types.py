"""Event type constants for sitedesk."""

from enum import StrEnum


class EventType(StrEnum):
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"

    SHORTAGE_REPORTED = "shortage.reported"

    ACTIVITY_LOGGED = "activity.logged"

    STATE_LOADED = "state.loaded"
    STATE_RESET = "state.reset"

    ADVISORY_UPDATED = "advisory.updated"
