"""sitedesk data models."""

from sitedesk.models.activity import ActivityEntry
from sitedesk.models.commands import AdvanceProgress, PendingUpdate, ReportShortage, SetPhase
from sitedesk.models.project import PHASES, Health, Phase, Project, ProjectStatus
from sitedesk.models.resource import ResourceStatus, ResourceUnit
from sitedesk.models.user import User

__all__ = [
    "PHASES",
    "ActivityEntry",
    "AdvanceProgress",
    "Health",
    "PendingUpdate",
    "Phase",
    "Project",
    "ProjectStatus",
    "ReportShortage",
    "ResourceStatus",
    "ResourceUnit",
    "SetPhase",
    "User",
]
