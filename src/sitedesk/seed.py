"""Built-in seed data: used on first run, after a reset, or when stored data is unreadable."""

from __future__ import annotations

from sitedesk.models.project import Phase, Project
from sitedesk.models.resource import ResourceStatus, ResourceUnit
from sitedesk.models.user import User

ADMIN_USER_NAME = "Admin console"


def seed_projects() -> list[Project]:
    return [
        Project(
            id="1",
            name="Southern Science Park fab control panel install",
            progress=55,
            current_phase=Phase.INSTALLATION,
            next_step="Wire zone A3",
            support_needed=["Need a wiring technician", "One power meter"],
            responsible_team=["Foreman A", "Manager"],
        ),
        Project(
            id="2",
            name="Aerotropolis street lighting distribution",
            progress=25,
            current_phase=Phase.MATERIAL_PREP,
            next_step="Confirm cable specification",
            support_needed=["Need crane support"],
            responsible_team=["Technician B", "Owner"],
        ),
        Project(
            id="3",
            name="Tower 101 server room scheduled maintenance",
            progress=80,
            current_phase=Phase.ACCEPTANCE_TESTING,
            next_step="Issue test report",
            support_needed=[],
            responsible_team=["Foreman A", "Technician B"],
        ),
    ]


def seed_resources() -> list[ResourceUnit]:
    return [
        ResourceUnit(
            id="wh",
            category="Warehouse",
            status=ResourceStatus.READY,
            message="Main consumables in stock",
        ),
        ResourceUnit(
            id="pu",
            category="Purchasing",
            status=ResourceStatus.IN_PROGRESS,
            message="XLPE cable in delivery",
        ),
        ResourceUnit(
            id="eq",
            category="Equipment",
            status=ResourceStatus.AVAILABLE,
            message="Truck 3 available",
        ),
        ResourceUnit(
            id="ad",
            category="Admin",
            status=ResourceStatus.READY,
            message="Quotation sent",
        ),
    ]


USERS: tuple[User, ...] = (
    User(id="u1", name="Owner", role="Owner"),
    User(id="u2", name="Manager", role="Manager"),
    User(id="u3", name="Foreman A", role="Chief Engineer"),
    User(id="u4", name="Technician B", role="Technician"),
    User(id="u5", name="Accountant", role="Accountant"),
)
