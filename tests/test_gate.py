"""Tests for the confirmation gate."""

import pytest

from sitedesk.core.gate import ConfirmationGate
from sitedesk.models.commands import AdvanceProgress, ReportShortage, SetPhase
from sitedesk.models.project import Health, Phase


@pytest.fixture
def gate(session):
    return ConfirmationGate(session)


async def test_issue_records_intent_only(gate, session):
    before = session.snapshot()
    gate.issue(AdvanceProgress(project_id="1"))

    assert gate.pending == AdvanceProgress(project_id="1")
    after = session.snapshot()
    assert after.projects == before.projects
    assert len(after.logs) == len(before.logs)


async def test_confirm_commits_and_clears(gate, session, owner):
    gate.issue(AdvanceProgress(project_id="1"))
    project = await gate.confirm(owner)

    assert project is not None
    assert project.progress == 65
    assert gate.pending is None
    assert session.snapshot().logs[0].user_name == owner.name


async def test_confirm_without_intent_is_noop(gate, session, owner):
    before = session.snapshot()
    assert await gate.confirm(owner) is None
    after = session.snapshot()
    assert after.projects == before.projects
    assert len(after.logs) == len(before.logs)


async def test_cancel_discards_without_logging(gate, session, owner):
    before = session.snapshot()
    gate.issue(ReportShortage(project_id="1"))
    discarded = gate.cancel()

    assert discarded == ReportShortage(project_id="1")
    assert gate.pending is None
    assert await gate.confirm(owner) is None
    after = session.snapshot()
    assert after.projects == before.projects
    assert len(after.logs) == len(before.logs)
    assert session.get_project("1").health == Health.NORMAL


async def test_cancel_with_nothing_pending(gate):
    assert gate.cancel() is None


async def test_last_issue_wins(gate, owner):
    gate.issue(ReportShortage(project_id="1"))
    gate.issue(SetPhase(project_id="2", target_phase=Phase.COMPLETED))

    project = await gate.confirm(owner)
    assert project.id == "2"
    assert project.progress == 100


async def test_confirm_unknown_project(gate, session, owner):
    before = len(session.snapshot().logs)
    gate.issue(AdvanceProgress(project_id="missing"))

    assert await gate.confirm(owner) is None
    assert gate.pending is None
    assert len(session.snapshot().logs) == before
