"""Tests for the Gemini advisory service."""

import asyncio

import pytest

from sitedesk.config import Config
from sitedesk.core.advisory import (
    BRIEFING_EMPTY,
    BRIEFING_FAILED,
    BRIEFING_PLACEHOLDER,
    SUMMARY_EMPTY,
    SUMMARY_FAILED,
    AdvisoryService,
)
from sitedesk.core.session import SessionState
from sitedesk.events.bus import EventBus
from sitedesk.events.types import EventType
from sitedesk.models.activity import ActivityEntry
from sitedesk.seed import seed_projects


def _logs(n: int) -> list[ActivityEntry]:
    return [
        ActivityEntry(
            id=f"log{i}",
            project_id="1",
            project_name="Southern Science Park fab control panel install",
            user_name="Owner",
            action=f"step {i}",
        )
        for i in range(n)
    ]


class TestBriefing:
    async def test_returns_model_text(self, fake_genai):
        client = fake_genai(text="  1. Ship cable to site 2  ")
        service = AdvisoryService(client=client)

        text = await service.briefing(seed_projects(), _logs(2))

        assert text == "1. Ship cable to site 2"
        assert service.briefing_text == text
        assert service.briefing_loading is False

    async def test_prompt_contains_snapshot(self, fake_genai):
        client = fake_genai()
        service = AdvisoryService(Config(briefing_max_tokens=123), client=client)

        await service.briefing(seed_projects(), _logs(8))

        call = client.models.calls[0]
        assert call["model"] == "gemini-3-flash-preview"
        assert call["config"].max_output_tokens == 123
        assert "Aerotropolis street lighting distribution" in call["contents"]
        assert "log4" in call["contents"]
        assert "log5" not in call["contents"]

    async def test_placeholder_before_first_call(self):
        assert AdvisoryService(client=object()).briefing_text == BRIEFING_PLACEHOLDER

    async def test_empty_response(self, fake_genai):
        service = AdvisoryService(client=fake_genai(text=None))
        assert await service.briefing([], []) == BRIEFING_EMPTY

    async def test_transport_error_falls_back(self, fake_genai):
        service = AdvisoryService(client=fake_genai(error=ConnectionError("network down")))

        text = await service.briefing(seed_projects(), [])

        assert text == BRIEFING_FAILED
        assert service.briefing_text == BRIEFING_FAILED
        assert service.briefing_loading is False

    async def test_client_construction_error_falls_back(self, monkeypatch):
        def broken(**kwargs):
            raise ValueError("Missing key inputs argument!")

        monkeypatch.setattr("sitedesk.core.advisory.genai.Client", broken)
        service = AdvisoryService()
        assert await service.briefing([], []) == BRIEFING_FAILED


class TestSummary:
    async def test_returns_model_text(self, fake_genai):
        client = fake_genai(text="All sites on track.")
        service = AdvisoryService(client=client)

        text = await service.summary(_logs(12))

        assert text == "All sites on track."
        assert service.summary_text == text
        assert "log11" in client.models.calls[0]["contents"]
        assert client.models.calls[0]["config"].max_output_tokens == 500

    async def test_empty_response(self, fake_genai):
        service = AdvisoryService(client=fake_genai(text="   "))
        assert await service.summary([]) == SUMMARY_EMPTY

    async def test_upstream_error_falls_back(self, fake_genai):
        service = AdvisoryService(client=fake_genai(error=RuntimeError("quota exceeded")))
        assert await service.summary(_logs(1)) == SUMMARY_FAILED
        assert service.summary_loading is False

    async def test_clear_summary(self, fake_genai):
        service = AdvisoryService(client=fake_genai())
        await service.summary([])
        service.clear_summary()
        assert service.summary_text is None


class TestInFlightGuard:
    async def test_concurrent_briefings_share_one_call(self, fake_genai):
        client = fake_genai(text="shared", delay=0.05)
        service = AdvisoryService(client=client)

        first = asyncio.create_task(service.briefing([], []))
        await asyncio.sleep(0)
        assert service.briefing_loading is True
        second = await service.briefing([], [])

        assert await first == "shared"
        assert second == "shared"
        assert len(client.models.calls) == 1
        assert service.briefing_loading is False

    async def test_briefing_does_not_block_summary(self, fake_genai):
        client = fake_genai(text="text", delay=0.05)
        service = AdvisoryService(client=client)

        results = await asyncio.gather(service.briefing([], []), service.summary([]))

        assert results == ["text", "text"]
        assert len(client.models.calls) == 2

    async def test_sequential_calls_each_hit_the_model(self, fake_genai):
        client = fake_genai()
        service = AdvisoryService(client=client)
        await service.briefing([], [])
        await service.briefing([], [])
        assert len(client.models.calls) == 2

    async def test_loading_cleared_after_concurrent_failure(self, fake_genai):
        client = fake_genai(error=TimeoutError(), delay=0.01)
        service = AdvisoryService(client=client)

        results = await asyncio.gather(service.summary([]), service.summary([]))

        assert results == [SUMMARY_FAILED, SUMMARY_FAILED]
        assert service.summary_loading is False


async def test_emits_advisory_updated(fake_genai):
    bus = EventBus()
    service = AdvisoryService(client=fake_genai(), event_bus=bus)
    await service.summary([])
    event = bus.history()[0]
    assert event.type == EventType.ADVISORY_UPDATED
    assert event.data == {"kind": "summary"}


@pytest.mark.parametrize("kind", ["briefing", "summary"])
async def test_never_raises(fake_genai, kind):
    service = AdvisoryService(client=fake_genai(error=Exception("boom")))
    if kind == "briefing":
        result = await service.briefing([], [])
    else:
        result = await service.summary([])
    assert isinstance(result, str)


async def test_session_reset_drops_summary(fake_genai, store, tmp_path):
    bus = EventBus()
    session = SessionState(store, bus, Config(workspace_path=tmp_path))
    await session.load()
    service = AdvisoryService(client=fake_genai(text="Quiet day."), event_bus=bus)

    await service.summary(session.snapshot().logs)
    assert service.summary_text == "Quiet day."

    await session.reset(confirm=True)
    assert service.summary_text is None


async def test_aclose_cancels_inflight_and_unsubscribes(fake_genai):
    bus = EventBus()
    service = AdvisoryService(client=fake_genai(delay=10), event_bus=bus)
    caller = asyncio.ensure_future(service.briefing([], []))
    await asyncio.sleep(0)
    assert service.briefing_loading is True

    await service.aclose()
    assert service.briefing_loading is False
    with pytest.raises(asyncio.CancelledError):
        await caller

    service.summary_text = "kept"
    await bus.emit(EventType.STATE_RESET)
    assert service.summary_text == "kept"
