"""Advisory service: Gemini-written briefings and daily summaries.

Both operations read a snapshot of the session and return display text. They
never raise: an empty answer or any failure on the way to Gemini becomes a
fixed fallback string. A second call to an operation that is still running
waits for the running call instead of issuing another request.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from google import genai
from google.genai import types

from sitedesk.config import Config
from sitedesk.events.bus import Event, EventBus
from sitedesk.events.types import EventType
from sitedesk.models.activity import ActivityEntry
from sitedesk.models.project import Project

logger = logging.getLogger(__name__)

BRIEFING_PLACEHOLDER = "Analyzing site status..."
BRIEFING_EMPTY = "Briefing feed is unstable right now."
BRIEFING_FAILED = "Advisory link is down. Keep an eye on the dashboard manually."
SUMMARY_EMPTY = "Not enough activity to write a summary yet."
SUMMARY_FAILED = "Unable to generate the summary."

BRIEFING_PROMPT = """\
You are the strategy-room advisor of a small electrical contracting company.
Based on the current project status and recent activity below, give a short
commander's briefing.

Projects: {projects}
Recent activity: {logs}

Give 3 action-oriented recommendations. Keep the tone professional, precise
and focused on engineering efficiency."""

SUMMARY_PROMPT = """\
You are the senior accountant and office manager of a small electrical
contracting company. From today's site activity log:
{logs}

write the owner a "today's site results" summary covering:
1. Which projects made progress?
2. Any urgent material or labour shortages?
3. What to watch tomorrow.

Keep it under 200 words, professional and concise."""


def _snapshot_json(items: Sequence[Project] | Sequence[ActivityEntry]) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items], ensure_ascii=False)


class AdvisoryService:
    """Gemini-backed briefing and summary generator.

    Args:
        config: Model name, token limits and log window
        client: Pre-built ``genai.Client``; created from ``GEMINI_API_KEY``
            on first use when omitted
        event_bus: Optional bus notified whenever new text is produced. A
            STATE_RESET on it drops the last summary
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        client: Any | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._config = config or Config()
        self._client = client
        self._event_bus = event_bus
        self._inflight: dict[str, asyncio.Task[str]] = {}

        self.briefing_text: str = BRIEFING_PLACEHOLDER
        self.summary_text: str | None = None
        if event_bus is not None:
            event_bus.on(EventType.STATE_RESET, self._on_reset)

    @property
    def briefing_loading(self) -> bool:
        return "briefing" in self._inflight

    @property
    def summary_loading(self) -> bool:
        return "summary" in self._inflight

    async def briefing(self, projects: Sequence[Project], logs: Sequence[ActivityEntry]) -> str:
        """Recommendations for the current project state."""
        prompt = BRIEFING_PROMPT.format(
            projects=_snapshot_json(projects),
            logs=_snapshot_json(list(logs)[: self._config.briefing_log_window]),
        )

        async def run() -> str:
            text = await self._generate(
                prompt,
                max_tokens=self._config.briefing_max_tokens,
                empty=BRIEFING_EMPTY,
                failed=BRIEFING_FAILED,
            )
            self.briefing_text = text
            return text

        return await self._coalesce("briefing", run)

    async def summary(self, logs: Sequence[ActivityEntry]) -> str:
        """End-of-day narrative built from the activity log alone."""
        prompt = SUMMARY_PROMPT.format(logs=_snapshot_json(list(logs)))

        async def run() -> str:
            text = await self._generate(
                prompt,
                max_tokens=self._config.summary_max_tokens,
                empty=SUMMARY_EMPTY,
                failed=SUMMARY_FAILED,
            )
            self.summary_text = text
            return text

        return await self._coalesce("summary", run)

    def clear_summary(self) -> None:
        self.summary_text = None

    async def aclose(self) -> None:
        """Stop listening for resets and cancel requests still in flight."""
        if self._event_bus is not None:
            self._event_bus.off(EventType.STATE_RESET, self._on_reset)
        tasks = list(self._inflight.values())
        self._inflight.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _on_reset(self, event: Event) -> None:
        self.clear_summary()

    async def _coalesce(self, kind: str, run: Callable[[], Awaitable[str]]) -> str:
        task = self._inflight.get(kind)
        if task is not None:
            logger.debug("%s already in flight, waiting on it", kind)
            return await asyncio.shield(task)

        async def tracked() -> str:
            try:
                return await run()
            finally:
                self._inflight.pop(kind, None)

        task = asyncio.ensure_future(tracked())
        self._inflight[kind] = task
        text = await asyncio.shield(task)
        if self._event_bus is not None:
            await self._event_bus.emit(EventType.ADVISORY_UPDATED, {"kind": kind})
        return text

    async def _generate(self, prompt: str, *, max_tokens: int, empty: str, failed: str) -> str:
        try:
            client = self._get_client()
            response = await client.aio.models.generate_content(
                model=self._config.advisory_model,
                contents=prompt,
                config=types.GenerateContentConfig(max_output_tokens=max_tokens),
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Gemini request failed: %s", e)
            return failed

        text = getattr(response, "text", None)
        if not text or not text.strip():
            logger.warning("Gemini returned an empty response")
            return empty
        return text.strip()

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self._config.api_key)
        return self._client
