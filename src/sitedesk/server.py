"""FastMCP server — 4 tools, 4 resources."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any, Literal

from fastmcp import FastMCP
from pydantic import Field

from sitedesk.config import Config
from sitedesk.core.advisory import AdvisoryService
from sitedesk.core.gate import ConfirmationGate
from sitedesk.core.session import SessionState
from sitedesk.events.bus import EventBus
from sitedesk.models.commands import AdvanceProgress, ReportShortage, SetPhase
from sitedesk.models.project import Phase
from sitedesk.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def _json(data: dict[str, Any]) -> str:
    return json.dumps(data, default=str, ensure_ascii=False)


def _ok(data: dict[str, Any]) -> str:
    """Return a versioned JSON success response."""
    return _json({**data, "_v": "1.0"})


def _err(msg: str) -> str:
    """Return a versioned JSON error response."""
    return _json({"_v": "1.0", "error": msg})


def create_server(
    db_path: str,
    *,
    config: Config | None = None,
    advisory: AdvisoryService | None = None,
) -> FastMCP:
    """Create FastMCP server over one dashboard session."""
    config = config or Config()

    state: dict[str, Any] = {}
    _lock = asyncio.Lock()

    async def _init() -> dict[str, Any]:
        async with _lock:
            if "init_failed" in state:
                raise RuntimeError(f"sitedesk init previously failed for {db_path}")
            if "session" not in state:
                try:
                    store = SQLiteStore(Path(db_path), wal_mode=config.wal_mode)
                    await store.initialize()
                except Exception as e:
                    state["init_failed"] = True
                    logger.error("Failed to initialize database: %s", e)
                    raise RuntimeError(f"sitedesk init failed: {db_path}") from e
                bus = EventBus()
                session = SessionState(store, bus, config)
                await session.load()
                state["store"] = store
                state["bus"] = bus
                state["session"] = session
                state["gate"] = ConfirmationGate(session)
                state["advisory"] = advisory or AdvisoryService(config, event_bus=bus)
                snap = session.snapshot()
                state["startup_briefing"] = asyncio.create_task(
                    state["advisory"].briefing(snap.projects, snap.logs)
                )
        return state

    async def _close() -> None:
        async with _lock:
            service = state.pop("advisory", None)
            if service is not None:
                await service.aclose()
            startup = state.pop("startup_briefing", None)
            if startup is not None:
                await asyncio.gather(startup, return_exceptions=True)
            store = state.pop("store", None)
            if store is not None:
                await store.close()
            state.clear()

    @asynccontextmanager
    async def _lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        try:
            yield {}
        finally:
            await _close()

    mcp = FastMCP("sitedesk", version="0.1.0", lifespan=_lifespan)

    # ── sd_project ────────────────────────────────────────────

    @mcp.tool()
    async def sd_project(
        action: Annotated[
            Literal["list", "get", "add"],
            Field(description="list | get | add"),
        ],
        project_id: Annotated[
            str | None,
            Field(description="Project ID (get)"),
        ] = None,
        name: Annotated[
            str | None,
            Field(description="Project name (add)"),
        ] = None,
        next_step: Annotated[
            str | None,
            Field(description="Immediate next task (add)"),
        ] = None,
        support_needed: Annotated[
            list[str] | None,
            Field(description="Resource requests (add)"),
        ] = None,
        responsible_team: Annotated[
            list[str] | None,
            Field(description="Assigned personnel (add)"),
        ] = None,
        detail: Annotated[
            str,
            Field(description="summary or full (list)"),
        ] = "summary",
    ) -> str:
        """Projects on the board: list them, fetch one, or register a new one at site survey."""
        s = await _init()
        session: SessionState = s["session"]

        if action == "list":
            items = [p.to_response(detail=detail) for p in session.snapshot().projects]
            return _ok({"count": len(items), "projects": items})

        if action == "get":
            if not project_id:
                return _err("project_id is required for get")
            project = session.get_project(project_id)
            if not project:
                return _err(f"Project not found: {project_id}")
            return _ok(project.to_response(detail="full"))

        if action == "add":
            try:
                project = await session.add_project(
                    name=name or "",
                    next_step=next_step,
                    support_needed=support_needed,
                    responsible_team=responsible_team,
                )
            except ValueError as e:
                return _err(str(e))
            return _ok(project.to_response(detail="full"))

        return _err(f"Unknown action: {action}")

    # ── sd_command ────────────────────────────────────────────

    @mcp.tool()
    async def sd_command(
        action: Annotated[
            Literal["advance", "shortage", "phase", "confirm", "cancel", "pending"],
            Field(description="advance | shortage | phase | confirm | cancel | pending"),
        ],
        project_id: Annotated[
            str | None,
            Field(description="Target project ID (advance, shortage, phase)"),
        ] = None,
        phase: Annotated[
            str | None,
            Field(description="Target phase (phase)"),
        ] = None,
        user: Annotated[
            str | None,
            Field(description="Acting user ID or name (confirm)"),
        ] = None,
    ) -> str:
        """Queue a project command, then confirm it as a roster user or cancel it."""
        s = await _init()
        session: SessionState = s["session"]
        gate: ConfirmationGate = s["gate"]

        if action in ("advance", "shortage", "phase"):
            if not project_id or not project_id.strip():
                return _err(f"project_id is required for {action}")
            pid = project_id.strip()
            if action == "advance":
                gate.issue(AdvanceProgress(project_id=pid))
            elif action == "shortage":
                gate.issue(ReportShortage(project_id=pid))
            else:
                try:
                    target = Phase(phase or "")
                except ValueError:
                    valid = [p.value for p in Phase]
                    return _err(f"Invalid phase: {phase}. Must be one of {valid}")
                gate.issue(SetPhase(project_id=pid, target_phase=target))
            return _ok({"pending": gate.pending.model_dump(mode="json")})

        if action == "pending":
            pending = gate.pending
            return _ok({"pending": pending.model_dump(mode="json") if pending else None})

        if action == "cancel":
            discarded = gate.cancel()
            return _ok({"cancelled": discarded.kind if discarded else None})

        if action == "confirm":
            if gate.pending is None:
                return _err("Nothing pending to confirm")
            if not user or not user.strip():
                return _err("user is required for confirm")
            actor = session.find_user(user.strip())
            if actor is None:
                return _err(f"Unknown user: {user}")
            target_id = gate.pending.project_id
            project = await gate.confirm(actor)
            if project is None:
                return _err(f"Project not found: {target_id}")
            return _ok(project.to_response(detail="full"))

        return _err(f"Unknown action: {action}")

    # ── sd_advisory ───────────────────────────────────────────

    @mcp.tool()
    async def sd_advisory(
        action: Annotated[
            Literal["briefing", "summary"],
            Field(description="briefing | summary"),
        ],
    ) -> str:
        """AI briefing on current projects, or a daily summary of the activity log."""
        s = await _init()
        snap = s["session"].snapshot()
        service: AdvisoryService = s["advisory"]

        if action == "briefing":
            text = await service.briefing(snap.projects, snap.logs)
            return _ok({"briefing": text})

        if action == "summary":
            text = await service.summary(snap.logs)
            return _ok({"summary": text})

        return _err(f"Unknown action: {action}")

    # ── sd_reset ──────────────────────────────────────────────

    @mcp.tool()
    async def sd_reset(
        confirm: Annotated[
            bool,
            Field(description="Must be true; wipes all stored projects and activity"),
        ] = False,
    ) -> str:
        """Destructive: wipe stored data and restore the seed projects."""
        s = await _init()
        if not confirm:
            return _err("Reset requires confirm=true")
        s["gate"].cancel()
        await s["session"].reset(confirm=True)
        return _ok({"reset": True, "projects": len(s["session"].snapshot().projects)})

    # ── Resources (4) ─────────────────────────────────────────

    @mcp.resource("sd://projects")
    async def sd_resource_projects() -> str:
        """All projects with full detail."""
        s = await _init()
        items = [p.to_response(detail="full") for p in s["session"].snapshot().projects]
        return _ok({"count": len(items), "projects": items})

    @mcp.resource("sd://logs")
    async def sd_resource_logs() -> str:
        """Activity log, newest first."""
        s = await _init()
        items = [e.to_response() for e in s["session"].snapshot().logs]
        return _ok({"count": len(items), "logs": items})

    @mcp.resource("sd://resources")
    async def sd_resource_board() -> str:
        """Resource board status."""
        s = await _init()
        items = [r.to_response() for r in s["session"].snapshot().resources]
        return _ok({"count": len(items), "resources": items})

    @mcp.resource("sd://events")
    async def sd_resource_events() -> str:
        """Recent session events."""
        s = await _init()
        items = [
            {"type": e.type.value, "data": e.data, "at": e.at.isoformat()}
            for e in s["bus"].history(limit=20)
        ]
        return _ok({"count": len(items), "events": items})

    return mcp
