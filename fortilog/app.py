from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request

from .client import FortigateClient
from .models import PASSWORD_MASK, ConnectionSettings, ConnectionTestResult, LogsOut, SettingsIn
from .monitor import LogMonitor
from .storage import SettingsStore


logger = logging.getLogger(__name__)


def _monitor(request: Request) -> LogMonitor:
    return request.app.state.monitor


def _merge_password(incoming: ConnectionSettings, current: ConnectionSettings) -> ConnectionSettings:
    # The settings form echoes back the masked password when it was not edited.
    if incoming.password == PASSWORD_MASK:
        return incoming.model_copy(update={"password": current.password})
    return incoming


def create_app(store: Optional[SettingsStore] = None, *, autostart: bool = True) -> FastAPI:
    app = FastAPI(title="fortilog", version="0.1.0")
    app.state.store = store or SettingsStore()
    app.state.monitor = None

    @app.on_event("startup")
    async def startup() -> None:
        st: SettingsStore = app.state.store
        conn = st.load_settings() or ConnectionSettings()
        monitor = LogMonitor(conn, st.load_mock_mode())
        app.state.monitor = monitor
        if not conn.is_configured:
            logger.warning("no appliance configured yet; waiting for POST /settings")
        if autostart:
            monitor.start()

    @app.on_event("shutdown")
    async def shutdown() -> None:
        monitor: Optional[LogMonitor] = app.state.monitor
        if monitor is not None:
            await monitor.close()

    @app.get("/health")
    def health(request: Request) -> Dict[str, Any]:
        monitor = _monitor(request)
        return {
            "ok": True,
            "server_time": datetime.now(timezone.utc).isoformat(),
            **monitor.describe(),
        }

    @app.get("/logs", response_model=LogsOut)
    def logs(request: Request, q: Optional[str] = Query(default=None, max_length=200)) -> LogsOut:
        return _monitor(request).snapshot(q)

    @app.get("/stats")
    def stats(request: Request) -> Dict[str, Any]:
        return {"ok": True, "stats": _monitor(request).stats().model_dump()}

    @app.post("/refresh", response_model=LogsOut)
    async def refresh(request: Request) -> LogsOut:
        monitor = _monitor(request)
        await monitor.refresh()
        return monitor.snapshot()

    @app.get("/settings")
    def get_settings(request: Request) -> Dict[str, Any]:
        monitor = _monitor(request)
        return {
            "ok": True,
            "settings": monitor.settings.redacted(),
            "mock_mode": monitor.use_mock_data,
        }

    @app.post("/settings")
    async def save_settings(request: Request, body: SettingsIn) -> Dict[str, Any]:
        monitor = _monitor(request)
        st: SettingsStore = request.app.state.store
        conn = _merge_password(body.connection(), monitor.settings)
        mock_mode = monitor.use_mock_data if body.mock_mode is None else bool(body.mock_mode)

        st.save_settings(conn)
        st.save_mock_mode(mock_mode)
        await monitor.reconfigure(conn, mock_mode, restart=autostart)
        return {"ok": True, "settings": conn.redacted(), "mock_mode": mock_mode}

    @app.post("/settings/test", response_model=ConnectionTestResult)
    async def test_settings(request: Request, body: SettingsIn) -> ConnectionTestResult:
        monitor = _monitor(request)
        conn = _merge_password(body.connection(), monitor.settings)
        mock_mode = monitor.use_mock_data if body.mock_mode is None else bool(body.mock_mode)

        client = FortigateClient(conn, mock_mode)
        try:
            return await client.test_connection()
        finally:
            await client.aclose()

    return app


app = create_app()
