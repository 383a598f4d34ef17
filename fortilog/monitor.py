from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .client import FortigateClient
from .errors import describe_error
from .models import ConnectionSettings, LogRecord, LogsOut, LogStats, MonitorState, now_utc
from .poller import PollScheduler
from .window import compute_stats, filter_logs, merge_logs


logger = logging.getLogger(__name__)

ClientFactory = Callable[[ConnectionSettings, bool], FortigateClient]


class LogMonitor:
    """Keeps the rolling log window for one appliance configuration.

    The buffer only changes through `merge_logs`. A failed poll records the
    error message and leaves the buffer as it was. Every fetch remembers the
    generation it started in; results from an older generation (after
    `reconfigure()` or `close()`) are dropped.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        use_mock_data: bool = False,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._client_factory: ClientFactory = client_factory or FortigateClient
        self.settings = settings
        self.use_mock_data = bool(use_mock_data)
        self.logs: List[LogRecord] = []
        self.error: Optional[str] = None
        self.state: MonitorState = "idle"
        self.last_updated: Optional[datetime] = None
        self._inflight = 0
        self._generation = 0
        self._closed = False
        self._client = self._client_factory(settings, self.use_mock_data)
        self._scheduler: Optional[PollScheduler] = None

    @property
    def client(self) -> FortigateClient:
        return self._client

    @property
    def is_loading(self) -> bool:
        return self._inflight > 0

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _set_state(self, generation: int, state: str) -> None:
        if self._is_current(generation):
            self.state = state  # type: ignore[assignment]

    async def refresh(self) -> None:
        if self._closed or not self.settings.is_configured:
            return

        generation = self._generation
        client = self._client
        self._inflight += 1
        self.error = None
        self.state = "authenticating" if client.needs_login else "fetching"
        client.state_listener = lambda state: self._set_state(generation, state)
        try:
            new_logs = await client.get_logs()
        except Exception as e:
            if self._is_current(generation):
                self.error = describe_error(e)
                self.state = "failed"
                logger.warning("log poll failed: %s", self.error)
            return
        finally:
            self._inflight -= 1

        if not self._is_current(generation):
            logger.debug("discarding %d logs from a superseded client", len(new_logs))
            return
        self.logs = merge_logs(self.logs, new_logs)
        self.last_updated = now_utc()
        self.state = "merged"

    def start(self) -> None:
        if self._closed or not self.settings.is_configured or self.running:
            return
        self._scheduler = PollScheduler(self.refresh, self.settings.refresh_interval)
        self._scheduler.start()
        logger.info(
            "polling %s every %ss%s",
            self.settings.host,
            self.settings.refresh_interval,
            " (mock mode)" if self.use_mock_data else "",
        )

    async def stop(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            await scheduler.stop()

    async def reconfigure(
        self,
        settings: ConnectionSettings,
        use_mock_data: Optional[bool] = None,
        *,
        restart: bool = True,
    ) -> None:
        await self.stop()
        self._generation += 1
        old = self._client
        self.settings = settings
        if use_mock_data is not None:
            self.use_mock_data = bool(use_mock_data)
        self._client = self._client_factory(settings, self.use_mock_data)
        self.logs = []
        self.error = None
        self.state = "idle"
        self.last_updated = None
        await old.aclose()
        if restart:
            self.start()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        await self.stop()
        await self._client.aclose()

    def filtered(self, term: Optional[str] = None) -> List[LogRecord]:
        return filter_logs(self.logs, term)

    def stats(self) -> LogStats:
        return compute_stats(self.logs)

    def snapshot(self, term: Optional[str] = None) -> LogsOut:
        return LogsOut(
            logs=self.filtered(term),
            error=self.error,
            is_loading=self.is_loading,
            state=self.state,
            last_updated=self.last_updated,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "configured": self.settings.is_configured,
            "mock_mode": self.use_mock_data,
            "running": self.running,
            "logs": len(self.logs),
        }
