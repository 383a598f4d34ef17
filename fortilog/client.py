from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from .config import LOG_FILTER, LOG_PATH, settings as app_settings
from .errors import AuthorizationExpired, FortilogError, LogFetchError, describe_error
from .models import ConnectionSettings, ConnectionTestResult, LogRecord
from .normalize import generate_mock_logs, normalize_logs
from .retry import SleepFn, retry_async
from .session import SessionManager
from .transport import Transport


logger = logging.getLogger(__name__)


class FortigateClient:
    """Log client for a single appliance.

    In mock mode no network call is ever made; the fixed sample events are
    returned instead.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        use_mock_data: bool = False,
        *,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.use_mock_data = bool(use_mock_data)
        self._max_retries = app_settings.max_retries if max_retries is None else int(max_retries)
        self._retry_delay = app_settings.retry_delay_seconds if retry_delay is None else float(retry_delay)
        self._sleep = sleep
        self._transport = Transport(settings.base_url, http_transport=http_transport)
        self.session = SessionManager(self._transport, settings)
        # Called with "authenticating" / "fetching" / "normalizing" as a fetch advances.
        self.state_listener: Optional[Callable[[str], None]] = None

    @property
    def needs_login(self) -> bool:
        return not self.use_mock_data and self.session.token is None

    def _notify(self, state: str) -> None:
        if self.state_listener is not None:
            self.state_listener(state)

    async def _get_log_page(self, params: Dict[str, Any]) -> httpx.Response:
        if self.needs_login:
            self._notify("authenticating")
        headers = await self.session.auth_headers()
        self._notify("fetching")
        try:
            return await self._transport.request("GET", LOG_PATH, params=params, headers=headers)
        except AuthorizationExpired:
            self.session.invalidate()
            raise

    async def _fetch_once(self) -> List[LogRecord]:
        resp = await self._get_log_page(
            {
                "limit": app_settings.max_logs,
                "sort": "-timestamp",
                "filter": LOG_FILTER,
            }
        )
        try:
            data = resp.json()
        except ValueError:
            data = {}
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            results = []
        self._notify("normalizing")
        return normalize_logs(results)

    async def get_logs(self) -> List[LogRecord]:
        if self.use_mock_data:
            return generate_mock_logs()

        try:
            return await retry_async(
                self._fetch_once,
                max_retries=self._max_retries,
                base_delay=self._retry_delay,
                sleep=self._sleep,
                # A closed client cannot recover; anything else is worth another try.
                should_retry=lambda e: not self._transport.is_closed,
            )
        except FortilogError as e:
            raise LogFetchError(e) from e

    async def test_connection(self) -> ConnectionTestResult:
        if self.use_mock_data:
            return ConnectionTestResult(success=True, message="Connection successful (Mock Mode)")

        try:
            await self.session.get_token()
            await self._get_log_page({"limit": 1})
        except FortilogError as e:
            return ConnectionTestResult(success=False, message=f"Connection failed: {e.message}")
        except Exception as e:
            logger.warning("connection test to %s crashed: %s", self.settings.host, describe_error(e))
            return ConnectionTestResult(success=False, message="Connection failed: Unknown error")

        return ConnectionTestResult(success=True, message="Connection successful - API access verified")

    async def aclose(self) -> None:
        await self._transport.aclose()
