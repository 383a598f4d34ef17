"""Shared fixtures: a scripted fake appliance behind httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Type, Union

import httpx
import pytest
from hypothesis import HealthCheck, settings as hypothesis_settings

from fortilog.client import FortigateClient
from fortilog.models import ConnectionSettings


# Timing-only checks flake on a cold interpreter; correctness checks stay on.
hypothesis_settings.register_profile(
    "fortilog", suppress_health_check=[HealthCheck.too_slow], deadline=None
)
hypothesis_settings.load_profile("fortilog")


Step = Union[int, Dict[str, Any], Exception]


class FakeAppliance:
    """Answers /authentication and /monitor/log/system from scripted steps.

    Each log request consumes one step: an int is returned as that HTTP
    status, a dict as a 200 JSON body, an exception is raised. Once the
    script runs out the last step repeats.
    """

    def __init__(self, log_steps: Optional[List[Step]] = None, *, token: Optional[str] = "tok-1") -> None:
        self.log_steps: List[Step] = list(log_steps or [{"results": []}])
        self.token = token
        self.logins = 0
        self.log_requests: List[httpx.Request] = []
        self.login_bodies: List[Dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authentication"):
            self.logins += 1
            self.login_bodies.append(json.loads(request.content or b"{}"))
            if self.token is None:
                return httpx.Response(200, json={})
            return httpx.Response(200, json={"access_token": f"{self.token}-{self.logins}"})

        if request.url.path.endswith("/monitor/log/system"):
            idx = min(len(self.log_requests), len(self.log_steps) - 1)
            self.log_requests.append(request)
            step = self.log_steps[idx]
            if isinstance(step, Exception):
                raise step
            if isinstance(step, int):
                return httpx.Response(step, json={"error": step})
            return httpx.Response(200, json=step)

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def conn() -> ConnectionSettings:
    return ConnectionSettings(
        host="fw.example.test",
        port=8443,
        protocol="https",
        username="admin",
        password="secret",
        refresh_interval=5,
    )


@pytest.fixture
def make_client(conn: ConnectionSettings) -> Callable[..., FortigateClient]:
    def _make(appliance: FakeAppliance, sleep: Optional[SleepRecorder] = None, **kwargs: Any) -> FortigateClient:
        return FortigateClient(
            kwargs.pop("settings", conn),
            kwargs.pop("use_mock_data", False),
            http_transport=appliance.transport,
            sleep=sleep or SleepRecorder(),
            **kwargs,
        )

    return _make


@pytest.fixture
def appliance() -> Type[FakeAppliance]:
    return FakeAppliance


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
