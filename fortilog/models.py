from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .config import API_PREFIX


LogLevel = Literal["error", "warning", "info", "success"]
Protocol = Literal["http", "https"]
MonitorState = Literal["idle", "authenticating", "fetching", "normalizing", "merged", "failed"]

PASSWORD_MASK = "********"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionSettings(BaseModel):
    host: str = ""
    port: str = "443"
    protocol: Protocol = "https"
    username: str = ""
    password: str = ""
    refresh_interval: int = Field(default=30, ge=1, description="Seconds between polls")

    @field_validator("port", mode="before")
    @classmethod
    def _port_as_str(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("host", "username", mode="before")
    @classmethod
    def _strip(cls, v: object) -> str:
        return str(v or "").strip()

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username)

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}{API_PREFIX}"

    def redacted(self) -> Dict[str, object]:
        data = self.model_dump()
        if data.get("password"):
            data["password"] = PASSWORD_MASK
        return data


class LogRecord(BaseModel):
    """A normalized, display-ready security event."""

    id: str
    timestamp: str
    level: LogLevel = "info"
    source: str = ""
    message: str = ""
    action: str = "info"


class ConnectionTestResult(BaseModel):
    success: bool
    message: str


class LogStats(BaseModel):
    total: int = 0
    active_threats: int = 0
    blocked: int = 0
    by_level: Dict[str, int] = Field(default_factory=dict)
    by_action: Dict[str, int] = Field(default_factory=dict)


class LogsOut(BaseModel):
    ok: bool = True
    logs: List[LogRecord]
    error: Optional[str] = None
    is_loading: bool = False
    state: MonitorState = "idle"
    last_updated: Optional[datetime] = None


class SettingsIn(ConnectionSettings):
    mock_mode: Optional[bool] = None

    def connection(self) -> ConnectionSettings:
        return ConnectionSettings.model_validate(self.model_dump(exclude={"mock_mode"}))
