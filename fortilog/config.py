from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv


# Local `.env` files are honoured; real environment variables win.
load_dotenv(override=False)


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _get_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


# Appliance API constants
API_PREFIX = "/api/v2"
AUTH_PATH = "/authentication"
LOG_PATH = "/monitor/log/system"
CLIENT_ID = "fortigate_monitor"
LOG_FILTER = "action==blocked || level==critical || level==warning"


@dataclass(frozen=True)
class Settings:
    # Settings store (stands in for the dashboard's local storage)
    state_path: str = _get_str("FORTILOG_STATE_PATH", "data/fortilog.json")

    log_level: str = _get_str("FORTILOG_LOG_LEVEL", "INFO")

    # Appliance polling
    request_timeout_seconds: float = _get_float("FORTILOG_REQUEST_TIMEOUT", 10.0)
    max_logs: int = _get_int("FORTILOG_MAX_LOGS", 100)
    max_retries: int = _get_int("FORTILOG_MAX_RETRIES", 3)
    retry_delay_seconds: float = _get_float("FORTILOG_RETRY_DELAY", 1.0)


settings = Settings()
