from __future__ import annotations

import hashlib
import itertools
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import LogLevel, LogRecord


_LEVEL_MAP: Dict[str, LogLevel] = {
    "critical": "error",
    "error": "error",
    "warning": "warning",
    "notice": "info",
    "information": "info",
    "success": "success",
}

# Fixed sample events served in mock mode.
_MOCK_EVENTS = (
    {"level": "error", "message": "Failed login attempt detected", "action": "blocked"},
    {"level": "warning", "message": "Unusual traffic pattern detected", "action": "monitored"},
    {"level": "info", "message": "VPN connection established", "action": "allowed"},
    {"level": "error", "message": "Port scan detected", "action": "blocked"},
    {"level": "warning", "message": "High CPU usage detected", "action": "monitored"},
)

_mock_seq = itertools.count()


def _get_any(fields: Mapping[str, Any], *keys: str) -> Optional[Any]:
    # First truthy value wins, mirroring `a || b || default` on the wire.
    for k in keys:
        v = fields.get(k)
        if v not in (None, "", 0, False):
            return v
    return None


def _as_str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    try:
        return str(v)
    except Exception:
        return default


def iso_timestamp(dt: datetime) -> str:
    """Render as `2023-11-14T22:13:20.000Z`."""
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso(value: Any) -> str:
    if isinstance(value, bool):
        value = None
    if isinstance(value, (int, float)):
        try:
            return iso_timestamp(datetime.fromtimestamp(float(value), tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            value = None
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        try:
            return to_iso(float(s))
        except ValueError:
            # Already formatted upstream.
            return s
    return iso_timestamp(datetime.now(timezone.utc))


def map_level(level: Any) -> LogLevel:
    return _LEVEL_MAP.get(_as_str(level).strip().lower(), "info")


def _fingerprint(*parts: str) -> str:
    h = hashlib.sha1("|".join(parts).encode("utf-8", errors="replace"))
    return h.hexdigest()[:16]


def normalize_log(raw: Mapping[str, Any], *, seen: Optional[Dict[str, int]] = None) -> LogRecord:
    timestamp = to_iso(raw.get("timestamp"))
    level = map_level(raw.get("level") or "info")
    source = _as_str(_get_any(raw, "source_ip", "source"))
    message = _as_str(_get_any(raw, "msg", "message"))
    action = _as_str(_get_any(raw, "action"), "info") or "info"

    raw_id = raw.get("id")
    if raw_id is None or raw_id == "":
        # Raw timestamp, not the normalized one: a missing value must not become "now".
        fp = _fingerprint(_as_str(raw.get("timestamp")), level, source, message, action)
        counts = seen if seen is not None else {}
        n = counts.get(fp, 0)
        counts[fp] = n + 1
        log_id = f"gen-{fp}-{n}"
    else:
        log_id = _as_str(raw_id)

    return LogRecord(
        id=log_id,
        timestamp=timestamp,
        level=level,
        source=source,
        message=message,
        action=action,
    )


def normalize_logs(raw_records: Optional[Iterable[Any]]) -> List[LogRecord]:
    """Map raw appliance records onto `LogRecord`.

    Missing or malformed fields degrade to defaults; entries that are not
    mappings at all are dropped. Records without an upstream id get one derived
    from their fields, numbered by occurrence so identical events in a single
    batch stay distinct.
    """
    out: List[LogRecord] = []
    seen: Dict[str, int] = {}
    for raw in raw_records or []:
        if not isinstance(raw, Mapping):
            continue
        out.append(normalize_log(raw, seen=seen))
    return out


def generate_mock_logs() -> List[LogRecord]:
    now_ms = int(time.time() * 1000)
    ts = iso_timestamp(datetime.now(timezone.utc))
    out: List[LogRecord] = []
    for index, event in enumerate(_MOCK_EVENTS):
        out.append(
            LogRecord(
                id=f"{now_ms + index}-{next(_mock_seq)}",
                timestamp=ts,
                level=event["level"],  # type: ignore[arg-type]
                source=f"192.168.1.{100 + random.randrange(100)}",
                message=event["message"],
                action=event["action"],
            )
        )
    return out
