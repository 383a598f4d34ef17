from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional, Sequence

from .config import settings
from .models import LogRecord, LogStats


MAX_LOGS = settings.max_logs


def merge_logs(
    buffer: Sequence[LogRecord],
    incoming: Sequence[LogRecord],
    *,
    max_size: Optional[int] = None,
) -> List[LogRecord]:
    """Combine a fresh batch with the held window.

    Incoming records go first and shadow buffered records with the same id;
    the result is cut to `max_size`, oldest (tail) first.
    """
    limit = MAX_LOGS if max_size is None else max(0, int(max_size))
    seen: set[str] = set()
    out: List[LogRecord] = []
    for log in [*incoming, *buffer]:
        if len(out) >= limit:
            break
        if log.id in seen:
            continue
        seen.add(log.id)
        out.append(log)
    return out


def filter_logs(logs: Iterable[LogRecord], term: Optional[str]) -> List[LogRecord]:
    needle = (term or "").strip().lower()
    if not needle:
        return list(logs)
    return [log for log in logs if needle in log.message.lower() or needle in log.source.lower()]


def compute_stats(logs: Sequence[LogRecord]) -> LogStats:
    by_level = Counter(log.level for log in logs)
    by_action = Counter(log.action for log in logs)
    return LogStats(
        total=len(logs),
        active_threats=int(by_level.get("error", 0)),
        blocked=int(by_action.get("blocked", 0)),
        by_level=dict(by_level),
        by_action=dict(by_action),
    )
