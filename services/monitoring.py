"""Process-level monitoring helpers for the health endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

import psutil

_MB = 1024 * 1024


def get_memory_stats() -> dict[str, int]:
    """Current process memory in whole megabytes."""
    info = psutil.Process().memory_info()
    vm = psutil.virtual_memory()
    return {
        "rss": round(info.rss / _MB),
        "vms": round(info.vms / _MB),
        "systemTotal": round(vm.total / _MB),
    }


def format_uptime(started_at: datetime, now: datetime | None = None) -> str:
    """Human-readable uptime, e.g. ``"3h 15m 10s"`` or ``"2d 4m"``."""
    now = now or datetime.now(timezone.utc)
    total = max(0, int((now - started_at).total_seconds()))

    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)
