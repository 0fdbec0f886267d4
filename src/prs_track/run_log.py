"""Append-only log of member lookups.

One JSON object per line: which name was searched, under which role it was
found (if at all), how many URLs were probed, and how long each role pass
took.  Used by ``scripts/lookup.py`` to keep a history of manual lookups and
spot slow or failing names.

Usage:
    from prs_track.run_log import LookupLogger

    with LookupLogger("Rahul Gandhi", "MP") as log:
        result = resolve_member("Rahul Gandhi", "MP")
        log.record(result)
    # On exit, the lookup is appended to .lookup_log.jsonl
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .config import RUN_LOG_PATH
from .models import ResolutionResult

LOGGER = logging.getLogger(__name__)


@dataclass
class LookupRecord:
    """One line in the lookup log."""

    run_id: str
    name: str
    searched_as: str
    started_at: str  # ISO
    duration_s: float | None = None
    status: str = "running"  # found | not_found | error | running
    found_as: str | None = None
    source_url: str | None = None
    urls_checked: int = 0
    passes: list[dict] = field(default_factory=list)  # [{role, reduced, urls, seconds}]
    error: str | None = None

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json_line(cls, line: str) -> LookupRecord | None:
        line = line.strip()
        if not line:
            return None
        try:
            d = json.loads(line)
            return cls(
                run_id=d.get("run_id", ""),
                name=d.get("name", ""),
                searched_as=d.get("searched_as", ""),
                started_at=d.get("started_at", ""),
                duration_s=d.get("duration_s"),
                status=d.get("status", "not_found"),
                found_as=d.get("found_as"),
                source_url=d.get("source_url"),
                urls_checked=d.get("urls_checked", 0),
                passes=d.get("passes", []),
                error=d.get("error"),
            )
        except (json.JSONDecodeError, TypeError, AttributeError):
            return None


class LookupLogger:
    """Context manager that times one lookup and appends it to the log."""

    def __init__(self, name: str, role: str, *, log_path: Path | None = None) -> None:
        self.log_path = log_path if log_path is not None else RUN_LOG_PATH
        self.entry = LookupRecord(
            run_id=str(uuid.uuid4())[:8],
            name=name,
            searched_as=role,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        self._start_time: float | None = None

    def __enter__(self) -> LookupLogger:
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            self.entry.status = "error"
            self.entry.error = f"{exc_type.__name__}: {exc}"
        if self._start_time is not None:
            self.entry.duration_s = round(time.perf_counter() - self._start_time, 3)
        self._append()

    def record(self, result: ResolutionResult) -> None:
        rec = self.entry
        rec.status = "found" if result.found else "not_found"
        rec.found_as = result.found_as
        rec.source_url = result.source_url
        rec.urls_checked = result.total_urls_checked
        rec.passes = [
            {
                "role": p.role,
                "reduced": p.reduced,
                "urls": len(p.urls_checked),
                "seconds": round(p.elapsed_s, 3),
            }
            for p in result.passes
        ]

    def _append(self) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(self.entry.to_json_line() + "\n")
        except OSError as exc:
            LOGGER.warning("Could not write lookup log %s: %s", self.log_path, exc)


def load_recent(limit: int = 20, *, log_path: Path | None = None) -> list[LookupRecord]:
    """Return the last *limit* lookups, newest first; malformed lines are skipped."""
    path = log_path if log_path is not None else RUN_LOG_PATH
    if not path.exists():
        return []
    with open(path, encoding="utf-8") as f:
        records = [r for line in f if (r := LookupRecord.from_json_line(line)) is not None]
    return list(reversed(records[-limit:])) if limit > 0 else list(reversed(records))
