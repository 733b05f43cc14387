"""Structured JSONL extraction event log."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class ExtractionEvent:
    """Sanitized record of one processed query span or page update."""

    timestamp: str
    path: str
    kind: str
    ok: bool
    error_code: str | None
    cache_key: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_metadata(metadata: dict[str, object]) -> dict[str, object]:
    """Keep scalar metadata, reduce query text and containers to shape info."""
    sanitized: dict[str, object] = {}
    for key in sorted(metadata.keys()):
        value = metadata[key]
        if key in {"query", "raw", "final_query"} and isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, (int, float, bool, str)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, list):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlEventLog:
    """Append-only JSONL event log and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def record(
        self,
        *,
        path: str,
        kind: str,
        ok: bool,
        error_code: str | None = None,
        cache_key: str | None = None,
        metadata: dict[str, object] | None = None,
    ) -> ExtractionEvent:
        """Build, append and return a sanitized event."""
        event = ExtractionEvent(
            timestamp=utc_timestamp(),
            path=path,
            kind=kind,
            ok=ok,
            error_code=error_code,
            cache_key=cache_key,
            metadata=sanitize_metadata(metadata or {}),
        )
        self.append(event)
        return event

    def append(self, event: ExtractionEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Read recent events, optionally filtered by timestamp lower bound."""
        if limit < 1:
            return []
        entries: list[dict[str, object]] = []
        if not self._path.exists():
            return entries
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                entries.append(record)
        if len(entries) <= limit:
            return entries
        return entries[-limit:]
