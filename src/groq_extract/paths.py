"""Path normalization shared by extraction, cache keys and page matching."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


def normalize_path(path: str | Path) -> str:
    """Return an absolute POSIX-style path string used as a file identity.

    Page cache keys are derived from this string, so the watcher, the batch
    scan and the page registry must all agree on it.
    """
    raw = str(path).replace("\\", "/")
    if not raw.startswith("/") and not WINDOWS_ABSOLUTE_PATTERN.match(raw):
        raw = Path(raw).resolve(strict=False).as_posix()
    while "//" in raw:
        raw = raw.replace("//", "/")
    if len(raw) > 1 and raw.endswith("/"):
        raw = raw[:-1]
    return raw


def is_within(path: str | Path, root: str | Path | None) -> bool:
    """Return True when ``path`` lies under ``root`` (or is ``root``)."""
    if root is None:
        return False
    normalized = normalize_path(path)
    prefix = normalize_path(root)
    return normalized == prefix or normalized.startswith(f"{prefix}/")
