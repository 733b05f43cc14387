"""Typed models for source discovery state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class FileRecord:
    """A source file seen by discovery, keyed by normalized absolute path."""

    path: str
    size: int
    mtime_ns: int


@dataclass(slots=True, frozen=True)
class SourceDelta:
    """Deterministic change classification between two discovery passes."""

    added: tuple[str, ...]
    updated: tuple[str, ...]
    unchanged: tuple[str, ...]
    removed: tuple[str, ...]

    @property
    def changed(self) -> tuple[str, ...]:
        return tuple(sorted(self.added + self.updated))
