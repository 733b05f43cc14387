"""Typed models for extracted query spans."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class QueryKind(str, Enum):
    """Page queries are keyed by file path, static queries by final query text."""

    PAGE = "page"
    STATIC = "static"


@dataclass(slots=True, frozen=True)
class QuerySpan:
    """One extracted query occurrence, raw text exactly as written in source."""

    kind: QueryKind
    path: str
    raw: str
    start_byte: int
    end_byte: int


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """At most one span of each kind for a single source file."""

    path: str
    page: QuerySpan | None = None
    static: QuerySpan | None = None

    @property
    def spans(self) -> tuple[QuerySpan, ...]:
        return tuple(span for span in (self.page, self.static) if span is not None)
