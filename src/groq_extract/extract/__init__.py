"""Query span extraction from parsed source files."""

from .extractor import (
    PAGE_QUERY_NAME,
    STATIC_QUERY_HOOK,
    extract_queries,
    has_page_query_marker,
    has_static_query_marker,
)
from .models import ExtractionResult, QueryKind, QuerySpan

__all__ = [
    "ExtractionResult",
    "PAGE_QUERY_NAME",
    "QueryKind",
    "QuerySpan",
    "STATIC_QUERY_HOOK",
    "extract_queries",
    "has_page_query_marker",
    "has_static_query_marker",
]
