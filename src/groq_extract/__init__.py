"""Build-time extraction, rewriting and caching of embedded GROQ queries."""

from .cache import CacheWriteError, QueryCache, cache_key
from .controller import BuildSummary, ChangeOutcome, ExtractionController, create_controller
from .engine import QueryEngine, QueryEvaluationError, QueryOutcome, ResultHandle, run_query
from .extract import ExtractionResult, QueryKind, QuerySpan, extract_queries
from .pages import InMemoryPageRegistry, Page, PageRegistry
from .rewrite import FragmentStore, JoinOptions, rewrite_query
from .runtime import load_page_query, use_groq_query

__all__ = [
    "BuildSummary",
    "CacheWriteError",
    "ChangeOutcome",
    "ExtractionController",
    "ExtractionResult",
    "FragmentStore",
    "InMemoryPageRegistry",
    "JoinOptions",
    "Page",
    "PageRegistry",
    "QueryCache",
    "QueryEngine",
    "QueryEvaluationError",
    "QueryKind",
    "QueryOutcome",
    "QuerySpan",
    "ResultHandle",
    "cache_key",
    "create_controller",
    "extract_queries",
    "load_page_query",
    "rewrite_query",
    "run_query",
    "use_groq_query",
]
