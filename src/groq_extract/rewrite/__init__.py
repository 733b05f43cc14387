"""Textual rewriting passes applied to extracted query text."""

from .fragments import FragmentStore, expand_fragments, has_fragment_marker
from .joins import (
    OPTIONS_FILE_NAME,
    JoinOptions,
    has_join_arrow,
    load_join_options,
    rewrite_joins,
)
from .text import rewrite_query, strip_delimiters, substitute_context

__all__ = [
    "FragmentStore",
    "JoinOptions",
    "OPTIONS_FILE_NAME",
    "expand_fragments",
    "has_fragment_marker",
    "has_join_arrow",
    "load_join_options",
    "rewrite_joins",
    "rewrite_query",
    "strip_delimiters",
    "substitute_context",
]
