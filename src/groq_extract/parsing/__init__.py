"""Syntax-tree provider for query-bearing source files."""

from .treesitter import (
    BASE_PLUGINS,
    ParseOptions,
    SourceParseError,
    SyntaxTree,
    grammar_for,
    load_parse_options,
    parse_source,
    plugin_handle,
)

__all__ = [
    "BASE_PLUGINS",
    "ParseOptions",
    "SourceParseError",
    "SyntaxTree",
    "grammar_for",
    "load_parse_options",
    "parse_source",
    "plugin_handle",
]
