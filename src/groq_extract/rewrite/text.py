"""Composed query rewriting, delimiter stripping and page-context substitution."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping

from groq_extract.rewrite.fragments import expand_fragments
from groq_extract.rewrite.joins import JoinOptions, rewrite_joins

_QUOTES = ("'", '"')


def rewrite_query(
    raw: str,
    fragments: Mapping[str, object] | None,
    join_options: JoinOptions,
) -> str | None:
    """Fragment expansion then join rewriting; None when fragments cannot be resolved."""
    expanded = expand_fragments(raw, fragments)
    if expanded is None:
        return None
    return rewrite_joins(expanded, join_options)


def strip_delimiters(query: str, *, quotes: bool = False) -> str:
    """Drop template delimiters; with ``quotes``, also one enclosing quote pair.

    Static spans arrive without their outer delimiter; page initializers keep it.
    """
    stripped = query.replace("`", "")
    if not quotes:
        return stripped
    candidate = stripped.strip()
    if len(candidate) >= 2 and candidate[0] == candidate[-1] and candidate[0] in _QUOTES:
        return candidate[1:-1]
    return stripped


def substitute_context(query: str, context: Mapping[str, object]) -> str:
    """Replace each ``$key`` token with the JSON encoding of ``context[key]``.

    Keys without a token in the query are never encoded. Raises TypeError or
    ValueError when a referenced value is not JSON-serializable.
    """
    substituted = query
    for key, value in context.items():
        pattern = re.compile(rf"\${re.escape(key)}(?![\w$])")
        if not pattern.search(substituted):
            continue
        encoded = json.dumps(value, ensure_ascii=False)
        substituted = pattern.sub(lambda _match: encoded, substituted)
    return substituted
