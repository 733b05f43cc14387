"""Render-time retrieval of pre-computed query results."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from groq_extract.cache.keys import cache_key, fingerprint
from groq_extract.extract.models import QueryKind

logger = logging.getLogger(__name__)

CACHE_DIR_ENV_VAR = "GROQ_DIR"


def resolve_cache_root(cache_root: Path | str | None = None) -> Path | None:
    if cache_root is not None:
        return Path(cache_root)
    raw = os.getenv(CACHE_DIR_ENV_VAR)
    return Path(raw) if raw else None


def use_groq_query(query: str, cache_root: Path | str | None = None) -> object | None:
    """Load the cached result for the literal query text at a call site.

    The key is the hash of the text exactly as written, so queries using
    fragments or joins only hit when their rewritten text is identical.
    A missing entry warns and returns None.
    """
    root = resolve_cache_root(cache_root)
    if root is None:
        logger.warning("No query cache directory configured (%s)", CACHE_DIR_ENV_VAR)
        return None
    entry = root / f"{fingerprint(query)}.json"
    try:
        with entry.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("%s", exc)
        return None


def load_page_query(component_path: str, cache_root: Path | str | None = None) -> str | None:
    """Return the unprocessed page query cached for a component path."""
    root = resolve_cache_root(cache_root)
    if root is None:
        return None
    entry = root / f"{cache_key(QueryKind.PAGE, component_path)}.json"
    if not entry.exists():
        return None
    try:
        with entry.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("%s", exc)
        return None
    if not isinstance(payload, dict):
        return None
    unprocessed = payload.get("unprocessed")
    return unprocessed if isinstance(unprocessed, str) else None
