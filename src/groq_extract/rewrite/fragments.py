"""Reloadable fragment index and textual fragment expansion."""

from __future__ import annotations

import json
import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

FRAGMENT_MARKER = "${"


class FragmentStore:
    """Process-wide fragment index with an explicit not-yet-loaded state.

    ``fragments`` is None until a load succeeds; a loaded but empty entry file
    yields an empty mapping. The latest successful load always wins.
    """

    def __init__(self, entry: Path | None = None) -> None:
        self._entry = entry
        self._fragments: Mapping[str, object] | None = None

    @property
    def entry(self) -> Path | None:
        return self._entry

    @property
    def loaded(self) -> bool:
        return self._fragments is not None

    @property
    def fragments(self) -> Mapping[str, object] | None:
        return self._fragments

    def replace(self, fragments: Mapping[str, object]) -> None:
        """Install an already-built index."""
        self._fragments = MappingProxyType(dict(fragments))

    def load(self) -> bool:
        """(Re)read the entry file; on failure the previous index is kept."""
        if self._entry is None:
            return False
        try:
            payload = _read_entry(self._entry)
        except (OSError, ValueError) as exc:
            logger.error("Could not load fragments from %s: %s", self._entry, exc)
            return False
        self.replace(payload)
        logger.info("Cached fragments")
        return True


def _read_entry(entry: Path) -> dict[str, object]:
    if entry.suffix == ".json":
        with entry.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    else:
        with entry.open("rb") as handle:
            payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError("fragments entry must contain a top-level object.")
    return payload


def has_fragment_marker(query: str) -> bool:
    return FRAGMENT_MARKER in query


def expand_fragments(query: str, fragments: Mapping[str, object] | None) -> str | None:
    """Replace every ``${name}`` with the fragment's string value.

    Returns None, after a warning, when the query has a marker but no index
    is loaded or the index is empty. Non-string fragment values are ignored.
    """
    if not has_fragment_marker(query):
        return query
    if not fragments:
        logger.warning("Query contains fragments but no index provided.")
        return None
    expanded = query
    for name, value in fragments.items():
        if name not in expanded:
            continue
        if not isinstance(value, str):
            continue
        expanded = expanded.replace(f"${{{name}}}", value)
    return expanded
