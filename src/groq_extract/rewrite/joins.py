"""Rewrite dereference-arrow shorthand into explicit sub-selections."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

OPTIONS_FILE_NAME: Final[str] = "options.json"
JOIN_ARROW: Final[str] = "->"
DEFAULT_MATCH_FIELD: Final[str] = "id"
REF_SUFFIX: Final[str] = "._ref"
# Asset references resolve natively in the query engine.
RESERVED_FIELDS: Final[frozenset[str]] = frozenset({"asset"})

_SEGMENT = r"[A-Za-z_$][\w$]*(?:\[\])?"
JOIN_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"(?P<field>{_SEGMENT}(?:\.{_SEGMENT})*)->(?P<tail>[A-Za-z_$][\w$]*)?"
)


@dataclass(slots=True, frozen=True)
class JoinOptions:
    """How references are matched when rewriting joins."""

    match_field: str = DEFAULT_MATCH_FIELD
    auto_refs: bool = False

    def to_artifact(self) -> dict[str, object]:
        return {"matchField": self.match_field, "autoRefs": self.auto_refs}


def load_join_options(cache_root: Path) -> JoinOptions:
    """Read the options artifact stored in the cache root, falling back to defaults."""
    path = cache_root / OPTIONS_FILE_NAME
    if not path.exists():
        return JoinOptions()
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable join options %s: %s", path, exc)
        return JoinOptions()
    if not isinstance(payload, dict):
        return JoinOptions()
    match_field = payload.get("matchField") or payload.get("referenceMatcher")
    if not isinstance(match_field, str) or not match_field.strip():
        match_field = DEFAULT_MATCH_FIELD
    return JoinOptions(match_field=match_field, auto_refs=bool(payload.get("autoRefs")))


def has_join_arrow(query: str) -> bool:
    return JOIN_ARROW in query


def rewrite_joins(query: str, options: JoinOptions) -> str:
    """Rewrite ``field->`` into ``*[ match == ^.field ][0]`` and ``field[]->`` into ``in``."""
    if not has_join_arrow(query):
        return query
    ref = REF_SUFFIX if options.auto_refs else ""

    def _replace(match: re.Match[str]) -> str:
        field = match.group("field")
        tail = match.group("tail")
        last_segment = field.rsplit(".", 1)[-1].replace("[]", "")
        if last_segment in RESERVED_FIELDS:
            return match.group(0)
        if "[]" not in field:
            replacement = f"*[ {options.match_field} == ^.{field}{ref} ][0]"
        else:
            path = field.replace("[]", "")
            array_ref = f"[]{ref}" if ref else ""
            replacement = f"*[ {options.match_field} in ^.{path}{array_ref} ]"
        if tail:
            replacement = f"{replacement}.{tail}"
        return replacement

    return JOIN_PATTERN.sub(_replace, query)
