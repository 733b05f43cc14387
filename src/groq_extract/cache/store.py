"""One-JSON-file-per-key query cache written at build time."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from groq_extract.cache.keys import cache_key
from groq_extract.extract.models import QueryKind
from groq_extract.rewrite.joins import OPTIONS_FILE_NAME, JoinOptions

logger = logging.getLogger(__name__)


class CacheWriteError(Exception):
    """Raised when a cache entry cannot be written; run-time lookups would silently miss."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Could not write cache entry {path}: {cause}")
        self.path = path
        self.cause = cause


def encode_payload(payload: object) -> str:
    """JSON-encode payloads that are not already strings."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


class QueryCache:
    """Write path for cached page queries and static query results."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    @property
    def root(self) -> Path:
        return self._root

    def entry_path(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def reset(self) -> None:
        """Clear and recreate the cache root at the start of a full build."""
        try:
            if self._root.exists():
                shutil.rmtree(self._root)
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheWriteError(self._root, exc) from exc

    def write_options(self, options: JoinOptions) -> Path:
        """Persist the options artifact read back by the join rewriter."""
        path = self._root / OPTIONS_FILE_NAME
        self._write(path, json.dumps(options.to_artifact(), sort_keys=True))
        return path

    def put(self, kind: QueryKind, key_input: str, payload: object) -> str:
        """Write ``payload`` under the kind-specific key and return the key."""
        key = cache_key(kind, key_input)
        logger.info("Caching %s query: %s", kind.value, key)
        self._write(self.entry_path(key), encode_payload(payload))
        return key

    def put_page_query(self, path: str, raw: str) -> str:
        """Store the unprocessed page query under the file-path key."""
        return self.put(QueryKind.PAGE, path, {"unprocessed": raw})

    def put_static_result(self, final_query: str, result: object) -> str:
        """Store an evaluated static query result under the final-text key."""
        return self.put(QueryKind.STATIC, final_query, result)

    def _write(self, path: Path, text: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as handle:
                handle.write(text)
            tmp.replace(path)
        except OSError as exc:
            raise CacheWriteError(path, exc) from exc
