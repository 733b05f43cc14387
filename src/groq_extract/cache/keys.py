"""Cache key derivation for page and static queries."""

from __future__ import annotations

import mmh3

from groq_extract.extract.models import QueryKind
from groq_extract.paths import normalize_path

HASH_SEED = 0


def fingerprint(text: str) -> str:
    """Fixed-width, non-cryptographic digest of ``text`` as 32 hex characters."""
    return format(mmh3.hash128(text, HASH_SEED, signed=False), "032x")


def cache_key(kind: QueryKind, key_input: str) -> str:
    """Derive the key for one query.

    Page entries are keyed by the owning file's normalized path because only
    the component path is known when a page is created. Static entries are
    keyed by the final rewritten query text.
    """
    if kind is QueryKind.PAGE:
        return fingerprint(normalize_path(key_input))
    return fingerprint(key_input)
