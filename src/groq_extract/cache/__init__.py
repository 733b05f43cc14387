"""Content-addressed query cache."""

from .keys import cache_key, fingerprint
from .store import CacheWriteError, QueryCache, encode_payload

__all__ = [
    "CacheWriteError",
    "QueryCache",
    "cache_key",
    "encode_payload",
    "fingerprint",
]
