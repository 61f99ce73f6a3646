"""
Storage package for the X API service.

A single Redis-backed document store holds two collections: validated cookie
jars per account (session store) and memoized platform results (cache store).
Entries are never expired by the backend; freshness is judged at read time.
"""

from .cache_store import CacheStore, DEFAULT_TTL, SHORT_TTL
from .document_store import DocumentStore
from .session_store import SessionRecord, SessionStore

__all__ = [
    "CacheStore",
    "DEFAULT_TTL",
    "SHORT_TTL",
    "DocumentStore",
    "SessionRecord",
    "SessionStore",
]
