"""Thread-safe in-memory schema cache."""

from __future__ import annotations

import threading
from urllib.parse import quote

from pacts.core.document import SchemaDocument


def cache_key(domain: str, version: str, category: str, name: str) -> str:
    """Join a (domain, version, category, name) tuple into one cache key.

    Components are percent-escaped so ``/`` inside a component can never make
    two different tuples produce the same key.
    """
    return "/".join(quote(part, safe="") for part in (domain, version, category, name))


class SchemaCache:
    """Lock-protected mapping from cache key to SchemaDocument.

    Documents are immutable, so they are handed out by reference. Each
    resolver owns its own cache.
    """

    def __init__(self) -> None:
        self._store: dict[str, SchemaDocument] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> SchemaDocument | None:
        """Return the cached document, or None if absent."""
        with self._lock:
            return self._store.get(key)

    def put(self, key: str, document: SchemaDocument) -> None:
        """Store or overwrite a document."""
        with self._lock:
            self._store[key] = document

    def put_many(self, documents: dict[str, SchemaDocument]) -> None:
        with self._lock:
            self._store.update(documents)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._store)

    def clear(self) -> None:
        """Remove all documents."""
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)
