"""Remote schema archives - fetch a zip over HTTP and index its JSON entries.

Sources are redundant mirrors tried in order. The first one that yields at
least one schema wins; nothing is merged across sources. Archives are read
entirely in memory and never written to disk.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import PurePosixPath

import httpx

from pacts.core.cache import SchemaCache, cache_key
from pacts.core.document import SchemaDocument
from pacts.exceptions import (
    ArchiveEntryTooLargeError,
    ArchiveLoadError,
    SchemaParseError,
)

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 15.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_MAX_ENTRY_BYTES = 5 * 1024 * 1024

_SCHEMA_SUFFIX = ".json"


def entry_key(entry_name: str) -> str | None:
    """Derive a cache key from an archive entry path.

    The last three directory segments are (domain, version, category) and
    the file name minus ``.json`` is the schema name. Returns None for
    entries that do not have that shape.
    """
    path = PurePosixPath(entry_name.replace("\\", "/"))
    if path.suffix != _SCHEMA_SUFFIX or not path.stem:
        return None
    dirs = path.parts[:-1]
    if len(dirs) < 3:
        return None
    domain, version, category = dirs[-3:]
    return cache_key(domain, version, category, path.stem)


def parse_archive(
    payload: bytes,
    max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
) -> dict[str, SchemaDocument]:
    """Index every schema entry of a zip archive held in memory.

    Raises zipfile.BadZipFile for non-archives and ArchiveEntryTooLargeError
    when any JSON entry exceeds *max_entry_bytes*. Entries outside the
    ``domain/version/category/name.json`` shape, and entries that are not
    valid JSON objects, are skipped.
    """
    documents: dict[str, SchemaDocument] = {}
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        for info in archive.infolist():
            if info.is_dir() or not info.filename.endswith(_SCHEMA_SUFFIX):
                continue
            if info.file_size > max_entry_bytes:
                raise ArchiveEntryTooLargeError(info.filename, info.file_size, max_entry_bytes)

            # The declared size can lie; bound the actual read as well.
            with archive.open(info) as fh:
                raw = fh.read(max_entry_bytes + 1)
            if len(raw) > max_entry_bytes:
                raise ArchiveEntryTooLargeError(info.filename, len(raw), max_entry_bytes)

            key = entry_key(info.filename)
            if key is None:
                logger.debug("Skipping archive entry outside schema layout: %s", info.filename)
                continue
            try:
                documents[key] = SchemaDocument.from_json(raw)
            except SchemaParseError as exc:
                logger.debug("Skipping malformed archive entry %s: %s", info.filename, exc)
    return documents


class RemoteArchiveLoader:
    """Fetch schema archives from an ordered list of mirror URLs.

    Parameters
    ----------
    sources : iterable of str
        Archive URLs, tried in order.
    connect_timeout, read_timeout : float
        Seconds allowed to establish the connection and to read the body.
    max_entry_bytes : int
        Upper bound on the size of a single JSON entry.
    client : httpx.Client, optional
        Pre-configured client (tests inject one with a mock transport).
    """

    def __init__(
        self,
        sources: Iterable[str],
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
        client: httpx.Client | None = None,
    ) -> None:
        self.sources = [s.strip() for s in sources if s and s.strip()]
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self.max_entry_bytes = max_entry_bytes
        self._client = client

    def fetch(self, source: str) -> bytes:
        """GET a single source and return the response body."""
        if self._client is not None:
            resp = self._client.get(source, timeout=self.timeout)
        else:
            resp = httpx.get(source, timeout=self.timeout, follow_redirects=True)
        resp.raise_for_status()
        return resp.content

    def load(self) -> dict[str, SchemaDocument]:
        """Return the documents of the first source that loads successfully.

        Raises ArchiveLoadError if every source fails.
        """
        failures: list[tuple[str, str]] = []

        for source in self.sources:
            try:
                payload = self.fetch(source)
                documents = parse_archive(payload, self.max_entry_bytes)
            except (httpx.HTTPStatusError, httpx.RequestError, httpx.InvalidURL) as exc:
                reason = f"request failed: {exc}"
            except ArchiveEntryTooLargeError as exc:
                reason = str(exc)
            # zipfile raises RuntimeError for encrypted entries and
            # NotImplementedError for unsupported compression methods.
            except (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError,
                    NotImplementedError, ValueError) as exc:
                reason = f"not a valid archive: {exc}"
            else:
                if documents:
                    logger.info("Loaded %d schemas from %s", len(documents), source)
                    return documents
                reason = "archive contained no schema entries"

            logger.warning("Schema source %s skipped: %s", source, reason)
            failures.append((source, reason))

        raise ArchiveLoadError(failures)

    def load_into(self, cache: SchemaCache) -> int:
        """Load the first working source into *cache*. Returns the count."""
        documents = self.load()
        cache.put_many(documents)
        return len(documents)
