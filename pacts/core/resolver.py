"""Schema resolution across cache, filesystem, bundled resources and archives.

Lookup order for ``(domain, version, category, name)``:

1. the resolver's cache
2. ``{schema_root}/{domain}/{version}/{category}/{name}.json`` on disk
3. the same relative path under the bundled resource directory
4. the snapshot of the remote archive loaded at construction

A hit from any tier is written back to the cache. A miss in every tier
returns None; missing or corrupt schemas never raise.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from importlib import resources
from pathlib import Path
from typing import IO, TYPE_CHECKING

from pacts.core.archive import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_ENTRY_BYTES,
    DEFAULT_READ_TIMEOUT,
    RemoteArchiveLoader,
)
from pacts.core.cache import SchemaCache, cache_key
from pacts.core.document import SchemaDocument
from pacts.exceptions import ArchiveLoadError, ConfigurationError, SchemaParseError

if TYPE_CHECKING:
    from importlib.resources.abc import Traversable

    from pacts.settings import PactsSettings

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"^v(\d+)$")


def _is_plain_segment(*parts: str) -> bool:
    """True when every part is a single, non-relative path segment."""
    return all(
        part and part not in (".", "..") and "/" not in part and "\\" not in part
        for part in parts
    )


class SchemaResolver:
    """Locate, load and cache schema documents for one domain/version binding.

    Parameters
    ----------
    schema_root : str or Path
        Directory holding ``{domain}/{version}/{category}/{name}.json`` trees.
    domain, version : str
        Binding used by :meth:`load`. ``version`` is usually ``v{digits}``.
    sources : iterable of str
        Remote archive URLs. Loaded once here; failure only logs a warning.
    cache : SchemaCache, optional
        Cache to use instead of a fresh one.
    archive_loader : RemoteArchiveLoader, optional
        Overrides the loader built from *sources*.
    resource_package, resource_dir : str
        Package and directory inside it that hold bundled schemas.
    """

    def __init__(
        self,
        schema_root: str | Path | None,
        domain: str | None,
        version: str | None,
        *,
        sources: Iterable[str] = (),
        cache: SchemaCache | None = None,
        archive_loader: RemoteArchiveLoader | None = None,
        resource_package: str = "pacts",
        resource_dir: str = "schemas",
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
    ) -> None:
        if not schema_root or not domain or not version:
            raise ConfigurationError("Schema root, domain, and version must be specified.")

        self._schema_root = Path(schema_root)
        self._domain = domain
        self._version = version
        self._cache = cache if cache is not None else SchemaCache()
        self._archive = SchemaCache()
        self._resource_package = resource_package
        self._resource_dir = resource_dir
        self.archive_loaded = False

        if archive_loader is None:
            source_list = list(sources)
            if source_list:
                archive_loader = RemoteArchiveLoader(
                    source_list,
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                    max_entry_bytes=max_entry_bytes,
                )
        if archive_loader is not None:
            self._load_archive(archive_loader)

    @classmethod
    def from_settings(cls, settings: PactsSettings) -> SchemaResolver:
        return cls(
            settings.schema_root,
            settings.domain,
            settings.version,
            sources=settings.sources,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            max_entry_bytes=settings.max_entry_bytes,
        )

    def _load_archive(self, loader: RemoteArchiveLoader) -> None:
        try:
            documents = loader.load()
        except ArchiveLoadError as exc:
            logger.warning("Remote schemas unavailable, using local sources only: %s", exc)
            return
        self._archive.put_many(documents)
        self._cache.put_many(documents)
        self.archive_loaded = True
        logger.info("Pre-loaded %d schemas from remote archive", len(documents))

    # -- Accessors ------------------------------------------------------------

    @property
    def schema_root(self) -> Path:
        return self._schema_root

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def version(self) -> str:
        return self._version

    @property
    def parsed_version(self) -> int:
        """Integer part of a ``v{digits}`` version, or 1 if it does not parse."""
        match = VERSION_PATTERN.match(self._version)
        return int(match.group(1)) if match else 1

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    # -- Loading --------------------------------------------------------------

    def load(self, category: str, name: str) -> SchemaDocument | None:
        """Load a schema using the bound domain and version."""
        return self.load_schema(self._domain, self._version, category, name)

    def load_schema(
        self,
        domain: str,
        version: str,
        category: str,
        name: str,
    ) -> SchemaDocument | None:
        """Load a schema by its full coordinates. Returns None if not found."""
        key = cache_key(domain, version, category, name)

        document = self._cache.get(key)
        if document is not None:
            logger.debug("Schema cache hit: %s", key)
            return document

        document = None
        if _is_plain_segment(domain, version, category, name):
            relative = (domain, version, category, f"{name}.json")
            document = self._load_from_filesystem(relative) or self._load_from_resources(relative)
        if document is None:
            document = self._archive.get(key)
        if document is None:
            logger.debug("Schema not found in any tier: %s", key)
            return None

        self._cache.put(key, document)
        return document

    def load_by_directory(self, domain: str, category: str, name: str) -> SchemaDocument | None:
        """Load a schema after discovering the domain's ``v{digits}`` directory."""
        version = self.discover_version(domain)
        if version is None:
            logger.debug("No version directory found for domain %s", domain)
            return None
        return self.load_schema(domain, version, category, name)

    def discover_version(self, domain: str) -> str | None:
        """Return the lowest-numbered ``v{digits}`` directory for *domain*.

        The filesystem root is searched first, then the bundled resources.
        """
        if not _is_plain_segment(domain):
            return None

        versions = self._version_dirs(self._schema_root / domain)
        if not versions:
            bundled = self._resource_base()
            if bundled is not None:
                versions = self._version_dirs(bundled.joinpath(domain))
        if not versions:
            return None
        return min(versions, key=lambda v: int(v[1:]))

    @staticmethod
    def _version_dirs(domain_dir: Path | Traversable) -> list[str]:
        try:
            if not domain_dir.is_dir():
                return []
            names = [p.name for p in domain_dir.iterdir() if p.is_dir()]
        except OSError as exc:
            logger.warning("Cannot list schema versions in %s: %s", domain_dir, exc)
            return []
        return [n for n in names if VERSION_PATTERN.match(n)]

    @staticmethod
    def load_from_string(content: str | bytes) -> SchemaDocument:
        """Parse an ad hoc schema. Not cached; raises SchemaParseError."""
        return SchemaDocument.from_json(content)

    @staticmethod
    def load_from_stream(stream: IO[str] | IO[bytes]) -> SchemaDocument:
        return SchemaDocument.from_stream(stream)

    def clear_cache(self) -> None:
        """Empty the cache. Archive-loaded schemas remain resolvable."""
        self._cache.clear()

    # -- Tiers ----------------------------------------------------------------

    def _load_from_filesystem(self, relative: tuple[str, ...]) -> SchemaDocument | None:
        path = self._schema_root.joinpath(*relative)
        try:
            if not path.is_file():
                return None
            return SchemaDocument.from_json(path.read_bytes())
        except (OSError, SchemaParseError) as exc:
            logger.warning("Ignoring unreadable schema file %s: %s", path, exc)
            return None

    def _resource_base(self) -> Traversable | None:
        try:
            return resources.files(self._resource_package).joinpath(self._resource_dir)
        except ModuleNotFoundError:
            logger.debug("Resource package %s is not importable", self._resource_package)
            return None

    def _load_from_resources(self, relative: tuple[str, ...]) -> SchemaDocument | None:
        base = self._resource_base()
        if base is None:
            return None
        resource = base.joinpath(*relative)
        try:
            if not resource.is_file():
                return None
            return SchemaDocument.from_json(resource.read_bytes())
        except (OSError, SchemaParseError) as exc:
            logger.warning("Ignoring unreadable bundled schema %s: %s", "/".join(relative), exc)
            return None
