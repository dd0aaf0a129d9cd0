"""Tests for remote schema archive loading.

All HTTP is mocked - either by patching ``httpx.get`` or through an
``httpx.MockTransport``. No real network calls are made.
"""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from pacts.core.archive import RemoteArchiveLoader, entry_key, parse_archive
from pacts.core.cache import SchemaCache, cache_key
from pacts.core.resolver import SchemaResolver
from pacts.exceptions import ArchiveEntryTooLargeError, ArchiveLoadError
from tests.conftest import make_zip

PRIMARY = "https://mirror-a.example.com/schemas.zip"
SECONDARY = "https://mirror-b.example.com/schemas.zip"
INVENTORY_KEY = cache_key("bees", "v1", "inventory", "inventory_item")


def _make_mock_response(status_code: int = 200, content: bytes = b"") -> MagicMock:
    """Build a mock httpx.Response with the given status and body."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    if status_code >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"{status_code}", request=MagicMock(), response=resp,
        )
    else:
        resp.raise_for_status = MagicMock()
    return resp


def _mark_encrypted(payload: bytes) -> bytes:
    """Set the encryption flag bit in every local and central file header."""
    data = bytearray(payload)
    for signature, flag_offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
        pos = data.find(signature)
        while pos != -1:
            data[pos + flag_offset] |= 0x01
            pos = data.find(signature, pos + 4)
    return bytes(data)


# ---------------------------------------------------------------------------
# Entry key derivation
# ---------------------------------------------------------------------------
class TestEntryKey:
    def test_last_three_segments(self):
        assert entry_key("repo-main/schemas/bees/v1/inventory/item.json") == cache_key(
            "bees", "v1", "inventory", "item"
        )

    def test_exactly_three_segments(self):
        assert entry_key("bees/v1/inventory/item.json") == cache_key("bees", "v1", "inventory", "item")

    def test_too_shallow_is_skipped(self):
        assert entry_key("v1/inventory/item.json") is None
        assert entry_key("item.json") is None

    def test_non_json_is_skipped(self):
        assert entry_key("bees/v1/inventory/item.yaml") is None


# ---------------------------------------------------------------------------
# Archive parsing
# ---------------------------------------------------------------------------
class TestParseArchive:
    def test_indexes_schema_entries(self, inventory_archive, inventory_schema):
        documents = parse_archive(inventory_archive)
        assert list(documents) == [INVENTORY_KEY]
        assert documents[INVENTORY_KEY].to_dict() == inventory_schema

    def test_skips_incidental_and_malformed_entries(self):
        payload = make_zip({
            "root/package.json": "{}",
            "root/bees/v1/inventory/broken.json": "{ nope",
            "root/bees/v1/inventory/good.json": '{"type": "object"}',
            "root/bees/v1/inventory/notes.txt": "hello",
        })
        documents = parse_archive(payload)
        assert list(documents) == [cache_key("bees", "v1", "inventory", "good")]

    def test_not_an_archive(self):
        import zipfile
        with pytest.raises(zipfile.BadZipFile):
            parse_archive(b"<html>503</html>")

    def test_oversized_entry_raises(self):
        big = json.dumps({"type": "object", "description": "x" * 2048})
        payload = make_zip({"bees/v1/inventory/big.json": big})
        with pytest.raises(ArchiveEntryTooLargeError) as excinfo:
            parse_archive(payload, max_entry_bytes=1024)
        assert excinfo.value.limit == 1024

    def test_keys_for_other_domains_are_kept(self):
        payload = make_zip({
            "wasps/v7/hive/queen.json": '{"type": "object"}',
            "bees/v1/inventory/item.json": '{"type": "object"}',
        })
        documents = parse_archive(payload)
        assert cache_key("wasps", "v7", "hive", "queen") in documents


# ---------------------------------------------------------------------------
# Source fallback
# ---------------------------------------------------------------------------
class TestRemoteArchiveLoader:
    def test_first_unreachable_second_succeeds(self, inventory_archive):
        responses = {SECONDARY: _make_mock_response(content=inventory_archive)}

        def fake_get(url, **kwargs):
            if url == PRIMARY:
                raise httpx.ConnectError("connection refused")
            return responses[url]

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get) as mock_get:
            documents = RemoteArchiveLoader([PRIMARY, SECONDARY]).load()

        assert INVENTORY_KEY in documents
        assert mock_get.call_count == 2

    def test_first_success_short_circuits(self, inventory_archive):
        resp = _make_mock_response(content=inventory_archive)
        with patch("pacts.core.archive.httpx.get", return_value=resp) as mock_get:
            RemoteArchiveLoader([PRIMARY, SECONDARY]).load()
        assert mock_get.call_count == 1

    def test_timeouts_are_passed(self, inventory_archive):
        resp = _make_mock_response(content=inventory_archive)
        with patch("pacts.core.archive.httpx.get", return_value=resp) as mock_get:
            RemoteArchiveLoader([PRIMARY], connect_timeout=2.0, read_timeout=7.0).load()
        timeout = mock_get.call_args.kwargs["timeout"]
        assert timeout.connect == 2.0
        assert timeout.read == 7.0

    def test_http_error_status_skips_source(self, inventory_archive):
        def fake_get(url, **kwargs):
            if url == PRIMARY:
                return _make_mock_response(status_code=404)
            return _make_mock_response(content=inventory_archive)

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            documents = RemoteArchiveLoader([PRIMARY, SECONDARY]).load()
        assert INVENTORY_KEY in documents

    def test_oversized_entry_fails_only_that_source(self, inventory_archive):
        oversized = make_zip({"bees/v1/inventory/huge.json": json.dumps({"d": "x" * 5000})})

        def fake_get(url, **kwargs):
            return _make_mock_response(content=oversized if url == PRIMARY else inventory_archive)

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            documents = RemoteArchiveLoader([PRIMARY, SECONDARY], max_entry_bytes=1024).load()
        assert list(documents) == [INVENTORY_KEY]

    def test_encrypted_entry_skips_source(self, inventory_archive):
        encrypted = _mark_encrypted(make_zip({"bees/v1/inventory/item.json": '{"type": "object"}'}))

        def fake_get(url, **kwargs):
            return _make_mock_response(content=encrypted if url == PRIMARY else inventory_archive)

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            documents = RemoteArchiveLoader([PRIMARY, SECONDARY]).load()
        assert list(documents) == [INVENTORY_KEY]

    @pytest.mark.parametrize("error", [
        RuntimeError("File is encrypted, password required for extraction"),
        NotImplementedError("That compression method is not supported"),
        ValueError("negative seek value"),
    ])
    def test_unreadable_archive_is_a_source_failure(self, error):
        resp = _make_mock_response(content=b"PK")
        with patch("pacts.core.archive.httpx.get", return_value=resp), \
                patch("pacts.core.archive.parse_archive", side_effect=error):
            with pytest.raises(ArchiveLoadError) as excinfo:
                RemoteArchiveLoader([PRIMARY]).load()
        source, reason = excinfo.value.failures[0]
        assert source == PRIMARY
        assert reason.startswith("not a valid archive")

    def test_deeply_nested_entry_is_skipped(self):
        payload = make_zip({
            "bees/v1/inventory/deep.json": "[" * 100000 + "]" * 100000,
            "bees/v1/inventory/inventory_item.json": '{"type": "object"}',
        })
        documents = parse_archive(payload)
        assert list(documents) == [INVENTORY_KEY]

    def test_empty_archive_counts_as_failure(self, inventory_archive):
        empty = make_zip({"README.md": "nothing here"})

        def fake_get(url, **kwargs):
            return _make_mock_response(content=empty if url == PRIMARY else inventory_archive)

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            documents = RemoteArchiveLoader([PRIMARY, SECONDARY]).load()
        assert INVENTORY_KEY in documents

    def test_all_sources_fail_raises_aggregate(self):
        def fake_get(url, **kwargs):
            if url == PRIMARY:
                raise httpx.ReadTimeout("timed out")
            return _make_mock_response(content=b"not a zip")

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            with pytest.raises(ArchiveLoadError) as excinfo:
                RemoteArchiveLoader([PRIMARY, SECONDARY]).load()

        failures = excinfo.value.failures
        assert [src for src, _ in failures] == [PRIMARY, SECONDARY]
        assert "not a valid archive" in failures[1][1]

    def test_no_sources_raises(self):
        with pytest.raises(ArchiveLoadError):
            RemoteArchiveLoader(["", "   "]).load()

    def test_mock_transport_client(self, inventory_archive):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "mirror-a.example.com":
                return httpx.Response(503)
            return httpx.Response(200, content=inventory_archive)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        cache = SchemaCache()
        count = RemoteArchiveLoader([PRIMARY, SECONDARY], client=client).load_into(cache)
        assert count == 1
        assert cache.get(INVENTORY_KEY) is not None


# ---------------------------------------------------------------------------
# Resolver integration
# ---------------------------------------------------------------------------
class TestResolverArchiveIntegration:
    def test_archive_schema_served_without_filesystem(self, tmp_path, inventory_archive, inventory_schema):
        def fake_get(url, **kwargs):
            if url == PRIMARY:
                raise httpx.ConnectError("unreachable")
            return _make_mock_response(content=inventory_archive)

        with patch("pacts.core.archive.httpx.get", side_effect=fake_get):
            resolver = SchemaResolver(tmp_path, "bees", "v1", sources=[PRIMARY, SECONDARY])

        assert resolver.archive_loaded is True
        with patch.object(resolver, "_load_from_filesystem") as fs, \
                patch.object(resolver, "_load_from_resources") as res:
            doc = resolver.load_schema("bees", "v1", "inventory", "inventory_item")
        fs.assert_not_called()
        res.assert_not_called()
        assert doc.to_dict() == inventory_schema

    def test_unreachable_sources_do_not_block_construction(self, resolver, schema_root):
        with patch("pacts.core.archive.httpx.get", side_effect=httpx.ConnectError("offline")):
            offline = SchemaResolver(schema_root, "widgets", "v1", sources=[PRIMARY])
        assert offline.archive_loaded is False
        assert offline.load("catalog", "widget") is not None

    def test_encrypted_archive_does_not_block_construction(self, schema_root):
        encrypted = _mark_encrypted(make_zip({"bees/v1/inventory/item.json": '{"type": "object"}'}))
        resp = _make_mock_response(content=encrypted)
        with patch("pacts.core.archive.httpx.get", return_value=resp):
            resolver = SchemaResolver(schema_root, "widgets", "v1", sources=[PRIMARY])
        assert resolver.archive_loaded is False
        assert resolver.load("catalog", "widget") is not None

    def test_failure_is_logged_as_warning(self, schema_root, caplog):
        with patch("pacts.core.archive.httpx.get", side_effect=httpx.ConnectError("offline")):
            with caplog.at_level("WARNING", logger="pacts"):
                SchemaResolver(schema_root, "widgets", "v1", sources=[PRIMARY])
        assert any("Remote schemas unavailable" in r.message for r in caplog.records)

    def test_archive_only_schema_survives_clear_cache(self, tmp_path):
        payload = make_zip({"wasps/v7/hive/queen.json": '{"required": ["id"]}'})
        with patch("pacts.core.archive.httpx.get", return_value=_make_mock_response(content=payload)):
            resolver = SchemaResolver(
                tmp_path, "bees", "v1", sources=[PRIMARY], resource_package="no_such_pacts_pkg"
            )
        resolver.clear_cache()
        doc = resolver.load_schema("wasps", "v7", "hive", "queen")
        assert doc is not None
        assert doc.required == ("id",)

    def test_filesystem_overrides_archive_after_clear(self, tmp_path, inventory_archive):
        from tests.conftest import write_schema
        write_schema(tmp_path, "bees", "v1", "inventory", "inventory_item", {"type": "array"})
        with patch("pacts.core.archive.httpx.get", return_value=_make_mock_response(content=inventory_archive)):
            resolver = SchemaResolver(tmp_path, "bees", "v1", sources=[PRIMARY])

        assert resolver.load("inventory", "inventory_item").schema_type == "object"
        resolver.clear_cache()
        assert resolver.load("inventory", "inventory_item").schema_type == "array"

    def test_injected_loader(self, tmp_path, inventory_archive):
        loader = MagicMock(spec=RemoteArchiveLoader)
        loader.load.return_value = parse_archive(inventory_archive)
        resolver = SchemaResolver(tmp_path, "bees", "v1", archive_loader=loader)
        loader.load.assert_called_once()
        assert INVENTORY_KEY in resolver.cache
