"""Shared test fixtures for the pacts test suite."""

import io
import json
import os
import zipfile
from pathlib import Path

import pytest

# Keep developer environment settings out of the tests
for _var in [v for v in os.environ if v.startswith("PACTS_")]:
    del os.environ[_var]

from pacts.core.resolver import SchemaResolver


INVENTORY_SCHEMA = {
    "type": "object",
    "required": ["id", "name"],
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
    },
}


def write_schema(root: Path, domain: str, version: str, category: str, name: str, body) -> Path:
    """Write a schema file under the standard layout and return its path."""
    path = root / domain / version / category / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(body, str):
        path.write_text(body, encoding="utf-8")
    else:
        path.write_text(json.dumps(body), encoding="utf-8")
    return path


def make_zip(entries: dict[str, bytes | str]) -> bytes:
    """Build an in-memory zip archive from ``{entry_name: content}``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buf.getvalue()


@pytest.fixture
def inventory_schema():
    return json.loads(json.dumps(INVENTORY_SCHEMA))


@pytest.fixture
def schema_root(tmp_path):
    """A filesystem schema tree with one ``widgets/v1/catalog/widget`` schema."""
    root = tmp_path / "schemas"
    write_schema(root, "widgets", "v1", "catalog", "widget", {
        "type": "object",
        "required": ["sku"],
        "properties": {"sku": {"type": "string"}, "price": {"type": "number"}},
    })
    return root


@pytest.fixture
def resolver(schema_root):
    return SchemaResolver(schema_root, "widgets", "v1")


@pytest.fixture
def inventory_archive(inventory_schema):
    """Archive bytes holding ``bees/v1/inventory/inventory_item.json``."""
    return make_zip({
        "schemas-main/": "",
        "schemas-main/README.md": "# schemas",
        "schemas-main/bees/v1/inventory/inventory_item.json": json.dumps(inventory_schema),
    })
