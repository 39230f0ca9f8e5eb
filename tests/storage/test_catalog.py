"""Tests for the update catalog."""

import textwrap
import uuid

import pytest

from uplift.exceptions import CatalogError
from uplift.storage.catalog import UpdateCatalog
from uplift.updates.base import FunctionUpdate


UPDATE_MODULE = '''
from uplift.updates.base import SystemUpdate


class Update(SystemUpdate):
    @property
    def description(self):
        return "{description}"

    async def run_directly(self, db):
        pass
'''


def _make_package(tmp_path, monkeypatch, modules: dict[str, str]) -> str:
    name = f"updates_{uuid.uuid4().hex[:8]}"
    pkg = tmp_path / name
    pkg.mkdir()
    (pkg / "__init__.py").write_text("")
    for filename, source in modules.items():
        (pkg / filename).write_text(textwrap.dedent(source))
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


def test_applicable_selects_newer_versions_ascending(make_update):
    catalog = UpdateCatalog()
    for version in (10, 4, 7):
        catalog.register(version, lambda v=version: make_update(f"v{v}"))

    units = catalog.applicable(4)

    assert [u.version for u in units] == [7, 10]
    assert [u.description for u in units] == ["v7", "v10"]


def test_applicable_from_zero_returns_everything(make_update):
    catalog = UpdateCatalog()
    catalog.register(1, lambda: make_update("one"))
    catalog.register(2, lambda: make_update("two"))
    assert len(catalog.applicable(0)) == 2
    assert catalog.applicable(2) == []


def test_applicable_builds_fresh_units_each_time(make_update):
    catalog = UpdateCatalog()
    catalog.register(1, lambda: make_update("one"))
    assert catalog.applicable(0)[0] is not catalog.applicable(0)[0]


def test_duplicate_version_rejected(make_update):
    catalog = UpdateCatalog()
    catalog.register(3, lambda: make_update("a"))
    with pytest.raises(CatalogError):
        catalog.register(3, lambda: make_update("b"))


def test_non_positive_version_rejected(make_update):
    with pytest.raises(CatalogError):
        UpdateCatalog().register(0, lambda: make_update("a"))


def test_version_mismatch_rejected():
    catalog = UpdateCatalog()
    catalog.register(5, lambda: FunctionUpdate("declares 6", version=6))
    with pytest.raises(CatalogError):
        catalog.applicable(0)


def test_latest_version(make_update):
    catalog = UpdateCatalog()
    assert catalog.latest_version == 0
    catalog.register(12, lambda: make_update("a"))
    catalog.register(3, lambda: make_update("b"))
    assert catalog.latest_version == 12
    assert catalog.versions() == [3, 12]


def test_discover_registers_update_modules(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "u_002_add_column.py": UPDATE_MODULE.format(description="add column"),
        "u_001_baseline.py": UPDATE_MODULE.format(description="baseline"),
        "helpers.py": "VALUE = 1\n",
    })
    catalog = UpdateCatalog()

    found = catalog.discover(package)

    assert found == [1, 2]
    assert [u.description for u in catalog.applicable(0)] == ["baseline", "add column"]


def test_discover_skips_bad_version_names(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "u_draft_idea.py": UPDATE_MODULE.format(description="draft"),
        "u_003_real.py": UPDATE_MODULE.format(description="real"),
    })
    catalog = UpdateCatalog()
    assert catalog.discover(package) == [3]


def test_discover_requires_update_class(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "u_001_empty.py": "VALUE = 1\n",
    })
    with pytest.raises(CatalogError):
        UpdateCatalog().discover(package)


def test_discover_builtin_package():
    catalog = UpdateCatalog()
    assert 1 in catalog.discover("uplift.updates.builtin")
