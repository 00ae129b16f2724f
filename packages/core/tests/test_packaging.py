"""Packaging acceptance tests — verify the package is usable after install."""

from __future__ import annotations

from pathlib import Path

import pricebook
import pytest
import yaml


class TestImports:
    def test_core_models_importable(self):
        from pricebook import EstimateDraft, Offering, Package

        assert Offering is not None
        assert Package is not None
        assert EstimateDraft is not None

    def test_lazy_imports(self):
        from pricebook import Cart, Catalog, CatalogBrowser, CustomizationEngine, FilterState, PriceResolver

        assert Cart is not None
        assert Catalog is not None
        assert CatalogBrowser is not None
        assert CustomizationEngine is not None
        assert FilterState is not None
        assert PriceResolver is not None

    def test_invalid_import_raises(self):
        with pytest.raises(AttributeError):
            _ = pricebook.NoSuchThing  # type: ignore[attr-defined]


class TestVersion:
    def test_version_is_semver(self):
        parts = pricebook.__version__.split(".")
        assert len(parts) >= 2
        assert all(p.isdigit() for p in parts[:2])


class TestBundledData:
    def test_py_typed_exists(self):
        assert (Path(pricebook.__file__).parent / "py.typed").exists()

    def test_sample_catalog_loads(self):
        from pricebook.catalog import SAMPLE_CATALOG

        data = yaml.safe_load(SAMPLE_CATALOG.read_text())
        assert {"industries", "services", "offerings", "packages"} <= set(data)

    def test_sample_catalog_seeds(self, tmp_path):
        from pricebook.catalog import SAMPLE_CATALOG, Catalog, load_seed_file

        cat = Catalog(tmp_path / "sample.db")
        cat.seed(load_seed_file(SAMPLE_CATALOG))
        stats = cat.get_stats()
        assert stats["industry_count"] == 3
        assert stats["package_count"] > 0
        assert cat.get_offering("drain-cleaning").price == 150.0
