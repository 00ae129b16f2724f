"""Tests for the SQLite catalog store and seeding."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from pricebook.catalog import SAMPLE_CATALOG, Catalog, load_seed_file
from pricebook.errors import ConflictError, NotFoundError, StoreError, ValidationError
from pricebook.models import Offering, ServiceCategory

ORG_A = "org-a"


class TestCatalogReads:
    def test_stats(self, catalog: Catalog):
        stats = catalog.get_stats()
        assert stats["industry_count"] == 2
        assert stats["service_count"] == 3
        assert stats["offering_count"] == 5
        assert stats["shared_offering_count"] == 5
        assert stats["customized_offering_count"] == 0
        assert stats["package_count"] == 3

    def test_find_industry_by_name_case_insensitive(self, catalog: Catalog):
        assert catalog.find_industry("plumbing").id == "plumbing"
        assert catalog.find_industry("hvac").id == "hvac"
        assert catalog.find_industry("HVAC").name == "HVAC"
        assert catalog.find_industry("roofing") is None

    def test_list_services_by_industry(self, catalog: Catalog):
        services = catalog.list_services("plumbing")
        assert {s.id for s in services} == {"drain-services", "inspection"}
        assert catalog.get_service("inspection").category == ServiceCategory.INSPECTION

    def test_get_offering_loads_items_in_order(self, catalog: Catalog):
        off = catalog.get_offering("drain-cleaning")
        assert off.price == 150
        assert off.is_shared
        assert [i.line_item.id for i in off.items] == ["li-labor", "li-snake"]
        assert off.items[1].is_optional is True
        assert off.attributes["includes_insulation"] is False

    def test_get_offering_missing(self, catalog: Catalog):
        assert catalog.get_offering("nope") is None

    def test_list_offerings_filters(self, catalog: Catalog):
        drain = catalog.list_offerings(service_id="drain-services")
        assert len(drain) == 3
        hvac = catalog.list_offerings(industry_id="hvac")
        assert [o.id for o in hvac] == ["ac-tune-up"]
        assert catalog.list_offerings(organization_id=ORG_A) == []

    def test_get_package_links(self, catalog: Catalog):
        pkg = catalog.get_package("main-line-care")
        assert [t.offering.id for t in pkg.required_links] == ["camera-inspection", "drain-treatment"]
        assert [t.offering.id for t in pkg.optional_links] == ["hydro-jetting"]
        assert pkg.required_links[1].quantity == 2

    def test_list_packages_visibility(self, catalog: Catalog):
        shared_and_a = {p.id for p in catalog.list_packages(visible_to=ORG_A)}
        assert "org-a-special" in shared_and_a
        others = {p.id for p in catalog.list_packages(visible_to="org-b")}
        assert "org-a-special" not in others

    def test_list_packages_level_order(self, catalog: Catalog):
        levels = [p.level.value for p in catalog.list_packages(industry_id="plumbing")]
        assert levels == ["essentials", "complete", "deluxe"]


class TestCatalogWrites:
    def _copy(self, catalog: Catalog, org: str = ORG_A) -> Offering:
        source = catalog.get_offering("drain-cleaning")
        draft = source.model_copy(update={"id": "", "organization_id": org, "price": 175.0, "items": []})
        return catalog.insert_offering(draft)

    def test_insert_offering_generates_id(self, catalog: Catalog):
        created = self._copy(catalog)
        assert created.id
        assert created.id != "drain-cleaning"
        stored = catalog.get_offering(created.id)
        assert stored.organization_id == ORG_A
        assert stored.price == 175.0
        assert stored.items == []

    def test_unique_customization_key(self, catalog: Catalog):
        self._copy(catalog)
        with pytest.raises(ConflictError):
            self._copy(catalog)

    def test_unique_key_is_per_organization(self, catalog: Catalog):
        self._copy(catalog, ORG_A)
        self._copy(catalog, "org-b")
        assert catalog.get_stats()["customized_offering_count"] == 2

    def test_find_customization(self, catalog: Catalog):
        assert catalog.find_customization(ORG_A, "drain-services", "Drain Cleaning") is None
        created = self._copy(catalog)
        found = catalog.find_customization(ORG_A, "drain-services", "Drain Cleaning")
        assert found.id == created.id
        assert catalog.find_customization("org-b", "drain-services", "Drain Cleaning") is None

    def test_customizations_for(self, catalog: Catalog):
        created = self._copy(catalog)
        result = catalog.customizations_for(ORG_A, ["drain-services"])
        assert result[("drain-services", "Drain Cleaning")].id == created.id
        assert catalog.customizations_for(ORG_A, ["inspection"]) == {}

    def test_insert_items_and_delete(self, catalog: Catalog):
        source = catalog.get_offering("drain-cleaning")
        created = self._copy(catalog)
        items = catalog.insert_offering_items(created.id, source.items)
        assert all(i.offering_id == created.id for i in items)
        assert len(catalog.get_offering(created.id).items) == 2

        assert catalog.delete_offering(created.id) is True
        assert catalog.get_offering(created.id) is None
        assert catalog.delete_offering(created.id) is False

    def test_update_price(self, catalog: Catalog):
        updated = catalog.update_offering_price("drain-cleaning", 160.0)
        assert updated.price == 160.0
        assert catalog.get_offering("drain-cleaning").price == 160.0

    def test_update_price_missing(self, catalog: Catalog):
        with pytest.raises(NotFoundError):
            catalog.update_offering_price("nope", 10.0)

    def test_sqlite_errors_become_store_errors(self, catalog: Catalog):
        source = catalog.get_offering("drain-cleaning")
        orphan = source.model_copy(update={"id": "", "service_id": "no-such-service", "organization_id": ORG_A})
        with pytest.raises(StoreError):
            catalog.insert_offering(orphan)

    def test_metadata(self, catalog: Catalog):
        assert catalog.get_metadata("seeded_from") is None
        catalog.set_metadata("seeded_from", "test")
        assert catalog.get_metadata("seeded_from") == "test"


class TestSeeding:
    def test_seed_is_idempotent(self, tmp_path: Path):
        catalog = Catalog(tmp_path / "twice.db")
        data = load_seed_file(SAMPLE_CATALOG)
        catalog.seed(data)
        first = catalog.get_stats()
        catalog.seed(data)
        assert catalog.get_stats() == first
        assert len(catalog.get_offering("drain-cleaning").items) == 2

    def test_bundled_sample_loads(self, tmp_path: Path):
        catalog = Catalog(tmp_path / "sample.db")
        counts = catalog.seed(load_seed_file(SAMPLE_CATALOG))
        assert counts["offerings"] > 0
        drain = catalog.get_offering("drain-cleaning")
        assert drain.price == 150
        assert len(drain.items) == 2

    def test_seed_from_json(self, tmp_path: Path):
        path = tmp_path / "seed.json"
        path.write_text(
            json.dumps(
                {
                    "industries": [{"id": "roofing", "name": "Roofing"}],
                    "services": [{"id": "reroof", "name": "Re-roof", "category": "not-a-category"}],
                    "offerings": [{"id": "shingle", "name": "Shingle Roof", "service_id": "reroof", "price": 9000}],
                }
            )
        )
        catalog = Catalog(tmp_path / "json.db")
        catalog.seed(load_seed_file(path))
        assert catalog.get_service("reroof").category == ServiceCategory.UNCATEGORIZED
        assert catalog.get_offering("shingle").price == 9000

    def test_seed_unknown_line_item(self, tmp_path: Path):
        catalog = Catalog(tmp_path / "bad.db")
        data = {
            "services": [{"id": "svc", "name": "Svc"}],
            "offerings": [{"id": "o", "name": "O", "service_id": "svc", "items": [{"line_item_id": "missing"}]}],
        }
        with pytest.raises(ValidationError):
            catalog.seed(data)
        assert catalog.get_offering("o") is None

        # A corrected re-seed creates the offering with its items
        data["line_items"] = [{"id": "missing", "name": "Found", "price": 10}]
        catalog.seed(data)
        assert [i.line_item.id for i in catalog.get_offering("o").items] == ["missing"]

    def test_seed_item_insert_failure_leaves_no_offering(self, tmp_path: Path):
        catalog = Catalog(tmp_path / "flaky.db")
        data = {
            "services": [{"id": "svc", "name": "Svc"}],
            "line_items": [{"id": "li", "name": "Labor", "price": 50}],
            "offerings": [{"id": "o", "name": "O", "service_id": "svc", "items": [{"line_item_id": "li"}]}],
        }
        with patch.object(catalog, "insert_offering_items", side_effect=StoreError("disk full")):
            with pytest.raises(StoreError):
                catalog.seed(data)
        assert catalog.get_offering("o") is None

    def test_seed_file_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text(yaml.dump([1, 2, 3]))
        with pytest.raises(ValidationError):
            load_seed_file(path)

    def test_seed_file_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_seed_file(tmp_path / "nope.yaml")

    def test_schema_declares_partial_unique_index(self, catalog: Catalog):
        conn = sqlite3.connect(str(catalog.db_path))
        try:
            row = conn.execute(
                "SELECT sql FROM sqlite_master WHERE type = 'index' AND name = 'idx_offering_org_key'"
            ).fetchone()
        finally:
            conn.close()
        assert "WHERE organization_id IS NOT NULL" in row[0]
