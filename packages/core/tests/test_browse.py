"""Tests for the catalog browser."""

from __future__ import annotations

import pytest
from pricebook.browse import CatalogBrowser, search_matches
from pricebook.catalog import Catalog
from pricebook.customize import CustomizationEngine

ORG_A = "org-a"
ORG_B = "org-b"


@pytest.fixture
def browser(catalog: Catalog, resolver, aggregator) -> CatalogBrowser:
    return CatalogBrowser(catalog, resolver, aggregator)


def _names(items) -> list[str]:
    return [i.offering.name for i in items]


class TestSearch:
    def test_name_and_description(self, catalog: Catalog):
        camera = catalog.get_offering("camera-inspection")
        assert search_matches(camera, "CAMERA")
        assert search_matches(camera, "main line")
        assert not search_matches(camera, "jetting")

    def test_empty_query_matches(self, drain_cleaning):
        assert search_matches(drain_cleaning, "")
        assert search_matches(drain_cleaning, None)

    def test_attribute_keys_and_values(self, drain_cleaning):
        assert search_matches(drain_cleaning, "pipe_material")
        assert search_matches(drain_cleaning, "PVC")

    def test_true_boolean_attribute_by_phrase(self, catalog: Catalog, drain_cleaning):
        camera = catalog.get_offering("camera-inspection")
        assert search_matches(camera, "includes insulation")
        # includes_insulation is False on drain cleaning
        assert not search_matches(drain_cleaning, "includes insulation")

    def test_numeric_attribute(self, catalog: Catalog):
        tune_up = catalog.get_offering("ac-tune-up")
        assert search_matches(tune_up, "16")
        assert not search_matches(tune_up, "18")

    def test_service_name(self, catalog: Catalog, drain_cleaning):
        assert search_matches(drain_cleaning, "drain services", catalog.get_service("drain-services"))


class TestOfferings:
    def test_shared_only_without_organization(self, browser: CatalogBrowser, engine: CustomizationEngine, drain_cleaning):
        engine.customize(drain_cleaning, ORG_A, 175)
        items = browser.offerings(None, industry_id="plumbing")
        assert len(items) == 4
        assert all(i.offering.is_shared for i in items)
        assert not any(i.is_customized for i in items)

    def test_customized_copy_replaces_shared(self, browser: CatalogBrowser, engine: CustomizationEngine, drain_cleaning):
        engine.customize(drain_cleaning, ORG_A, 175)
        items = browser.offerings(ORG_A, industry_id="plumbing")
        assert _names(items).count("Drain Cleaning") == 1

        cleaning = next(i for i in items if i.offering.name == "Drain Cleaning")
        assert cleaning.offering.organization_id == ORG_A
        assert cleaning.price == 175.0
        assert cleaning.is_customized

        other = browser.offerings(ORG_B, industry_id="plumbing")
        cleaning_b = next(i for i in other if i.offering.name == "Drain Cleaning")
        assert cleaning_b.price == 150.0
        assert not cleaning_b.is_customized

    def test_industry_scope(self, browser: CatalogBrowser):
        assert _names(browser.offerings(None, industry_id="hvac")) == ["AC Tune-Up"]
        assert len(browser.offerings(None)) == 5

    def test_service_scope(self, browser: CatalogBrowser):
        assert _names(browser.offerings(None, service_id="inspection")) == ["Camera Inspection"]

    def test_attribute_filters(self, browser: CatalogBrowser):
        items = browser.offerings(None, industry_id="plumbing", filters={"pipe_diameter": "2 inch"})
        assert _names(items) == ["Drain Cleaning", "Enzyme Drain Treatment"]

    def test_search_and_filters_combine(self, browser: CatalogBrowser):
        items = browser.offerings(None, query="pvc", filters={"pipe_diameter": "4 inch"})
        assert _names(items) == ["Hydro Jetting"]

    def test_sort_by_price(self, browser: CatalogBrowser):
        items = browser.offerings(None, industry_id="plumbing", sort_by="price")
        assert [i.price for i in items] == [75.0, 150.0, 250.0, 425.0]
        desc = browser.offerings(None, industry_id="plumbing", sort_by="price", descending=True)
        assert [i.price for i in desc] == [425.0, 250.0, 150.0, 75.0]

    def test_sort_uses_effective_price(self, browser: CatalogBrowser, engine: CustomizationEngine, catalog: Catalog):
        engine.customize(catalog.get_offering("hydro-jetting"), ORG_A, 50)
        items = browser.offerings(ORG_A, industry_id="plumbing", sort_by="price")
        assert items[0].offering.name == "Hydro Jetting"

    def test_sort_by_rank(self, browser: CatalogBrowser):
        skill = browser.offerings(None, industry_id="plumbing", sort_by="skill_level", descending=True)
        assert skill[0].offering.name == "Hydro Jetting"
        quality = browser.offerings(None, industry_id="plumbing", sort_by="material_quality")
        # Camera inspection has no material quality and ranks lowest
        assert _names(quality)[:2] == ["Camera Inspection", "Enzyme Drain Treatment"]
        warranty = browser.offerings(None, industry_id="plumbing", sort_by="warranty", descending=True)
        assert warranty[0].offering.warranty_months == 12

    def test_unknown_sort_key(self, browser: CatalogBrowser):
        with pytest.raises(ValueError, match="Unknown sort key"):
            browser.offerings(None, sort_by="popularity")


class TestServices:
    def test_grouped_by_category_priority(self, browser: CatalogBrowser):
        groups = browser.services(None, industry_id="plumbing")
        # inspection ranks ahead of repair
        assert [g.service.id for g in groups] == ["inspection", "drain-services"]
        drains = groups[1]
        assert drains.offering_count == 3
        assert (drains.min_price, drains.max_price) == (75.0, 425.0)

    def test_customized_count(self, browser: CatalogBrowser, engine: CustomizationEngine, drain_cleaning):
        engine.customize(drain_cleaning, ORG_A, 500)
        drains = next(g for g in browser.services(ORG_A, industry_id="plumbing") if g.service.id == "drain-services")
        assert drains.customized_count == 1
        assert drains.max_price == 500.0

    def test_empty_groups_dropped(self, browser: CatalogBrowser):
        groups = browser.services(None, industry_id="plumbing", query="camera")
        assert [g.service.id for g in groups] == ["inspection"]


class TestPackages:
    def test_shared_packages_in_level_order(self, browser: CatalogBrowser):
        priced = browser.packages(None, industry_id="plumbing")
        assert [p.package.id for p in priced] == ["drain-essentials", "main-line-care"]
        assert priced[1].totals.required_total == 400.0

    def test_org_packages_visible_to_owner_only(self, browser: CatalogBrowser):
        assert "org-a-special" in [p.package.id for p in browser.packages(ORG_A)]
        assert "org-a-special" not in [p.package.id for p in browser.packages(ORG_B)]

    def test_level_and_query(self, browser: CatalogBrowser):
        assert [p.package.id for p in browser.packages(None, level="complete")] == ["main-line-care"]
        assert [p.package.id for p in browser.packages(None, query="treat")] == ["main-line-care"]

    def test_totals_use_org_prices(self, browser: CatalogBrowser, engine: CustomizationEngine, catalog: Catalog):
        engine.customize(catalog.get_offering("camera-inspection"), ORG_A, 300)
        priced = {p.package.id: p for p in browser.packages(ORG_A, industry_id="plumbing")}
        assert priced["main-line-care"].totals.required_total == 450.0
