"""Tests for package aggregation."""

from __future__ import annotations

import pytest
from pricebook.bundles import PackageAggregator
from pricebook.catalog import Catalog
from pricebook.customize import CustomizationEngine
from pricebook.models import Package, PackageTemplate, PackageTotals

ORG_A = "org-a"


class TestPackageTotals:
    def test_required_and_optional_split(self, catalog: Catalog, aggregator: PackageAggregator):
        totals = aggregator.package_totals(catalog.get_package("main-line-care"), None)
        # camera 250 + treatment 75 x 2
        assert totals.required_total == 400.0
        assert totals.base_price == 400.0
        assert totals.optional_total == 425.0
        assert totals.discounted_optional_total == round(425.0 * 0.9, 2)
        assert totals.required_count == 2
        assert totals.optional_count == 1
        assert totals.item_count == 3
        assert totals.potential_total == 825.0
        assert totals.bundle_savings == 42.5
        assert totals.completion_percentage == round(400 / 825 * 100)

    def test_no_optional_links(self, catalog: Catalog, aggregator: PackageAggregator):
        totals = aggregator.package_totals(catalog.get_package("drain-essentials"), None)
        assert totals.required_total == 225.0
        assert totals.optional_total == 0.0
        assert totals.discounted_optional_total == 0.0
        assert totals.completion_percentage == 100

    def test_uses_effective_prices(self, catalog: Catalog, aggregator: PackageAggregator, engine: CustomizationEngine):
        engine.customize(catalog.get_offering("drain-treatment"), ORG_A, 80)
        engine.customize(catalog.get_offering("hydro-jetting"), ORG_A, 400)
        pkg = catalog.get_package("main-line-care")

        org_totals = aggregator.package_totals(pkg, ORG_A)
        assert org_totals.required_total == 250 + 80 * 2
        assert org_totals.optional_total == 400.0
        assert org_totals.discounted_optional_total == 360.0

        shared_totals = aggregator.package_totals(pkg, "org-b")
        assert shared_totals.required_total == 400.0

    def test_empty_package(self, aggregator: PackageAggregator):
        totals = aggregator.package_totals(Package(id="empty", name="Empty"), ORG_A)
        assert totals == PackageTotals()
        assert totals.completion_percentage == 0


class TestPricedLinks:
    def test_required_only_by_default(self, catalog: Catalog, aggregator: PackageAggregator):
        links = aggregator.priced_links(catalog.get_package("main-line-care"), None)
        assert [(link.offering_id, link.unit_price, link.quantity) for link in links] == [
            ("camera-inspection", 250.0, 1),
            ("drain-treatment", 75.0, 2),
        ]

    def test_include_optional(self, catalog: Catalog, aggregator: PackageAggregator):
        links = aggregator.priced_links(catalog.get_package("main-line-care"), None, include_optional=True)
        assert [link.is_optional for link in links] == [False, False, True]


class TestPackageModel:
    def test_link_quantity_must_be_positive(self, catalog: Catalog):
        with pytest.raises(ValueError):
            PackageTemplate(offering=catalog.get_offering("drain-cleaning"), quantity=0)
