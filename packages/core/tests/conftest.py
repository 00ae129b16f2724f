"""Shared fixtures for core tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from pricebook.bundles import PackageAggregator
from pricebook.catalog import Catalog
from pricebook.customize import CustomizationEngine
from pricebook.pricing import PriceResolver

ORG_A = "org-a"
ORG_B = "org-b"

SEED = {
    "industries": [
        {"id": "plumbing", "name": "Plumbing"},
        {"id": "hvac", "name": "HVAC"},
    ],
    "services": [
        {"id": "drain-services", "name": "Drain Services", "category": "repair", "industry_id": "plumbing"},
        {"id": "inspection", "name": "Plumbing Inspection", "category": "inspection", "industry_id": "plumbing"},
        {"id": "hvac-maintenance", "name": "HVAC Maintenance", "category": "maintenance", "industry_id": "hvac"},
    ],
    "line_items": [
        {"id": "li-labor", "name": "Plumber labor", "price": 95, "unit": "hr", "category": "labor"},
        {"id": "li-snake", "name": "Drain snake", "price": 45, "unit": "day", "category": "equipment"},
        {"id": "li-enzyme", "name": "Enzyme treatment", "price": 18, "unit": "ea", "category": "material"},
    ],
    "offerings": [
        {
            "id": "drain-cleaning",
            "name": "Drain Cleaning",
            "service_id": "drain-services",
            "description": "Snake and flush one drain",
            "price": 150,
            "skill_level": "intermediate",
            "material_quality": "standard",
            "warranty_months": 3,
            "attributes": {"pipe_diameter": "2 inch", "pipe_material": "pvc", "includes_insulation": False},
            "items": [
                {"line_item_id": "li-labor", "quantity": 1.5},
                {"line_item_id": "li-snake", "quantity": 1, "is_optional": True},
            ],
        },
        {
            "id": "hydro-jetting",
            "name": "Hydro Jetting",
            "service_id": "drain-services",
            "price": 425,
            "skill_level": "advanced",
            "material_quality": "premium",
            "warranty_months": 12,
            "attributes": {"pipe_diameter": "4 inch", "pipe_material": "pvc"},
            "items": [{"line_item_id": "li-labor", "quantity": 3}],
        },
        {
            "id": "drain-treatment",
            "name": "Enzyme Drain Treatment",
            "service_id": "drain-services",
            "price": 75,
            "skill_level": "basic",
            "material_quality": "economy",
            "warranty_months": 0,
            "attributes": {"pipe_diameter": "2 inch"},
            "items": [{"line_item_id": "li-enzyme", "quantity": 2}],
        },
        {
            "id": "camera-inspection",
            "name": "Camera Inspection",
            "service_id": "inspection",
            "description": "Video inspection of the main line",
            "price": 250,
            "skill_level": "intermediate",
            "warranty_months": 0,
            "attributes": {"pipe_diameter": "4 inch", "includes_insulation": True},
        },
        {
            "id": "ac-tune-up",
            "name": "AC Tune-Up",
            "service_id": "hvac-maintenance",
            "price": 129,
            "skill_level": "intermediate",
            "warranty_months": 1,
            "attributes": {"seer": 16, "energy_star": True, "fuel_type": "electric"},
        },
    ],
    "packages": [
        {
            "id": "main-line-care",
            "name": "Main Line Care",
            "level": "complete",
            "industry_id": "plumbing",
            "description": "Inspect and treat the main line",
            "templates": [
                {"offering_id": "camera-inspection", "quantity": 1},
                {"offering_id": "drain-treatment", "quantity": 2},
                {"offering_id": "hydro-jetting", "quantity": 1, "is_optional": True},
            ],
        },
        {
            "id": "drain-essentials",
            "name": "Drain Essentials",
            "level": "essentials",
            "industry_id": "plumbing",
            "is_featured": True,
            "templates": [
                {"offering_id": "drain-cleaning", "quantity": 1},
                {"offering_id": "drain-treatment", "quantity": 1},
            ],
        },
        {
            "id": "org-a-special",
            "name": "Org A Special",
            "level": "deluxe",
            "industry_id": "plumbing",
            "organization_id": ORG_A,
            "templates": [{"offering_id": "hydro-jetting", "quantity": 1}],
        },
    ],
}


@pytest.fixture
def catalog(tmp_path: Path) -> Catalog:
    """A seeded catalog in a fresh SQLite file."""
    cat = Catalog(tmp_path / "catalog.db")
    cat.seed(SEED)
    return cat


@pytest.fixture
def resolver(catalog: Catalog) -> PriceResolver:
    return PriceResolver(catalog)


@pytest.fixture
def engine(catalog: Catalog) -> CustomizationEngine:
    return CustomizationEngine(catalog)


@pytest.fixture
def aggregator(resolver: PriceResolver) -> PackageAggregator:
    return PackageAggregator(resolver)


@pytest.fixture
def drain_cleaning(catalog: Catalog):
    return catalog.get_offering("drain-cleaning")
