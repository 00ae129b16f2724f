"""Catalog seeding from YAML or JSON documents.

A seed document has top-level lists ``industries``, ``services``,
``line_items``, ``offerings`` and ``packages``. Offerings may nest their line
items as ``items: [{line_item_id, quantity, is_optional}]`` and packages nest
their links as ``templates: [{offering_id, quantity, is_optional}]``.
Seeding is idempotent: records whose id already exists are left untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from pricebook.errors import ConflictError, StoreError, ValidationError
from pricebook.models import Industry, LineItem, Offering, OfferingItem, Package, Service

log = logging.getLogger(__name__)

SAMPLE_CATALOG = Path(__file__).parent.parent / "data" / "catalog.yaml"


def load_seed_file(path: str | Path) -> dict:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")
    text = path.read_text()
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValidationError(f"Seed file {path} must contain a mapping at the top level")
    return data


def seed_catalog(catalog, data: dict) -> dict:
    """Insert every record in ``data`` into ``catalog`` and return per-kind counts."""
    counts = {"industries": 0, "services": 0, "line_items": 0, "offerings": 0, "packages": 0}

    for raw in data.get("industries", []):
        catalog.insert_industry(Industry(**raw))
        counts["industries"] += 1

    for raw in data.get("services", []):
        catalog.insert_service(Service(**raw))
        counts["services"] += 1

    line_items: dict[str, LineItem] = {}
    for raw in data.get("line_items", []):
        item = LineItem(**raw)
        catalog.insert_line_item(item)
        line_items[item.id] = item
        counts["line_items"] += 1
    for existing in catalog.list_line_items():
        line_items.setdefault(existing.id, existing)

    for raw in data.get("offerings", []):
        raw = dict(raw)
        item_specs = raw.pop("items", [])
        offering = Offering(**raw)
        if catalog.get_offering(offering.id) is not None:
            log.debug("Offering %s already seeded", offering.id)
            continue
        # Resolve every line item before the parent row exists
        items = []
        for i, spec in enumerate(item_specs):
            line_item = line_items.get(spec["line_item_id"])
            if line_item is None:
                raise ValidationError(
                    f"Offering {offering.id!r} references unknown line item {spec['line_item_id']!r}"
                )
            items.append(
                OfferingItem(
                    line_item=line_item,
                    quantity=spec.get("quantity", 1),
                    is_optional=spec.get("is_optional", False),
                    display_order=spec.get("display_order", i),
                )
            )
        try:
            catalog.insert_offering(offering)
        except ConflictError:
            log.warning("Skipping seed offering %s: duplicate of an existing customization", offering.id)
            continue
        if items:
            try:
                catalog.insert_offering_items(offering.id, items)
            except StoreError:
                catalog.delete_offering(offering.id)
                raise
        counts["offerings"] += 1

    for raw in data.get("packages", []):
        raw = dict(raw)
        links = raw.pop("templates", [])
        catalog.insert_package(Package(**raw), links=links)
        counts["packages"] += 1

    log.info(
        "Seeded catalog: %d industries, %d services, %d offerings, %d packages",
        counts["industries"],
        counts["services"],
        counts["offerings"],
        counts["packages"],
    )
    return counts
