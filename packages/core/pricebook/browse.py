"""Catalog browser — search, filter, sort and group the catalog as one organization sees it."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pricebook.bundles import PackageAggregator
from pricebook.catalog import Catalog
from pricebook.filters import matches
from pricebook.models import (
    MATERIAL_QUALITIES,
    SKILL_LEVELS,
    Offering,
    PricedOffering,
    PricedPackage,
    Service,
    ServiceCategory,
    ServiceGroup,
)
from pricebook.pricing import PriceResolver

log = logging.getLogger(__name__)

SORT_KEYS = ("name", "price", "warranty", "skill_level", "material_quality")

_CATEGORY_PRIORITY = {
    ServiceCategory.CONSULTATION: 1,
    ServiceCategory.INSPECTION: 2,
    ServiceCategory.PREPARATION: 3,
    ServiceCategory.INSTALLATION: 4,
    ServiceCategory.REPAIR: 5,
    ServiceCategory.MAINTENANCE: 6,
    ServiceCategory.FINISHING: 7,
}
_SKILL_RANK = {level: i + 1 for i, level in enumerate(SKILL_LEVELS)}
_QUALITY_RANK = {quality: i + 1 for i, quality in enumerate(MATERIAL_QUALITIES)}


def search_matches(offering: Offering, query: str | None, service: Service | None = None) -> bool:
    """Case-insensitive free-text match over an offering and its attributes."""
    if not query:
        return True
    q = query.lower()
    if q in offering.name.lower() or q in (offering.description or "").lower():
        return True
    if service is not None and q in service.name.lower():
        return True
    for key, value in offering.attributes.items():
        if q in key.lower():
            return True
        if isinstance(value, bool):
            # "energy star" finds energy_star: true
            if value and key.replace("_", " ").lower() in q:
                return True
        elif isinstance(value, str):
            if q in value.lower():
                return True
        elif isinstance(value, (int, float)):
            if q in _number_text(value):
                return True
    return False


def _number_text(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _sort_key(item: PricedOffering, sort_by: str) -> Any:
    off = item.offering
    if sort_by == "price":
        return item.price
    if sort_by == "warranty":
        return off.warranty_months or 0
    if sort_by == "skill_level":
        return _SKILL_RANK.get(off.skill_level or "", 0)
    if sort_by == "material_quality":
        return _QUALITY_RANK.get(off.material_quality or "", 0)
    return off.name.lower()


class CatalogBrowser:
    def __init__(
        self,
        catalog: Catalog | None = None,
        resolver: PriceResolver | None = None,
        aggregator: PackageAggregator | None = None,
    ):
        self.catalog = catalog or Catalog()
        self.resolver = resolver or PriceResolver(self.catalog)
        self.aggregator = aggregator or PackageAggregator(self.resolver)

    def offerings(
        self,
        organization_id: str | None,
        industry_id: str | None = None,
        query: str | None = None,
        filters: Mapping[str, Any] | None = None,
        sort_by: str = "name",
        descending: bool = False,
        service_id: str | None = None,
    ) -> list[PricedOffering]:
        """Visible offerings with effective prices.

        A shared offering the organization has customized is listed once, as
        the organization's copy.
        """
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {sort_by!r}; expected one of {', '.join(SORT_KEYS)}")

        if organization_id:
            visible = self.catalog.list_offerings(
                service_id=service_id, industry_id=industry_id, visible_to=organization_id
            )
            owned = {(o.service_id, o.name) for o in visible if o.organization_id == organization_id}
            visible = [o for o in visible if not (o.is_shared and (o.service_id, o.name) in owned)]
        else:
            visible = self.catalog.list_offerings(service_id=service_id, industry_id=industry_id, shared_only=True)

        services = {s.id: s for s in self.catalog.list_services(industry_id)}
        selected = [
            o
            for o in visible
            if matches(o, filters) and search_matches(o, query, services.get(o.service_id))
        ]
        resolved = self.resolver.resolve_many(selected, organization_id)
        priced = [
            PricedOffering(
                offering=o,
                service=services.get(o.service_id),
                price=r.price,
                is_customized=r.is_customized,
            )
            for o, r in zip(selected, resolved)
        ]
        priced.sort(key=lambda p: _sort_key(p, sort_by), reverse=descending)
        log.debug("Browser returned %d of %d visible offerings", len(priced), len(visible))
        return priced

    def services(
        self,
        organization_id: str | None,
        industry_id: str | None = None,
        query: str | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> list[ServiceGroup]:
        """Group visible offerings by service, most fundamental categories first."""
        groups: dict[str, ServiceGroup] = {}
        for item in self.offerings(organization_id, industry_id=industry_id, query=query, filters=filters):
            if item.service is None:
                continue
            group = groups.get(item.service.id)
            if group is None:
                group = groups[item.service.id] = ServiceGroup(service=item.service)
            group.offerings.append(item)

        for group in groups.values():
            prices = [p.price for p in group.offerings]
            group.min_price = min(prices)
            group.max_price = max(prices)
            group.customized_count = sum(1 for p in group.offerings if p.is_customized)

        return sorted(
            groups.values(),
            key=lambda g: (
                _CATEGORY_PRIORITY.get(g.service.category, 99),
                -g.offering_count,
                g.service.name.lower(),
            ),
        )

    def packages(
        self,
        organization_id: str | None,
        industry_id: str | None = None,
        level: str | None = None,
        query: str | None = None,
    ) -> list[PricedPackage]:
        packages = self.catalog.list_packages(industry_id=industry_id, level=level, visible_to=organization_id)
        if not organization_id:
            packages = [p for p in packages if p.organization_id is None]
        if query:
            q = query.lower()
            packages = [p for p in packages if q in p.name.lower() or q in (p.description or "").lower()]
        return [
            PricedPackage(package=p, totals=self.aggregator.package_totals(p, organization_id)) for p in packages
        ]
