"""Package aggregation — prices a package's required and optional links."""

from __future__ import annotations

import logging

from pricebook.models import Package, PackageTotals, PricedLink
from pricebook.money import cents
from pricebook.pricing import PriceResolver

log = logging.getLogger(__name__)

# Preview discount on optional add-ons; display only, never stored
OPTIONAL_BUNDLE_RATE = 0.90


class PackageAggregator:
    def __init__(self, resolver: PriceResolver | None = None):
        self.resolver = resolver or PriceResolver()

    def package_totals(self, package: Package, organization_id: str | None) -> PackageTotals:
        """Sum effective link prices into required and optional totals.

        ``required_total`` is the package's cart price; optional links only
        feed the discounted preview.
        """
        links = self.priced_links(package, organization_id, include_optional=True)
        required = [link for link in links if not link.is_optional]
        optional = [link for link in links if link.is_optional]

        required_total = cents(sum(link.unit_price * link.quantity for link in required))
        optional_total = cents(sum(link.unit_price * link.quantity for link in optional))
        discounted = cents(optional_total * OPTIONAL_BUNDLE_RATE) if optional_total > 0 else 0.0

        return PackageTotals(
            required_total=required_total,
            optional_total=optional_total,
            discounted_optional_total=discounted,
            required_count=len(required),
            optional_count=len(optional),
        )

    def priced_links(
        self, package: Package, organization_id: str | None, include_optional: bool = False
    ) -> list[PricedLink]:
        """Per-link effective unit prices, in display order."""
        templates = package.templates if include_optional else package.required_links
        if not templates:
            return []
        resolved = self.resolver.resolve_many([t.offering for t in templates], organization_id)
        return [
            PricedLink(
                offering_id=t.offering.id,
                name=t.offering.name,
                unit=t.offering.unit,
                unit_price=r.price,
                quantity=t.quantity,
                is_optional=t.is_optional,
            )
            for t, r in zip(templates, resolved)
        ]
