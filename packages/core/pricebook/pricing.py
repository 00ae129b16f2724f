"""Price resolution — the effective price of an offering for one organization."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pricebook.catalog import Catalog
from pricebook.errors import NotFoundError
from pricebook.models import Offering, ResolvedPrice

log = logging.getLogger(__name__)


def shared_source(catalog: Catalog, offering: Offering) -> Offering:
    """The shared offering behind an organization's copy.

    Raises NotFoundError when the copy has no shared counterpart, so one
    organization's private price is never shown to another.
    """
    shared = catalog.find_shared(offering.service_id, offering.name)
    if shared is None:
        raise NotFoundError(f"Offering {offering.id!r} belongs to another organization")
    return shared


class PriceResolver:
    """Resolves shared vs organization-customized prices.

    An organization customizes a shared offering by owning a copy with the
    same (service_id, name); that copy's price wins for that organization and
    nobody else. Another organization's copy resolves as the shared offering
    it was made from.
    """

    def __init__(self, catalog: Catalog | None = None):
        self.catalog = catalog or Catalog()

    def effective_price(self, offering: Offering, organization_id: str | None) -> ResolvedPrice:
        if not organization_id:
            return ResolvedPrice(price=offering.price, is_customized=False, offering_id=offering.id)

        if offering.organization_id == organization_id:
            return ResolvedPrice(price=offering.price, is_customized=True, offering_id=offering.id)
        if offering.organization_id is not None:
            offering = shared_source(self.catalog, offering)

        custom = self.catalog.find_customization(organization_id, offering.service_id, offering.name)
        if custom is not None:
            return ResolvedPrice(price=custom.price, is_customized=True, offering_id=custom.id)
        return ResolvedPrice(price=offering.price, is_customized=False, offering_id=offering.id)

    def resolve_many(self, offerings: Iterable[Offering], organization_id: str | None) -> list[ResolvedPrice]:
        """Resolve a batch with one query for the organization's customizations."""
        offerings = list(offerings)
        if not organization_id:
            return [ResolvedPrice(price=o.price, is_customized=False, offering_id=o.id) for o in offerings]

        custom = self.catalog.customizations_for(organization_id, {o.service_id for o in offerings})
        resolved = []
        for off in offerings:
            if off.organization_id == organization_id:
                resolved.append(ResolvedPrice(price=off.price, is_customized=True, offering_id=off.id))
                continue
            copy = custom.get((off.service_id, off.name))
            if copy is not None:
                resolved.append(ResolvedPrice(price=copy.price, is_customized=True, offering_id=copy.id))
            elif off.organization_id is not None:
                shared = shared_source(self.catalog, off)
                resolved.append(ResolvedPrice(price=shared.price, is_customized=False, offering_id=shared.id))
            else:
                resolved.append(ResolvedPrice(price=off.price, is_customized=False, offering_id=off.id))
        log.debug(
            "Resolved %d offerings for %s (%d customized)",
            len(resolved),
            organization_id,
            sum(1 for r in resolved if r.is_customized),
        )
        return resolved
