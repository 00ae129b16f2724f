"""Customization engine — organization-scoped priced copies of shared offerings.

A customization is a full copy of a shared offering (metadata and line-item
breakdown) owned by one organization, unique per (organization, service,
name). Copying is two independent writes, so a failed child insert is
compensated by deleting the orphaned parent.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable

from pricebook.catalog import Catalog
from pricebook.errors import (
    BulkCustomizeError,
    ConflictError,
    NotFoundError,
    PricebookError,
    StoreError,
    ValidationError,
)
from pricebook.models import BulkResult, CustomizationResult, Offering, Service
from pricebook.pricing import shared_source

log = logging.getLogger(__name__)

OfferingSource = Callable[[str], Iterable[Offering]]
ProgressCallback = Callable[[int, int], None]


def parse_price(value: object) -> float:
    """Validate a user-entered price: a finite number >= 0, or a numeric string."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid price: {value!r}")
    if isinstance(value, str):
        try:
            price = float(value.strip().lstrip("$").replace(",", ""))
        except ValueError:
            raise ValidationError(f"Invalid price: {value!r}") from None
    elif isinstance(value, (int, float)):
        price = float(value)
    else:
        raise ValidationError(f"Invalid price: {value!r}")
    if not math.isfinite(price) or price < 0:
        raise ValidationError(f"Price must be a non-negative number, got {value!r}")
    return price


def _require_org(organization_id: str | None) -> str:
    if not organization_id or not str(organization_id).strip():
        raise ValidationError("An organization id is required to customize pricing")
    return str(organization_id)


class CustomizationEngine:
    def __init__(self, catalog: Catalog | None = None):
        self.catalog = catalog or Catalog()

    def customize(self, offering: Offering, organization_id: str, new_price: object) -> CustomizationResult:
        """Set ``organization_id``'s price for ``offering``, copying it on first use.

        Repeating the call with the same price leaves exactly one copy.
        """
        price = parse_price(new_price)
        org = _require_org(organization_id)

        if offering.organization_id == org:
            return self._update_in_place(offering.id, price)
        if offering.organization_id is not None:
            # Another organization's copy: customize the shared original
            offering = shared_source(self.catalog, offering)

        existing = self.catalog.find_customization(org, offering.service_id, offering.name)
        if existing is not None:
            return self._update_in_place(existing.id, price)

        source = self.catalog.get_offering(offering.id)
        if source is None:
            raise NotFoundError(f"Offering {offering.id!r} no longer exists")

        try:
            copy = self._copy(source, org, price)
        except ConflictError:
            # Another writer created the copy between our lookup and insert
            winner = self.catalog.find_customization(org, source.service_id, source.name)
            if winner is None:
                raise
            log.warning("Customization of %r for %s already exists, updating it instead", source.name, org)
            return self._update_in_place(winner.id, price)

        log.info("Created customization %s of %r for %s at %.2f", copy.id, source.name, org, price)
        return CustomizationResult(offering=copy, created=True, previous_price=source.price)

    def bulk_customize(
        self,
        services: Iterable[Service | str],
        organization_id: str,
        source: OfferingSource | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BulkResult:
        """Copy every eligible offering of the selected services at its current price.

        ``source`` maps a service id to its eligible offerings (default: the
        service's shared offerings). Offerings the organization already owns
        or has customized are skipped, so re-running after a failure resumes
        where the last run stopped. Raises BulkCustomizeError on the first
        failed item; earlier copies stay persisted.
        """
        org = _require_org(organization_id)
        service_ids = list(dict.fromkeys(s.id if isinstance(s, Service) else str(s) for s in services))
        if not service_ids:
            raise ValidationError("Select at least one service to customize")

        if source is None:

            def source(service_id: str) -> list[Offering]:
                return self.catalog.list_offerings(service_id=service_id, shared_only=True)

        work = [off for sid in service_ids for off in source(sid)]
        result = BulkResult(total=len(work))
        existing = self.catalog.customizations_for(org, service_ids)

        for off in work:
            key = (off.service_id, off.name)
            try:
                if off.organization_id == org or key in existing:
                    log.debug("Skipping %r: already customized for %s", off.name, org)
                    result.skipped += 1
                else:
                    if off.organization_id is not None:
                        off = shared_source(self.catalog, off)
                    try:
                        copy = self._copy(off, org, off.price)
                    except ConflictError:
                        log.warning("Skipping %r: customization created concurrently for %s", off.name, org)
                        result.skipped += 1
                    else:
                        existing[key] = copy
                        result.created += 1
                        result.created_ids.append(copy.id)
            except PricebookError as exc:
                log.error("Bulk customize for %s failed at %r: %s", org, off.name, exc)
                raise BulkCustomizeError(result, exc) from exc
            result.completed += 1
            if on_progress is not None:
                on_progress(result.completed, result.total)

        log.info(
            "Bulk customize for %s: %d created, %d skipped of %d",
            org,
            result.created,
            result.skipped,
            result.total,
        )
        return result

    def _update_in_place(self, offering_id: str, price: float) -> CustomizationResult:
        current = self.catalog.get_offering(offering_id)
        if current is None:
            raise NotFoundError(f"Offering {offering_id!r} no longer exists")
        updated = self.catalog.update_offering_price(offering_id, price)
        log.info("Updated %s price %.2f -> %.2f", offering_id, current.price, price)
        return CustomizationResult(offering=updated, created=False, previous_price=current.price)

    def _copy(self, source: Offering, organization_id: str, price: float) -> Offering:
        draft = source.model_copy(
            update={
                "id": "",
                "organization_id": organization_id,
                "price": price,
                "is_template": True,
                "items": [],
            }
        )
        parent = self.catalog.insert_offering(draft)
        if not source.items:
            return parent
        try:
            items = self.catalog.insert_offering_items(parent.id, source.items)
        except StoreError:
            log.warning("Line items for %s failed to copy, removing partial copy", parent.id)
            try:
                self.catalog.delete_offering(parent.id)
            except StoreError as cleanup_exc:
                log.error("Could not remove partial copy %s: %s", parent.id, cleanup_exc)
            raise
        return parent.model_copy(update={"items": items})
