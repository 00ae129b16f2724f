"""Estimate cart — accumulates packages and offerings into a priced selection.

Prices are snapshotted when an item first enters the cart: later quantity
changes reuse the snapshot, so a customization made mid-session does not
reprice what is already in the cart.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pricebook.bundles import PackageAggregator
from pricebook.errors import NotFoundError, ValidationError
from pricebook.models import (
    CartItem,
    CartItemKind,
    CartTotals,
    EstimateDraft,
    EstimateLine,
    Offering,
    Package,
)
from pricebook.money import cents, clamp_percent

log = logging.getLogger(__name__)

DEFAULT_TAX_RATE = 8.25


class Cart:
    def __init__(
        self,
        aggregator: PackageAggregator | None = None,
        organization_id: str | None = None,
        discount_percent: float = 0.0,
        tax_rate: float = DEFAULT_TAX_RATE,
        include_tax: bool = True,
    ):
        self.aggregator = aggregator or PackageAggregator()
        self.organization_id = organization_id
        self.include_tax = include_tax
        self.discount_percent = discount_percent
        self.tax_rate = tax_rate
        self._items: dict[str, CartItem] = {}

    @property
    def discount_percent(self) -> float:
        return self._discount_percent

    @discount_percent.setter
    def discount_percent(self, value: object) -> None:
        self._discount_percent = clamp_percent(value)

    @property
    def tax_rate(self) -> float:
        return self._tax_rate

    @tax_rate.setter
    def tax_rate(self, value: object) -> None:
        self._tax_rate = clamp_percent(value, upper=None)

    @staticmethod
    def key_for(kind: CartItemKind | str, source_id: str) -> str:
        return f"{CartItemKind(kind).value}-{source_id}"

    @property
    def items(self) -> list[CartItem]:
        return list(self._items.values())

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def get(self, key: str) -> CartItem:
        try:
            return self._items[key]
        except KeyError:
            raise NotFoundError(f"No cart item {key!r}") from None

    def add(self, source: Offering | Package, kind: CartItemKind | str | None = None) -> CartItem:
        """Add one unit of a package or offering; repeats bump the quantity."""
        if kind is None:
            kind = CartItemKind.PACKAGE if isinstance(source, Package) else CartItemKind.OFFERING
        kind = CartItemKind(kind)
        expected = Package if kind == CartItemKind.PACKAGE else Offering
        if not isinstance(source, expected):
            raise ValidationError(f"Cannot add {type(source).__name__} as a {kind.value}")

        key = self.key_for(kind, source.id)
        existing = self._items.get(key)
        if existing is not None:
            existing.quantity += 1
            existing.subtotal = cents(existing.price * existing.quantity)
            return existing

        if kind == CartItemKind.PACKAGE:
            components = self.aggregator.priced_links(source, self.organization_id)
            price = cents(sum(link.unit_price * link.quantity for link in components))
            unit = "package"
        else:
            components = []
            price = self.aggregator.resolver.effective_price(source, self.organization_id).price
            unit = source.unit

        item = CartItem(
            key=key,
            kind=kind,
            source_id=source.id,
            name=source.name,
            price=price,
            quantity=1,
            unit=unit,
            subtotal=price,
            source=source,
            components=components,
        )
        self._items[key] = item
        log.debug("Added %s to cart at %.2f", key, price)
        return item

    def set_quantity(self, key: str, quantity: int) -> CartItem | None:
        """Set an item's quantity; zero or less removes it and returns None."""
        item = self.get(key)
        quantity = int(quantity)
        if quantity <= 0:
            del self._items[key]
            return None
        item.quantity = quantity
        item.subtotal = cents(item.price * quantity)
        return item

    def remove(self, key: str) -> None:
        self.get(key)
        del self._items[key]

    def clear(self) -> None:
        self._items.clear()

    def totals(self) -> CartTotals:
        subtotal = sum(item.price * item.quantity for item in self._items.values())
        discount = subtotal * self.discount_percent / 100
        taxable = subtotal - discount
        tax = taxable * self.tax_rate / 100 if self.include_tax else 0.0
        return CartTotals(
            subtotal=cents(subtotal),
            discount_percent=self.discount_percent,
            discount_amount=cents(discount),
            taxable_amount=cents(taxable),
            tax_rate=self.tax_rate,
            include_tax=self.include_tax,
            tax_amount=cents(tax),
            total=cents(taxable + tax),
            item_count=self.item_count,
        )

    def materialize(self, clear: bool = False) -> EstimateDraft:
        """Flatten the cart into estimate lines; packages expand to their required links."""
        if not self._items:
            raise ValidationError("Cannot create an estimate from an empty cart")

        lines: list[EstimateLine] = []
        for item in self._items.values():
            if item.kind == CartItemKind.PACKAGE:
                for link in item.components:
                    quantity = item.quantity * link.quantity
                    lines.append(
                        EstimateLine(
                            description=f"{item.name}: {link.name}",
                            unit=link.unit,
                            unit_price=link.unit_price,
                            quantity=quantity,
                            total=cents(link.unit_price * quantity),
                            source_kind=item.kind,
                            source_id=item.source_id,
                        )
                    )
            else:
                lines.append(
                    EstimateLine(
                        description=item.name,
                        unit=item.unit,
                        unit_price=item.price,
                        quantity=item.quantity,
                        total=item.subtotal,
                        source_kind=item.kind,
                        source_id=item.source_id,
                    )
                )

        totals = self.totals()
        draft = EstimateDraft(
            organization_id=self.organization_id,
            lines=lines,
            subtotal=totals.subtotal,
            discount_percent=totals.discount_percent,
            discount_amount=totals.discount_amount,
            tax_rate=totals.tax_rate if totals.include_tax else 0.0,
            tax_amount=totals.tax_amount,
            total=totals.total,
        )
        log.info("Materialized cart into %d estimate lines totalling %.2f", len(lines), draft.total)
        if clear:
            self.clear()
        return draft
