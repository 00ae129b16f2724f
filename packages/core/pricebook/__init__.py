"""Pricebook — service catalog pricing and estimate carts for contractors."""

from pricebook.models import (
    BulkResult,
    CartItem,
    CartItemKind,
    CartTotals,
    CustomizationResult,
    EstimateDraft,
    EstimateLine,
    FilterDefinition,
    Industry,
    LineItem,
    Offering,
    OfferingItem,
    Package,
    PackageLevel,
    PackageTemplate,
    PackageTotals,
    PricedOffering,
    PricedPackage,
    ResolvedPrice,
    Service,
    ServiceCategory,
    ServiceGroup,
)

__version__ = "0.1.0"

__all__ = [
    "BulkResult",
    "Cart",
    "CartItem",
    "CartItemKind",
    "CartTotals",
    "Catalog",
    "CatalogBrowser",
    "CustomizationEngine",
    "CustomizationResult",
    "EstimateDraft",
    "EstimateLine",
    "FilterDefinition",
    "FilterState",
    "Industry",
    "LineItem",
    "Offering",
    "OfferingItem",
    "Package",
    "PackageAggregator",
    "PackageLevel",
    "PackageTemplate",
    "PackageTotals",
    "PricedOffering",
    "PricedPackage",
    "PriceResolver",
    "ResolvedPrice",
    "Service",
    "ServiceCategory",
    "ServiceGroup",
    "matches",
]


def __getattr__(name: str):
    # Lazy imports so model-only users never open the SQLite store
    if name == "Catalog":
        from pricebook.catalog import Catalog

        return Catalog
    if name == "PriceResolver":
        from pricebook.pricing import PriceResolver

        return PriceResolver
    if name == "CustomizationEngine":
        from pricebook.customize import CustomizationEngine

        return CustomizationEngine
    if name == "PackageAggregator":
        from pricebook.bundles import PackageAggregator

        return PackageAggregator
    if name == "CatalogBrowser":
        from pricebook.browse import CatalogBrowser

        return CatalogBrowser
    if name == "Cart":
        from pricebook.cart import Cart

        return Cart
    if name == "FilterState":
        from pricebook.filters import FilterState

        return FilterState
    if name == "matches":
        from pricebook.filters import matches

        return matches
    raise AttributeError(f"module 'pricebook' has no attribute {name!r}")
