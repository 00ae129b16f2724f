"""Basic pricing example.

Seeds the bundled sample catalog into a scratch database, customizes one
offering for an organization and prices a cart into an estimate draft.
"""

import tempfile
from pathlib import Path

from pricebook import Cart, Catalog, CatalogBrowser, CustomizationEngine
from pricebook.catalog import SAMPLE_CATALOG, load_seed_file

ORG = "acme-plumbing"

db_path = Path(tempfile.mkdtemp()) / "pricebook.db"
catalog = Catalog(db_path)
catalog.seed(load_seed_file(SAMPLE_CATALOG))

# Customize drain cleaning for this organization only
engine = CustomizationEngine(catalog)
result = engine.customize(catalog.get_offering("drain-cleaning"), ORG, 175)
print(f"Customized {result.offering.name}: ${result.previous_price:.2f} -> ${result.offering.price:.2f}")

# Browse plumbing services as the organization sees them
browser = CatalogBrowser(catalog)
for group in browser.services(ORG, industry_id="plumbing"):
    print(f"  {group.service.name}: {group.offering_count} offerings, ${group.min_price:.2f}-${group.max_price:.2f}")

# Build a cart
cart = Cart(browser.aggregator, organization_id=ORG, discount_percent=10)
cart.add(catalog.get_package("drain-care-essentials"))
cart.add(catalog.get_offering("hydro-jetting"))

totals = cart.totals()
print(f"\nSubtotal: ${totals.subtotal:.2f}")
print(f"Discount: -${totals.discount_amount:.2f}")
print(f"Tax:       ${totals.tax_amount:.2f}")
print(f"Total:     ${totals.total:.2f}")

# Hand the flat line items to whatever creates the estimate
print("\n--- Estimate draft ---")
print(cart.materialize(clear=True).to_yaml())
