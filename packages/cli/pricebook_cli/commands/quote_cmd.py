"""Price a cart file and write the estimate draft.

Cart file format (YAML or JSON)::

    discount_percent: 10        # optional
    tax_rate: 8.25              # optional, overrides project config
    include_tax: true           # optional
    items:
      - package: drain-care-essentials
      - offering: drain-cleaning
        quantity: 2
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pricebook.bundles import PackageAggregator
from pricebook.cart import Cart
from pricebook.errors import NotFoundError, ValidationError
from pricebook.models import CartItemKind, EstimateDraft
from pricebook.money import format_currency
from pricebook.pricing import PriceResolver
from rich.console import Console
from rich.table import Table

from pricebook_cli.utils import handle_error, is_json, open_catalog, print_json, settings_for

console = Console()


def load_cart_file(path: Path) -> dict:
    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ValidationError(f"{path} must be a mapping with an 'items' list")
    return data


def build_cart(catalog, data: dict, organization_id: str | None, tax_rate: float, include_tax: bool) -> Cart:
    cart = Cart(
        PackageAggregator(PriceResolver(catalog)),
        organization_id=organization_id,
        discount_percent=data.get("discount_percent", 0),
        tax_rate=data.get("tax_rate", tax_rate),
        include_tax=data.get("include_tax", include_tax),
    )
    for entry in data["items"]:
        if not isinstance(entry, dict):
            raise ValidationError(f"Cart entries must be mappings, got {entry!r}")
        if "package" in entry:
            source = catalog.get_package(entry["package"])
            kind = CartItemKind.PACKAGE
            ref = entry["package"]
        elif "offering" in entry:
            source = catalog.get_offering(entry["offering"])
            kind = CartItemKind.OFFERING
            ref = entry["offering"]
        else:
            raise ValidationError(f"Cart entry needs a 'package' or 'offering' key: {entry!r}")
        if source is None:
            raise NotFoundError(f"{kind.value.capitalize()} {ref!r}")

        item = cart.add(source, kind)
        quantity = entry.get("quantity")
        if quantity is not None:
            cart.set_quantity(item.key, item.quantity - 1 + int(quantity))
    return cart


def quote(
    ctx: typer.Context,
    cart_file: Annotated[Path, typer.Argument(help="Cart YAML/JSON file", exists=True)],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the estimate draft (.json or .yaml)")
    ] = None,
    discount: Annotated[float | None, typer.Option(help="Discount percent (overrides the cart file)")] = None,
    tax_rate: Annotated[float | None, typer.Option(help="Tax rate percent (overrides cart file and config)")] = None,
    no_tax: Annotated[bool, typer.Option("--no-tax", help="Do not apply sales tax")] = False,
) -> None:
    """Price a cart of packages and offerings into an estimate draft."""
    try:
        settings = settings_for(ctx)
        catalog = open_catalog(settings)
        data = load_cart_file(cart_file)

        cart = build_cart(catalog, data, settings.organization_id, settings.tax_rate, settings.include_tax)
        if discount is not None:
            cart.discount_percent = discount
        if tax_rate is not None:
            cart.tax_rate = tax_rate
        if no_tax:
            cart.include_tax = False

        totals = cart.totals()
        draft = cart.materialize(clear=True)

        if output:
            _write_draft(draft, output)

        if is_json(ctx):
            print_json({"estimate": draft.model_dump(mode="json"), "output": str(output) if output else None})
            return

        table = Table(title="Estimate", show_footer=False)
        table.add_column("Line", style="cyan")
        table.add_column("Qty", justify="right")
        table.add_column("Unit price", justify="right")
        table.add_column("Total", justify="right")
        for line in draft.lines:
            table.add_row(
                line.description,
                str(line.quantity),
                format_currency(line.unit_price),
                format_currency(line.total),
            )
        table.add_section()
        table.add_row("Subtotal", "", "", format_currency(totals.subtotal))
        if totals.discount_amount:
            discount_label = f"Discount ({totals.discount_percent:g}%)"
            table.add_row(discount_label, "", "", f"-{format_currency(totals.discount_amount)}")
        if totals.include_tax:
            table.add_row(f"Tax ({totals.tax_rate:g}%)", "", "", format_currency(totals.tax_amount))
        table.add_row("[bold]Total[/bold]", str(totals.item_count), "", f"[bold]{format_currency(totals.total)}[/bold]")
        console.print(table)
        if output:
            console.print(f"[green]Saved estimate draft to {output}[/green]")
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _write_draft(draft: EstimateDraft, output: Path) -> None:
    if output.suffix in (".yaml", ".yml"):
        output.write_text(draft.to_yaml())
    else:
        output.write_text(draft.to_json())
