"""Show the effective price of one offering for the current organization."""

from __future__ import annotations

from typing import Annotated

import typer
from pricebook.errors import NotFoundError
from pricebook.money import format_currency
from pricebook.pricing import PriceResolver
from rich.console import Console
from rich.table import Table

from pricebook_cli.utils import handle_error, is_json, open_catalog, print_json, settings_for

console = Console()


def price(
    ctx: typer.Context,
    offering_id: Annotated[str, typer.Argument(help="Offering id")],
    breakdown: Annotated[bool, typer.Option("--breakdown", "-b", help="Show the line-item breakdown")] = False,
) -> None:
    """Show an offering's effective price (shared or customized)."""
    try:
        settings = settings_for(ctx)
        catalog = open_catalog(settings)
        offering = catalog.get_offering(offering_id)
        if offering is None:
            raise NotFoundError(f"Offering {offering_id!r}")

        resolved = PriceResolver(catalog).effective_price(offering, settings.organization_id)

        if is_json(ctx):
            print_json(
                {
                    "offering_id": offering.id,
                    "name": offering.name,
                    "organization_id": settings.organization_id,
                    "price": resolved.price,
                    "is_customized": resolved.is_customized,
                    "resolved_from": resolved.offering_id,
                    "shared_price": offering.price,
                    "line_item_total": offering.line_item_total,
                }
            )
            return

        label = "[green]customized[/green]" if resolved.is_customized else "shared"
        console.print(f"[bold]{offering.name}[/bold] ({offering.id})")
        console.print(f"  Price: {format_currency(resolved.price)} / {offering.unit}  ({label})")
        if resolved.is_customized and resolved.offering_id != offering.id:
            console.print(f"  Catalog price: {format_currency(offering.price)}")
        if settings.organization_id:
            console.print(f"  Organization: {settings.organization_id}")

        if breakdown and offering.items:
            table = Table(title="Line items", show_footer=True)
            table.add_column("Item", style="cyan", footer="Total")
            table.add_column("Qty", justify="right")
            table.add_column("Unit")
            table.add_column("Unit price", justify="right")
            table.add_column("Total", justify="right", footer=format_currency(offering.line_item_total))
            for item in offering.items:
                name = item.line_item.name + (" [dim](optional)[/dim]" if item.is_optional else "")
                table.add_row(
                    name,
                    f"{item.quantity:g}",
                    item.line_item.unit,
                    format_currency(item.line_item.price),
                    format_currency(item.line_total),
                )
            console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
