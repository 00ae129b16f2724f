"""Set an organization's own price for a catalog offering."""

from __future__ import annotations

from typing import Annotated

import typer
from pricebook.customize import CustomizationEngine
from pricebook.errors import NotFoundError
from pricebook.money import format_currency
from rich.console import Console

from pricebook_cli.utils import handle_error, is_json, open_catalog, print_json, require_org, settings_for

console = Console()


def customize(
    ctx: typer.Context,
    offering_id: Annotated[str, typer.Argument(help="Offering id (shared or already customized)")],
    new_price: Annotated[str, typer.Argument(help="New unit price, e.g. 175 or 175.50")],
) -> None:
    """Customize an offering's price for the current organization."""
    try:
        settings = settings_for(ctx)
        org = require_org(settings)
        catalog = open_catalog(settings)
        offering = catalog.get_offering(offering_id)
        if offering is None:
            raise NotFoundError(f"Offering {offering_id!r}")

        result = CustomizationEngine(catalog).customize(offering, org, new_price)

        if is_json(ctx):
            print_json(
                {
                    "offering_id": result.offering.id,
                    "source_id": offering.id,
                    "organization_id": org,
                    "price": result.offering.price,
                    "previous_price": result.previous_price,
                    "created": result.created,
                    "line_items": len(result.offering.items),
                }
            )
            return

        if result.created:
            console.print(
                f"[green]Created customized copy[/green] {result.offering.id} of {offering.name!r}"
                f" with {len(result.offering.items)} line items"
            )
        else:
            console.print(f"[green]Updated[/green] {result.offering.id} ({offering.name})")
        previous = format_currency(result.previous_price) if result.previous_price is not None else "-"
        console.print(f"  {previous} -> [bold]{format_currency(result.offering.price)}[/bold] for {org}")
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
