"""List packages or show one package's priced breakdown."""

from __future__ import annotations

from typing import Annotated

import typer
from pricebook.browse import CatalogBrowser
from pricebook.bundles import PackageAggregator
from pricebook.errors import NotFoundError
from pricebook.models import Package, PackageTotals
from pricebook.money import format_currency
from pricebook.pricing import PriceResolver
from rich.console import Console
from rich.table import Table

from pricebook_cli.utils import handle_error, is_json, open_catalog, print_json, resolve_industry, settings_for

console = Console()


def package(
    ctx: typer.Context,
    package_id: Annotated[str | None, typer.Argument(help="Package id (omit to list packages)")] = None,
    industry: Annotated[str | None, typer.Option("--industry", "-i", help="Industry id or name")] = None,
    level: Annotated[str | None, typer.Option(help="Package level: essentials, complete, deluxe")] = None,
    search: Annotated[str | None, typer.Option("--search", "-q", help="Free-text search")] = None,
) -> None:
    """Show priced packages, or one package's components and bundle preview."""
    try:
        settings = settings_for(ctx)
        catalog = open_catalog(settings)
        org = settings.organization_id

        if package_id is None:
            ind = resolve_industry(catalog, industry)
            priced = CatalogBrowser(catalog).packages(
                org, industry_id=ind.id if ind else None, level=level, query=search
            )
            if is_json(ctx):
                print_json({"packages": [_package_json(p.package, p.totals) for p in priced]})
                return
            if not priced:
                console.print("[yellow]No packages found.[/yellow]")
                return
            _print_package_list(priced)
            return

        pkg = catalog.get_package(package_id)
        if pkg is None:
            raise NotFoundError(f"Package {package_id!r}")
        aggregator = PackageAggregator(PriceResolver(catalog))
        totals = aggregator.package_totals(pkg, org)
        links = aggregator.priced_links(pkg, org, include_optional=True)

        if is_json(ctx):
            data = _package_json(pkg, totals)
            data["links"] = [link.model_dump() for link in links]
            print_json(data)
            return

        console.print(f"[bold]{pkg.name}[/bold] ({pkg.level.value})")
        if pkg.description:
            console.print(f"  {pkg.description}")

        table = Table(title="Components")
        table.add_column("Offering", style="cyan")
        table.add_column("Qty", justify="right")
        table.add_column("Unit price", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Included")
        for link in links:
            table.add_row(
                link.name,
                str(link.quantity),
                format_currency(link.unit_price),
                format_currency(link.unit_price * link.quantity),
                "[dim]optional[/dim]" if link.is_optional else "required",
            )
        console.print(table)

        console.print(f"  Package price: [bold]{format_currency(totals.required_total)}[/bold]")
        if totals.optional_count:
            console.print(
                f"  Optional add-ons: {format_currency(totals.optional_total)}"
                f" -> {format_currency(totals.discounted_optional_total)} bundled"
                f" (save {format_currency(totals.bundle_savings)})"
            )
            console.print(f"  With everything: {format_currency(totals.potential_total)}")
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


def _package_json(pkg: Package, totals: PackageTotals) -> dict:
    return {
        "id": pkg.id,
        "name": pkg.name,
        "level": pkg.level.value,
        "industry_id": pkg.industry_id,
        "is_featured": pkg.is_featured,
        "base_price": totals.base_price,
        "required_total": totals.required_total,
        "optional_total": totals.optional_total,
        "discounted_optional_total": totals.discounted_optional_total,
        "potential_total": totals.potential_total,
        "item_count": totals.item_count,
        "completion_percentage": totals.completion_percentage,
    }


def _print_package_list(priced) -> None:
    table = Table(title="Packages")
    table.add_column("ID", style="cyan")
    table.add_column("Package")
    table.add_column("Level")
    table.add_column("Items", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("With add-ons", justify="right")
    table.add_column("Core %", justify="right")
    for p in priced:
        name = p.package.name + (" [yellow]*[/yellow]" if p.package.is_featured else "")
        table.add_row(
            p.package.id,
            name,
            p.package.level.value,
            str(p.totals.item_count),
            format_currency(p.totals.base_price),
            format_currency(p.totals.potential_total),
            f"{p.totals.completion_percentage}%",
        )
    console.print(table)
