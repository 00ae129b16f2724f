from __future__ import annotations

from typing import Annotated

import typer
from pricebook.browse import SORT_KEYS, CatalogBrowser
from pricebook.filters import FilterState, filter_industries, filters_for_industry
from pricebook.money import format_currency
from rich.console import Console
from rich.table import Table

from pricebook_cli.utils import handle_error, is_json, open_catalog, print_json, resolve_industry, settings_for

console = Console()

catalog_app = typer.Typer(
    name="catalog",
    help="Browse industries, services and offerings.",
    no_args_is_help=True,
)


@catalog_app.callback(invoke_without_command=True)
def catalog_callback(ctx: typer.Context) -> None:
    # Propagate json/verbose flags from parent ctx into this sub-app's ctx
    if ctx.obj is None and ctx.parent and ctx.parent.obj:
        ctx.obj = ctx.parent.obj
    elif ctx.obj is None:
        ctx.ensure_object(dict)


@catalog_app.command("industries")
def catalog_industries(ctx: typer.Context) -> None:
    """List industries and how many attribute filters each supports."""
    try:
        catalog = open_catalog(settings_for(ctx))
        industries = catalog.list_industries()

        if is_json(ctx):
            print_json({"industries": [i.model_dump() for i in industries]})
            return

        table = Table(title="Industries")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Services", justify="right")
        table.add_column("Filters", justify="right")
        for ind in industries:
            table.add_row(
                ind.id,
                ind.name,
                str(len(catalog.list_services(ind.id))),
                str(len(filters_for_industry(ind.name))),
            )
        console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


@catalog_app.command("services")
def catalog_services(
    ctx: typer.Context,
    industry: Annotated[str | None, typer.Option("--industry", "-i", help="Industry id or name")] = None,
    search: Annotated[str | None, typer.Option("--search", "-q", help="Free-text search")] = None,
) -> None:
    """Show services with their effective price ranges."""
    try:
        settings = settings_for(ctx)
        catalog = open_catalog(settings)
        ind = resolve_industry(catalog, industry)
        groups = CatalogBrowser(catalog).services(
            settings.organization_id, industry_id=ind.id if ind else None, query=search
        )

        if is_json(ctx):
            print_json(
                {
                    "services": [
                        {
                            "service": g.service.model_dump(mode="json"),
                            "offering_count": g.offering_count,
                            "customized_count": g.customized_count,
                            "min_price": g.min_price,
                            "max_price": g.max_price,
                        }
                        for g in groups
                    ]
                }
            )
            return

        if not groups:
            console.print("[yellow]No services found.[/yellow]")
            return

        table = Table(title="Services")
        table.add_column("ID", style="cyan")
        table.add_column("Service")
        table.add_column("Category")
        table.add_column("Offerings", justify="right")
        table.add_column("Price range", justify="right")
        table.add_column("Customized", justify="right")
        for g in groups:
            if g.min_price == g.max_price:
                price_range = format_currency(g.min_price)
            else:
                price_range = f"{format_currency(g.min_price)} - {format_currency(g.max_price)}"
            table.add_row(
                g.service.id,
                g.service.name,
                g.service.category.value,
                str(g.offering_count),
                price_range,
                str(g.customized_count) if g.customized_count else "-",
            )
        console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


@catalog_app.command("offerings")
def catalog_offerings(
    ctx: typer.Context,
    industry: Annotated[str | None, typer.Option("--industry", "-i", help="Industry id or name")] = None,
    service: Annotated[str | None, typer.Option("--service", help="Service id")] = None,
    search: Annotated[str | None, typer.Option("--search", "-q", help="Free-text search")] = None,
    filters: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="Attribute filter KEY=VALUE (repeatable; see 'catalog filters')"),
    ] = None,
    sort: Annotated[str, typer.Option(help=f"Sort by: {', '.join(SORT_KEYS)}")] = "name",
    desc: Annotated[bool, typer.Option("--desc", help="Sort descending")] = False,
) -> None:
    """List offerings with the effective price for the current organization."""
    try:
        settings = settings_for(ctx)
        catalog = open_catalog(settings)
        ind = resolve_industry(catalog, industry)

        state = FilterState(ind.name if ind else None)
        for raw in filters or []:
            key, sep, value = raw.partition("=")
            if not sep or not key.strip():
                raise ValueError(f"Filters must look like KEY=VALUE, got {raw!r}")
            state.set_text(key.strip(), value)

        items = CatalogBrowser(catalog).offerings(
            settings.organization_id,
            industry_id=ind.id if ind else None,
            service_id=service,
            query=search,
            filters=state.active,
            sort_by=sort,
            descending=desc,
        )

        if is_json(ctx):
            print_json(
                {
                    "organization_id": settings.organization_id,
                    "filters": state.active,
                    "offerings": [
                        {
                            "id": p.offering.id,
                            "name": p.offering.name,
                            "service_id": p.offering.service_id,
                            "price": p.price,
                            "unit": p.offering.unit,
                            "is_customized": p.is_customized,
                            "attributes": p.offering.attributes,
                        }
                        for p in items
                    ],
                }
            )
            return

        if not items:
            console.print("[yellow]No offerings match.[/yellow]")
            return

        title = "Offerings"
        if settings.organization_id:
            title += f" for {settings.organization_id}"
        table = Table(title=title)
        table.add_column("ID", style="cyan")
        table.add_column("Offering")
        table.add_column("Service")
        table.add_column("Price", justify="right")
        table.add_column("Unit")
        table.add_column("Skill")
        table.add_column("Warranty", justify="right")
        for p in items:
            price_label = format_currency(p.price)
            if p.is_customized:
                price_label = f"[green]{price_label}*[/green]"
            table.add_row(
                p.offering.id,
                p.offering.name,
                p.service.name if p.service else p.offering.service_id,
                price_label,
                p.offering.unit,
                p.offering.skill_level or "-",
                f"{p.offering.warranty_months} mo" if p.offering.warranty_months else "-",
            )
        console.print(table)
        if any(p.is_customized for p in items):
            console.print("[dim]* customized price[/dim]")
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


@catalog_app.command("filters")
def catalog_filters(
    ctx: typer.Context,
    industry: Annotated[str | None, typer.Argument(help="Industry name (omit to list industries with filters)")] = None,
) -> None:
    """Show the attribute filters available for an industry."""
    try:
        if not industry:
            names = filter_industries()
            if is_json(ctx):
                print_json({"industries": names})
                return
            console.print("Industries with attribute filters: " + ", ".join(names))
            return

        definitions = filters_for_industry(industry)
        if is_json(ctx):
            print_json({"industry": industry, "filters": [d.model_dump() for d in definitions]})
            return

        if not definitions:
            console.print(f"[yellow]No attribute filters for {industry!r}.[/yellow]")
            return

        table = Table(title=f"Filters: {industry}")
        table.add_column("Key", style="cyan")
        table.add_column("Label")
        table.add_column("Type")
        table.add_column("Values")
        for d in definitions:
            if d.type == "range":
                values = f">= {d.min:g}..{d.max:g}" if d.min is not None and d.max is not None else ">= N"
                if d.unit:
                    values += f" {d.unit}"
            elif d.type == "boolean":
                values = "yes / no"
            else:
                values = ", ".join(opt["value"] for opt in d.options)
            table.add_row(d.key, d.label, d.type, values)
        console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)


@catalog_app.command("stats")
def catalog_stats(ctx: typer.Context) -> None:
    """Show record counts for the catalog database."""
    try:
        catalog = open_catalog(settings_for(ctx))
        stats = catalog.get_stats()
        if is_json(ctx):
            print_json({"db_path": str(catalog.db_path), **stats})
            return

        table = Table(title=f"Catalog: {catalog.db_path}")
        table.add_column("Records", style="cyan")
        table.add_column("Count", justify="right")
        for key, value in stats.items():
            table.add_row(key.removesuffix("_count").replace("_", " "), str(value))
        console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
