"""Copy every shared offering of the selected services into the organization's catalog."""

from __future__ import annotations

from typing import Annotated

import typer
from pricebook.customize import CustomizationEngine
from pricebook.errors import BulkCustomizeError, NotFoundError
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from pricebook_cli.utils import (
    handle_error,
    is_json,
    open_catalog,
    print_json,
    require_org,
    resolve_industry,
    settings_for,
)

console = Console()


def bulk_customize(
    ctx: typer.Context,
    service_ids: Annotated[list[str] | None, typer.Argument(help="Service ids to customize")] = None,
    industry: Annotated[
        str | None, typer.Option("--industry", "-i", help="Select every service in this industry")
    ] = None,
) -> None:
    """Customize all offerings of the selected services at their current prices."""
    try:
        settings = settings_for(ctx)
        org = require_org(settings)
        catalog = open_catalog(settings)

        selected = list(service_ids or [])
        ind = resolve_industry(catalog, industry)
        if ind is not None:
            selected += [s.id for s in catalog.list_services(ind.id)]
        for sid in selected:
            if catalog.get_service(sid) is None:
                raise NotFoundError(f"Service {sid!r}")

        engine = CustomizationEngine(catalog)
        json_mode = is_json(ctx)

        if json_mode:
            result = engine.bulk_customize(selected, org)
        else:
            with Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task(f"Customizing for {org}", total=None)

                def on_progress(completed: int, total: int) -> None:
                    progress.update(task, completed=completed, total=total)

                try:
                    result = engine.bulk_customize(selected, org, on_progress=on_progress)
                except BulkCustomizeError as exc:
                    console.print(
                        f"[yellow]Stopped at {exc.result.completed}/{exc.result.total}:"
                        f" {exc.result.created} created before the failure.[/yellow]"
                        " Re-run to resume; finished items are skipped."
                    )
                    raise

        if json_mode:
            print_json({"organization_id": org, "services": selected, **result.model_dump()})
            return

        console.print(
            f"[green]Done:[/green] {result.created} created, {result.skipped} already customized"
            f" ({result.completed}/{result.total})"
        )
    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
