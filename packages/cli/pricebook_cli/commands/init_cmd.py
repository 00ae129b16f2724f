"""Create a catalog database and, optionally, a .pricebook/ project directory."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from pricebook.catalog import SAMPLE_CATALOG, Catalog, load_seed_file
from rich.console import Console
from rich.table import Table

from pricebook_cli.project import write_project_config
from pricebook_cli.utils import handle_error, is_json, print_json, settings_for

console = Console()


def init(
    ctx: typer.Context,
    seed: Annotated[
        Path | None, typer.Option("--seed", "-s", help="Catalog YAML/JSON to load (default: bundled sample)")
    ] = None,
    project: Annotated[bool, typer.Option("--project", "-p", help="Create a .pricebook/ project directory")] = False,
    tax_rate: Annotated[float | None, typer.Option(help="Default sales tax rate in percent for the project")] = None,
) -> None:
    """Create the catalog database and seed it."""
    try:
        settings = settings_for(ctx)
        db_path = settings.db_path
        if project and db_path is None:
            db_path = Path(".pricebook") / "pricebook.db"

        catalog = Catalog(db_path)
        before = catalog.get_stats()

        counts = None
        if seed is not None or before["offering_count"] == 0:
            seed_path = seed or SAMPLE_CATALOG
            with console.status(f"Seeding catalog from {seed_path.name}..."):
                counts = catalog.seed(load_seed_file(seed_path))
            catalog.set_metadata("seeded_from", seed_path.name)

        config_path = None
        if project:
            # Relative paths in config.yaml resolve against the project root
            config_path = write_project_config(
                Path.cwd(),
                {
                    "version": 1,
                    "organization_id": settings.organization_id,
                    "db_path": db_path.as_posix(),
                    "tax_rate": tax_rate if tax_rate is not None else settings.tax_rate,
                    "include_tax": settings.include_tax,
                },
            )

        stats = catalog.get_stats()
        if is_json(ctx):
            print_json({"db_path": str(catalog.db_path), "seeded": counts, "stats": stats})
            return

        console.print(f"[green]Catalog ready[/green] at {catalog.db_path}")
        if counts is None:
            console.print("  Already seeded; pass --seed to load more records.")
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in stats.items():
            table.add_row(key.replace("_", " "), str(value))
        console.print(table)
        if config_path:
            console.print(f"  Config: {config_path}")
        console.print("\nNext steps:")
        console.print("  pricebook catalog services")
        console.print("  pricebook --org <org-id> customize <offering-id> <price>")

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
