from __future__ import annotations

import json
import logging
from typing import Any

import typer
from pricebook.catalog import Catalog
from pricebook.errors import BulkCustomizeError, NotFoundError, StoreError
from pricebook.models import Industry
from rich.console import Console
from rich.logging import RichHandler

from pricebook_cli.project import Settings, resolve_settings

_err_console = Console(stderr=True)


def get_obj(ctx: typer.Context) -> dict:
    """ctx.obj, resolved through the parent chain when invoked via a sub-app."""
    c: typer.Context | None = ctx
    while c is not None:
        if c.obj:
            return c.obj
        c = c.parent
    return {}


def is_json(ctx: typer.Context) -> bool:
    return bool(get_obj(ctx).get("json"))


def setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False)],
    )


def settings_for(ctx: typer.Context, org: str | None = None) -> Settings:
    obj = get_obj(ctx)
    return resolve_settings(organization_id=org or obj.get("org"), db_path=obj.get("db"))


def open_catalog(settings: Settings) -> Catalog:
    return Catalog(settings.db_path)


def resolve_industry(catalog: Catalog, value: str | None) -> Industry | None:
    """Industry by id or case-insensitive name; None when no value was given."""
    if not value:
        return None
    industry = catalog.find_industry(value)
    if industry is None:
        raise NotFoundError(f"Unknown industry {value!r}")
    return industry


def require_org(settings: Settings) -> str:
    if not settings.organization_id:
        raise ValueError(
            "No organization set. Pass --org, set PRICEBOOK_ORG, or run 'pricebook init --project --org <id>'."
        )
    return settings.organization_id


def print_json(data: Any) -> None:
    print(json.dumps(data, default=str))


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml
    from pydantic import ValidationError as ModelValidationError

    obj = get_obj(ctx)
    verbose = obj.get("verbose", False)
    json_mode = obj.get("json", False)

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif isinstance(e, ModelValidationError):
        msg = f"Invalid data: {e}"
    elif isinstance(e, NotFoundError):
        msg = f"Not found: {e}"
    elif isinstance(e, StoreError):
        msg = f"Catalog error: {e}"
    elif isinstance(e, (ValueError, BulkCustomizeError)):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if json_mode:
        payload: dict[str, Any] = {"error": msg}
        if isinstance(e, BulkCustomizeError):
            payload["result"] = e.result.model_dump()
        print(json.dumps(payload))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)
