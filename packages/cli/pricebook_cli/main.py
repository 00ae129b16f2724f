import typer

from pricebook_cli import __version__
from pricebook_cli.commands.bulk_cmd import bulk_customize
from pricebook_cli.commands.catalog_cmd import catalog_app
from pricebook_cli.commands.customize_cmd import customize
from pricebook_cli.commands.init_cmd import init
from pricebook_cli.commands.package_cmd import package
from pricebook_cli.commands.price_cmd import price
from pricebook_cli.commands.quote_cmd import quote
from pricebook_cli.utils import setup_logging


def _version_callback(value: bool) -> None:
    if value:
        print(f"pricebook {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pricebook",
    help="Service catalog pricing and estimate carts for contractors",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    org: str | None = typer.Option(None, "--org", help="Organization id (default: $PRICEBOOK_ORG or project config)"),
    db: str | None = typer.Option(None, "--db", help="Catalog database path (default: $PRICEBOOK_DB)"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    ctx.obj["org"] = org
    ctx.obj["db"] = db
    setup_logging(verbose)


app.command()(init)
app.command()(price)
app.command()(package)
app.command()(customize)
app.command(name="bulk-customize")(bulk_customize)
app.command()(quote)
app.add_typer(catalog_app, name="catalog")
