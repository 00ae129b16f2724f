"""Service catalog package — SQLite record store and catalog seeding."""

from pricebook.catalog.seed import SAMPLE_CATALOG, load_seed_file, seed_catalog
from pricebook.catalog.store import SCHEMA, Catalog, default_db_path

__all__ = [
    "Catalog",
    "SCHEMA",
    "SAMPLE_CATALOG",
    "default_db_path",
    "load_seed_file",
    "seed_catalog",
]
