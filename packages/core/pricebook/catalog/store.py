"""Service catalog — SQLite-backed record store for industries, services, offerings and packages."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import uuid
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pricebook.errors import ConflictError, NotFoundError, StoreError
from pricebook.models import (
    Industry,
    LineItem,
    Offering,
    OfferingItem,
    Package,
    PackageTemplate,
    Service,
)

log = logging.getLogger(__name__)

_DEFAULT_DB = Path.home() / ".pricebook" / "pricebook.db"
_BUNDLED_SEED = Path(__file__).parent.parent / "data" / "catalog.yaml"

SCHEMA = """
CREATE TABLE IF NOT EXISTS industries (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    UNIQUE(name)
);

CREATE TABLE IF NOT EXISTS services (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'uncategorized',
    industry_id TEXT REFERENCES industries(id),
    description TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS line_items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    price REAL NOT NULL DEFAULT 0,
    unit TEXT NOT NULL DEFAULT 'ea',
    category TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS offerings (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT DEFAULT '',
    price REAL NOT NULL DEFAULT 0,
    unit TEXT NOT NULL DEFAULT 'ea',
    service_id TEXT NOT NULL REFERENCES services(id),
    organization_id TEXT,
    is_template INTEGER NOT NULL DEFAULT 1,
    material_quality TEXT,
    warranty_months INTEGER,
    estimated_hours REAL,
    skill_level TEXT,
    attributes TEXT DEFAULT '{}',
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS offering_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    offering_id TEXT NOT NULL REFERENCES offerings(id) ON DELETE CASCADE,
    line_item_id TEXT NOT NULL REFERENCES line_items(id),
    quantity REAL NOT NULL DEFAULT 1,
    is_optional INTEGER NOT NULL DEFAULT 0,
    display_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS packages (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    level TEXT NOT NULL DEFAULT 'essentials',
    industry_id TEXT REFERENCES industries(id),
    organization_id TEXT,
    is_featured INTEGER NOT NULL DEFAULT 0,
    description TEXT DEFAULT '',
    display_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS package_templates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    package_id TEXT NOT NULL REFERENCES packages(id) ON DELETE CASCADE,
    offering_id TEXT NOT NULL REFERENCES offerings(id),
    quantity INTEGER NOT NULL DEFAULT 1,
    is_optional INTEGER NOT NULL DEFAULT 0,
    display_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS catalog_metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_offering_org_key
    ON offerings(organization_id, service_id, name) WHERE organization_id IS NOT NULL;
CREATE INDEX IF NOT EXISTS idx_offering_service ON offerings(service_id);
CREATE INDEX IF NOT EXISTS idx_offering_org ON offerings(organization_id);
CREATE INDEX IF NOT EXISTS idx_items_offering ON offering_items(offering_id);
CREATE INDEX IF NOT EXISTS idx_service_industry ON services(industry_id);
CREATE INDEX IF NOT EXISTS idx_package_templates_package ON package_templates(package_id);
"""

_OFFERING_COLUMNS = (
    "o.id, o.name, o.description, o.price, o.unit, o.service_id, o.organization_id, o.is_template,"
    " o.material_quality, o.warranty_months, o.estimated_hours, o.skill_level, o.attributes"
)


def default_db_path() -> Path:
    env = os.environ.get("PRICEBOOK_DB")
    return Path(env) if env else _DEFAULT_DB


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Catalog:
    """SQLite-backed service catalog.

    Every public method opens its own short-lived connection and commits on
    exit, so a multi-step workflow (copy an offering, then its line items) is
    a sequence of independent writes. Auto-seeds the default database from the
    bundled catalog file on first use.
    """

    def __init__(self, db_path: str | Path | None = None):
        if db_path:
            self.db_path = Path(db_path)
        else:
            self.db_path = default_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_db()

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open catalog at {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if "UNIQUE" in str(exc):
                raise ConflictError(str(exc)) from exc
            raise StoreError(str(exc)) from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        # Only auto-seed the default DB; explicit paths are caller-managed
        if self.db_path == default_db_path() and self.get_stats()["offering_count"] == 0:
            if _BUNDLED_SEED.exists():
                from pricebook.catalog.seed import load_seed_file, seed_catalog

                seed_catalog(self, load_seed_file(_BUNDLED_SEED))
                self.set_metadata("seeded_from", _BUNDLED_SEED.name)

    # Reads

    def list_industries(self) -> list[Industry]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name FROM industries ORDER BY name").fetchall()
            return [Industry(**dict(r)) for r in rows]

    def get_industry(self, industry_id: str) -> Industry | None:
        with self._connect() as conn:
            row = conn.execute("SELECT id, name FROM industries WHERE id = ?", (industry_id,)).fetchone()
            return Industry(**dict(row)) if row else None

    def find_industry(self, name_or_id: str) -> Industry | None:
        """Look up an industry by id, or by case-insensitive name."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name FROM industries WHERE id = ? OR lower(name) = lower(?) LIMIT 1",
                (name_or_id, name_or_id),
            ).fetchone()
            return Industry(**dict(row)) if row else None

    def list_services(self, industry_id: str | None = None) -> list[Service]:
        sql = "SELECT id, name, category, industry_id, description FROM services"
        params: list[Any] = []
        if industry_id:
            sql += " WHERE industry_id = ?"
            params.append(industry_id)
        sql += " ORDER BY name"
        with self._connect() as conn:
            return [self._row_to_service(r) for r in conn.execute(sql, params).fetchall()]

    def get_service(self, service_id: str) -> Service | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name, category, industry_id, description FROM services WHERE id = ?",
                (service_id,),
            ).fetchone()
            return self._row_to_service(row) if row else None

    def list_line_items(self) -> list[LineItem]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id, name, price, unit, category FROM line_items ORDER BY name").fetchall()
            return [LineItem(**dict(r)) for r in rows]

    def list_offerings(
        self,
        service_id: str | None = None,
        organization_id: str | None = None,
        shared_only: bool = False,
        industry_id: str | None = None,
        visible_to: str | None = None,
    ) -> list[Offering]:
        """Filtered offering query.

        ``organization_id`` selects one organization's customizations,
        ``shared_only`` selects shared entries, and ``visible_to`` selects
        what an organization sees: shared entries plus its own.
        """
        conditions = []
        params: list[Any] = []

        if service_id:
            conditions.append("o.service_id = ?")
            params.append(service_id)
        if organization_id:
            conditions.append("o.organization_id = ?")
            params.append(organization_id)
        if shared_only:
            conditions.append("o.organization_id IS NULL")
        if visible_to:
            conditions.append("(o.organization_id IS NULL OR o.organization_id = ?)")
            params.append(visible_to)
        if industry_id:
            conditions.append("s.industry_id = ?")
            params.append(industry_id)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        # where_clause is built only from hardcoded strings above; values go through ? placeholders.
        sql = (  # noqa: S608
            "SELECT " + _OFFERING_COLUMNS + " FROM offerings o"
            " JOIN services s ON s.id = o.service_id"
            " WHERE " + where_clause + " ORDER BY o.name, o.organization_id IS NOT NULL, o.id"
        )
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
            return self._rows_to_offerings(conn, rows)

    def get_offering(self, offering_id: str) -> Offering | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT " + _OFFERING_COLUMNS + " FROM offerings o WHERE o.id = ?",
                (offering_id,),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_offerings(conn, [row])[0]

    def find_customization(self, organization_id: str, service_id: str, name: str) -> Offering | None:
        """Return the organization's copy for a (service, name) key, if any."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT " + _OFFERING_COLUMNS + " FROM offerings o"
                " WHERE o.organization_id = ? AND o.service_id = ? AND o.name = ?"
                " ORDER BY o.created_at, o.id LIMIT 1",
                (organization_id, service_id, name),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_offerings(conn, [row])[0]

    def find_shared(self, service_id: str, name: str) -> Offering | None:
        """Return the shared offering for a (service, name) key, if any."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT " + _OFFERING_COLUMNS + " FROM offerings o"
                " WHERE o.organization_id IS NULL AND o.service_id = ? AND o.name = ?"
                " ORDER BY o.created_at, o.id LIMIT 1",
                (service_id, name),
            ).fetchone()
            if row is None:
                return None
            return self._rows_to_offerings(conn, [row])[0]

    def customizations_for(
        self, organization_id: str, service_ids: Iterable[str] | None = None
    ) -> dict[tuple[str, str], Offering]:
        """All of an organization's copies keyed by (service_id, name)."""
        offerings = self.list_offerings(organization_id=organization_id)
        wanted = set(service_ids) if service_ids is not None else None
        result: dict[tuple[str, str], Offering] = {}
        for off in offerings:
            if wanted is not None and off.service_id not in wanted:
                continue
            result.setdefault((off.service_id, off.name), off)
        return result

    def list_packages(
        self,
        industry_id: str | None = None,
        level: str | None = None,
        visible_to: str | None = None,
    ) -> list[Package]:
        conditions = []
        params: list[Any] = []
        if industry_id:
            conditions.append("industry_id = ?")
            params.append(industry_id)
        if level:
            conditions.append("level = ?")
            params.append(level)
        if visible_to:
            conditions.append("(organization_id IS NULL OR organization_id = ?)")
            params.append(visible_to)
        where_clause = " AND ".join(conditions) if conditions else "1=1"
        sql = (  # noqa: S608
            "SELECT id, name, level, industry_id, organization_id, is_featured, description FROM packages"
            " WHERE " + where_clause + " ORDER BY CASE level WHEN 'essentials' THEN 1 WHEN 'complete' THEN 2"
            " WHEN 'deluxe' THEN 3 ELSE 4 END, display_order, name"
        )
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._load_package(conn, r) for r in rows]

    def get_package(self, package_id: str) -> Package | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name, level, industry_id, organization_id, is_featured, description"
                " FROM packages WHERE id = ?",
                (package_id,),
            ).fetchone()
            return self._load_package(conn, row) if row else None

    def get_stats(self) -> dict:
        with self._connect() as conn:
            return {
                "industry_count": conn.execute("SELECT COUNT(*) FROM industries").fetchone()[0],
                "service_count": conn.execute("SELECT COUNT(*) FROM services").fetchone()[0],
                "offering_count": conn.execute("SELECT COUNT(*) FROM offerings").fetchone()[0],
                "shared_offering_count": conn.execute(
                    "SELECT COUNT(*) FROM offerings WHERE organization_id IS NULL"
                ).fetchone()[0],
                "customized_offering_count": conn.execute(
                    "SELECT COUNT(*) FROM offerings WHERE organization_id IS NOT NULL"
                ).fetchone()[0],
                "package_count": conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0],
            }

    # Writes

    def insert_offering(self, offering: Offering) -> Offering:
        """Insert the offering row only; line items are a separate call.

        Raises ConflictError when the organization already owns an offering
        with the same (service_id, name).
        """
        offering_id = offering.id or uuid.uuid4().hex
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO offerings
                (id, name, description, price, unit, service_id, organization_id, is_template,
                 material_quality, warranty_months, estimated_hours, skill_level, attributes,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    offering_id,
                    offering.name,
                    offering.description,
                    offering.price,
                    offering.unit,
                    offering.service_id,
                    offering.organization_id,
                    int(offering.is_template),
                    offering.material_quality,
                    offering.warranty_months,
                    offering.estimated_hours,
                    offering.skill_level,
                    json.dumps(offering.attributes),
                    now,
                    now,
                ),
            )
        return offering.model_copy(update={"id": offering_id, "items": []})

    def insert_offering_items(self, offering_id: str, items: Iterable[OfferingItem]) -> list[OfferingItem]:
        """Attach line items to an offering in one write."""
        created: list[OfferingItem] = []
        with self._connect() as conn:
            for item in items:
                cur = conn.execute(
                    """INSERT INTO offering_items
                    (offering_id, line_item_id, quantity, is_optional, display_order)
                    VALUES (?, ?, ?, ?, ?)""",
                    (offering_id, item.line_item.id, item.quantity, int(item.is_optional), item.display_order),
                )
                created.append(item.model_copy(update={"id": str(cur.lastrowid), "offering_id": offering_id}))
        return created

    def update_offering_price(self, offering_id: str, price: float) -> Offering:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE offerings SET price = ?, updated_at = ? WHERE id = ?",
                (price, _now(), offering_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Offering {offering_id!r} not found")
        updated = self.get_offering(offering_id)
        if updated is None:
            raise NotFoundError(f"Offering {offering_id!r} not found")
        return updated

    def delete_offering(self, offering_id: str) -> bool:
        with self._connect() as conn:
            conn.execute("DELETE FROM offering_items WHERE offering_id = ?", (offering_id,))
            cur = conn.execute("DELETE FROM offerings WHERE id = ?", (offering_id,))
            return cur.rowcount > 0

    # Seeding primitives. INSERT OR IGNORE keeps repeated seeding idempotent.

    def insert_industry(self, industry: Industry) -> None:
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO industries (id, name) VALUES (?, ?)", (industry.id, industry.name))

    def insert_service(self, service: Service) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO services (id, name, category, industry_id, description) VALUES (?, ?, ?, ?, ?)",
                (service.id, service.name, service.category.value, service.industry_id, service.description),
            )

    def insert_line_item(self, item: LineItem) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO line_items (id, name, price, unit, category) VALUES (?, ?, ?, ?, ?)",
                (item.id, item.name, item.price, item.unit, item.category),
            )

    def insert_package(self, package: Package, links: Iterable[dict] | None = None) -> None:
        """Insert a package and its template links.

        ``links`` are dicts with ``offering_id`` plus optional ``quantity``,
        ``is_optional`` and ``display_order``; when omitted the package's own
        ``templates`` are used.
        """
        if links is None:
            links = [
                {
                    "offering_id": t.offering.id,
                    "quantity": t.quantity,
                    "is_optional": t.is_optional,
                    "display_order": t.display_order,
                }
                for t in package.templates
            ]
        with self._connect() as conn:
            cur = conn.execute(
                """INSERT OR IGNORE INTO packages
                (id, name, level, industry_id, organization_id, is_featured, description)
                VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    package.id,
                    package.name,
                    package.level.value,
                    package.industry_id,
                    package.organization_id,
                    int(package.is_featured),
                    package.description,
                ),
            )
            if cur.rowcount == 0:
                return
            for i, link in enumerate(links):
                quantity = int(link.get("quantity", 1))
                if quantity < 1:
                    raise ValueError(f"Package {package.id!r} link quantity must be at least 1")
                conn.execute(
                    """INSERT INTO package_templates
                    (package_id, offering_id, quantity, is_optional, display_order)
                    VALUES (?, ?, ?, ?, ?)""",
                    (
                        package.id,
                        link["offering_id"],
                        quantity,
                        int(bool(link.get("is_optional", False))),
                        int(link.get("display_order", i)),
                    ),
                )

    def seed(self, data: dict) -> dict:
        """Load a catalog document (see ``pricebook.catalog.seed``); returns counts."""
        from pricebook.catalog.seed import seed_catalog

        return seed_catalog(self, data)

    def set_metadata(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO catalog_metadata (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, _now()),
            )

    def get_metadata(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM catalog_metadata WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    # Row mapping

    def _row_to_service(self, row: sqlite3.Row) -> Service:
        d = dict(row)
        d["description"] = d.get("description") or ""
        return Service(**d)

    def _rows_to_offerings(self, conn: sqlite3.Connection, rows: list[sqlite3.Row]) -> list[Offering]:
        if not rows:
            return []
        ids = [r["id"] for r in rows]
        items = self._load_items(conn, ids)
        result = []
        for r in rows:
            d = dict(r)
            try:
                d["attributes"] = json.loads(d.get("attributes") or "{}")
            except (json.JSONDecodeError, TypeError):
                d["attributes"] = {}
            d["is_template"] = bool(d["is_template"])
            d["description"] = d.get("description") or ""
            d["items"] = items.get(d["id"], [])
            result.append(Offering(**d))
        return result

    def _load_items(self, conn: sqlite3.Connection, offering_ids: list[str]) -> dict[str, list[OfferingItem]]:
        placeholders = ",".join("?" for _ in offering_ids)
        rows = conn.execute(
            "SELECT oi.id, oi.offering_id, oi.quantity, oi.is_optional, oi.display_order,"
            " li.id AS li_id, li.name AS li_name, li.price AS li_price, li.unit AS li_unit,"
            " li.category AS li_category"
            " FROM offering_items oi JOIN line_items li ON li.id = oi.line_item_id"
            " WHERE oi.offering_id IN (" + placeholders + ") ORDER BY oi.display_order, oi.id",  # noqa: S608
            offering_ids,
        ).fetchall()
        grouped: dict[str, list[OfferingItem]] = {}
        for r in rows:
            grouped.setdefault(r["offering_id"], []).append(
                OfferingItem(
                    id=str(r["id"]),
                    offering_id=r["offering_id"],
                    quantity=r["quantity"],
                    is_optional=bool(r["is_optional"]),
                    display_order=r["display_order"],
                    line_item=LineItem(
                        id=r["li_id"],
                        name=r["li_name"],
                        price=r["li_price"],
                        unit=r["li_unit"],
                        category=r["li_category"] or "",
                    ),
                )
            )
        return grouped

    def _load_package(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Package:
        links = conn.execute(
            "SELECT id, offering_id, quantity, is_optional, display_order FROM package_templates"
            " WHERE package_id = ? ORDER BY is_optional, display_order, id",
            (row["id"],),
        ).fetchall()
        offering_rows = []
        if links:
            placeholders = ",".join("?" for _ in links)
            offering_rows = conn.execute(
                "SELECT " + _OFFERING_COLUMNS + " FROM offerings o WHERE o.id IN (" + placeholders + ")",  # noqa: S608
                [link["offering_id"] for link in links],
            ).fetchall()
        offerings = {o.id: o for o in self._rows_to_offerings(conn, offering_rows)}

        templates = []
        for link in links:
            offering = offerings.get(link["offering_id"])
            if offering is None:
                log.debug("Package %s links missing offering %s", row["id"], link["offering_id"])
                continue
            templates.append(
                PackageTemplate(
                    id=str(link["id"]),
                    package_id=row["id"],
                    offering=offering,
                    quantity=link["quantity"],
                    is_optional=bool(link["is_optional"]),
                    display_order=link["display_order"],
                )
            )

        d = dict(row)
        d["is_featured"] = bool(d["is_featured"])
        d["description"] = d.get("description") or ""
        return Package(**d, templates=templates)
