"""Project directory support — finds and loads .pricebook/ configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pricebook.cart import DEFAULT_TAX_RATE
from pydantic import BaseModel

PROJECT_DIR = ".pricebook"


class Settings(BaseModel):
    """Effective CLI settings: command options > environment > project config."""

    organization_id: str | None = None
    db_path: Path | None = None
    tax_rate: float = DEFAULT_TAX_RATE
    include_tax: bool = True
    project_root: Path | None = None


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for .pricebook/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / PROJECT_DIR).is_dir():
            return parent
    return None


def load_project_config(project_root: Path) -> dict[str, Any]:
    """Load .pricebook/config.yaml if it exists."""
    config_path = project_root / PROJECT_DIR / "config.yaml"
    if config_path.exists():
        return yaml.safe_load(config_path.read_text()) or {}
    return {}


def write_project_config(project_root: Path, config: dict[str, Any]) -> Path:
    proj_dir = project_root / PROJECT_DIR
    proj_dir.mkdir(exist_ok=True)
    config_path = proj_dir / "config.yaml"
    config = {k: v for k, v in config.items() if v is not None}
    config_path.write_text(yaml.dump(config, default_flow_style=False, sort_keys=False))
    return config_path


def resolve_settings(
    organization_id: str | None = None,
    db_path: str | Path | None = None,
    start: Path | None = None,
) -> Settings:
    root = find_project_root(start)
    config = load_project_config(root) if root else {}

    org = organization_id or os.environ.get("PRICEBOOK_ORG") or config.get("organization_id")
    db = db_path or os.environ.get("PRICEBOOK_DB") or config.get("db_path")
    if db and root and not Path(db).is_absolute() and not db_path and not os.environ.get("PRICEBOOK_DB"):
        # Relative db paths in config.yaml are relative to the project root
        db = root / db

    return Settings(
        organization_id=str(org) if org else None,
        db_path=Path(db) if db else None,
        tax_rate=config.get("tax_rate", DEFAULT_TAX_RATE),
        include_tax=config.get("include_tax", True),
        project_root=root,
    )
