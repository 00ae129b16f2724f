"""Attribute filters — industry-specific attribute filters over offerings.

Filter semantics by value type:
  bool            exact match (False only matches False)
  list/tuple/set  attribute value must be one of the entries
  int/float       attribute value must be >= the threshold (one-sided range)
  anything else   exact equality
An absent or None attribute never matches; filters combine with AND.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from pricebook.errors import ValidationError
from pricebook.models import FilterDefinition, Offering

log = logging.getLogger(__name__)

_FILTERS_FILE = Path(__file__).parent / "data" / "filters.yaml"

_TRUE = {"true", "yes", "y", "1", "on"}
_FALSE = {"false", "no", "n", "0", "off"}


@lru_cache(maxsize=1)
def _load_definitions() -> dict[str, list[FilterDefinition]]:
    with open(_FILTERS_FILE) as f:
        raw = yaml.safe_load(f) or {}
    return {
        industry.lower(): [FilterDefinition(**d) for d in defs]
        for industry, defs in raw.items()
    }


def filter_industries() -> list[str]:
    return sorted(_load_definitions())


def filters_for_industry(industry: str | None) -> list[FilterDefinition]:
    """Filter definitions for an industry name (case-insensitive); empty if unknown."""
    if not industry:
        return []
    return list(_load_definitions().get(industry.strip().lower(), []))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _match_one(value: Any, wanted: Any) -> bool:
    if value is None:
        return False
    if isinstance(wanted, bool):
        return isinstance(value, bool) and value is wanted
    if isinstance(wanted, (list, tuple, set, frozenset)):
        if isinstance(value, list):
            return any(v in wanted for v in value)
        return value in wanted
    if _is_number(wanted):
        return _is_number(value) and value >= wanted
    return value == wanted


def matches(offering: Offering | Mapping[str, Any], active_filters: Mapping[str, Any] | None) -> bool:
    if not active_filters:
        return True
    attributes = offering.attributes if isinstance(offering, Offering) else offering
    for key, wanted in active_filters.items():
        if not _match_one(attributes.get(key), wanted):
            return False
    return True


def coerce_filter_value(raw: str, definition: FilterDefinition | None = None) -> Any:
    """Turn a textual filter value (e.g. from the command line) into a typed one."""
    text = raw.strip()
    kind = definition.type if definition else None

    if kind == "boolean" or (kind is None and text.lower() in ("true", "false")):
        if text.lower() in _TRUE:
            return True
        if text.lower() in _FALSE:
            return False
        raise ValidationError(f"Expected yes/no for {definition.key if definition else 'filter'}, got {raw!r}")

    if kind == "range" or kind is None:
        try:
            number = float(text)
        except ValueError:
            if kind == "range":
                raise ValidationError(f"Expected a number for {definition.key}, got {raw!r}") from None
        else:
            return int(number) if number.is_integer() else number

    if kind == "multi-select":
        return [_option_value(part.strip(), definition) for part in text.split(",") if part.strip()]
    if kind == "select":
        return _option_value(text, definition)
    return text


def _option_value(text: str, definition: FilterDefinition | None) -> str:
    if definition is None or not definition.options:
        return text
    for opt in definition.options:
        if text == opt.get("value") or text.lower() == str(opt.get("label", "")).lower():
            return opt["value"]
    allowed = ", ".join(opt["value"] for opt in definition.options)
    raise ValidationError(f"Unknown {definition.key} option {text!r} (choose from: {allowed})")


class FilterState:
    """Selected industry plus the active attribute filters for one browsing session."""

    def __init__(self, industry: str | None = None):
        self.industry = industry
        self.active: dict[str, Any] = {}

    @property
    def definitions(self) -> list[FilterDefinition]:
        return filters_for_industry(self.industry)

    @property
    def active_count(self) -> int:
        return len(self.active)

    def definition(self, key: str) -> FilterDefinition | None:
        for d in self.definitions:
            if d.key == key:
                return d
        return None

    def select_industry(self, industry: str | None) -> None:
        """Switch industry; filters from the previous industry no longer apply."""
        old = (self.industry or "").strip().lower()
        new = (industry or "").strip().lower()
        if old != new and self.active:
            log.debug("Industry changed from %r to %r, clearing %d filters", old, new, len(self.active))
            self.active.clear()
        self.industry = industry

    def set(self, key: str, value: Any) -> None:
        if value is None or value == "" or (isinstance(value, (list, tuple, set)) and not value):
            self.active.pop(key, None)
        else:
            self.active[key] = value

    def set_text(self, key: str, raw: str) -> None:
        """Set a filter from its textual form, typed by the industry's definition."""
        self.set(key, coerce_filter_value(raw, self.definition(key)))

    def remove(self, key: str) -> None:
        self.active.pop(key, None)

    def clear(self) -> None:
        self.active.clear()

    def apply(self, offerings: Iterable[Offering]) -> list[Offering]:
        return [o for o in offerings if matches(o, self.active)]
