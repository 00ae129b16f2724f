"""Catalog, cart and estimate models.

Everything the engines exchange is a pydantic model: the store adapter builds
them from rows, the pricing engines read them, the cart snapshots them and the
estimate draft serialises them for the estimate-creation collaborator.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Union

import yaml
from pydantic import BaseModel, Field, field_validator

AttributeValue = Union[bool, int, float, str, list[Any], None]


class ServiceCategory(str, Enum):
    CONSULTATION = "consultation"
    INSPECTION = "inspection"
    PREPARATION = "preparation"
    INSTALLATION = "installation"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    FINISHING = "finishing"
    UNCATEGORIZED = "uncategorized"


class PackageLevel(str, Enum):
    ESSENTIALS = "essentials"
    COMPLETE = "complete"
    DELUXE = "deluxe"


class CartItemKind(str, Enum):
    PACKAGE = "package"
    OFFERING = "offering"


SKILL_LEVELS = ("basic", "intermediate", "advanced", "expert")
MATERIAL_QUALITIES = ("economy", "standard", "premium", "luxury")


class Industry(BaseModel):
    id: str
    name: str


class Service(BaseModel):
    id: str
    name: str
    category: ServiceCategory = ServiceCategory.UNCATEGORIZED
    industry_id: str | None = None
    description: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        if v is None:
            return ServiceCategory.UNCATEGORIZED
        if isinstance(v, str) and v.lower() not in {c.value for c in ServiceCategory}:
            return ServiceCategory.UNCATEGORIZED
        return v.lower() if isinstance(v, str) else v


class LineItem(BaseModel):
    """A base line item (material, labor, equipment) from the price book."""

    id: str
    name: str
    price: float = 0.0
    unit: str = "ea"
    category: str = ""


class OfferingItem(BaseModel):
    id: str = ""
    offering_id: str = ""
    line_item: LineItem
    quantity: float = 1.0
    is_optional: bool = False
    display_order: int = 0

    @property
    def line_total(self) -> float:
        return self.line_item.price * self.quantity


class Offering(BaseModel):
    """A priced, sellable unit of service work.

    ``organization_id`` is None for shared catalog entries. The offering's
    ``price`` is authoritative; ``line_item_total`` is the breakdown sum and is
    never reconciled with it.
    """

    id: str
    name: str
    description: str = ""
    price: float = 0.0
    unit: str = "ea"
    service_id: str
    organization_id: str | None = None
    is_template: bool = True
    material_quality: str | None = None
    warranty_months: int | None = None
    estimated_hours: float | None = None
    skill_level: str | None = None
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    items: list[OfferingItem] = Field(default_factory=list)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Offering price must be non-negative, got {v}")
        return v

    @field_validator("skill_level")
    @classmethod
    def validate_skill_level(cls, v: str | None) -> str | None:
        if v is not None and v not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level {v!r}")
        return v

    @field_validator("material_quality")
    @classmethod
    def validate_material_quality(cls, v: str | None) -> str | None:
        if v is not None and v not in MATERIAL_QUALITIES:
            raise ValueError(f"Unknown material quality {v!r}")
        return v

    @property
    def is_shared(self) -> bool:
        return self.organization_id is None

    @property
    def line_item_total(self) -> float:
        return round(sum(item.line_total for item in self.items), 2)


class PackageTemplate(BaseModel):
    """Link between a package and one of its offerings."""

    id: str = ""
    package_id: str = ""
    offering: Offering
    quantity: int = 1
    is_optional: bool = False
    display_order: int = 0

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Package link quantity must be at least 1, got {v}")
        return v


class Package(BaseModel):
    id: str
    name: str
    level: PackageLevel = PackageLevel.ESSENTIALS
    industry_id: str | None = None
    organization_id: str | None = None
    is_featured: bool = False
    description: str = ""
    templates: list[PackageTemplate] = Field(default_factory=list)

    @property
    def required_links(self) -> list[PackageTemplate]:
        return [t for t in self.templates if not t.is_optional]

    @property
    def optional_links(self) -> list[PackageTemplate]:
        return [t for t in self.templates if t.is_optional]


class ResolvedPrice(BaseModel):
    price: float
    is_customized: bool
    offering_id: str


class PricedOffering(BaseModel):
    """An offering as the catalog browser shows it to one organization."""

    offering: Offering
    service: Service | None = None
    price: float
    is_customized: bool


class ServiceGroup(BaseModel):
    """A service with its visible offerings and their effective price range."""

    service: Service
    offerings: list[PricedOffering] = Field(default_factory=list)
    min_price: float = 0.0
    max_price: float = 0.0
    customized_count: int = 0

    @property
    def offering_count(self) -> int:
        return len(self.offerings)


class PackageTotals(BaseModel):
    required_total: float = 0.0
    optional_total: float = 0.0
    discounted_optional_total: float = 0.0
    required_count: int = 0
    optional_count: int = 0

    @property
    def base_price(self) -> float:
        return self.required_total

    @property
    def item_count(self) -> int:
        return self.required_count + self.optional_count

    @property
    def potential_total(self) -> float:
        return round(self.required_total + self.optional_total, 2)

    @property
    def bundle_savings(self) -> float:
        return round(self.optional_total - self.discounted_optional_total, 2)

    @property
    def completion_percentage(self) -> int:
        if self.required_count == 0 or self.potential_total <= 0:
            return 0
        return round(self.required_total / self.potential_total * 100)


class PricedPackage(BaseModel):
    package: Package
    totals: PackageTotals


class PricedLink(BaseModel):
    """A package link with its effective unit price, frozen at add-to-cart time."""

    offering_id: str
    name: str
    unit: str
    unit_price: float
    quantity: int
    is_optional: bool = False


class CustomizationResult(BaseModel):
    offering: Offering
    created: bool
    previous_price: float | None = None


class BulkResult(BaseModel):
    completed: int = 0
    total: int = 0
    created: int = 0
    skipped: int = 0
    created_ids: list[str] = Field(default_factory=list)

    @property
    def progress(self) -> float:
        return self.completed / self.total if self.total else 1.0


class CartItem(BaseModel):
    key: str
    kind: CartItemKind
    source_id: str
    name: str
    price: float
    quantity: int = 1
    unit: str = "ea"
    subtotal: float = 0.0
    source: Offering | Package
    components: list[PricedLink] = Field(default_factory=list)


class CartTotals(BaseModel):
    subtotal: float
    discount_percent: float
    discount_amount: float
    taxable_amount: float
    tax_rate: float
    include_tax: bool
    tax_amount: float
    total: float
    item_count: int


class EstimateLine(BaseModel):
    description: str
    unit: str = "ea"
    unit_price: float
    quantity: int
    total: float
    source_kind: CartItemKind
    source_id: str


class EstimateDraft(BaseModel):
    """Flat line-item list handed to the estimate-creation collaborator."""

    organization_id: str | None = None
    lines: list[EstimateLine] = Field(default_factory=list)
    subtotal: float = 0.0
    discount_percent: float = 0.0
    discount_amount: float = 0.0
    tax_rate: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0
    currency: str = "USD"
    as_of: str = Field(default_factory=lambda: date.today().isoformat())

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


class FilterDefinition(BaseModel):
    key: str
    label: str
    type: str
    options: list[dict[str, str]] = Field(default_factory=list)
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit: str | None = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ("range", "boolean", "select", "multi-select"):
            raise ValueError(f"Unknown filter type {v!r}")
        return v
