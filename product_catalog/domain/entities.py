"""Domain entities for the product catalog.

Plain dataclasses shared by the application services and the store
implementations. Stores return these, never ORM rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


# ============================================================================
# Reference Data
# ============================================================================


# EU Regulation 1169/2011 allergen codes
ALLERGEN_CODES: frozenset[str] = frozenset(
    {
        "GLU",
        "CRU",
        "EGG",
        "FISH",
        "PEA",
        "SOY",
        "MILK",
        "NUTS",
        "CEL",
        "MUS",
        "SES",
        "SUL",
        "LUP",
        "MOL",
    }
)


class Confidence(str, Enum):
    """Confidence label attached to classifier output."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def normalize_ean(ean_code: str | None) -> str | None:
    """Stripped EAN, or None when blank."""
    return (ean_code or "").strip() or None


# ============================================================================
# Catalog Entities
# ============================================================================


@dataclass
class Category:
    """Product category. Names are globally unique."""

    id: str
    name: str
    description: str | None = None


@dataclass
class Allergen:
    """Regulatory allergen reference record."""

    id: str
    name: str
    code: str
    description: str | None = None


@dataclass
class Product:
    """Catalog product owned by a tenant (enterprise).

    Attributes:
        id: Product identifier.
        name: Product name, matched case-insensitively during resolution.
        enterprise_id: Owning tenant.
        category_id: Owning category.
        unit: Unit label (e.g. "Unidad", "Kg").
        stock: Current stock, never negative.
        ean_code: Optional EAN barcode, unique within the tenant.
        description: Optional free text.
        category: Loaded category, if available.
        allergens: Associated allergens.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    name: str
    enterprise_id: str
    category_id: str
    unit: str
    stock: Decimal = Decimal("0")
    ean_code: str | None = None
    description: str | None = None
    category: Category | None = None
    allergens: list[Allergen] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class NewProduct:
    """Fields for a product about to be created."""

    name: str
    enterprise_id: str
    category_id: str
    unit: str
    stock: Decimal = Decimal("0")
    ean_code: str | None = None
    description: str | None = None
    allergen_ids: list[str] = field(default_factory=list)


@dataclass
class ProductChanges:
    """Partial product update.

    Fields left as None are not touched. ``allergen_ids`` replaces the
    whole association set when provided (an empty list clears it).
    A blank ``ean_code`` clears the EAN.
    """

    name: str | None = None
    ean_code: str | None = None
    description: str | None = None
    category_id: str | None = None
    unit: str | None = None
    stock: Decimal | None = None
    allergen_ids: list[str] | None = None


# ============================================================================
# Stock Reconciliation
# ============================================================================


@dataclass(frozen=True)
class StockAdjustment:
    """Signed stock delta for one product."""

    product_id: str
    quantity: Decimal


@dataclass(frozen=True)
class StockLevel:
    """New absolute stock for one product, as written by the store."""

    product_id: str
    new_stock: Decimal


@dataclass
class StockItemResult:
    """Outcome of one stock adjustment."""

    product_id: str
    new_stock: Decimal
    success: bool
    error: str | None = None

    def to_dict(self) -> dict:
        """Convert to the wire shape."""
        data = {
            "productId": self.product_id,
            "newStock": float(self.new_stock),
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class StockUpdateOutcome:
    """Result of a batch stock update."""

    success: bool
    results: list[StockItemResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the wire shape."""
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
        }


# ============================================================================
# Classifier Results
# ============================================================================


@dataclass(frozen=True)
class AllergenIdentification:
    """Allergen codes suggested for a product description."""

    codes: tuple[str, ...] = ()
    confidence: Confidence = Confidence.LOW
    reasoning: str = ""

    @classmethod
    def empty(cls, reasoning: str = "") -> "AllergenIdentification":
        """Low-confidence result with no codes."""
        return cls(codes=(), confidence=Confidence.LOW, reasoning=reasoning)


@dataclass(frozen=True)
class CategorySuggestion:
    """Category name suggested for a product name."""

    category: str = ""
    confidence: Confidence = Confidence.LOW
    reasoning: str = ""

    @classmethod
    def empty(cls, reasoning: str = "") -> "CategorySuggestion":
        """Low-confidence result with a blank category."""
        return cls(category="", confidence=Confidence.LOW, reasoning=reasoning)
