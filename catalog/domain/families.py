"""Product families: category-specific validation and defaults for new products.

``build_product_draft`` owns the fixed sequence of steps; each family only
contributes the capabilities that differ (which requests it accepts, its own
checks, and how it specializes the draft).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol, runtime_checkable

from catalog.domain import PRODUCT_INVARIANTS, ProductDraft
from catalog.domain.money import normalize, to_decimal
from catalog.errors import DomainValidationError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


@dataclass(frozen=True, slots=True)
class ProductRequest:
    """Raw input for creating a product through a family."""

    name: str
    price: Decimal
    category: str
    brand: str
    kind: str | None = None
    subtype: str | None = None
    description: str | None = None
    stock: int | None = None
    size: str | None = None
    color: str | None = None
    material: str | None = None
    launch_discount: bool = False
    attributes: Mapping[str, str] = field(default_factory=dict)

    @property
    def normalized_kind(self) -> str:
        return (self.kind or "").strip().upper()


@runtime_checkable
class ProductFamily(Protocol):
    category: str
    kinds: tuple[str, ...]

    def supports(self, category: str | None, kind: str | None) -> bool: ...

    def validate(self, request: ProductRequest) -> None: ...

    def specialize(self, draft: ProductDraft, request: ProductRequest) -> None: ...


def _has_text(value: str | None) -> bool:
    return value is not None and bool(value.strip())


class FootwearFamily:
    category = "CALZADO"
    kinds = ("RUNNING", "CASUAL", "FUTBOL", "BASKETBALL", "TRAINING", "HIKING")
    sizes = tuple(str(size) for size in range(35, 49))
    materials = ("CUERO", "SINTETICO", "MESH", "CANVAS", "TEXTIL", "GORE_TEX", "NEOPRENO")

    # Typical retail price band per kind; prices outside it are only logged.
    price_bands = {
        "RUNNING": (Decimal("50"), Decimal("300")),
        "FUTBOL": (Decimal("40"), Decimal("250")),
        "BASKETBALL": (Decimal("60"), Decimal("200")),
        "HIKING": (Decimal("80"), Decimal("400")),
    }
    default_stock = {"RUNNING": 15, "FUTBOL": 20, "HIKING": 8}

    kind_attributes = {
        "BASKETBALL": {"cut": "MID_TOP", "ankle_support": "HIGH", "traction": "MULTIDIRECTIONAL"},
        "HIKING": {"waterproofing": "HIGH", "abrasion_resistance": "HIGH", "sole": "VIBRAM"},
    }
    football_studs = {"CESPED": ("studs", "FG"), "SINTETICO": ("studs", "TF"), "SALON": ("sole", "FLAT")}

    def supports(self, category: str | None, kind: str | None) -> bool:
        if category is None or category.strip().upper() != self.category:
            return False
        return kind is None or not kind.strip() or kind.strip().upper() in self.kinds

    def validate(self, request: ProductRequest) -> None:
        kind = request.normalized_kind
        if kind and kind not in self.kinds:
            raise DomainValidationError(
                f"Unsupported footwear kind: {request.kind}. Supported kinds: {', '.join(self.kinds)}"
            )
        if _has_text(request.size) and request.size.strip() not in self.sizes:
            raise DomainValidationError(
                f"Invalid footwear size: {request.size}. Valid sizes: {self.sizes[0]}-{self.sizes[-1]}"
            )
        if _has_text(request.material) and request.material.strip().upper() not in self.materials:
            logger.warning("Non-standard footwear material: %s", request.material)

        low, high = self.price_bands.get(kind, (Decimal("0"), Decimal("1000")))
        price = to_decimal(request.price)
        if price < low or price > high:
            logger.warning(
                "Price outside the usual range for %s footwear: %s (range %s-%s)",
                kind or "generic",
                price,
                low,
                high,
            )

    def specialize(self, draft: ProductDraft, request: ProductRequest) -> None:
        kind = request.normalized_kind
        attributes = draft.attributes
        if kind == "RUNNING":
            if not _has_text(request.material):
                attributes.setdefault("upper", "MESH")
                attributes.setdefault("sole", "EVA")
            attributes.update(cushioning="HIGH", breathability="HIGH", weight="250-300g")
        elif kind == "FUTBOL":
            subtype = (request.subtype or "CESPED").strip().upper()
            if subtype in self.football_studs:
                key, value = self.football_studs[subtype]
                attributes[key] = value
            attributes["outer"] = "SYNTHETIC_LEATHER"
        elif kind in self.kind_attributes:
            attributes.update(self.kind_attributes[kind])
        else:
            attributes.update(versatility="HIGH", comfort="HIGH")

        details = [
            f"{label}: {value}"
            for label, value in (("Kind", request.kind), ("Size", request.size), ("Material", request.material))
            if _has_text(value)
        ]
        if details:
            draft.description = " - ".join([draft.description, *details])

        if request.launch_discount:
            launch = normalize(draft.price * Decimal("0.10"))
            attributes["launch_discount"] = str(launch)
            attributes["original_price"] = str(draft.price)
            logger.info("Launch discount noted for '%s': %s", draft.name, launch)

        if not request.stock:
            draft.stock = self.default_stock.get(kind, 10)
            logger.debug("Default initial stock for '%s': %d", draft.name, draft.stock)


class ApparelFamily:
    category = "ROPA"
    kinds = ("CAMISETA", "PANTALON", "SUDADERA", "CHAQUETA", "SHORT")
    sizes = ("XS", "S", "M", "L", "XL", "XXL")

    def supports(self, category: str | None, kind: str | None) -> bool:
        if category is None or category.strip().upper() != self.category:
            return False
        return kind is None or not kind.strip() or kind.strip().upper() in self.kinds

    def validate(self, request: ProductRequest) -> None:
        kind = request.normalized_kind
        if kind and kind not in self.kinds:
            raise DomainValidationError(
                f"Unsupported apparel kind: {request.kind}. Supported kinds: {', '.join(self.kinds)}"
            )
        if _has_text(request.size) and request.size.strip().upper() not in self.sizes:
            raise DomainValidationError(
                f"Invalid apparel size: {request.size}. Valid sizes: {', '.join(self.sizes)}"
            )

    def specialize(self, draft: ProductDraft, request: ProductRequest) -> None:
        if _has_text(request.size):
            draft.attributes["size"] = request.size.strip().upper()
        if _has_text(request.color):
            draft.attributes["color"] = request.color.strip()
        details = [
            f"{label}: {value}"
            for label, value in (("Kind", request.kind), ("Size", request.size), ("Color", request.color))
            if _has_text(value)
        ]
        if details:
            draft.description = " - ".join([draft.description, *details])


DEFAULT_FAMILIES: tuple[ProductFamily, ...] = (FootwearFamily(), ApparelFamily())


def find_family(
    category: str | None, kind: str | None, families: Iterable[ProductFamily]
) -> ProductFamily | None:
    for family in families:
        if family.supports(category, kind):
            return family
    return None


def supported_families(families: Iterable[ProductFamily] = DEFAULT_FAMILIES) -> dict[str, list[str]]:
    return {family.category: list(family.kinds) for family in families}


def _validate_basics(request: ProductRequest) -> None:
    if request is None:
        raise DomainValidationError("Product request is required")
    if not _has_text(request.name):
        raise DomainValidationError("Product name is required")
    if len(request.name) > MAX_NAME_LENGTH:
        raise DomainValidationError(f"Product name must not exceed {MAX_NAME_LENGTH} characters")
    if request.price is None or to_decimal(request.price) <= 0:
        raise DomainValidationError("Product price must be greater than 0")
    if not _has_text(request.category):
        raise DomainValidationError("Product category is required")
    if not _has_text(request.brand):
        raise DomainValidationError("Product brand is required")


def build_product_draft(
    request: ProductRequest, families: Iterable[ProductFamily] = DEFAULT_FAMILIES
) -> ProductDraft:
    """Validate ``request`` and turn it into a draft ready for ``CreateProductCommand``.

    Raises:
        DomainValidationError: if the request is invalid or no family accepts it.
    """
    _validate_basics(request)

    family = find_family(request.category, request.kind, families)
    if family is None:
        raise DomainValidationError(
            f"No product family supports category '{request.category}' and kind '{request.kind}'"
        )
    family.validate(request)

    draft = ProductDraft(
        name=request.name.strip(),
        price=normalize(request.price),
        category=family.category,
        brand=request.brand.strip(),
        description=request.description.strip() if _has_text(request.description) else None,
        stock=request.stock or 0,
        attributes=dict(request.attributes),
    )
    if draft.description is None:
        draft.description = f"{draft.name} by {draft.brand}"

    family.specialize(draft, request)

    problems = PRODUCT_INVARIANTS.violations(name=draft.name, price=draft.price, stock=draft.stock)
    if problems:
        raise DomainValidationError("; ".join(problems))

    logger.info(
        "Draft built for '%s' (family=%s, kind=%s)",
        draft.name,
        type(family).__name__,
        request.kind,
    )
    return draft
