from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from catalog.domain import ProductChanges, ProductDraft
from catalog.domain.families import ProductRequest


class Product(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    price: Decimal
    category: str
    brand: str
    stock: int
    active: bool
    created_at: datetime
    modified_at: datetime | None = None


class ProductCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    price: Decimal
    category: str = Field(..., max_length=100)
    brand: str = Field(..., max_length=100)
    stock: int = 0

    def to_draft(self) -> ProductDraft:
        return ProductDraft(
            name=self.name,
            price=self.price,
            category=self.category,
            brand=self.brand,
            description=self.description,
            stock=self.stock,
        )


class ProductUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    description: str | None = None
    price: Decimal | None = None
    category: str | None = Field(None, max_length=100)
    brand: str | None = Field(None, max_length=100)
    stock: int | None = None

    def to_changes(self) -> ProductChanges:
        return ProductChanges(
            name=self.name,
            description=self.description,
            price=self.price,
            category=self.category,
            brand=self.brand,
            stock=self.stock,
        )


class ProductBatchItem(ProductUpdate):
    id: int


class ProductBatchUpdate(BaseModel):
    items: list[ProductBatchItem] = Field(..., min_length=1)


class StockUpdate(BaseModel):
    stock: int


class PriceUpdate(BaseModel):
    price: Decimal


class PriceUpdateResult(BaseModel):
    changed: bool
    product: Product


class FamilyProductCreate(BaseModel):
    """Creation request routed through a product family (e.g. CALZADO, ROPA)."""

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
    attributes: dict[str, str] = Field(default_factory=dict)

    def to_request(self) -> ProductRequest:
        return ProductRequest(**self.model_dump())


class FamilyProduct(BaseModel):
    product: Product
    attributes: dict[str, str]
