from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from catalog.api.deps import get_actor, get_coordinator, get_db, get_dispatcher
from catalog.domain.families import supported_families
from catalog.errors import NotFoundError
from catalog.events.dispatcher import EventDispatcher
from catalog.pricing.coordinator import DiscountCoordinator
from catalog.schemas.discount import DiscountQuote, DiscountRequest, DiscountRuleInfo
from catalog.schemas.product import (
    FamilyProduct,
    FamilyProductCreate,
    PriceUpdate,
    PriceUpdateResult,
    Product,
    ProductBatchUpdate,
    ProductCreate,
    ProductUpdate,
    StockUpdate,
)
import catalog.services.product as product_service

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_new_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Create a new product. Fails with 409 if an active product with the same
    name and brand already exists.
    """
    product = product_service.create_product(db, dispatcher, product_data.to_draft(), actor)
    return Product.model_validate(product)


@router.post("/families", response_model=FamilyProduct, status_code=status.HTTP_201_CREATED)
def create_product_from_family(
    request_data: FamilyProductCreate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Create a product through its family (footwear, apparel), which validates
    family-specific fields and fills in defaults.
    """
    product, draft = product_service.create_product_from_family(
        db, dispatcher, request_data.to_request(), actor
    )
    return FamilyProduct(product=Product.model_validate(product), attributes=draft.attributes)


@router.get("/families", response_model=dict[str, list[str]])
def list_product_families():
    """Supported families and the kinds each accepts."""
    return supported_families()


@router.get("", response_model=list[Product])
def get_all_products(db: Session = Depends(get_db)):
    products = product_service.list_products(db)
    return [Product.model_validate(p) for p in products]


@router.get("/search", response_model=list[Product])
def search_products(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    products = product_service.search_products(db, q)
    return [Product.model_validate(p) for p in products]


@router.get("/price-range", response_model=list[Product])
def get_products_by_price_range(
    min_price: Decimal = Query(...),
    max_price: Decimal = Query(...),
    db: Session = Depends(get_db),
):
    products = product_service.list_products_by_price_range(db, min_price, max_price)
    return [Product.model_validate(p) for p in products]


@router.get("/in-stock", response_model=list[Product])
def get_products_in_stock(db: Session = Depends(get_db)):
    products = product_service.list_products_in_stock(db)
    return [Product.model_validate(p) for p in products]


@router.get("/categories", response_model=list[str])
def get_categories(db: Session = Depends(get_db)):
    return product_service.list_categories(db)


@router.get("/brands", response_model=list[str])
def get_brands(db: Session = Depends(get_db)):
    return product_service.list_brands(db)


@router.get("/category/{category}", response_model=list[Product])
def get_products_by_category(category: str, db: Session = Depends(get_db)):
    products = product_service.list_products_by_category(db, category)
    return [Product.model_validate(p) for p in products]


@router.get("/brand/{brand}", response_model=list[Product])
def get_products_by_brand(brand: str, db: Session = Depends(get_db)):
    products = product_service.list_products_by_brand(db, brand)
    return [Product.model_validate(p) for p in products]


@router.get("/discount-rules", response_model=list[DiscountRuleInfo])
def get_discount_rules(coordinator: DiscountCoordinator = Depends(get_coordinator)):
    """Configured discount rules in evaluation order."""
    return [
        DiscountRuleInfo(name=info.name, priority=info.priority, kind=info.kind)
        for info in coordinator.describe_rules()
    ]


@router.post("/batch-update", response_model=list[Product])
def update_products_in_batch(
    batch: ProductBatchUpdate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Update several products at once. If any update fails, the ones already
    applied are rolled back and the error of the failing one is returned.
    """
    updates = [(item.id, item.to_changes()) for item in batch.items]
    products = product_service.update_products(db, dispatcher, updates, actor)
    return [Product.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=Product)
def get_product_by_id(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    return Product.model_validate(product)


@router.put("/{product_id}", response_model=Product)
def update_product_by_id(
    product_id: int,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    product = product_service.update_product(
        db, dispatcher, product_id, product_data.to_changes(), actor
    )
    if product is None:
        raise NotFoundError("Product not found")
    return Product.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product_by_id(
    product_id: int,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Remove a product from the catalog. The row is kept and marked inactive.
    """
    if not product_service.remove_product(db, dispatcher, product_id, actor):
        raise NotFoundError("Product not found")


@router.patch("/{product_id}/stock", response_model=Product)
def update_product_stock(
    product_id: int,
    stock_data: StockUpdate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    product = product_service.update_stock(db, dispatcher, product_id, stock_data.stock, actor)
    if product is None:
        raise NotFoundError("Product not found")
    return Product.model_validate(product)


@router.patch("/{product_id}/price", response_model=PriceUpdateResult)
def update_product_price(
    product_id: int,
    price_data: PriceUpdate,
    db: Session = Depends(get_db),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Change the price of a product. ``changed`` is false when the new price equals
    the current one.
    """
    product_service.get_product(db, product_id)
    changed = product_service.update_price(db, dispatcher, product_id, price_data.price, actor)
    product = product_service.get_product(db, product_id)
    return PriceUpdateResult(changed=changed, product=Product.model_validate(product))


@router.post("/{product_id}/discount", response_model=DiscountQuote)
def calculate_product_discount(
    product_id: int,
    discount_data: DiscountRequest,
    db: Session = Depends(get_db),
    coordinator: DiscountCoordinator = Depends(get_coordinator),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    actor: str = Depends(get_actor),
):
    """
    Price one unit of a product for the given purchase. At most one discount
    rule applies.
    """
    result = product_service.calculate_discounted_price(
        db, coordinator, dispatcher, product_id, discount_data.to_context(actor_id=actor), actor
    )
    return DiscountQuote(
        product_id=product_id,
        original_price=result.original_price,
        final_price=result.final_price,
        rule_name=result.rule_name,
        amount=result.amount,
        percentage=result.percentage,
        has_discount=result.has_discount,
    )
