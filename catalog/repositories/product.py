from decimal import Decimal

from sqlalchemy.orm import Session

from catalog.db.models.product import Product as ProductModel


def get_product_by_id(db: Session, product_id: int) -> ProductModel | None:
    """Get a product by ID, active or not."""
    return db.query(ProductModel).filter(ProductModel.id == product_id).first()


def save_product(db: Session, product: ProductModel) -> ProductModel:
    """Persist a new or modified product. Pure data access - no business logic."""
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def exists_active_by_name_and_brand(
    db: Session, name: str, brand: str, exclude_id: int | None = None
) -> bool:
    """Check whether an active product with this name and brand exists."""
    query = db.query(ProductModel.id).filter(
        ProductModel.name == name,
        ProductModel.brand == brand,
        ProductModel.active.is_(True),
    )
    if exclude_id is not None:
        query = query.filter(ProductModel.id != exclude_id)
    return query.first() is not None


def get_active_products(db: Session) -> list[ProductModel]:
    """Get all active products, newest first."""
    return (
        db.query(ProductModel)
        .filter(ProductModel.active.is_(True))
        .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        .all()
    )


def get_active_product_by_id(db: Session, product_id: int) -> ProductModel | None:
    """Get a product by ID only if it is active."""
    return (
        db.query(ProductModel)
        .filter(ProductModel.id == product_id, ProductModel.active.is_(True))
        .first()
    )


def get_active_products_by_category(db: Session, category: str) -> list[ProductModel]:
    return (
        db.query(ProductModel)
        .filter(ProductModel.category == category, ProductModel.active.is_(True))
        .order_by(ProductModel.name)
        .all()
    )


def get_active_products_by_brand(db: Session, brand: str) -> list[ProductModel]:
    return (
        db.query(ProductModel)
        .filter(ProductModel.brand == brand, ProductModel.active.is_(True))
        .order_by(ProductModel.name)
        .all()
    )


def search_active_products_by_name(db: Session, text: str) -> list[ProductModel]:
    """Case-insensitive substring search over active product names."""
    return (
        db.query(ProductModel)
        .filter(ProductModel.name.ilike(f"%{text}%"), ProductModel.active.is_(True))
        .order_by(ProductModel.name)
        .all()
    )


def get_active_products_by_price_range(
    db: Session, min_price: Decimal, max_price: Decimal
) -> list[ProductModel]:
    return (
        db.query(ProductModel)
        .filter(
            ProductModel.price >= min_price,
            ProductModel.price <= max_price,
            ProductModel.active.is_(True),
        )
        .order_by(ProductModel.price)
        .all()
    )


def get_active_products_with_stock(db: Session) -> list[ProductModel]:
    return (
        db.query(ProductModel)
        .filter(ProductModel.stock > 0, ProductModel.active.is_(True))
        .all()
    )


def get_active_categories(db: Session) -> list[str]:
    rows = (
        db.query(ProductModel.category)
        .filter(ProductModel.active.is_(True))
        .distinct()
        .order_by(ProductModel.category)
        .all()
    )
    return [row[0] for row in rows]


def get_active_brands(db: Session) -> list[str]:
    rows = (
        db.query(ProductModel.brand)
        .filter(ProductModel.active.is_(True))
        .distinct()
        .order_by(ProductModel.brand)
        .all()
    )
    return [row[0] for row in rows]
