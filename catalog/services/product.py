"""Product use cases: run commands, then announce what happened."""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from sqlalchemy.orm import Session

import catalog.repositories.product as product_repo
from catalog.commands import (
    CommandRunner,
    CreateProductCommand,
    RemoveProductCommand,
    UpdateProductCommand,
    run_in_sequence,
)
from catalog.core.config import settings
from catalog.db.models.product import Product as ProductModel
from catalog.domain import ProductChanges, ProductDraft
from catalog.domain.families import DEFAULT_FAMILIES, ProductFamily, ProductRequest, build_product_draft
from catalog.domain.money import to_decimal
from catalog.errors import NOT_FOUND, CommandError, DomainValidationError, NotFoundError
from catalog.events.dispatcher import EventDispatcher
from catalog.events.models import EventType
from catalog.pricing.context import DiscountContext
from catalog.pricing.coordinator import DiscountCoordinator, DiscountResult

logger = logging.getLogger(__name__)

_runner = CommandRunner()


# ----------------------------------------------------------------------
# Write path
# ----------------------------------------------------------------------


def create_product(
    db: Session,
    dispatcher: EventDispatcher,
    draft: ProductDraft,
    actor: str,
    runner: CommandRunner = _runner,
) -> ProductModel:
    """
    Create a product and announce it.

    Raises:
        CommandError: VALIDATION_FAILED for an incomplete draft, DUPLICATE when an
            active product with the same name and brand exists.
    """
    product = runner.handle(CreateProductCommand(db, draft, actor))
    dispatcher.product_created(product, actor)
    return product


def create_product_from_family(
    db: Session,
    dispatcher: EventDispatcher,
    request: ProductRequest,
    actor: str,
    families: Iterable[ProductFamily] = DEFAULT_FAMILIES,
    runner: CommandRunner = _runner,
) -> tuple[ProductModel, ProductDraft]:
    """
    Build a draft through the matching product family, then create it.

    Returns the persisted product and the draft it came from (the draft carries
    the family-specific attributes, which are not stored on the product row).

    Raises:
        DomainValidationError: If the request is invalid or no family accepts it
        CommandError: As for ``create_product``
    """
    draft = build_product_draft(request, families)
    product = create_product(db, dispatcher, draft, actor, runner=runner)
    return product, draft


def update_product(
    db: Session,
    dispatcher: EventDispatcher,
    product_id: int,
    changes: ProductChanges,
    actor: str,
    runner: CommandRunner = _runner,
) -> ProductModel | None:
    """
    Apply a partial update. Returns None when there is no active product with that id.

    Besides PRODUCT_UPDATED, announces the price and stock changes the update made.
    """
    command = UpdateProductCommand(db, product_id, changes, actor)
    try:
        product = runner.handle(command)
    except CommandError as exc:
        if exc.code == NOT_FOUND:
            return None
        raise

    previous = command.previous
    dispatcher.product_updated(product, actor)
    if previous is not None:
        _announce_side_effects(dispatcher, product, previous.price, previous.stock, actor)
    return product


def update_products(
    db: Session,
    dispatcher: EventDispatcher,
    updates: Sequence[tuple[int, ProductChanges]],
    actor: str,
    runner: CommandRunner = _runner,
) -> list[ProductModel]:
    """
    Update several products as one unit of work.

    If any update fails, the ones already applied are undone in reverse order and
    the original error is raised. Events are raised only once every update has
    succeeded.
    """
    commands = [UpdateProductCommand(db, product_id, changes, actor) for product_id, changes in updates]
    products = run_in_sequence(runner, commands)
    for command, product in zip(commands, products):
        dispatcher.product_updated(product, actor)
        previous = command.previous
        if previous is not None:
            _announce_side_effects(dispatcher, product, previous.price, previous.stock, actor)
    logger.info("Batch update of %d product(s) by '%s' completed", len(products), actor)
    return products


def remove_product(
    db: Session,
    dispatcher: EventDispatcher,
    product_id: int,
    actor: str,
    runner: CommandRunner = _runner,
) -> bool:
    """Soft-remove a product. Returns False when there is nothing active to remove."""
    try:
        product = runner.handle(RemoveProductCommand(db, product_id, actor))
    except CommandError as exc:
        if exc.code == NOT_FOUND:
            return False
        raise
    dispatcher.product_removed(product, actor)
    return True


def update_stock(
    db: Session,
    dispatcher: EventDispatcher,
    product_id: int,
    stock: int,
    actor: str,
    runner: CommandRunner = _runner,
) -> ProductModel | None:
    """
    Set the available stock of a product.

    Raises STOCK_CHANGED, followed by STOCK_DEPLETED when stock reaches zero or
    STOCK_LOW when it drops to the low threshold from above it.
    Returns None when there is no active product with that id.

    Raises:
        CommandError: VALIDATION_FAILED for a negative stock
    """
    command = UpdateProductCommand(db, product_id, ProductChanges(stock=stock), actor)
    try:
        product = runner.handle(command)
    except CommandError as exc:
        if exc.code == NOT_FOUND:
            return None
        raise

    previous_stock = command.previous.stock if command.previous is not None else None
    _announce_stock(dispatcher, product, previous_stock, actor)
    return product


def update_price(
    db: Session,
    dispatcher: EventDispatcher,
    product_id: int,
    new_price: Decimal,
    actor: str,
    runner: CommandRunner = _runner,
) -> bool:
    """
    Change the price of a product, announcing PRICE_CHANGED with the previous price.

    Returns False when the product does not exist or the price is unchanged.

    Raises:
        CommandError: VALIDATION_FAILED for a non-positive price
    """
    product = product_repo.get_active_product_by_id(db, product_id)
    if product is None:
        return False
    new_price = to_decimal(new_price)
    if to_decimal(product.price) == new_price:
        logger.debug("Price of product %s unchanged (%s)", product_id, new_price)
        return False

    command = UpdateProductCommand(db, product_id, ProductChanges(price=new_price), actor)
    try:
        product = runner.handle(command)
    except CommandError as exc:
        if exc.code == NOT_FOUND:
            return False
        raise

    dispatcher.price_changed(product, command.previous.price, actor)
    return True


def calculate_discounted_price(
    db: Session,
    coordinator: DiscountCoordinator,
    dispatcher: EventDispatcher,
    product_id: int,
    context: DiscountContext | None,
    actor: str,
) -> DiscountResult:
    """
    Resolve the discount for one unit of a product in the given purchase context.

    Raises:
        NotFoundError: If there is no active product with that id
        DiscountCalculationError: If the discount engine itself fails
    """
    product = product_repo.get_active_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    result = coordinator.resolve(product, context, strict=True)
    if result.has_discount:
        details = (
            f"{result.rule_name}: -{result.amount} "
            f"({result.percentage}%), final price {result.final_price}"
        )
        dispatcher.discount_applied(product, details, actor)
    return result


def _announce_side_effects(
    dispatcher: EventDispatcher,
    product: ProductModel,
    previous_price: Decimal,
    previous_stock: int,
    actor: str,
) -> None:
    if to_decimal(product.price) != to_decimal(previous_price):
        dispatcher.price_changed(product, previous_price, actor)
    if product.stock != previous_stock:
        _announce_stock(dispatcher, product, previous_stock, actor)


def _announce_stock(
    dispatcher: EventDispatcher,
    product: ProductModel,
    previous_stock: int | None,
    actor: str,
) -> None:
    low = settings.stock_low_threshold
    dispatcher.stock_changed(product, actor)
    if product.stock == 0:
        dispatcher.notify_with(
            EventType.STOCK_DEPLETED, product, actor, "Product has run out of stock"
        )
    elif product.stock <= low and (previous_stock is None or previous_stock > low):
        dispatcher.notify_with(
            EventType.STOCK_LOW,
            product,
            actor,
            f"Stock dropped to {product.stock} unit(s)",
            payload=previous_stock,
        )


# ----------------------------------------------------------------------
# Read-only queries
# ----------------------------------------------------------------------


def list_products(db: Session) -> list[ProductModel]:
    return product_repo.get_active_products(db)


def get_product(db: Session, product_id: int) -> ProductModel:
    """
    Raises:
        NotFoundError: If there is no active product with that id
    """
    product = product_repo.get_active_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def list_products_by_category(db: Session, category: str) -> list[ProductModel]:
    return product_repo.get_active_products_by_category(db, category)


def list_products_by_brand(db: Session, brand: str) -> list[ProductModel]:
    return product_repo.get_active_products_by_brand(db, brand)


def search_products(db: Session, text: str) -> list[ProductModel]:
    if not text or not text.strip():
        return []
    return product_repo.search_active_products_by_name(db, text.strip())


def list_products_by_price_range(
    db: Session, min_price: Decimal, max_price: Decimal
) -> list[ProductModel]:
    """
    Raises:
        DomainValidationError: If the range is empty or negative
    """
    if min_price < 0 or max_price < 0:
        raise DomainValidationError("Price bounds must not be negative")
    if min_price > max_price:
        raise DomainValidationError("Minimum price must not exceed maximum price")
    return product_repo.get_active_products_by_price_range(db, min_price, max_price)


def list_products_in_stock(db: Session) -> list[ProductModel]:
    return product_repo.get_active_products_with_stock(db)


def list_categories(db: Session) -> list[str]:
    return product_repo.get_active_categories(db)


def list_brands(db: Session) -> list[str]:
    return product_repo.get_active_brands(db)
