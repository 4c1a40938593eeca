"""Concrete commands over the product entity: create, update and soft-remove."""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import catalog.repositories.product as product_repo
from catalog.commands.base import Command
from catalog.db.models.product import Product as ProductModel
from catalog.domain import PRODUCT_INVARIANTS, ProductChanges, ProductDraft, ProductSnapshot
from catalog.domain.money import to_decimal
from catalog.errors import (
    DUPLICATE,
    EXECUTION_FAILED,
    NOT_FOUND,
    UNDO_FAILED,
    VALIDATION_FAILED,
    CommandError,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Text fields stored without surrounding whitespace.
_TRIMMED_FIELDS = ("name", "brand", "category")


def _is_product_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _trimmed(value):
    return value.strip() if isinstance(value, str) else value


class ProductCommand(Command[ProductModel]):
    """Shared persistence plumbing for product commands."""

    def __init__(self, db: Session, actor: str, clock: Clock = datetime.now):
        self._db = db
        self._actor = actor
        self._clock = clock
        self._undone = False

    def _fail(self, code: str, message: str) -> CommandError:
        return CommandError(self.name, code, message)

    def _persist(self, product: ProductModel, failure_code: str) -> ProductModel:
        try:
            return product_repo.save_product(self._db, product)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise self._fail(failure_code, f"Could not persist product: {exc}") from exc

    def _load_for_undo(self, product_id: int) -> ProductModel:
        try:
            product = product_repo.get_product_by_id(self._db, product_id)
        except SQLAlchemyError as exc:
            raise self._fail(UNDO_FAILED, f"Could not load product {product_id}: {exc}") from exc
        if product is None:
            raise self._fail(UNDO_FAILED, f"Product {product_id} no longer exists")
        return product


class CreateProductCommand(ProductCommand):
    def __init__(
        self,
        db: Session,
        draft: ProductDraft,
        actor: str,
        clock: Clock = datetime.now,
    ):
        super().__init__(db, actor, clock)
        self._draft = draft
        self._created_id: int | None = None

    def is_valid(self) -> bool:
        draft = self._draft
        if draft is None:
            return False
        if not draft.brand or not draft.brand.strip():
            return False
        if not draft.category or not draft.category.strip():
            return False
        return PRODUCT_INVARIANTS.is_satisfied(
            name=draft.name, price=draft.price, stock=draft.stock
        )

    def execute(self) -> ProductModel:
        draft = self._draft
        name, brand = _trimmed(draft.name), _trimmed(draft.brand)
        if product_repo.exists_active_by_name_and_brand(self._db, name, brand):
            raise self._fail(
                DUPLICATE,
                f"An active product named '{name}' of brand '{brand}' already exists",
            )

        product = ProductModel(
            name=name,
            description=draft.description,
            price=to_decimal(draft.price),
            category=_trimmed(draft.category),
            brand=brand,
            stock=draft.stock or 0,
            active=True,
            created_at=self._clock(),
        )
        product = self._persist(product, EXECUTION_FAILED)
        self._created_id = product.id
        logger.info("Created product %s '%s'", product.id, product.name)
        return product

    def undo(self) -> None:
        if self._created_id is None or self._undone:
            return
        product = self._load_for_undo(self._created_id)
        product.active = False
        product.modified_at = self._clock()
        self._persist(product, UNDO_FAILED)
        self._undone = True
        logger.info("Undid creation of product %s (deactivated)", self._created_id)

    def describe(self) -> str:
        draft = self._draft
        name = draft.name if draft is not None else None
        brand = draft.brand if draft is not None else None
        return f"{self.name} '{name}' of brand '{brand}' by '{self._actor}'"


class UpdateProductCommand(ProductCommand):
    def __init__(
        self,
        db: Session,
        product_id: int,
        changes: ProductChanges,
        actor: str,
        clock: Clock = datetime.now,
    ):
        super().__init__(db, actor, clock)
        self._product_id = product_id
        self._changes = changes
        self._previous: ProductSnapshot | None = None
        self._updated = False

    @property
    def previous(self) -> ProductSnapshot | None:
        """State before the update, once ``execute`` has captured it."""
        return self._previous

    def is_valid(self) -> bool:
        return _is_product_id(self._product_id) and self._changes is not None

    def execute(self) -> ProductModel:
        product = product_repo.get_product_by_id(self._db, self._product_id)
        if product is None or not product.active:
            raise self._fail(NOT_FOUND, f"No active product with id {self._product_id}")

        self._previous = ProductSnapshot.from_model(product)
        incoming = self._changes.present()
        for field_name in _TRIMMED_FIELDS:
            if field_name in incoming:
                incoming[field_name] = _trimmed(incoming[field_name])

        final_name = incoming.get("name", product.name)
        final_brand = incoming.get("brand", product.brand)
        final_price = incoming.get("price", product.price)
        final_stock = incoming.get("stock", product.stock)

        problems = PRODUCT_INVARIANTS.violations(
            name=final_name, price=final_price, stock=final_stock
        )
        if problems:
            raise self._fail(VALIDATION_FAILED, "; ".join(problems))

        if "name" in incoming or "brand" in incoming:
            if product_repo.exists_active_by_name_and_brand(
                self._db, final_name, final_brand, exclude_id=product.id
            ):
                raise self._fail(
                    DUPLICATE,
                    f"An active product named '{final_name}' of brand '{final_brand}' already exists",
                )

        for field_name, value in incoming.items():
            if field_name == "price":
                value = to_decimal(value)
            setattr(product, field_name, value)
        product.modified_at = self._clock()

        product = self._persist(product, EXECUTION_FAILED)
        self._updated = True
        return product

    def undo(self) -> None:
        if not self._updated or self._previous is None or self._undone:
            return
        product = self._load_for_undo(self._product_id)
        self._previous.apply_to(product)
        self._persist(product, UNDO_FAILED)
        self._undone = True
        logger.info("Undid update of product %s", self._product_id)

    def describe(self) -> str:
        return f"{self.name} id '{self._product_id}' by '{self._actor}'"


class RemoveProductCommand(ProductCommand):
    """Soft delete: flips ``active`` off and keeps the row."""

    def __init__(
        self,
        db: Session,
        product_id: int,
        actor: str,
        clock: Clock = datetime.now,
    ):
        super().__init__(db, actor, clock)
        self._product_id = product_id
        self._previous: ProductSnapshot | None = None
        self._removed = False

    def is_valid(self) -> bool:
        return _is_product_id(self._product_id)

    def execute(self) -> ProductModel:
        product = product_repo.get_product_by_id(self._db, self._product_id)
        if product is None:
            raise self._fail(NOT_FOUND, f"No product with id {self._product_id}")
        if not product.active:
            raise self._fail(NOT_FOUND, f"Product {self._product_id} is already removed")

        self._previous = ProductSnapshot.from_model(product)
        product.active = False
        product.modified_at = self._clock()

        product = self._persist(product, EXECUTION_FAILED)
        self._removed = True
        logger.info("Removed product %s '%s'", product.id, product.name)
        return product

    def undo(self) -> None:
        if not self._removed or self._previous is None or self._undone:
            return
        product = self._load_for_undo(self._product_id)
        self._previous.apply_to(product)
        self._persist(product, UNDO_FAILED)
        self._undone = True
        logger.info("Undid removal of product %s (reactivated)", self._product_id)

    def describe(self) -> str:
        return f"{self.name} id '{self._product_id}' by '{self._actor}'"
