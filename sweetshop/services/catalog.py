"""Create, update, delete, purchase and restock operations on sweets.

Stock only ever changes through a single conditional ``UPDATE`` issued to
the database, so concurrent purchases against one row are serialized by the
store and can never drive ``stock`` below zero.
"""

import logging
import math
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from sweetshop.auth.guards import ensure_owner
from sweetshop.core.errors import FieldValidationError, InsufficientStock, InvalidReference, NotFound
from sweetshop.database import STORE_INTEGER_MAX, commit_or_unavailable, fits_store_integer
from sweetshop.models.sweet import Sweet
from sweetshop.models.user import User
from sweetshop.services.categories import get_category

logger = logging.getLogger(__name__)

MAX_QUANTITY = STORE_INTEGER_MAX

UPDATABLE_FIELDS = ('name', 'price', 'stock', 'category_id')

# Wire names used in validation error maps.
FIELD_LABELS = {
    'name': 'name',
    'price': 'price',
    'stock': 'stock',
    'category_id': 'categoryId',
    'quantity': 'quantity',
}


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def validate_quantity(quantity: Any) -> int:
    if not _is_integer(quantity) or quantity <= 0:
        raise FieldValidationError.single('quantity', 'Quantity must be a positive integer')
    return quantity


def _collect_field_errors(fields: dict[str, Any]) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    if 'name' in fields:
        name = fields['name']
        if not isinstance(name, str) or not name.strip():
            errors.setdefault(FIELD_LABELS['name'], []).append('Name is required')

    if 'price' in fields:
        price = fields['price']
        if not _is_finite_number(price):
            errors.setdefault(FIELD_LABELS['price'], []).append('Price must be a number')
        elif price < 0:
            errors.setdefault(FIELD_LABELS['price'], []).append('Price must be non-negative')

    if 'stock' in fields:
        stock = fields['stock']
        if not _is_integer(stock):
            errors.setdefault(FIELD_LABELS['stock'], []).append('Stock must be an integer')
        elif stock < 0:
            errors.setdefault(FIELD_LABELS['stock'], []).append('Stock must be non-negative')
        elif stock > MAX_QUANTITY:
            errors.setdefault(FIELD_LABELS['stock'], []).append(f'Stock must be at most {MAX_QUANTITY}')

    if 'category_id' in fields and not _is_integer(fields['category_id']):
        errors.setdefault(FIELD_LABELS['category_id'], []).append('Category ID must be an integer')

    return errors


def _ensure_category_exists(db: Session, category_id: int) -> None:
    if get_category(db, category_id) is None:
        raise InvalidReference('Invalid category')


def list_sweets(db: Session) -> list[Sweet]:
    return db.query(Sweet).order_by(Sweet.id.asc()).all()


def get_sweet(db: Session, sweet_id: int) -> Sweet:
    sweet = db.get(Sweet, sweet_id) if fits_store_integer(sweet_id) else None
    if sweet is None:
        raise NotFound('Sweet not found')
    return sweet


def create_sweet(
    db: Session,
    *,
    owner: User,
    name: str,
    price: float,
    stock: int,
    category_id: int,
) -> Sweet:
    errors = _collect_field_errors({'name': name, 'price': price, 'stock': stock})
    if errors:
        raise FieldValidationError(errors)

    _ensure_category_exists(db, category_id)

    sweet = Sweet(
        name=name.strip(),
        price=price,
        stock=stock,
        category_id=category_id,
        user_id=owner.id,
    )
    db.add(sweet)
    commit_or_unavailable(db)
    db.refresh(sweet)

    logger.info('User %s created sweet %s', owner.id, sweet.id)
    return sweet


def update_sweet(db: Session, *, actor: User, sweet_id: int, fields: dict[str, Any]) -> Sweet:
    sweet = get_sweet(db, sweet_id)
    ensure_owner(actor, sweet)

    changes = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
    if not changes:
        raise FieldValidationError.single('_', 'At least one field must be provided')

    errors = _collect_field_errors(changes)
    if errors:
        raise FieldValidationError(errors)

    if 'category_id' in changes and changes['category_id'] != sweet.category_id:
        _ensure_category_exists(db, changes['category_id'])

    if 'name' in changes:
        changes['name'] = changes['name'].strip()

    for key, value in changes.items():
        setattr(sweet, key, value)

    commit_or_unavailable(db)
    db.refresh(sweet)

    logger.info('User %s updated sweet %s (%s)', actor.id, sweet.id, ', '.join(sorted(changes)))
    return sweet


def delete_sweet(db: Session, *, actor: User, sweet_id: int) -> None:
    sweet = get_sweet(db, sweet_id)
    ensure_owner(actor, sweet)

    db.delete(sweet)
    commit_or_unavailable(db)

    logger.info('User %s deleted sweet %s', actor.id, sweet_id)


def purchase(db: Session, *, sweet_id: int, quantity: int) -> Sweet:
    validate_quantity(quantity)
    sweet = get_sweet(db, sweet_id)

    # Stock never exceeds the column maximum.
    if quantity > MAX_QUANTITY:
        raise InsufficientStock('Insufficient stock')

    result = db.execute(
        update(Sweet)
        .where(Sweet.id == sweet_id, Sweet.stock >= quantity)
        .values(stock=Sweet.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise InsufficientStock('Insufficient stock')

    commit_or_unavailable(db)
    db.refresh(sweet)

    logger.info('Purchased %s of sweet %s, %s left', quantity, sweet_id, sweet.stock)
    return sweet


def restock(db: Session, *, actor: User, sweet_id: int, quantity: int) -> Sweet:
    sweet = get_sweet(db, sweet_id)
    ensure_owner(actor, sweet)
    validate_quantity(quantity)

    if quantity > MAX_QUANTITY:
        raise FieldValidationError.single('quantity', f'Quantity must be at most {MAX_QUANTITY}')

    result = db.execute(
        update(Sweet)
        .where(Sweet.id == sweet_id, Sweet.stock <= MAX_QUANTITY - quantity)
        .values(stock=Sweet.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise FieldValidationError.single('quantity', 'Restock would exceed the maximum stock')

    commit_or_unavailable(db)
    db.refresh(sweet)

    logger.info('User %s restocked sweet %s by %s', actor.id, sweet_id, quantity)
    return sweet
