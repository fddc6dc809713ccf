import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from sweetshop.core.errors import Conflict, FieldValidationError
from sweetshop.database import commit_or_unavailable, fits_store_integer
from sweetshop.models.category import Category

logger = logging.getLogger(__name__)


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def get_category(db: Session, category_id: int) -> Category | None:
    if not fits_store_integer(category_id):
        return None
    return db.get(Category, category_id)


def create_category(db: Session, *, name: str, description: str | None = None) -> Category:
    normalized_name = (name or '').strip()
    if not normalized_name:
        raise FieldValidationError.single('name', 'Name is required')

    existing = db.query(Category).filter(
        func.lower(Category.name) == normalized_name.lower(),
    ).first()
    if existing:
        raise Conflict('Category already exists')

    category = Category(name=normalized_name, description=description)
    db.add(category)
    commit_or_unavailable(db)
    db.refresh(category)

    logger.info('Created category %s (%s)', category.id, category.name)
    return category
