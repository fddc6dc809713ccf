"""Search filters for the sweet catalog.

Raw query values arrive as strings (or ``None``). Blank values count as
absent, the remaining ones are coerced and validated, and the result is a
conjunction of predicates: all supplied filters must hold.
"""

import math

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from sweetshop.core.errors import FieldValidationError
from sweetshop.database import fits_store_integer
from sweetshop.models.sweet import Sweet

PRICE_RANGE_MESSAGE = 'Minimum price must be <= Maximum price'


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    category_id: int | None = None
    price_min: float | None = None
    price_max: float | None = None

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.category_id is None
            and self.price_min is None
            and self.price_max is None
        )


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _parse_price(value: str | None, field: str, errors: dict[str, list[str]]) -> float | None:
    raw = _blank_to_none(value)
    if raw is None:
        return None
    try:
        price = float(raw)
    except ValueError:
        errors.setdefault(field, []).append('Price must be a number')
        return None
    if not math.isfinite(price) or price < 0:
        errors.setdefault(field, []).append('Price must be a non-negative number')
        return None
    return price


def parse_search_filters(
    name: str | None = None,
    category_id: str | None = None,
    price_min: str | None = None,
    price_max: str | None = None,
) -> SearchFilters:
    errors: dict[str, list[str]] = {}

    parsed_category = None
    raw_category = _blank_to_none(category_id)
    if raw_category is not None:
        try:
            parsed_category = int(raw_category)
        except ValueError:
            errors.setdefault('categoryId', []).append('Category ID must be an integer')
        else:
            if not fits_store_integer(parsed_category):
                errors.setdefault('categoryId', []).append('Category ID is out of range')
                parsed_category = None

    parsed_min = _parse_price(price_min, 'priceMin', errors)
    parsed_max = _parse_price(price_max, 'priceMax', errors)

    if parsed_min is not None and parsed_max is not None and parsed_min > parsed_max:
        errors.setdefault('priceMin', []).append(PRICE_RANGE_MESSAGE)

    if errors:
        raise FieldValidationError(errors)

    return SearchFilters(
        name=_blank_to_none(name),
        category_id=parsed_category,
        price_min=parsed_min,
        price_max=parsed_max,
    )


def build_search_clauses(filters: SearchFilters) -> list:
    clauses = []
    if filters.name is not None:
        clauses.append(Sweet.name.icontains(filters.name, autoescape=True))
    if filters.category_id is not None:
        clauses.append(Sweet.category_id == filters.category_id)
    if filters.price_min is not None:
        clauses.append(Sweet.price >= filters.price_min)
    if filters.price_max is not None:
        clauses.append(Sweet.price <= filters.price_max)
    return clauses


def matches(sweet: Sweet, filters: SearchFilters) -> bool:
    if filters.name is not None and filters.name.lower() not in (sweet.name or '').lower():
        return False
    if filters.category_id is not None and sweet.category_id != filters.category_id:
        return False
    if filters.price_min is not None and sweet.price < filters.price_min:
        return False
    if filters.price_max is not None and sweet.price > filters.price_max:
        return False
    return True


def search_sweets(db: Session, filters: SearchFilters) -> list[Sweet]:
    query = db.query(Sweet)
    if not filters.is_empty():
        query = query.filter(*build_search_clauses(filters))
    return query.order_by(Sweet.id.asc()).all()
