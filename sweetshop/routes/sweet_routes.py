from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from sqlalchemy.orm import Session

from sweetshop.auth.dependencies import get_current_user
from sweetshop.auth.guards import require_admin
from sweetshop.database import get_db
from sweetshop.models.user import User
from sweetshop.routes.category_routes import CategoryResponse
from sweetshop.routes.payloads import json_body, parse_payload
from sweetshop.services import catalog, search

router = APIRouter(tags=['sweets'])

# Wire name -> model attribute for partial updates.
UPDATE_FIELD_ALIASES = {
    'name': 'name',
    'price': 'price',
    'stock': 'stock',
    'categoryId': 'category_id',
}


class CreateSweetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: StrictInt = Field(ge=0, le=catalog.MAX_QUANTITY)
    category_id: StrictInt = Field(alias='categoryId')

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required')
        return normalized


class PurchaseRequest(BaseModel):
    quantity: StrictInt

    @field_validator('quantity')
    @classmethod
    def validate_quantity(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Quantity must be a positive integer')
        return value


class SweetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    price: float
    stock: int
    category_id: int = Field(alias='categoryId')
    user_id: int = Field(alias='userId')
    created_at: datetime | None = Field(default=None, alias='createdAt')
    updated_at: datetime | None = Field(default=None, alias='updatedAt')
    category: CategoryResponse | None = None


class SweetEnvelope(BaseModel):
    sweet: SweetResponse


class SweetListEnvelope(BaseModel):
    sweets: list[SweetResponse]


def sweet_changes(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        UPDATE_FIELD_ALIASES[key]: value
        for key, value in payload.items()
        if key in UPDATE_FIELD_ALIASES
    }


def _sweet_list(sweets) -> dict:
    return {'sweets': [SweetResponse.model_validate(sweet) for sweet in sweets]}


@router.get('', response_model=SweetListEnvelope)
def list_sweets(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _sweet_list(catalog.list_sweets(db))


@router.get('/search', response_model=SweetListEnvelope)
def search_sweets(
    name: str | None = Query(default=None),
    category_id: str | None = Query(default=None, alias='categoryId'),
    price_min: str | None = Query(default=None, alias='priceMin'),
    price_max: str | None = Query(default=None, alias='priceMax'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    filters = search.parse_search_filters(
        name=name,
        category_id=category_id,
        price_min=price_min,
        price_max=price_max,
    )
    return _sweet_list(search.search_sweets(db, filters))


@router.post('', response_model=SweetEnvelope, status_code=status.HTTP_201_CREATED)
def create_sweet(
    current_user: User = Depends(require_admin),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_payload(CreateSweetRequest, payload)
    sweet = catalog.create_sweet(
        db,
        owner=current_user,
        name=data.name,
        price=data.price,
        stock=data.stock,
        category_id=data.category_id,
    )
    return {'sweet': SweetResponse.model_validate(sweet)}


# Update and restock bodies are checked by the catalog after ownership, so a
# non-owner is refused regardless of what they send.
@router.put('/{sweet_id}', response_model=SweetEnvelope)
def update_sweet(
    sweet_id: int,
    current_user: User = Depends(require_admin),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    sweet = catalog.update_sweet(
        db,
        actor=current_user,
        sweet_id=sweet_id,
        fields=sweet_changes(payload if isinstance(payload, dict) else {}),
    )
    return {'sweet': SweetResponse.model_validate(sweet)}


@router.delete('/{sweet_id}')
def delete_sweet(
    sweet_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog.delete_sweet(db, actor=current_user, sweet_id=sweet_id)
    return {'deleted': True}


@router.post('/{sweet_id}/purchase', response_model=SweetEnvelope)
def purchase_sweet(
    sweet_id: int,
    current_user: User = Depends(get_current_user),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_payload(PurchaseRequest, payload)
    sweet = catalog.purchase(db, sweet_id=sweet_id, quantity=data.quantity)
    return {'sweet': SweetResponse.model_validate(sweet)}


@router.post('/{sweet_id}/restock', response_model=SweetEnvelope)
def restock_sweet(
    sweet_id: int,
    current_user: User = Depends(require_admin),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    sweet = catalog.restock(
        db,
        actor=current_user,
        sweet_id=sweet_id,
        quantity=payload.get('quantity') if isinstance(payload, dict) else None,
    )
    return {'sweet': SweetResponse.model_validate(sweet)}
