from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from sweetshop.auth.dependencies import get_current_user
from sweetshop.auth.guards import require_admin
from sweetshop.database import get_db
from sweetshop.models.user import User
from sweetshop.routes.payloads import json_body, parse_payload
from sweetshop.services import categories

router = APIRouter(tags=['category'])

MAX_DESCRIPTION_LENGTH = 500


class CreateCategoryRequest(BaseModel):
    name: str
    description: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required')
        return normalized

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')

        return normalized


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias='createdAt')


class CategoryEnvelope(BaseModel):
    category: CategoryResponse


class CategoryListEnvelope(BaseModel):
    categories: list[CategoryResponse]


@router.get('', response_model=CategoryListEnvelope)
def list_categories(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        'categories': [CategoryResponse.model_validate(category) for category in categories.list_categories(db)],
    }


@router.post('', response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
def create_category(
    current_user: User = Depends(require_admin),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_payload(CreateCategoryRequest, payload)
    category = categories.create_category(db, name=data.name, description=data.description)
    return {'category': CategoryResponse.model_validate(category)}
