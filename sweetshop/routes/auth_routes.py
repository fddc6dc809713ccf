from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from sweetshop.auth import jwt_handler
from sweetshop.auth.dependencies import get_current_user, read_session_token
from sweetshop.core import config
from sweetshop.database import get_db
from sweetshop.models.user import Role, User
from sweetshop.services import accounts

router = APIRouter(tags=['auth'])


class RegisterRequest(BaseModel):
    email: EmailStr
    name: str
    password: str
    role: Role = Role.USER

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('User name is required for account creation.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < config.PASSWORD_MIN_LENGTH:
            raise ValueError(f'Password must be at least {config.PASSWORD_MIN_LENGTH} characters')
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        return value


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    email: str
    name: str
    role: Role
    created_at: datetime | None = Field(default=None, alias='createdAt')


class UserEnvelope(BaseModel):
    user: UserResponse


def set_session_cookie(response: Response, user: User) -> None:
    token = jwt_handler.create_access_token(subject=str(user.id))
    response.set_cookie(
        key=config.AUTH_COOKIE_NAME,
        value=token,
        max_age=config.JWT_EXPIRES_MINUTES * 60,
        httponly=True,
        samesite='lax',
        secure=config.is_production(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.AUTH_COOKIE_NAME,
        httponly=True,
        samesite='lax',
        secure=config.is_production(),
    )


@router.post('/register', response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    user = accounts.register_user(
        db,
        email=data.email,
        name=data.name,
        password=data.password,
        role=data.role,
    )
    set_session_cookie(response, user)
    return {'user': UserResponse.model_validate(user)}


@router.post('/login', response_model=UserEnvelope)
def login(data: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    if read_session_token(request.headers.get('cookie')):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Already authenticated')

    user = accounts.authenticate_user(db, email=data.email, password=data.password)
    set_session_cookie(response, user)
    return {'user': UserResponse.model_validate(user)}


@router.get('/me', response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return {'user': UserResponse.model_validate(current_user)}


@router.post('/logout')
def logout(response: Response):
    clear_session_cookie(response)
    return {'message': 'Logged out'}
