import itertools
import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from sweetshop.auth import jwt_handler  # noqa: E402
from sweetshop.core import config  # noqa: E402
from sweetshop.database import Base, get_db  # noqa: E402
from sweetshop.main import app  # noqa: E402
from sweetshop.models.category import Category  # noqa: E402
from sweetshop.models.sweet import Sweet  # noqa: E402
from sweetshop.models.user import Role, User  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make_user(role: Role = Role.USER, email: str | None = None, name: str = 'User') -> User:
        user = User(
            email=email or f'user{next(counter)}@example.com',
            name=name,
            hashed_password='x',
            role=Role(role).value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_category(db):
    def _make_category(name: str = 'Candy', description: str | None = None) -> Category:
        category = Category(name=name, description=description)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make_category


@pytest.fixture
def make_sweet(db):
    def _make_sweet(owner: User, category: Category, name: str = 'Gum', price: float = 1.0, stock: int = 10) -> Sweet:
        sweet = Sweet(name=name, price=price, stock=stock, category_id=category.id, user_id=owner.id)
        db.add(sweet)
        db.commit()
        db.refresh(sweet)
        return sweet

    return _make_sweet


@pytest.fixture
def make_client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    def _make_client(user: User | None = None, token: str | None = None) -> TestClient:
        if user is not None and token is None:
            token = jwt_handler.create_access_token(subject=str(user.id))
        if token is None:
            return TestClient(app)
        return TestClient(app, cookies={config.AUTH_COOKIE_NAME: token})

    try:
        yield _make_client
    finally:
        app.dependency_overrides.clear()
