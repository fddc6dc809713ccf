from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from sweetshop.core import config
from sweetshop.core.errors import StoreUnavailable


engine = create_engine(
    config.DATABASE_URL,
    connect_args={"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_unavailable(db) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailable() from exc


# Largest value an INTEGER column can hold (signed 64-bit).
STORE_INTEGER_MAX = 2**63 - 1


def fits_store_integer(value: int) -> bool:
    return -STORE_INTEGER_MAX - 1 <= value <= STORE_INTEGER_MAX
