import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sweetshop.auth.passwords import hash_password, verify_password
from sweetshop.core.errors import Conflict, Unauthenticated
from sweetshop.database import commit_or_unavailable
from sweetshop.models.user import Role, User

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_DETAIL = 'A user with that email already exists'
BAD_CREDENTIALS_DETAIL = 'Invalid email or password'


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_user(
    db: Session,
    *,
    email: str,
    name: str,
    password: str,
    role: Role = Role.USER,
) -> User:
    normalized_email = normalize_email(email)
    if find_user_by_email(db, normalized_email) is not None:
        raise Conflict(DUPLICATE_EMAIL_DETAIL)

    user = User(
        email=normalized_email,
        name=name.strip(),
        hashed_password=hash_password(password),
        role=Role(role).value,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(DUPLICATE_EMAIL_DETAIL) from exc
    commit_or_unavailable(db)
    db.refresh(user)

    logger.info('Registered user %s with role %s', user.id, user.role)
    return user


def authenticate_user(db: Session, *, email: str, password: str) -> User:
    user = find_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info('Failed login attempt for %s', normalize_email(email))
        raise Unauthenticated(BAD_CREDENTIALS_DETAIL)
    return user
