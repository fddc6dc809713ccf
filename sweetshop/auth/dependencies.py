import logging
from datetime import datetime

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.requests import cookie_parser

from sweetshop.auth import jwt_handler
from sweetshop.core import config
from sweetshop.core.errors import Unauthenticated
from sweetshop.database import fits_store_integer, get_db
from sweetshop.models.user import User

logger = logging.getLogger(__name__)


def read_session_token(cookie_header: str | None) -> str | None:
    if not cookie_header:
        return None
    token = cookie_parser(cookie_header).get(config.AUTH_COOKIE_NAME)
    return token or None


def resolve_session_user(token: str | None, db: Session, now: datetime | None = None) -> User:
    if not token:
        raise Unauthenticated()

    try:
        subject = jwt_handler.decode_access_token(token, now=now)
    except jwt_handler.TokenExpiredError as exc:
        logger.info("Rejected expired session token")
        raise Unauthenticated("Session expired") from exc
    except jwt_handler.InvalidTokenError as exc:
        logger.info("Rejected invalid session token: %s", exc)
        raise Unauthenticated("Invalid authentication token") from exc

    try:
        user_id = int(subject)
    except ValueError as exc:
        raise Unauthenticated("Invalid authentication token") from exc
    if not fits_store_integer(user_id):
        raise Unauthenticated("Invalid authentication token")

    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated()
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = read_session_token(request.headers.get("cookie"))
    user = resolve_session_user(token, db)
    request.state.user = user
    return user
