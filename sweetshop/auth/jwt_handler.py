from datetime import datetime, timedelta, timezone

import jwt

from sweetshop.core import config


class InvalidTokenError(Exception):
    """The token is malformed, carries a bad signature or lacks required claims."""


class TokenExpiredError(InvalidTokenError):
    """The token was valid but its expiry has passed."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    subject: str,
    expires_minutes: int | None = None,
    now: datetime | None = None,
) -> str:
    issued_at = now or _utcnow()
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = issued_at + timedelta(minutes=expire_minutes)
    payload = {"sub": str(subject), "exp": expire, "iat": issued_at}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(
    token: str,
    secret: str | None = None,
    now: datetime | None = None,
) -> str:
    """Return the subject of a signed token.

    Expiry is checked against ``now`` rather than the wall clock so callers
    can evaluate a token at any instant.
    """
    try:
        payload = jwt.decode(
            token,
            secret or config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "iat"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    try:
        expires_at = float(payload["exp"])
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError("Invalid expiry claim") from exc

    current = now or _utcnow()
    if current.timestamp() >= expires_at:
        raise TokenExpiredError("Token has expired")

    subject = payload["sub"]
    if not subject:
        raise InvalidTokenError("Invalid token subject")
    return subject
